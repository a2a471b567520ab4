"""Widget document served as a UI resource."""

import re
from dataclasses import dataclass
from pathlib import Path

WIDGET_URI = "ui://widgets/list_products.html"
WIDGET_MIME_TYPE = "text/html"
WIDGET_TEMPLATE_PATH = Path(__file__).with_name("list_products.html")
ASSETS_DIR = Path(__file__).with_name("assets")

_ASSET_ATTRIBUTE = re.compile(r'(src|href)="/assets')


def rewrite_asset_urls(html: str, base_url: str) -> str:
    """Point root-relative asset references at an absolute base URL."""
    base = base_url.rstrip("/")
    return _ASSET_ATTRIBUTE.sub(lambda match: f'{match.group(1)}="{base}/assets', html)


@dataclass(frozen=True)
class WidgetResource:
    """A named HTML document advertised to the agent host."""

    uri: str
    name: str
    description: str
    mime_type: str
    text: str

    @classmethod
    def load(
        cls, base_url: str, template_path: Path = WIDGET_TEMPLATE_PATH
    ) -> "WidgetResource":
        """Read the widget template and rewrite its asset URLs."""
        raw = template_path.read_text(encoding="utf-8")
        return cls(
            uri=WIDGET_URI,
            name="list_products-widget",
            description="Products listing widget",
            mime_type=WIDGET_MIME_TYPE,
            text=rewrite_asset_urls(raw, base_url),
        )

    def descriptor(self) -> dict[str, object]:
        """Return the resources/list entry."""
        return {
            "uri": self.uri,
            "name": self.name,
            "description": self.description,
            "mimeType": self.mime_type,
        }

    def contents(self) -> dict[str, object]:
        """Return the resources/read body."""
        return {
            "contents": [
                {"uri": self.uri, "mimeType": self.mime_type, "text": self.text}
            ]
        }
