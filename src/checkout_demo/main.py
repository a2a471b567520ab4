"""Command-line entrypoint that serves the checkout demo."""

import logging

import uvicorn

from checkout_demo.api.app import create_app
from checkout_demo.app_logging import configure_logging
from checkout_demo.config import Settings
from checkout_demo.containers import build_container

_logger = logging.getLogger(__name__)


def startup_banner(settings: Settings) -> list[str]:
    """Return the lines announcing the endpoint and operating mode."""
    base_url = settings.resolved_base_url()
    return [
        "Stripe Checkout Demo",
        f"MCP: {base_url}/mcp",
        f"Mode: {'MOCK' if settings.use_mock else 'LIVE'}",
    ]


def main() -> None:
    """Run the server with uvicorn."""
    settings = Settings()
    configure_logging(settings.log_level)
    for line in startup_banner(settings):
        _logger.info(line)
    app = create_app(build_container(settings))
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
