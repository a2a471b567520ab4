"""Tool dispatcher for listing products and creating checkout links."""

import json
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from checkout_demo.adapters.stripe_client import PaymentGateway
from checkout_demo.domain.catalog import (
    AggregatedLineItem,
    CheckoutItemRequest,
    CheckoutSession,
)
from checkout_demo.domain.tools import ToolResult
from checkout_demo.errors import GatewayError, GatewayNotConfigured, UnknownToolError
from checkout_demo.services.catalog import mock_products
from checkout_demo.services.checkout import aggregate_line_items
from checkout_demo.widget.resource import WidgetResource

_logger = logging.getLogger(__name__)

LIST_PRODUCTS = "list_products"
BUY_PRODUCTS = "buy_products"

MOCK_CHECKOUT_URL = "https://checkout.stripe.com/mock"


class CheckoutItemInput(BaseModel):
    """Line item accepted by buy_products."""

    model_config = ConfigDict(populate_by_name=True)

    price_id: str = Field(
        alias="priceId", min_length=1, description="The Stripe price ID"
    )
    quantity: int = Field(ge=1, description="Quantity")

    @field_validator("quantity", mode="before")
    @classmethod
    def _require_number(cls, value: object) -> object:
        if isinstance(value, bool) or not isinstance(value, int | float):
            raise ValueError("quantity must be a number")
        return value


class BuyProductsInput(BaseModel):
    """Arguments accepted by buy_products."""

    items: list[CheckoutItemInput] = Field(
        min_length=1, description="Line items to checkout"
    )


@dataclass
class ToolDispatcher:
    """Route named tool invocations to their handlers."""

    gateway: PaymentGateway
    widget: WidgetResource
    use_mock: bool
    clock: Callable[[], float] = field(default=time.time)

    def list_tools(self) -> list[dict[str, object]]:
        """Return the tool descriptors advertised by tools/list."""
        return [
            {
                "name": LIST_PRODUCTS,
                "description": "List the products available for purchase",
                "inputSchema": {"type": "object", "properties": {}},
                "annotations": {"readOnlyHint": True},
                "_meta": {
                    "openai/outputTemplate": self.widget.uri,
                    "ui/resourceUri": self.widget.uri,
                },
            },
            {
                "name": BUY_PRODUCTS,
                "description": (
                    "Create a checkout page link for purchasing the selected products"
                ),
                "inputSchema": BuyProductsInput.model_json_schema(by_alias=True),
                "_meta": {"openai/widgetAccessible": True},
            },
        ]

    async def call(
        self, name: str, arguments: dict[str, object] | None = None
    ) -> ToolResult:
        """Invoke a tool by name and always return a well-formed result."""
        handlers: dict[str, Callable[[], Awaitable[ToolResult]]] = {
            LIST_PRODUCTS: self.list_products,
            BUY_PRODUCTS: lambda: self.buy_products(arguments or {}),
        }
        handler = handlers.get(name)
        if handler is None:
            raise UnknownToolError(name)
        try:
            return await handler()
        except Exception:
            _logger.exception("Tool %s raised", name)
            return ToolResult(text=f"Tool {name} failed. Try again.", is_error=True)

    async def list_products(self) -> ToolResult:
        """Return the catalog, falling back to mock data when unconfigured."""
        if self.use_mock:
            _logger.info("Using mock products")
            products = mock_products()
        else:
            try:
                products = await self.gateway.list_products()
            except GatewayNotConfigured:
                _logger.warning("Payment provider not configured, using mock products")
                products = mock_products()
            except GatewayError:
                _logger.exception("Listing products failed")
                return ToolResult(
                    text="Failed to load products. Try again.", is_error=True
                )
        return ToolResult(
            text=self.widget.text,
            structured_content={
                "products": [product.to_payload() for product in products]
            },
        )

    async def buy_products(self, arguments: dict[str, object]) -> ToolResult:
        """Validate line items and create a checkout link."""
        try:
            payload = BuyProductsInput.model_validate(arguments)
        except ValidationError as exc:
            return ToolResult(
                text=f"Invalid arguments for {BUY_PRODUCTS}: {_describe(exc)}",
                is_error=True,
            )
        line_items = aggregate_line_items(
            [
                CheckoutItemRequest(price_id=item.price_id, quantity=item.quantity)
                for item in payload.items
            ]
        )

        if self.use_mock:
            session = self._mock_checkout_session(line_items)
            return ToolResult(
                text=f"[Checkout]({session.url}) (mock)",
                structured_content=session.to_payload(),
            )

        try:
            session = await self.gateway.create_checkout_session(line_items)
        except GatewayError:
            _logger.exception("Checkout failed")
            return ToolResult(text="Checkout failed. Try again.", is_error=True)
        return ToolResult(
            text=f"[Checkout]({session.url})",
            structured_content=session.to_payload(),
        )

    def _mock_checkout_session(
        self, line_items: list[AggregatedLineItem]
    ) -> CheckoutSession:
        items_json = json.dumps(
            [item.to_payload() for item in line_items], separators=(",", ":")
        )
        encoded = quote(items_json, safe="")
        return CheckoutSession(
            id=f"cs_mock_{int(self.clock() * 1000)}",
            url=f"{MOCK_CHECKOUT_URL}?items={encoded}",
        )


def _describe(exc: ValidationError) -> str:
    """Summarize pydantic errors as `path: message` pairs."""
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "arguments"
        parts.append(f"{location}: {error['msg']}")
    return "; ".join(parts)
