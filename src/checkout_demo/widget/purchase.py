"""Purchase state machine behind the products widget."""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from checkout_demo.domain.catalog import Product
from checkout_demo.domain.tools import ToolResult

_logger = logging.getLogger(__name__)

SELECT_PRODUCT_MESSAGE = "Select at least one product to continue."
CHECKOUT_READY_MESSAGE = "Checkout ready! Click below to complete your purchase."
NO_URL_MESSAGE = "No checkout URL returned. Please try again."
CHECKOUT_FAILED_MESSAGE = "Failed to start checkout. Please try again."


class PurchaseStatus(Enum):
    """Checkout submission status."""

    IDLE = "IDLE"
    SUBMITTING = "SUBMITTING"
    READY = "READY"
    FAILED = "FAILED"


class ToolCaller(Protocol):
    """Interface for invoking a server tool from the widget."""

    async def call_tool(
        self, name: str, arguments: dict[str, object] | None = None
    ) -> ToolResult:
        """Invoke a named tool and return its result."""


@dataclass
class PurchaseState:
    """Selected quantities and checkout progress."""

    quantities: dict[str, int] = field(default_factory=dict)
    status: PurchaseStatus = PurchaseStatus.IDLE
    checkout_url: str | None = None
    message: str | None = None


@dataclass
class PurchaseStateMachine:
    """Drive quantity selection, checkout submission and the external handoff.

    Once a checkout link exists it is final: submitting again opens the
    existing link instead of calling ``buy_products`` a second time.
    """

    tool_caller: ToolCaller
    open_external: Callable[[str], None]
    state: PurchaseState = field(default_factory=PurchaseState)

    def quantity(self, price_id: str) -> int:
        """Return the selected quantity for a price id."""
        return self.state.quantities.get(price_id, 0)

    def adjust(self, price_id: str, delta: int) -> int:
        """Change a quantity by delta, never going below zero."""
        updated = max(0, self.quantity(price_id) + delta)
        self.state.quantities[price_id] = updated
        return updated

    def selected_items(self) -> list[dict[str, object]]:
        """Return the non-zero selections as buy_products line items."""
        return [
            {"priceId": price_id, "quantity": quantity}
            for price_id, quantity in self.state.quantities.items()
            if quantity > 0
        ]

    @property
    def can_checkout(self) -> bool:
        """Return True when a link exists or something is selected."""
        return self.state.checkout_url is not None or bool(self.selected_items())

    def total_amount(self, products: Sequence[Product]) -> int:
        """Sum price times selected quantity, in minor currency units."""
        return sum(
            product.price * self.quantity(product.price_id) for product in products
        )

    async def submit(self) -> None:
        """Request a checkout link, or open the one already obtained."""
        if self.state.checkout_url is not None:
            self.open_checkout()
            return
        if self.state.status is PurchaseStatus.SUBMITTING:
            return
        items = self.selected_items()
        if not items:
            self.state.message = SELECT_PRODUCT_MESSAGE
            return

        self.state.status = PurchaseStatus.SUBMITTING
        self.state.message = None
        try:
            result = await self.tool_caller.call_tool("buy_products", {"items": items})
        except Exception:
            _logger.exception("Failed to start checkout")
            self._fail(CHECKOUT_FAILED_MESSAGE)
            return

        url = result.structured_content.get("checkoutSessionUrl")
        if result.is_error:
            self._fail(result.text or CHECKOUT_FAILED_MESSAGE)
        elif not isinstance(url, str) or not url:
            self._fail(NO_URL_MESSAGE)
        else:
            self.state.checkout_url = url
            self.state.status = PurchaseStatus.READY
            self.state.message = CHECKOUT_READY_MESSAGE

    def open_checkout(self) -> bool:
        """Hand the checkout link to the host; no state change."""
        if self.state.checkout_url is None:
            return False
        self.open_external(self.state.checkout_url)
        return True

    def _fail(self, message: str) -> None:
        self.state.status = PurchaseStatus.FAILED
        self.state.message = message
