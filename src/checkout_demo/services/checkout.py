"""Checkout line item aggregation."""

import math
from collections.abc import Sequence

from checkout_demo.domain.catalog import AggregatedLineItem, CheckoutItemRequest


def sanitize_quantity(quantity: float) -> int:
    """Floor a requested quantity and clamp it to at least one.

    NaN and infinities count as a single unit.
    """
    if not math.isfinite(quantity):
        return 1
    return max(1, math.floor(quantity))


def aggregate_line_items(
    items: Sequence[CheckoutItemRequest],
) -> list[AggregatedLineItem]:
    """Merge duplicate price ids, keeping first-seen order."""
    if not items:
        raise ValueError("At least one line item is required")
    totals: dict[str, int] = {}
    for item in items:
        totals[item.price_id] = totals.get(item.price_id, 0) + sanitize_quantity(
            item.quantity
        )
    return [
        AggregatedLineItem(price_id=price_id, quantity=quantity)
        for price_id, quantity in totals.items()
    ]
