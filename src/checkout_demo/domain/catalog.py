"""Domain models for products and checkout."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Product:
    """A purchasable item with its default price."""

    id: str
    price_id: str
    name: str
    description: str | None
    image: str | None
    price: int
    currency: str

    def to_payload(self) -> dict[str, object]:
        """Render the product with wire-format keys."""
        return {
            "id": self.id,
            "priceId": self.price_id,
            "name": self.name,
            "description": self.description,
            "image": self.image,
            "price": self.price,
            "currency": self.currency,
        }


@dataclass(frozen=True)
class CheckoutItemRequest:
    """Requested line item before sanitizing."""

    price_id: str
    quantity: float


@dataclass(frozen=True)
class AggregatedLineItem:
    """Line item ready for submission to the payment provider."""

    price_id: str
    quantity: int

    def to_payload(self) -> dict[str, object]:
        """Render the line item with wire-format keys."""
        return {"priceId": self.price_id, "quantity": self.quantity}


@dataclass(frozen=True)
class CheckoutSession:
    """Hosted checkout page created by the payment provider."""

    id: str
    url: str

    def to_payload(self) -> dict[str, str]:
        """Render the checkout session with wire-format keys."""
        return {"checkoutSessionId": self.id, "checkoutSessionUrl": self.url}
