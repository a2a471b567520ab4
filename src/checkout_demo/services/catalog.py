"""Fallback catalog used when no payment provider is configured."""

from checkout_demo.domain.catalog import Product

MOCK_PRODUCTS: tuple[Product, ...] = (
    Product(
        id="prod_1",
        price_id="price_1",
        name="Wilson Basketball",
        description="Official NBA game ball",
        image="https://images.unsplash.com/photo-1546519638-68e109498ffc?w=200",
        price=6499,
        currency="USD",
    ),
    Product(
        id="prod_2",
        price_id="price_2",
        name="Nike Soccer Ball",
        description="FIFA approved match ball",
        image="https://images.unsplash.com/photo-1579952363873-27f3bade9f55?w=200",
        price=3999,
        currency="USD",
    ),
    Product(
        id="prod_3",
        price_id="price_3",
        name="Tennis Racket",
        description="Professional grade racket",
        image="https://images.unsplash.com/photo-1612872087720-bb876e2e67d1?w=200",
        price=12999,
        currency="USD",
    ),
)


def mock_products() -> list[Product]:
    """Return the fixed fallback product list."""
    return list(MOCK_PRODUCTS)
