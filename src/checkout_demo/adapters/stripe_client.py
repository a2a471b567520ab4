"""Stripe REST API client adapter."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

import httpx

from checkout_demo.config import is_valid_stripe_key
from checkout_demo.domain.catalog import AggregatedLineItem, CheckoutSession, Product
from checkout_demo.errors import GatewayError, GatewayNotConfigured

_logger = logging.getLogger(__name__)

_NOT_CONFIGURED = (
    "Stripe is not configured. Set STRIPE_SECRET_KEY (sk_test_... or sk_live_...)."
)


class PaymentGateway(Protocol):
    """Interface for the catalog and payment provider."""

    async def list_products(self) -> list[Product]:
        """Return active products that have a default price."""

    async def create_checkout_session(
        self, line_items: Sequence[AggregatedLineItem]
    ) -> CheckoutSession:
        """Create a hosted checkout page for the given line items."""


@dataclass
class HttpxStripeClient(PaymentGateway):
    """Stripe client implemented with httpx."""

    secret_key: str | None
    base_url: str
    redirect_base_url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(
        cls, secret_key: str | None, base_url: str, redirect_base_url: str
    ) -> "HttpxStripeClient":
        """Create a Stripe client with a managed httpx session."""
        return cls(
            secret_key=secret_key,
            base_url=base_url.rstrip("/"),
            redirect_base_url=redirect_base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
        )

    @property
    def is_configured(self) -> bool:
        """Return True when the secret key has a recognised prefix."""
        return is_valid_stripe_key(self.secret_key)

    async def list_products(self) -> list[Product]:
        """List active products with their default price expanded."""
        payload = await self._request(
            "GET",
            "/products",
            params=[("active", "true"), ("expand[]", "data.default_price")],
        )
        products: list[Product] = []
        for raw in payload.get("data", []):
            product = _parse_product(raw)
            if product is not None:
                products.append(product)
        return products

    async def create_checkout_session(
        self, line_items: Sequence[AggregatedLineItem]
    ) -> CheckoutSession:
        """Create a payment-mode checkout session."""
        form: dict[str, str] = {"mode": "payment"}
        for index, item in enumerate(line_items):
            form[f"line_items[{index}][price]"] = item.price_id
            form[f"line_items[{index}][quantity]"] = str(item.quantity)
        form["success_url"] = f"{self.redirect_base_url}/success"
        form["cancel_url"] = f"{self.redirect_base_url}/cancel"

        payload = await self._request("POST", "/checkout/sessions", data=form)
        session_id = payload.get("id")
        url = payload.get("url")
        if not isinstance(session_id, str) or not isinstance(url, str):
            raise GatewayError("Stripe returned a checkout session without a URL")
        return CheckoutSession(id=session_id, url=url)

    async def close(self) -> None:
        """Close the underlying HTTP client session."""
        await self.http_client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: list[tuple[str, str]] | None = None,
        data: dict[str, str] | None = None,
    ) -> dict[str, object]:
        if not self.is_configured:
            raise GatewayNotConfigured(_NOT_CONFIGURED)
        try:
            response = await self.http_client.request(
                method,
                f"{self.base_url}{path}",
                params=params,
                data=data,
                headers={"Authorization": f"Bearer {self.secret_key}"},
                timeout=20,
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            _logger.warning(
                "Stripe %s %s failed with status %s",
                method,
                path,
                exc.response.status_code,
            )
            raise GatewayError(_error_message(exc.response)) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise GatewayError(f"Stripe request failed: {exc}") from exc
        if not isinstance(payload, dict):
            raise GatewayError("Stripe returned an unexpected payload")
        return payload


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"Stripe returned status {response.status_code}"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and isinstance(error.get("message"), str):
        return error["message"]
    return f"Stripe returned status {response.status_code}"


def _parse_product(raw: object) -> Product | None:
    """Map a Stripe product with an expanded default price to a Product."""
    if not isinstance(raw, dict):
        return None
    price = raw.get("default_price")
    if not isinstance(price, dict):
        return None
    images = raw.get("images") or []
    unit_amount = price.get("unit_amount")
    return Product(
        id=str(raw.get("id", "")),
        price_id=str(price.get("id", "")),
        name=str(raw.get("name", "")),
        description=raw.get("description"),
        image=images[0] if images else None,
        price=int(unit_amount) if isinstance(unit_amount, int) else 0,
        currency=str(price.get("currency", "")).upper(),
    )
