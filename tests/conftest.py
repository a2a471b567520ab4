"""Shared test fixtures."""

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field

import pytest

from checkout_demo.adapters.stripe_client import PaymentGateway
from checkout_demo.config import Settings
from checkout_demo.containers import AppContainer
from checkout_demo.domain.catalog import AggregatedLineItem, CheckoutSession, Product
from checkout_demo.services.protocol import ProtocolHandler
from checkout_demo.services.sessions import SessionRegistry
from checkout_demo.services.tools import ToolDispatcher
from checkout_demo.widget.resource import WidgetResource

BASE_URL = "http://localhost:3001"


@dataclass
class FakePaymentGateway(PaymentGateway):
    """Fake gateway that records calls and can be told to fail."""

    products: list[Product] = field(
        default_factory=lambda: [
            Product(
                id="prod_live",
                price_id="price_live",
                name="Live Ball",
                description=None,
                image=None,
                price=2500,
                currency="EUR",
            )
        ]
    )
    error: Exception | None = None
    list_calls: int = 0
    checkout_calls: list[list[AggregatedLineItem]] = field(default_factory=list)
    checkout_started: asyncio.Event | None = None
    checkout_release: asyncio.Event | None = None

    async def list_products(self) -> list[Product]:
        self.list_calls += 1
        if self.error is not None:
            raise self.error
        return self.products

    async def create_checkout_session(
        self, line_items: Sequence[AggregatedLineItem]
    ) -> CheckoutSession:
        self.checkout_calls.append(list(line_items))
        if self.checkout_started is not None:
            self.checkout_started.set()
        if self.checkout_release is not None:
            await self.checkout_release.wait()
        if self.error is not None:
            raise self.error
        return CheckoutSession(
            id="cs_test_1", url="https://checkout.stripe.com/c/cs_test_1"
        )


@dataclass
class FakeClock:
    """Manually advanced monotonic clock."""

    now: float = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def build_test_container(
    settings: Settings,
    gateway: PaymentGateway,
    registry_clock: FakeClock | None = None,
) -> AppContainer:
    widget = WidgetResource.load(settings.resolved_base_url())
    dispatcher = ToolDispatcher(
        gateway=gateway,
        widget=widget,
        use_mock=settings.use_mock,
        clock=lambda: 1700000000.123,
    )
    handler = ProtocolHandler(dispatcher=dispatcher, widget=widget)
    registry = (
        SessionRegistry(handler=handler, clock=registry_clock)
        if registry_clock is not None
        else SessionRegistry(handler=handler)
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        gateway=gateway,
        widget=widget,
        tool_dispatcher=dispatcher,
        session_registry=registry,
        close_resources=close_resources,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(stripe_secret_key=None, base_url=BASE_URL)


@pytest.fixture
def live_settings() -> Settings:
    return Settings(stripe_secret_key="sk_test_123", base_url=BASE_URL)


@pytest.fixture
def gateway() -> FakePaymentGateway:
    return FakePaymentGateway()


@pytest.fixture
def widget() -> WidgetResource:
    return WidgetResource.load(BASE_URL)


@pytest.fixture
def container(settings: Settings, gateway: FakePaymentGateway) -> AppContainer:
    return build_test_container(settings, gateway)


@pytest.fixture
def live_container(
    live_settings: Settings, gateway: FakePaymentGateway
) -> AppContainer:
    return build_test_container(live_settings, gateway)


def initialize_message(message_id: int = 1) -> dict[str, object]:
    return {
        "jsonrpc": "2.0",
        "id": message_id,
        "method": "initialize",
        "params": {
            "protocolVersion": "2025-06-18",
            "capabilities": {},
            "clientInfo": {"name": "pytest", "version": "1.0"},
        },
    }
