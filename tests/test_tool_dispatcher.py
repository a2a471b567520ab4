"""Tests for the list_products and buy_products tools."""

import asyncio
import json
from urllib.parse import parse_qs, urlparse

import pytest

from checkout_demo.containers import AppContainer
from checkout_demo.domain.catalog import AggregatedLineItem
from checkout_demo.errors import GatewayError, GatewayNotConfigured, UnknownToolError
from tests.conftest import FakePaymentGateway


def test_list_tools_advertises_widget_and_schema(container: AppContainer) -> None:
    tools = container.tool_dispatcher.list_tools()

    list_tool, buy_tool = tools
    assert list_tool["name"] == "list_products"
    assert list_tool["_meta"]["openai/outputTemplate"] == container.widget.uri
    assert list_tool["annotations"] == {"readOnlyHint": True}
    assert buy_tool["name"] == "buy_products"
    assert buy_tool["_meta"] == {"openai/widgetAccessible": True}
    schema = buy_tool["inputSchema"]
    assert schema["required"] == ["items"]
    item_schema = schema["$defs"]["CheckoutItemInput"]
    assert set(item_schema["properties"]) == {"priceId", "quantity"}


def test_list_products_in_mock_mode_returns_fixed_catalog(
    container: AppContainer, gateway: FakePaymentGateway
) -> None:
    result = asyncio.run(container.tool_dispatcher.call("list_products"))

    assert result.is_error is False
    assert result.text == container.widget.text
    products = result.structured_content["products"]
    assert [product["priceId"] for product in products] == [
        "price_1",
        "price_2",
        "price_3",
    ]
    assert products[0]["name"] == "Wilson Basketball"
    assert products[0]["price"] == 6499
    assert products[0]["currency"] == "USD"
    assert gateway.list_calls == 0


def test_list_products_in_live_mode_uses_gateway(
    live_container: AppContainer, gateway: FakePaymentGateway
) -> None:
    result = asyncio.run(live_container.tool_dispatcher.call("list_products"))

    assert result.structured_content == {
        "products": [
            {
                "id": "prod_live",
                "priceId": "price_live",
                "name": "Live Ball",
                "description": None,
                "image": None,
                "price": 2500,
                "currency": "EUR",
            }
        ]
    }
    assert gateway.list_calls == 1


def test_list_products_falls_back_when_gateway_is_unconfigured(
    live_container: AppContainer, gateway: FakePaymentGateway
) -> None:
    gateway.error = GatewayNotConfigured("no key")

    result = asyncio.run(live_container.tool_dispatcher.call("list_products"))

    assert result.is_error is False
    assert len(result.structured_content["products"]) == 3


def test_list_products_reports_gateway_failure(
    live_container: AppContainer, gateway: FakePaymentGateway
) -> None:
    gateway.error = GatewayError("boom")

    result = asyncio.run(live_container.tool_dispatcher.call("list_products"))

    assert result.is_error is True
    assert result.text == "Failed to load products. Try again."
    assert result.structured_content == {}


def test_buy_products_in_mock_mode_builds_mock_link(
    container: AppContainer, gateway: FakePaymentGateway
) -> None:
    result = asyncio.run(
        container.tool_dispatcher.call(
            "buy_products",
            {
                "items": [
                    {"priceId": "price_1", "quantity": 2},
                    {"priceId": "price_2", "quantity": 1},
                    {"priceId": "price_1", "quantity": 1},
                ]
            },
        )
    )

    assert result.is_error is False
    assert result.structured_content["checkoutSessionId"] == "cs_mock_1700000000123"
    url = result.structured_content["checkoutSessionUrl"]
    assert url.startswith("https://checkout.stripe.com/mock?items=")
    assert result.text == f"[Checkout]({url}) (mock)"
    items = json.loads(parse_qs(urlparse(url).query)["items"][0])
    assert items == [
        {"priceId": "price_1", "quantity": 3},
        {"priceId": "price_2", "quantity": 1},
    ]
    assert gateway.checkout_calls == []


def test_buy_products_in_live_mode_sends_aggregated_items(
    live_container: AppContainer, gateway: FakePaymentGateway
) -> None:
    result = asyncio.run(
        live_container.tool_dispatcher.call(
            "buy_products",
            {
                "items": [
                    {"priceId": "price_live", "quantity": 1},
                    {"priceId": "price_live", "quantity": 4},
                ]
            },
        )
    )

    assert result.structured_content == {
        "checkoutSessionId": "cs_test_1",
        "checkoutSessionUrl": "https://checkout.stripe.com/c/cs_test_1",
    }
    assert result.text == "[Checkout](https://checkout.stripe.com/c/cs_test_1)"
    assert gateway.checkout_calls == [
        [AggregatedLineItem(price_id="price_live", quantity=5)]
    ]


def test_buy_products_gateway_failure_is_reported_as_tool_error(
    live_container: AppContainer, gateway: FakePaymentGateway
) -> None:
    gateway.error = GatewayError("card declined")

    result = asyncio.run(
        live_container.tool_dispatcher.call(
            "buy_products", {"items": [{"priceId": "price_live", "quantity": 1}]}
        )
    )

    assert result.is_error is True
    assert result.text == "Checkout failed. Try again."
    assert result.structured_content == {}


@pytest.mark.parametrize(
    "arguments",
    [
        {},
        {"items": []},
        {"items": [{"priceId": "", "quantity": 1}]},
        {"items": [{"priceId": "price_1", "quantity": 0}]},
        {"items": [{"priceId": "price_1", "quantity": 1.5}]},
        {"items": [{"quantity": 1}]},
        {"items": [{"priceId": "price_1", "quantity": True}]},
        {"items": [{"priceId": "price_1", "quantity": "2"}]},
    ],
)
def test_buy_products_rejects_invalid_arguments(
    container: AppContainer, gateway: FakePaymentGateway, arguments: dict
) -> None:
    result = asyncio.run(container.tool_dispatcher.call("buy_products", arguments))

    assert result.is_error is True
    assert result.text.startswith("Invalid arguments for buy_products:")
    assert gateway.checkout_calls == []


def test_unknown_tool_raises(container: AppContainer) -> None:
    with pytest.raises(UnknownToolError):
        asyncio.run(container.tool_dispatcher.call("refund_products"))


def test_unexpected_handler_error_becomes_tool_error(
    live_container: AppContainer, gateway: FakePaymentGateway
) -> None:
    gateway.error = RuntimeError("unexpected")

    result = asyncio.run(live_container.tool_dispatcher.call("list_products"))

    assert result.is_error is True
    assert result.text == "Tool list_products failed. Try again."


def test_buy_products_accepts_whole_number_floats(
    container: AppContainer,
) -> None:
    result = asyncio.run(
        container.tool_dispatcher.call(
            "buy_products", {"items": [{"priceId": "price_1", "quantity": 2.0}]}
        )
    )

    assert result.is_error is False
    url = result.structured_content["checkoutSessionUrl"]
    items = json.loads(parse_qs(urlparse(url).query)["items"][0])
    assert items == [{"priceId": "price_1", "quantity": 2}]
