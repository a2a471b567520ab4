"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from checkout_demo.adapters.stripe_client import HttpxStripeClient, PaymentGateway
from checkout_demo.config import Settings
from checkout_demo.services.protocol import ProtocolHandler
from checkout_demo.services.sessions import SessionRegistry
from checkout_demo.services.tools import ToolDispatcher
from checkout_demo.widget.resource import WidgetResource


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    gateway: PaymentGateway
    widget: WidgetResource
    tool_dispatcher: ToolDispatcher
    session_registry: SessionRegistry
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    base_url = resolved_settings.resolved_base_url()
    stripe_client = HttpxStripeClient.create(
        secret_key=resolved_settings.stripe_secret_key,
        base_url=resolved_settings.stripe_api_base,
        redirect_base_url=base_url,
    )
    widget = WidgetResource.load(base_url)
    tool_dispatcher = ToolDispatcher(
        gateway=stripe_client,
        widget=widget,
        use_mock=resolved_settings.use_mock,
    )
    session_registry = SessionRegistry(
        handler=ProtocolHandler(dispatcher=tool_dispatcher, widget=widget)
    )

    async def close_resources() -> None:
        await stripe_client.close()

    return AppContainer(
        settings=resolved_settings,
        gateway=stripe_client,
        widget=widget,
        tool_dispatcher=tool_dispatcher,
        session_registry=session_registry,
        close_resources=close_resources,
    )
