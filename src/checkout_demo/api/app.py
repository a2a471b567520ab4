"""FastAPI application factory."""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from fastapi.staticfiles import StaticFiles

from checkout_demo.api.mcp import SESSION_HEADER
from checkout_demo.api.mcp import router as mcp_router
from checkout_demo.app_logging import configure_logging
from checkout_demo.containers import AppContainer
from checkout_demo.services.sessions import SessionRegistry
from checkout_demo.widget.resource import ASSETS_DIR


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)
    idle_timeout = container.settings.session_idle_timeout_seconds

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        reaper: asyncio.Task[None] | None = None
        if idle_timeout:
            reaper = asyncio.create_task(
                _evict_idle_sessions(container.session_registry, idle_timeout)
            )
        logger.info(
            "Checkout demo ready (mode=%s)",
            "MOCK" if container.settings.use_mock else "LIVE",
        )
        yield
        if reaper is not None:
            reaper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await reaper
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[SESSION_HEADER],
    )
    app.include_router(mcp_router)
    app.mount(
        "/assets", StaticFiles(directory=ASSETS_DIR, check_dir=False), name="assets"
    )

    @app.get("/health")
    async def health(request: Request) -> dict[str, object]:
        """Simple health check endpoint."""
        state_container: AppContainer = request.app.state.container
        return {
            "status": "ok",
            "mode": "mock" if state_container.settings.use_mock else "live",
            "sessions": len(state_container.session_registry),
        }

    @app.get("/success", response_class=HTMLResponse)
    async def success() -> HTMLResponse:
        """Stripe redirect after a completed payment."""
        return HTMLResponse("<h1>Payment Successful!</h1>")

    @app.get("/cancel", response_class=HTMLResponse)
    async def cancel() -> HTMLResponse:
        """Stripe redirect after a cancelled payment."""
        return HTMLResponse("<h1>Payment Cancelled</h1>")

    return app


async def _evict_idle_sessions(registry: SessionRegistry, max_idle: float) -> None:
    interval = max(1.0, max_idle / 2)
    while True:
        await asyncio.sleep(interval)
        await registry.evict_idle(max_idle)
