"""Session-scoped JSON-RPC endpoint."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, Request, Response, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from checkout_demo.domain.jsonrpc import JsonRpcMessage, error_message
from checkout_demo.domain.sessions import SessionEvent
from checkout_demo.errors import INVALID_REQUEST, PARSE_ERROR, SessionNotFound

if TYPE_CHECKING:
    from checkout_demo.containers import AppContainer
    from checkout_demo.services.sessions import SessionRegistry

SESSION_HEADER = "mcp-session-id"

router = APIRouter(tags=["mcp"])
logger = logging.getLogger(__name__)


def _registry(request: Request) -> SessionRegistry:
    container: AppContainer = request.app.state.container
    return container.session_registry


@router.post("/mcp")
async def mcp_post(request: Request) -> Response:
    """Handle one JSON-RPC message, creating a session on first contact."""
    registry = _registry(request)
    session_id = request.headers.get(SESSION_HEADER) or None
    body = await request.body()
    try:
        raw = json.loads(body)
    except ValueError:
        return JSONResponse(
            error_message(None, {"code": PARSE_ERROR, "message": "Parse error"}),
            status_code=status.HTTP_400_BAD_REQUEST,
        )
    try:
        message = JsonRpcMessage.model_validate(raw)
    except ValidationError:
        message_id = raw.get("id") if isinstance(raw, dict) else None
        return JSONResponse(
            error_message(
                message_id, {"code": INVALID_REQUEST, "message": "Invalid Request"}
            ),
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    try:
        session = await registry.resolve(session_id)
        outcome = await session.handle(message)
    except SessionNotFound:
        logger.info("Rejected request for unknown session %s", session_id)
        return _no_valid_session()
    await registry.apply(session, outcome.event)

    headers = {}
    if outcome.event is not SessionEvent.REJECTED:
        headers[SESSION_HEADER] = session.id
    if outcome.response is None:
        return Response(status_code=outcome.status_code, headers=headers)
    return JSONResponse(
        outcome.response, status_code=outcome.status_code, headers=headers
    )


@router.get("/mcp")
async def mcp_get(request: Request) -> Response:
    """Server-initiated streams are not offered."""
    session_id = request.headers.get(SESSION_HEADER)
    if not session_id:
        return _no_valid_session()
    try:
        await _registry(request).resolve(session_id)
    except SessionNotFound:
        return _no_valid_session()
    return Response(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        headers={"Allow": "POST, DELETE"},
    )


@router.delete("/mcp")
async def mcp_delete(request: Request) -> Response:
    """Terminate a session."""
    session_id = request.headers.get(SESSION_HEADER)
    if not session_id:
        return _session_not_found()
    try:
        await _registry(request).close(session_id)
    except SessionNotFound:
        return _session_not_found()
    return Response(status_code=status.HTTP_200_OK)


def _no_valid_session() -> JSONResponse:
    return JSONResponse(
        {"error": "No valid session"}, status_code=status.HTTP_400_BAD_REQUEST
    )


def _session_not_found() -> JSONResponse:
    return JSONResponse(
        {"error": "Session not found"}, status_code=status.HTTP_404_NOT_FOUND
    )
