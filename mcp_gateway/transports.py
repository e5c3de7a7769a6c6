"""HTTP front ends for the request router.

* ``build_http_router``: plain request/response on ``/mcp``.
* ``build_sse_router``: ``GET /sse`` opens a session stream, and JSON-RPC
  calls are POSTed to ``/messages?session_id=...``. The POST body carries
  the response; the stream only carries the endpoint handshake, heartbeats
  and the ``initialized`` echo.
"""
import json
import math
import logging
from typing import Any, Optional

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse, PlainTextResponse, StreamingResponse
from starlette.background import BackgroundTask

from mcp_gateway.config import Config
from mcp_gateway.core.errors import InvalidSessionError, ParseError
from mcp_gateway.core.mcp_types import JsonRpcResponse
from mcp_gateway.core.router import RequestRouter, recover_request_id
from mcp_gateway.core.session import SessionManager, SseEvent

logger = logging.getLogger(__name__)

_PARSE_FAILED = object()


def _origin_allowed(config: Config, origin: Optional[str]) -> bool:
    if not config.allowed_origins:
        return True
    if not origin:
        return True
    return origin in config.allowed_origins


def _reject_constant(name: str):
    raise ValueError(f"{name} is not valid JSON")


def _parse_float(text: str) -> float:
    value = float(text)
    if math.isinf(value):
        raise ValueError(f"{text} is out of range")
    return value


async def _read_json(request: Request) -> Any:
    body = await request.body()
    try:
        # Non-finite numbers cannot be rendered back out as JSON
        return json.loads(body, parse_constant=_reject_constant, parse_float=_parse_float)
    except (ValueError, RecursionError):
        return _PARSE_FAILED


def _parse_error_response() -> JSONResponse:
    return JSONResponse(content=JsonRpcResponse.failure(None, ParseError().to_dict()).to_dict())


def _event_stream(sessions: SessionManager) -> StreamingResponse:
    session = sessions.open()

    async def close_session():
        # close() must run on the loop thread, not in the threadpool
        sessions.close(session.session_id)

    return StreamingResponse(
        sessions.stream(session),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
        # Also closes the session when the body iterator never started
        background=BackgroundTask(close_session),
    )


def build_http_router(rpc_router: RequestRouter, config: Config,
                      sessions: Optional[SessionManager] = None) -> APIRouter:
    router = APIRouter()

    @router.post("/mcp")
    async def mcp_post(request: Request):
        """HTTP POST endpoint for MCP protocol"""
        if not _origin_allowed(config, request.headers.get("origin")):
            return Response(status_code=403)

        body = await _read_json(request)
        if body is _PARSE_FAILED:
            return _parse_error_response()

        response = await rpc_router.dispatch(body)
        if response is None:
            # Notification: acknowledged, nothing to return
            return Response(status_code=202)
        return JSONResponse(content=response)

    @router.get("/mcp")
    async def mcp_get(request: Request):
        """Liveness text, or an SSE session for clients that ask for one on /mcp"""
        if not _origin_allowed(config, request.headers.get("origin")):
            return Response(status_code=403)

        accept_header = request.headers.get("accept", "")
        if sessions is not None and "text/event-stream" in accept_header:
            return _event_stream(sessions)
        return PlainTextResponse("MCP Server Running")

    return router


def build_sse_router(rpc_router: RequestRouter, sessions: SessionManager, config: Config) -> APIRouter:
    router = APIRouter()

    @router.get("/sse")
    async def handle_sse():
        """Standard MCP SSE endpoint"""
        return _event_stream(sessions)

    @router.post("/messages")
    async def handle_messages(request: Request):
        """Session-scoped POST endpoint; the session must be open before anything is dispatched"""
        if not _origin_allowed(config, request.headers.get("origin")):
            return Response(status_code=403)

        session_id = request.query_params.get("session_id")
        body = await _read_json(request)

        try:
            session = sessions.lookup(session_id)
        except InvalidSessionError as e:
            logger.warning(f"POST for invalid session: {session_id}")
            request_id = None if body is _PARSE_FAILED else recover_request_id(body)
            return JSONResponse(
                status_code=400,
                content=JsonRpcResponse.failure(request_id, e.to_dict()).to_dict()
            )

        if body is _PARSE_FAILED:
            return _parse_error_response()

        response = await rpc_router.dispatch(body)
        if response is None:
            return Response(status_code=202)

        if isinstance(body, dict) and body.get("method") == "initialize" and "result" in response:
            sessions.send_event(session, SseEvent("initialized", json.dumps(response["result"], ensure_ascii=False)))
        return JSONResponse(content=response)

    return router
