import json
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from mcp_gateway.config import Config, SUPPORTED_PROTOCOL_VERSIONS, config
from mcp_gateway.core.clock import isoformat_z, utc_now
from mcp_gateway.core.router import CAPABILITIES, RequestRouter
from mcp_gateway.core.session import SessionManager
from mcp_gateway.tools.builtin_tools import create_registry
from mcp_gateway.tools.registry import ToolRegistry
from mcp_gateway.transports import build_http_router, build_sse_router

# Configure logging
logging.basicConfig(level=config.server.log_level, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def create_app(app_config: Optional[Config] = None, registry: Optional[ToolRegistry] = None,
               session_manager: Optional[SessionManager] = None) -> FastAPI:
    app_config = app_config or config
    server = app_config.server
    registry = registry if registry is not None else create_registry()

    rpc_router = RequestRouter(
        registry,
        server_name=server.name,
        server_version=server.version,
        default_protocol_version=server.protocol_version,
        debug=server.debug,
    )
    sessions = None
    if server.sse_enabled:
        sessions = session_manager or SessionManager(heartbeat_interval=server.heartbeat_interval)

    app = FastAPI(title="MCP Everything Gateway", version=server.version)
    app.state.config = app_config
    app.state.rpc_router = rpc_router
    app.state.sessions = sessions

    # CORS Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_config.allowed_origins or ["*"],
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    endpoints = {"health": "/health"}
    if server.http_enabled:
        app.include_router(build_http_router(rpc_router, app_config, sessions))
        endpoints["mcp"] = "/mcp"
    if server.sse_enabled:
        app.include_router(build_sse_router(rpc_router, sessions, app_config))
        endpoints["sse"] = "/sse"
        endpoints["messages"] = "/messages"

    @app.on_event("startup")
    async def startup_event():
        logger.info(json.dumps({"event": "config_loaded", "config": app_config.summary()}, ensure_ascii=False))
        logger.info(f"Registered tools: {[t.name for t in registry.list_tools()]}")

    @app.on_event("shutdown")
    async def shutdown_event():
        if sessions is not None:
            logger.info(f"Shutting down, closing {sessions.active_count} SSE session(s)")
            sessions.close_all()

    @app.get("/health")
    async def health():
        return {
            "status": "ok",
            "timestamp": isoformat_z(utc_now()),
            "transport": server.transport,
            "sessions": sessions.active_count if sessions is not None else 0,
        }

    @app.get("/")
    async def root():
        return {
            "message": "MCP Everything Server",
            "endpoints": endpoints,
            "server": rpc_router.server_info.model_dump(),
            "capabilities": CAPABILITIES,
            "supportedProtocols": SUPPORTED_PROTOCOL_VERSIONS,
        }

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        client = request.client.host if request.client else "-"
        logger.info(f"Access: {request.method} {request.url.path} from {client}")
        response = await call_next(request)
        return response

    return app


app = create_app()


def run():
    import uvicorn

    # uvicorn handles SIGINT/SIGTERM and runs the shutdown hooks
    logger.info(f"Starting MCP server ({config.server.transport}) on {config.server.host}:{config.server.port}")
    uvicorn.run(app, host=config.server.host, port=config.server.port,
                log_level=config.server.log_level.lower())


if __name__ == "__main__":
    run()
