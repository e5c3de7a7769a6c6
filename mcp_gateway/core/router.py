import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from pydantic import ValidationError

from mcp_gateway.core.errors import (
    InternalError,
    InvalidParamsError,
    InvalidRequestError,
    JsonRpcError,
    MethodNotFoundError,
)
from mcp_gateway.core.mcp_types import InitializeResult, JsonRpcRequest, JsonRpcResponse, ServerInfo
from mcp_gateway.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

Handler = Callable[[Dict[str, Any]], Awaitable[Any]]

# Only tools are served; resources/list and prompts/list are empty stubs.
CAPABILITIES = {"tools": {}}


def recover_request_id(body: Any):
    """Best-effort id for error responses to envelopes that failed validation."""
    if isinstance(body, dict):
        request_id = body.get("id")
        if isinstance(request_id, (str, int, float)) and not isinstance(request_id, bool):
            return request_id
    return None


class RequestRouter:
    """Turns one decoded JSON-RPC message into one JSON-RPC response.

    ``dispatch`` never raises: handler errors become error envelopes and
    anything unexpected becomes an InternalError.
    """

    def __init__(self, registry: ToolRegistry, server_name: str, server_version: str,
                 default_protocol_version: str = "2024-11-05", debug: bool = False):
        self.registry = registry
        self.server_info = ServerInfo(name=server_name, version=server_version)
        self.default_protocol_version = default_protocol_version
        self.debug = debug
        self._handlers: Dict[str, Handler] = {
            "initialize": self.initialize,
            "ping": self.ping,
            "notifications/initialized": self.ping,
            "tools/list": self.list_tools,
            "tools/call": self.call_tool,
            "resources/list": self.list_resources,
            "prompts/list": self.list_prompts,
        }

    @property
    def methods(self):
        return list(self._handlers)

    async def dispatch(self, body: Any) -> Optional[Dict[str, Any]]:
        """Return the response envelope, or None for a notification."""
        try:
            if not isinstance(body, dict):
                raise InvalidRequestError(data="Request must be a JSON object")
            try:
                request = JsonRpcRequest.model_validate(body)
            except ValidationError as e:
                raise InvalidRequestError(data=_describe(e))
        except JsonRpcError as e:
            logger.warning(f"Rejected malformed request: {e.message} ({e.data})")
            return JsonRpcResponse.failure(recover_request_id(body), e.to_dict()).to_dict()

        try:
            result = await self._invoke(request)
            response = JsonRpcResponse.success(request.id, result)
        except JsonRpcError as e:
            response = JsonRpcResponse.failure(request.id, e.to_dict())
        except Exception as e:
            logger.exception(f"Internal error while handling {request.method}")
            error = InternalError(data=str(e) if self.debug else None)
            response = JsonRpcResponse.failure(request.id, error.to_dict())

        if request.is_notification:
            return None
        return response.to_dict()

    async def _invoke(self, request: JsonRpcRequest) -> Any:
        handler = self._handlers.get(request.method)
        if handler is None:
            logger.warning(f"Method not found: {request.method}")
            raise MethodNotFoundError(f"Method not found: {request.method}")
        if isinstance(request.params, list):
            raise InvalidParamsError("Params must be an object")
        return await handler(request.params or {})

    async def initialize(self, params: Dict[str, Any]) -> Dict[str, Any]:
        requested = params.get("protocolVersion")
        version = requested if isinstance(requested, str) and requested else self.default_protocol_version
        logger.info(f"Client initialize: requested protocol {requested!r}, using {version}")
        return InitializeResult(
            protocolVersion=version,
            capabilities=CAPABILITIES,
            serverInfo=self.server_info,
        ).model_dump()

    async def ping(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {}

    async def list_tools(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "tools": [t.model_dump(exclude_none=True) for t in self.registry.list_tools()]
        }

    async def call_tool(self, params: Dict[str, Any]) -> Dict[str, Any]:
        name = params.get("name")
        if not isinstance(name, str) or not name:
            raise InvalidParamsError("Missing or invalid 'name'", data={"field": "name"})
        # Resolve the tool before looking at arguments so unknown names report as such
        self.registry.get_tool(name)
        if "arguments" not in params:
            raise InvalidParamsError("Missing required parameter: 'arguments'", data={"field": "arguments"})
        result = await self.registry.call(name, params["arguments"])
        return result.model_dump()

    async def list_resources(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {"resources": []}

    async def list_prompts(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {"prompts": []}


def _describe(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item.get("loc", ())) or "request"
        parts.append(f"{location}: {item.get('msg')}")
    return "; ".join(parts)
