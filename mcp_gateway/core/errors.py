from typing import Any, Dict, Optional

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
SERVER_ERROR = -32000


class JsonRpcError(Exception):
    """An error that is reported to the client as a JSON-RPC error object."""

    code = INTERNAL_ERROR
    default_message = "Internal error"

    def __init__(self, message: Optional[str] = None, data: Any = None, code: Optional[int] = None):
        self.message = message or self.default_message
        self.data = data
        if code is not None:
            self.code = code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        error = {"code": self.code, "message": self.message}
        if self.data is not None:
            error["data"] = self.data
        return error


class ParseError(JsonRpcError):
    code = PARSE_ERROR
    default_message = "Parse error"


class InvalidRequestError(JsonRpcError):
    code = INVALID_REQUEST
    default_message = "Invalid Request"


class MethodNotFoundError(JsonRpcError):
    code = METHOD_NOT_FOUND
    default_message = "Method not found"


class ToolNotFoundError(MethodNotFoundError):
    def __init__(self, name: str):
        self.name = name
        super().__init__("Unknown tool", data=f"Tool '{name}' not found")


class InvalidParamsError(JsonRpcError):
    code = INVALID_PARAMS
    default_message = "Invalid params"


class InvalidArgumentsError(InvalidParamsError):
    """Tool arguments are missing or do not match the tool's input schema."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message, data={"field": field} if field else None)


class InvalidSessionError(JsonRpcError):
    code = INVALID_PARAMS
    default_message = "Invalid session"


class InternalError(JsonRpcError):
    code = INTERNAL_ERROR
    default_message = "Internal error"


class CalculationError(JsonRpcError):
    """Arithmetic evaluation failed; ``data`` carries the evaluator's diagnostic."""

    code = SERVER_ERROR
    default_message = "Calculation error"

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(data=detail)


class SessionClosedError(Exception):
    """Raised when pushing an event onto a session that is no longer open."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session {session_id} is closed")
