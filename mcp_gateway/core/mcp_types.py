from typing import Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, StrictStr

RequestId = Optional[Union[StrictStr, StrictInt, StrictFloat]]


class JsonRpcRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    jsonrpc: Literal["2.0"] = "2.0"
    method: StrictStr = Field(..., min_length=1)
    params: Optional[Union[Dict[str, Any], List[Any]]] = None
    id: RequestId = None

    @property
    def is_notification(self) -> bool:
        return "id" not in self.model_fields_set and self.method.startswith("notifications/")


class JsonRpcErrorObject(BaseModel):
    code: int
    message: str
    data: Optional[Any] = None


class JsonRpcResponse(BaseModel):
    jsonrpc: str = "2.0"
    id: RequestId = None
    result: Optional[Any] = None
    error: Optional[JsonRpcErrorObject] = None

    @classmethod
    def success(cls, request_id, result: Any) -> "JsonRpcResponse":
        return cls(id=request_id, result=result)

    @classmethod
    def failure(cls, request_id, error: Dict[str, Any]) -> "JsonRpcResponse":
        return cls(id=request_id, error=JsonRpcErrorObject(**error))

    def to_dict(self) -> Dict[str, Any]:
        """Wire form: ``id`` is always present, and exactly one of ``result`` or ``error``."""
        body: Dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            body["error"] = self.error.model_dump(exclude_none=True)
        else:
            body["result"] = self.result if self.result is not None else {}
        return body


class ToolInputSchema(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: Literal["object"] = "object"
    properties: Dict[str, Any] = {}
    required: Optional[List[str]] = None


class ToolDefinition(BaseModel):
    name: str
    description: Optional[str] = None
    inputSchema: ToolInputSchema


class TextContent(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ToolCallResult(BaseModel):
    content: List[TextContent]

    @classmethod
    def from_text(cls, *texts: str) -> "ToolCallResult":
        return cls(content=[TextContent(text=t) for t in texts])


class ServerInfo(BaseModel):
    name: str
    version: str


class InitializeResult(BaseModel):
    protocolVersion: str
    capabilities: Dict[str, Any]
    serverInfo: ServerInfo
