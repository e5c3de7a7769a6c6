import os
import json
import logging
from typing import Optional, List, Dict, Any, Literal
from pydantic import BaseModel, Field, field_validator

DEFAULT_HTTP_PORT = 3000
DEFAULT_SSE_PORT = 3001
SUPPORTED_PROTOCOL_VERSIONS = ["2024-11-05", "2025-03-26"]

Transport = Literal["http", "sse", "both"]


class ServerConfig(BaseModel):
    host: str = Field("0.0.0.0", min_length=1)
    port: int = Field(DEFAULT_HTTP_PORT, ge=1, le=65535)
    transport: Transport = "both"
    heartbeat_interval: float = Field(30.0, gt=0)
    protocol_version: str = SUPPORTED_PROTOCOL_VERSIONS[0]
    name: str = "mcp-everything-server"
    version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level

    @property
    def http_enabled(self) -> bool:
        return self.transport in ("http", "both")

    @property
    def sse_enabled(self) -> bool:
        return self.transport in ("sse", "both")


class Config(BaseModel):
    server: ServerConfig = ServerConfig()
    allowed_origins: Optional[List[str]] = None

    @classmethod
    def load(cls, config_path: Optional[str] = None, environ: Optional[Dict[str, str]] = None) -> "Config":
        environ = os.environ if environ is None else environ
        config_path = config_path or environ.get("MCP_CONFIG", "config.json")

        data: Dict[str, Any] = {}
        if not os.path.exists(config_path):
            # Look in the project root as well (common in dev)
            parent_config = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "config.json")
            if os.path.exists(parent_config):
                config_path = parent_config
            else:
                config_path = None

        if config_path:
            with open(config_path, "r") as f:
                data = json.load(f)

        # Handle env var overrides
        server_data = dict(data.get("server", {}))
        server_data["host"] = environ.get("HOST", server_data.get("host", "0.0.0.0"))
        server_data["transport"] = environ.get("MCP_TRANSPORT", server_data.get("transport", "both"))
        default_port = DEFAULT_SSE_PORT if server_data["transport"] == "sse" else DEFAULT_HTTP_PORT
        server_data["port"] = environ.get("PORT", server_data.get("port", default_port))
        if "MCP_HEARTBEAT_INTERVAL" in environ:
            server_data["heartbeat_interval"] = environ["MCP_HEARTBEAT_INTERVAL"]
        if "MCP_DEBUG" in environ:
            server_data["debug"] = environ["MCP_DEBUG"]
        if "LOG_LEVEL" in environ:
            server_data["log_level"] = environ["LOG_LEVEL"]

        data["server"] = server_data
        return cls(**data)

    def summary(self) -> Dict[str, Any]:
        """Return a dict representation for the startup log."""
        return self.model_dump()


# Global config instance
config = Config.load()
