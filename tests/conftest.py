"""Shared fixtures: a deterministic registry, router, session manager and an in-process client."""

from __future__ import annotations

import uuid
from collections.abc import AsyncIterator
from datetime import datetime, timezone

import httpx
import pytest
from fastapi import FastAPI

from mcp_gateway.config import Config, ServerConfig
from mcp_gateway.core.router import RequestRouter
from mcp_gateway.core.session import SessionManager
from mcp_gateway.main import create_app
from mcp_gateway.tools.builtin_tools import create_registry
from mcp_gateway.tools.registry import ToolRegistry

FIXED_NOW = datetime(2025, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc)
FIXED_UUID = uuid.UUID("12345678-1234-4678-9234-567812345678")


@pytest.fixture
def registry() -> ToolRegistry:
    return create_registry(clock=lambda: FIXED_NOW, uuid_factory=lambda: FIXED_UUID)


@pytest.fixture
def rpc_router(registry: ToolRegistry) -> RequestRouter:
    return RequestRouter(registry, server_name="test-server", server_version="9.9.9")


@pytest.fixture
def app_config() -> Config:
    return Config(server=ServerConfig(transport="both", heartbeat_interval=60))


@pytest.fixture
async def sessions() -> AsyncIterator[SessionManager]:
    manager = SessionManager(heartbeat_interval=60, clock=lambda: FIXED_NOW)
    yield manager
    manager.close_all()


@pytest.fixture
def app(app_config: Config, registry: ToolRegistry, sessions: SessionManager) -> FastAPI:
    return create_app(app_config, registry=registry, session_manager=sessions)


@pytest.fixture
async def client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c
