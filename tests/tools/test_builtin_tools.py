"""Tests for the built-in tool set wired by create_registry."""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from mcp_gateway.core.errors import CalculationError, InvalidArgumentsError
from mcp_gateway.tools.builtin_tools import create_registry
from mcp_gateway.tools.registry import ToolRegistry


async def _text(registry: ToolRegistry, name: str, **arguments: object) -> str:
    result = await registry.call(name, arguments)
    assert len(result.content) == 1
    return result.content[0].text


class TestBuiltinTools:
    async def test_echo(self, registry: ToolRegistry) -> None:
        assert await _text(registry, "echo", text="hi") == "Echo: hi"

    async def test_echo_empty_string(self, registry: ToolRegistry) -> None:
        assert await _text(registry, "echo", text="") == "Echo: "

    @pytest.mark.parametrize(
        ("a", "b", "text"),
        [(10, 25, "10 + 25 = 35"), (1.5, 2, "1.5 + 2 = 3.5"), (-1, 1, "-1 + 1 = 0"), (0.5, 0.5, "0.5 + 0.5 = 1")],
    )
    async def test_add(self, registry: ToolRegistry, a: float, b: float, text: str) -> None:
        assert await _text(registry, "add", a=a, b=b) == text

    async def test_add_rejects_strings(self, registry: ToolRegistry) -> None:
        with pytest.raises(InvalidArgumentsError):
            await registry.call("add", {"a": "1", "b": 2})

    async def test_current_time_uses_injected_clock(self, registry: ToolRegistry) -> None:
        assert await _text(registry, "current_time") == "2025-01-02T03:04:05.678Z"

    async def test_current_time_follows_clock(self) -> None:
        moments = iter([
            datetime(2024, 6, 1, tzinfo=timezone.utc),
            datetime(2024, 6, 1, tzinfo=timezone.utc) + timedelta(seconds=1),
        ])
        registry = create_registry(clock=lambda: next(moments))
        assert await _text(registry, "current_time") == "2024-06-01T00:00:00.000Z"
        assert await _text(registry, "current_time") == "2024-06-01T00:00:01.000Z"

    async def test_current_time_converts_to_utc(self) -> None:
        offset = timezone(timedelta(hours=2))
        registry = create_registry(clock=lambda: datetime(2024, 6, 1, 12, 0, tzinfo=offset))
        assert await _text(registry, "current_time") == "2024-06-01T10:00:00.000Z"

    async def test_current_time_rejects_arguments(self, registry: ToolRegistry) -> None:
        with pytest.raises(InvalidArgumentsError):
            await registry.call("current_time", {"zone": "UTC"})

    async def test_calculate(self, registry: ToolRegistry) -> None:
        assert await _text(registry, "calculate", expression="10 * 5") == "10 * 5 = 50"

    async def test_calculate_error(self, registry: ToolRegistry) -> None:
        with pytest.raises(CalculationError):
            await registry.call("calculate", {"expression": "2 +* 2"})

    async def test_generate_uuid(self, registry: ToolRegistry) -> None:
        assert await _text(registry, "generate_uuid") == "Generated UUID: 12345678-1234-4678-9234-567812345678"

    async def test_generate_uuid_default_is_v4(self) -> None:
        text = await _text(create_registry(), "generate_uuid")
        assert uuid.UUID(text.removeprefix("Generated UUID: ")).version == 4
