import logging
import uuid
from typing import Callable, Optional

from mcp_gateway.core.clock import Clock, isoformat_z, utc_now
from mcp_gateway.tools.calculator import evaluate, format_number
from mcp_gateway.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


def create_registry(clock: Optional[Clock] = None,
                    uuid_factory: Optional[Callable[[], uuid.UUID]] = None) -> ToolRegistry:
    """Build the registry of built-in tools.

    ``clock`` and ``uuid_factory`` are the only sources of non-determinism;
    tests pass fixed ones.
    """
    clock = clock or utc_now
    uuid_factory = uuid_factory or uuid.uuid4
    registry = ToolRegistry()

    @registry.register(
        name="echo",
        description="Echo back the provided text",
        input_schema={
            "type": "object",
            "properties": {
                "text": {
                    "type": "string",
                    "description": "Text to echo back"
                }
            },
            "required": ["text"]
        }
    )
    def echo(text: str):
        return f"Echo: {text}"

    @registry.register(
        name="add",
        description="Add two numbers together",
        input_schema={
            "type": "object",
            "properties": {
                "a": {"type": "number", "description": "First number"},
                "b": {"type": "number", "description": "Second number"}
            },
            "required": ["a", "b"]
        }
    )
    def add(a, b):
        return f"{format_number(a)} + {format_number(b)} = {format_number(a + b)}"

    @registry.register(
        name="current_time",
        description="Get the current server time (ISO-8601, UTC)",
        input_schema={
            "type": "object",
            "properties": {},
            "additionalProperties": False
        }
    )
    def current_time():
        return isoformat_z(clock())

    @registry.register(
        name="calculate",
        description="Perform basic arithmetic: + - * / and parentheses (e.g. '2 + 2', '(10 - 4) * 5')",
        input_schema={
            "type": "object",
            "properties": {
                "expression": {
                    "type": "string",
                    "description": "Arithmetic expression to evaluate"
                }
            },
            "required": ["expression"]
        }
    )
    def calculate(expression: str):
        value = evaluate(expression)
        logger.debug(f"Evaluated {expression!r} to {value!r}")
        return f"{expression} = {format_number(value)}"

    @registry.register(
        name="generate_uuid",
        description="Generate a random UUID",
        input_schema={
            "type": "object",
            "properties": {},
            "additionalProperties": False
        }
    )
    def generate_uuid():
        return f"Generated UUID: {uuid_factory()}"

    return registry
