import asyncio
import inspect
import logging
from typing import Any, Callable, Dict, List

from mcp_gateway.core.errors import InvalidArgumentsError, ToolNotFoundError
from mcp_gateway.core.mcp_types import ToolCallResult, ToolDefinition, ToolInputSchema

logger = logging.getLogger(__name__)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


# JSON Schema type name -> structural check. No coercion: "5" is not a number.
_TYPE_CHECKS: Dict[str, Callable[[Any], bool]] = {
    "string": lambda v: isinstance(v, str),
    "number": _is_number,
    "integer": _is_integer,
    "boolean": lambda v: isinstance(v, bool),
    "object": lambda v: isinstance(v, dict),
    "array": lambda v: isinstance(v, list),
    "null": lambda v: v is None,
}


def validate_arguments(schema: ToolInputSchema, arguments: Dict[str, Any]) -> Dict[str, Any]:
    """Check ``arguments`` against ``schema`` and return the declared subset.

    Raises InvalidArgumentsError naming the first offending field.
    """
    for field in schema.required or []:
        if field not in arguments:
            raise InvalidArgumentsError(f"Missing required argument: '{field}'", field=field)

    extra = getattr(schema, "additionalProperties", True)
    validated = {}
    for key, value in arguments.items():
        prop = schema.properties.get(key)
        if prop is None:
            if extra is False:
                raise InvalidArgumentsError(f"Unexpected argument: '{key}'", field=key)
            continue

        expected = prop.get("type") if isinstance(prop, dict) else None
        if expected is not None:
            allowed = expected if isinstance(expected, list) else [expected]
            checks = [_TYPE_CHECKS[t] for t in allowed if t in _TYPE_CHECKS]
            if checks and not any(check(value) for check in checks):
                raise InvalidArgumentsError(
                    f"Argument '{key}' must be of type {' or '.join(allowed)}", field=key
                )
        validated[key] = value
    return validated


class RegisteredTool:
    def __init__(self, definition: ToolDefinition, func: Callable, blocking: bool = False):
        self.definition = definition
        self.func = func
        self.blocking = blocking

    @property
    def name(self) -> str:
        return self.definition.name


class ToolRegistry:
    def __init__(self):
        self._tools: Dict[str, RegisteredTool] = {}

    def register(self, name: str, description: str, input_schema: Dict[str, Any], blocking: bool = False):
        """Register a tool function.

        ``blocking`` marks a synchronous function that does I/O; it is run on a
        worker thread so it never stalls the event loop.
        """
        def decorator(func: Callable):
            if name in self._tools:
                raise ValueError(f"Tool {name} is already registered")
            definition = ToolDefinition(
                name=name,
                description=description,
                inputSchema=ToolInputSchema(**input_schema)
            )
            self._tools[name] = RegisteredTool(definition, func, blocking=blocking)
            return func
        return decorator

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def get_tool(self, name: str) -> RegisteredTool:
        tool = self._tools.get(name)
        if tool is None:
            raise ToolNotFoundError(name)
        return tool

    def list_tools(self) -> List[ToolDefinition]:
        return [tool.definition for tool in self._tools.values()]

    async def call(self, name: str, arguments: Dict[str, Any]) -> ToolCallResult:
        tool = self.get_tool(name)
        if not isinstance(arguments, dict):
            raise InvalidArgumentsError("Argument 'arguments' must be an object", field="arguments")
        kwargs = validate_arguments(tool.definition.inputSchema, arguments)

        logger.info(f"Calling tool {name} with arguments {list(kwargs)}")
        if inspect.iscoroutinefunction(tool.func):
            result = await tool.func(**kwargs)
        elif tool.blocking:
            result = await asyncio.to_thread(tool.func, **kwargs)
        else:
            result = tool.func(**kwargs)
        return self._to_result(result)

    @staticmethod
    def _to_result(result: Any) -> ToolCallResult:
        if isinstance(result, ToolCallResult):
            return result
        if isinstance(result, str):
            return ToolCallResult.from_text(result)
        if isinstance(result, (list, tuple)) and all(isinstance(item, str) for item in result):
            return ToolCallResult.from_text(*result)
        raise TypeError(f"Tool returned unsupported result type {type(result).__name__}")
