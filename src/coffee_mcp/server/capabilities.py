"""Tools and resources: the capability records a server exposes.

A tool is a named procedure with a declared parameter schema; a resource is a
readable document addressed by an opaque uri. Both are registered into an
ordered ``CapabilityTable`` so listing follows registration order.
"""

from __future__ import annotations as _annotations

import abc
import functools
import inspect
import logging
from collections.abc import Awaitable, Callable, Iterator, Mapping
from typing import Any, Generic, TypeVar

import anyio.to_thread
import pydantic_core
from pydantic import BaseModel, ConfigDict, Field

from coffee_mcp import types
from coffee_mcp.shared.exceptions import HandlerFailure, InvalidArguments, McpError

logger = logging.getLogger(__name__)


def _is_async_callable(obj: Any) -> bool:
    while isinstance(obj, functools.partial):
        obj = obj.func

    return inspect.iscoroutinefunction(obj) or (
        callable(obj) and inspect.iscoroutinefunction(getattr(obj, "__call__", None))
    )


async def _call(fn: Callable[..., Any], *args: Any) -> Any:
    if _is_async_callable(fn):
        return await fn(*args)
    return await anyio.to_thread.run_sync(functools.partial(fn, *args))


def _to_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    return pydantic_core.to_json(value, fallback=str).decode()


def _matches(declared: types.ParameterType, value: Any) -> bool:
    # bool is an int subclass, so it has to be excluded from "number" explicitly
    if declared == "string":
        return isinstance(value, str)
    if declared == "number":
        return isinstance(value, int | float) and not isinstance(value, bool)
    if declared == "boolean":
        return isinstance(value, bool)
    return isinstance(value, dict)


class Tool(BaseModel):
    """Tool registration info.

    ``fn`` receives the argument mapping and may be sync or async. Its return
    value becomes the text of a single content item: strings are passed
    through, anything else is JSON-encoded. A returned ``CallToolResult`` is
    used as-is.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    fn: Callable[[dict[str, Any]], Any] = Field(exclude=True)
    name: str = Field(description="Name of the tool")
    description: str = Field(default="", description="Description of what the tool does")
    parameters: dict[str, types.ParameterSchema] = Field(
        default_factory=dict, description="Declared type of each argument"
    )
    required: list[str] = Field(default_factory=list, description="Arguments the caller must supply")

    @classmethod
    def from_function(
        cls,
        fn: Callable[[dict[str, Any]], Any],
        name: str | None = None,
        description: str | None = None,
        parameters: Mapping[str, types.ParameterType | types.ParameterSchema] | None = None,
        required: list[str] | None = None,
    ) -> Tool:
        """Create a Tool from a function."""
        func_name = name or fn.__name__
        if func_name == "<lambda>":
            raise ValueError("You must provide a name for lambda functions")

        schemas = {
            key: value if isinstance(value, types.ParameterSchema) else types.ParameterSchema(type=value)
            for key, value in (parameters or {}).items()
        }
        return cls(
            fn=fn,
            name=func_name,
            description=description or inspect.getdoc(fn) or "",
            parameters=schemas,
            required=required or [],
        )

    def describe(self) -> types.Tool:
        return types.Tool(
            name=self.name,
            description=self.description,
            input_schema=types.JsonSchema(properties=dict(self.parameters), required=self.required or None),
        )

    def validate_arguments(self, arguments: dict[str, Any]) -> None:
        """Check each supplied argument against its declared scalar type.

        Undeclared arguments are passed through untouched and missing ones are
        left for the tool to handle.
        """
        for key, value in arguments.items():
            schema = self.parameters.get(key)
            if schema is None or _matches(schema.type, value):
                continue
            raise InvalidArguments(
                f"Invalid arguments for tool {self.name}: {key} must be of type {schema.type}",
                data={"argument": key, "expected": schema.type},
            )

    async def invoke(self, arguments: dict[str, Any]) -> types.CallToolResult:
        self.validate_arguments(arguments)
        try:
            result = await _call(self.fn, arguments)
        except McpError:
            raise
        except Exception as e:
            logger.exception("Tool %s failed", self.name)
            raise HandlerFailure(f"Error executing tool {self.name}: {e}") from e

        if isinstance(result, types.CallToolResult):
            return result
        return types.CallToolResult(content=[types.TextContent(text=_to_text(result))])


class Resource(BaseModel, abc.ABC):
    """Base class for all resources."""

    uri: str = Field(description="Opaque identifier of the resource")
    name: str = Field(description="Name of the resource")
    description: str | None = Field(default=None, description="Description of the resource")
    mime_type: str | None = Field(default=None, description="MIME type of the resource content")

    def describe(self) -> types.Resource:
        return types.Resource(
            uri=self.uri,
            name=self.name,
            description=self.description,
            mime_type=self.mime_type,
        )

    @abc.abstractmethod
    async def read_text(self) -> str:
        """Read the resource content."""

    async def read(self) -> types.ReadResourceResult:
        try:
            text = await self.read_text()
        except McpError:
            raise
        except Exception as e:
            logger.exception("Resource %s failed", self.uri)
            raise HandlerFailure(f"Error reading resource {self.uri}: {e}") from e
        return types.ReadResourceResult(
            contents=[types.TextResourceContents(uri=self.uri, text=text, mime_type=self.mime_type)]
        )


class TextResource(Resource):
    """A resource whose content is a fixed string."""

    text: str = Field(description="Text content of the resource")

    async def read_text(self) -> str:
        return self.text


class FunctionResource(Resource):
    """A resource that defers loading its content until read.

    The function may be sync or async and may return any JSON-encodable value.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    fn: Callable[[], Any | Awaitable[Any]] = Field(exclude=True)

    @classmethod
    def from_function(
        cls,
        fn: Callable[[], Any],
        uri: str,
        name: str | None = None,
        description: str | None = None,
        mime_type: str | None = None,
    ) -> FunctionResource:
        return cls(
            fn=fn,
            uri=uri,
            name=name or fn.__name__,
            description=description or inspect.getdoc(fn),
            mime_type=mime_type,
        )

    async def read_text(self) -> str:
        return _to_text(await _call(self.fn))


CapabilityT = TypeVar("CapabilityT", Tool, Resource)


class CapabilityTable(Generic[CapabilityT]):
    """Ordered, read-mostly mapping of capabilities keyed by name or uri."""

    def __init__(self, kind: str, key: Callable[[CapabilityT], str], warn_on_duplicate: bool = True):
        self.kind = kind
        self._key = key
        self._items: dict[str, CapabilityT] = {}
        self.warn_on_duplicate = warn_on_duplicate

    def add(self, item: CapabilityT) -> CapabilityT:
        """Register a capability. A duplicate key keeps the existing entry."""
        key = self._key(item)
        existing = self._items.get(key)
        if existing is not None:
            if self.warn_on_duplicate:
                logger.warning("%s already exists: %s", self.kind, key)
            return existing
        logger.debug("Registered %s %s", self.kind.lower(), key)
        self._items[key] = item
        return item

    def get(self, key: str) -> CapabilityT | None:
        return self._items.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._items

    def __iter__(self) -> Iterator[CapabilityT]:
        return iter(self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)
