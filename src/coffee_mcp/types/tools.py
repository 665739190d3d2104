"""Types for tool listing and invocation."""

from typing import Annotated, Any, Literal

from pydantic import Field

from coffee_mcp.types.base import MCPModel, RequestParams, Result
from coffee_mcp.types.content import TextContent

ParameterType = Literal["string", "number", "boolean", "object"]


class ParameterSchema(MCPModel):
    """Declared shape of a single tool argument."""

    type: ParameterType
    description: str | None = None


class JsonSchema(MCPModel):
    """The object schema describing a tool's arguments."""

    type: Literal["object"] = "object"
    properties: dict[str, ParameterSchema] = Field(default_factory=dict)
    required: list[str] | None = None


class Tool(MCPModel):
    """Definition of a tool the server provides."""

    name: str
    description: str | None = None
    input_schema: Annotated[JsonSchema, Field(alias="inputSchema", default_factory=JsonSchema)]


class ListToolsResult(Result):
    """Server's response to a tools/list request."""

    tools: list[Tool]


class CallToolRequestParams(RequestParams):
    """Parameters for tools/call request."""

    name: str
    arguments: dict[str, Any] | None = None


class CallToolResult(Result):
    """Server's response to a tools/call request."""

    content: list[TextContent]
