"""Types for resource listing and reading."""

from typing import Annotated

from pydantic import Field

from coffee_mcp.types.base import MCPModel, RequestParams, Result


class Resource(MCPModel):
    """A known resource that the server is capable of reading.

    The uri is an opaque identifier; it is compared as a plain string.
    """

    uri: str
    name: str
    description: str | None = None
    mime_type: Annotated[str | None, Field(alias="mimeType")] = None


class TextResourceContents(MCPModel):
    """Text contents of a resource."""

    uri: str
    text: str
    mime_type: Annotated[str | None, Field(alias="mimeType")] = None


class ListResourcesResult(Result):
    """Server's response to a resources/list request."""

    resources: list[Resource]


class ReadResourceRequestParams(RequestParams):
    """Parameters for resources/read request."""

    uri: str


class ReadResourceResult(Result):
    """Server's response to a resources/read request."""

    contents: list[TextResourceContents]
