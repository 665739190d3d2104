"""Types for the initialize handshake."""

from typing import Annotated

from pydantic import Field

from coffee_mcp.types.base import RequestParams, Result
from coffee_mcp.types.common import ClientCapabilities, Implementation, ServerCapabilities


class InitializeRequestParams(RequestParams):
    """Parameters for the initialize request."""

    protocol_version: Annotated[str, Field(alias="protocolVersion")]
    capabilities: ClientCapabilities = Field(default_factory=ClientCapabilities)
    client_info: Annotated[Implementation, Field(alias="clientInfo")]


class InitializeResult(Result):
    """Server's response to an initialize request."""

    protocol_version: Annotated[str, Field(alias="protocolVersion")]
    capabilities: ServerCapabilities
    server_info: Annotated[Implementation, Field(alias="serverInfo")]
