"""Types exchanged during the handshake."""

from typing import Any

from coffee_mcp.types.base import MCPModel


class Implementation(MCPModel):
    """Describes the name and version of an MCP implementation."""

    name: str
    version: str


class ClientCapabilities(MCPModel):
    """Capabilities that a client may support."""

    experimental: dict[str, Any] | None = None
    roots: dict[str, Any] | None = None
    sampling: dict[str, Any] | None = None


class ServerCapabilities(MCPModel):
    """Capabilities that a server may support.

    A capability is advertised by being present; ``None`` means absent.
    """

    experimental: dict[str, Any] | None = None
    resources: dict[str, Any] | None = None
    tools: dict[str, Any] | None = None
