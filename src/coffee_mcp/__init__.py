"""A minimal line-delimited MCP client and server, with a coffee shop to talk to."""

from coffee_mcp.client.session import ClientSession
from coffee_mcp.client.stdio import StdioServerParameters, stdio_client
from coffee_mcp.server.lowlevel import Server
from coffee_mcp.server.stdio import stdio_server
from coffee_mcp.shared.exceptions import (
    HandlerFailure,
    InvalidArguments,
    MalformedMessage,
    McpError,
    ProtocolViolation,
    UnexpectedResult,
    UnknownCapability,
    UnknownMethod,
)

__all__ = [
    "ClientSession",
    "HandlerFailure",
    "InvalidArguments",
    "MalformedMessage",
    "McpError",
    "ProtocolViolation",
    "Server",
    "StdioServerParameters",
    "UnexpectedResult",
    "UnknownCapability",
    "UnknownMethod",
    "stdio_client",
    "stdio_server",
]
