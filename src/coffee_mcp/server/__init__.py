from coffee_mcp.server.capabilities import CapabilityTable, FunctionResource, Resource, TextResource, Tool
from coffee_mcp.server.lowlevel import NotificationOptions, Server, ServerState
from coffee_mcp.server.stdio import run_stdio, stdio_server

__all__ = [
    "CapabilityTable",
    "FunctionResource",
    "NotificationOptions",
    "Resource",
    "Server",
    "ServerState",
    "TextResource",
    "Tool",
    "run_stdio",
    "stdio_server",
]
