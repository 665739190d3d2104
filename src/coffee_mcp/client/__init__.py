from coffee_mcp.client.session import ClientSession, SessionState
from coffee_mcp.client.stdio import StdioServerParameters, stdio_client

__all__ = ["ClientSession", "SessionState", "StdioServerParameters", "stdio_client"]
