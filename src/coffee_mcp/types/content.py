"""Content block types used in tool results."""

from typing import Literal

from coffee_mcp.types.base import MCPModel


class TextContent(MCPModel):
    """Text payload. Structured results travel JSON-encoded in ``text``."""

    type: Literal["text"] = "text"
    text: str
