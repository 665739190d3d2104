"""Runtime settings, read from ``COFFEE_MCP_*`` environment variables or a ``.env`` file."""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from coffee_mcp.utilities.logging import LogLevel


class Settings(BaseSettings):
    """coffee-mcp settings.

    All settings can be configured via environment variables with the prefix COFFEE_MCP_.
    For example, COFFEE_MCP_LOG_LEVEL=DEBUG will set log_level="DEBUG".
    Command line options take precedence over these values.
    """

    model_config = SettingsConfigDict(
        env_prefix="COFFEE_MCP_",
        env_file=".env",
        extra="ignore",
    )

    log_level: LogLevel = "INFO"

    error_placement: Literal["result", "envelope"] = "result"
    """Where the server puts error objects: nested in ``result`` or as the top-level ``error``."""

    request_timeout: float | None = None
    """Seconds the client waits for each response; None waits forever."""

    client_name: str = "custom-mcp-client"
    client_version: str = "1.0.0"
