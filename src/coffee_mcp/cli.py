"""Command line entry points: ``coffee-mcp serve`` and ``coffee-mcp connect``."""

import sys
from datetime import timedelta

import anyio
import click

from coffee_mcp import types
from coffee_mcp.client.interactive import run_interactive
from coffee_mcp.client.session import ClientSession
from coffee_mcp.client.stdio import StdioServerParameters, stdio_client
from coffee_mcp.server.stdio import run_stdio
from coffee_mcp.settings import Settings
from coffee_mcp.shop import create_server
from coffee_mcp.utilities.logging import configure_logging

LOG_LEVELS = click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False)


@click.group()
@click.pass_context
def main(ctx: click.Context) -> None:
    """A minimal line-delimited MCP client and server."""
    ctx.obj = Settings()


@main.command()
@click.option("--log-level", type=LOG_LEVELS, default=None, help="Overrides COFFEE_MCP_LOG_LEVEL")
@click.option(
    "--error-placement",
    type=click.Choice(["result", "envelope"]),
    default=None,
    help="Nest errors inside result (compatible) or use the top-level error member",
)
@click.pass_obj
def serve(settings: Settings, log_level: str | None, error_placement: str | None) -> None:
    """Serve the coffee shop over stdin/stdout."""
    configure_logging(log_level.upper() if log_level else settings.log_level)  # type: ignore[arg-type]
    server = create_server(error_placement=error_placement or settings.error_placement)  # type: ignore[arg-type]
    anyio.run(run_stdio, server)


async def _connect(settings: Settings, params: StdioServerParameters) -> None:
    timeout = timedelta(seconds=settings.request_timeout) if settings.request_timeout is not None else None
    client_info = types.Implementation(name=settings.client_name, version=settings.client_version)

    async with stdio_client(params) as (read_stream, write_stream):
        async with ClientSession(
            read_stream, write_stream, read_timeout_seconds=timeout, client_info=client_info
        ) as session:
            await session.initialize()
            await run_interactive(session)


@main.command(context_settings={"ignore_unknown_options": True})
@click.option("--timeout", type=float, default=None, help="Seconds to wait for each response")
@click.option("--log-level", type=LOG_LEVELS, default=None, help="Overrides COFFEE_MCP_LOG_LEVEL")
@click.argument("command", nargs=-1, type=click.UNPROCESSED)
@click.pass_obj
def connect(settings: Settings, timeout: float | None, log_level: str | None, command: tuple[str, ...]) -> None:
    """Spawn a server and open the interactive menu.

    COMMAND defaults to this package's own coffee shop server, started with
    the current interpreter.
    """
    configure_logging(log_level.upper() if log_level else settings.log_level)  # type: ignore[arg-type]
    if timeout is not None:
        settings.request_timeout = timeout

    argv = list(command) or [sys.executable, "-m", "coffee_mcp", "serve"]
    params = StdioServerParameters(command=argv[0], args=argv[1:])
    try:
        anyio.run(_connect, settings, params)
    except KeyboardInterrupt:
        pass
