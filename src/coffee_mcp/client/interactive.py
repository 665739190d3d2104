"""Interactive operator menu on top of an initialized ClientSession.

The menu offers a ping, and tool calls and resource reads when the server
advertised any. A failed call is reported and the menu comes back; only
cancelling a prompt (Ctrl-C / Ctrl-D) ends the session.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from typing import Any, Protocol, TypeVar

import click
from rich.console import Console
from rich.markup import escape

from coffee_mcp import types
from coffee_mcp.client.session import ClientSession
from coffee_mcp.shared.exceptions import MalformedMessage, McpError, ProtocolViolation, UnexpectedResult

logger = logging.getLogger(__name__)

T = TypeVar("T")


class OperatorCancelled(Exception):
    """The operator cancelled a prompt."""


class Prompter(Protocol):
    def select(self, message: str, options: Sequence[tuple[T, str]]) -> T: ...

    def text(self, message: str) -> str: ...


class ClickPrompter:
    """Prompts on the terminal with click. Aborting a prompt raises OperatorCancelled."""

    def select(self, message: str, options: Sequence[tuple[T, str]]) -> T:
        for index, (_, label) in enumerate(options, start=1):
            click.echo(f"  {index}. {label}")
        try:
            choice = click.prompt(message, type=click.IntRange(1, len(options)))
        except click.Abort:
            raise OperatorCancelled() from None
        return options[choice - 1][0]

    def text(self, message: str) -> str:
        try:
            return click.prompt(message, default="", show_default=False)
        except click.Abort:
            raise OperatorCancelled() from None


def convert_argument(value: str, declared: types.ParameterType) -> Any:
    """Turn operator input into a value of the declared parameter type."""
    if declared == "string":
        return value
    if declared == "number":
        try:
            return int(value)
        except ValueError:
            return float(value)
    if declared == "boolean":
        return click.BOOL.convert(value, None, None)
    parsed = json.loads(value)
    if not isinstance(parsed, dict):
        raise ValueError("expected a JSON object")
    return parsed


def dump_content(console: Console, texts: Sequence[str]) -> None:
    for text in texts:
        try:
            console.print_json(data=json.loads(text))
        except json.JSONDecodeError:
            console.print(text, markup=False)


def _menu(session: ClientSession) -> list[tuple[str, str]]:
    options = [("ping", "Ping the server")]
    if session.tools:
        options.append(("tool", "Get a tool"))
    if session.resources:
        options.append(("resource", "Get a resource"))
    return options


def _ask_arguments(prompter: Prompter, console: Console, tool: types.Tool) -> dict[str, Any]:
    arguments: dict[str, Any] = {}
    for key, schema in tool.input_schema.properties.items():
        while True:
            raw = prompter.text(f"Enter value for {key} ({schema.type})")
            try:
                arguments[key] = convert_argument(raw, schema.type)
                break
            except (ValueError, click.BadParameter) as e:
                console.print(f"[red]Invalid {schema.type} for {key}:[/red] {escape(str(e))}")
    return arguments


async def _run_action(action: str, session: ClientSession, prompter: Prompter, console: Console) -> None:
    if action == "ping":
        result = await session.ping()
        console.print_json(data=result.model_dump(by_alias=True, mode="json", exclude_none=True))
    elif action == "tool":
        tool = prompter.select("Select a tool", [(tool, tool.name) for tool in session.tools])
        arguments = _ask_arguments(prompter, console, tool)
        tool_result = await session.call_tool(tool.name, arguments)
        dump_content(console, [item.text for item in tool_result.content])
    elif action == "resource":
        resource = prompter.select("Select a resource", [(resource, resource.name) for resource in session.resources])
        resource_result = await session.read_resource(resource.uri)
        dump_content(console, [item.text for item in resource_result.contents])


async def run_interactive(
    session: ClientSession,
    prompter: Prompter | None = None,
    console: Console | None = None,
) -> None:
    """Run the menu loop until the operator cancels or the connection closes."""
    prompter = prompter or ClickPrompter()
    console = console or Console()

    info = session.server_info
    console.rule(f"Connecting to {info.name} v{info.version}")

    while True:
        try:
            action = prompter.select("What do you want to do?", _menu(session))
            await _run_action(action, session, prompter, console)
        except OperatorCancelled:
            logger.debug("Operator cancelled, leaving the menu")
            return
        except McpError as e:
            if e.code == types.CONNECTION_CLOSED:
                console.print("[red]Connection to the server was closed.[/red]")
                return
            console.print(f"[red]Error {e.code}:[/red] {escape(e.error.message)}")
        except (ProtocolViolation, MalformedMessage, UnexpectedResult) as e:
            console.print(f"[red]Protocol error:[/red] {escape(str(e))}")
