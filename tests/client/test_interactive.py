import io
import json
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from typing import Any, TypeVar

import anyio
import click
import pytest
from rich.console import Console

from coffee_mcp.client.interactive import OperatorCancelled, convert_argument, run_interactive
from coffee_mcp.client.session import ClientSession
from coffee_mcp.server import Server
from coffee_mcp.shared.memory import create_client_server_memory_streams
from coffee_mcp.shop import create_server

pytestmark = pytest.mark.anyio

T = TypeVar("T")


class ScriptedPrompter:
    """Answers prompts from a script; select answers name the option label to pick."""

    def __init__(self, answers: list[str]):
        self.answers = list(answers)
        self.menus: list[list[str]] = []

    def _next(self) -> str:
        if not self.answers:
            raise OperatorCancelled()
        return self.answers.pop(0)

    def select(self, message: str, options: Sequence[tuple[T, str]]) -> T:
        labels = [label for _, label in options]
        self.menus.append(labels)
        return options[labels.index(self._next())][0]

    def text(self, message: str) -> str:
        return self._next()


@asynccontextmanager
async def connected(server: Server) -> AsyncIterator[tuple[ClientSession, Any]]:
    async with create_client_server_memory_streams() as (client_streams, server_streams):
        async with anyio.create_task_group() as tg:
            tg.start_soon(server.run, *server_streams)
            async with ClientSession(*client_streams) as session:
                await session.initialize()
                yield session, server_streams
            tg.cancel_scope.cancel()


def make_console() -> tuple[Console, io.StringIO]:
    output = io.StringIO()
    return Console(file=output, width=200, color_system=None), output


async def test_ping_then_cancel():
    console, output = make_console()
    prompter = ScriptedPrompter(["Ping the server"])

    async with connected(create_server()) as (session, _):
        await run_interactive(session, prompter, console)

    assert "Connecting to Coffee Shop Server v1.0.0" in output.getvalue()
    assert "{}" in output.getvalue()
    assert prompter.menus[0] == ["Ping the server", "Get a tool", "Get a resource"]


async def test_call_tool_prompts_for_arguments():
    console, output = make_console()
    prompter = ScriptedPrompter(["Get a tool", "getDrinkInfo", "Latte"])

    async with connected(create_server()) as (session, _):
        await run_interactive(session, prompter, console)

    assert prompter.menus[1] == ["getDrinkNames", "getDrinkInfo"]
    assert '"price": 5' in output.getvalue()


async def test_read_resource():
    console, output = make_console()
    prompter = ScriptedPrompter(["Get a resource", "menu"])

    async with connected(create_server()) as (session, _):
        await run_interactive(session, prompter, console)

    text = output.getvalue()
    assert '"Flat White"' in text
    assert '"Mocha"' in text


async def test_menu_without_tools_or_resources():
    prompter = ScriptedPrompter([])
    console, _ = make_console()

    async with connected(Server("bare")) as (session, _):
        await run_interactive(session, prompter, console)

    assert prompter.menus == [["Ping the server"]]


async def test_invalid_argument_is_asked_again():
    server = Server("calculator")

    @server.tool(parameters={"count": "number"})
    def double(arguments: dict[str, Any]) -> int:
        return arguments["count"] * 2

    console, output = make_console()
    prompter = ScriptedPrompter(["Get a tool", "double", "abc", "4"])

    async with connected(server) as (session, _):
        await run_interactive(session, prompter, console)

    text = output.getvalue()
    assert "Invalid number for count" in text
    assert text.rstrip().endswith("8")


async def test_failed_call_returns_to_menu():
    server = Server("flaky")

    @server.tool()
    def explode(arguments: dict[str, Any]) -> None:
        raise RuntimeError("kaput")

    console, output = make_console()
    prompter = ScriptedPrompter(["Get a tool", "explode", "Ping the server"])

    async with connected(server) as (session, _):
        await run_interactive(session, prompter, console)

    text = output.getvalue()
    assert "Error -32603: Error executing tool explode: kaput" in text
    assert len(prompter.menus) == 4
    assert prompter.answers == []


async def test_closed_connection_ends_the_loop():
    console, output = make_console()
    prompter = ScriptedPrompter(["Ping the server", "Ping the server"])

    async with connected(create_server()) as (session, server_streams):
        _, server_write = server_streams
        await server_write.aclose()
        await run_interactive(session, prompter, console)

    assert "Connection to the server was closed." in output.getvalue()
    assert prompter.answers == ["Ping the server"]


@pytest.mark.parametrize(
    ("raw", "declared", "expected"),
    [
        ("Latte", "string", "Latte"),
        ("", "string", ""),
        ("4", "number", 4),
        ("2.5", "number", 2.5),
        ("yes", "boolean", True),
        ("false", "boolean", False),
        ('{"size": "large"}', "object", {"size": "large"}),
    ],
)
def test_convert_argument(raw: str, declared: Any, expected: Any):
    value = convert_argument(raw, declared)
    assert value == expected
    assert type(value) is type(expected)


@pytest.mark.parametrize(
    ("raw", "declared", "error"),
    [
        ("four", "number", ValueError),
        ("maybe", "boolean", click.BadParameter),
        ("[1, 2]", "object", ValueError),
        ("{not json", "object", json.JSONDecodeError),
    ],
)
def test_convert_argument_rejects_bad_input(raw: str, declared: Any, error: type[Exception]):
    with pytest.raises(error):
        convert_argument(raw, declared)


async def test_result_of_the_wrong_shape_returns_to_menu():
    server = Server("camera")

    @server.tool()
    def snapshot(arguments: dict[str, Any]) -> str:
        return "unused"

    @server.request_handler("tools/call")
    async def call_with_image(params: dict[str, Any]) -> dict[str, Any]:
        return {"content": [{"type": "image", "data": "aGVsbG8=", "mimeType": "image/png"}]}

    console, output = make_console()
    prompter = ScriptedPrompter(["Get a tool", "snapshot", "Ping the server"])

    async with connected(server) as (session, _):
        await run_interactive(session, prompter, console)

    assert "Unexpected result for tools/call" in output.getvalue()
    assert len(prompter.menus) == 4
    assert prompter.answers == []
