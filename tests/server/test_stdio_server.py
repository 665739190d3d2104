import io
import json

import anyio
import pytest

from coffee_mcp.server.stdio import stdio_server
from coffee_mcp.shared.exceptions import MalformedMessage
from coffee_mcp.shop import create_server
from coffee_mcp.types import JSONRPCNotification, JSONRPCRequest, JSONRPCResultResponse

pytestmark = pytest.mark.anyio


async def test_stdio_server_reads_and_writes_lines():
    stdin = io.StringIO('{"jsonrpc":"2.0","id":1,"method":"ping"}\n\nnot json\n{"jsonrpc":"2.0","method":"x"}\n')
    stdout = io.StringIO()

    async with stdio_server(stdin=anyio.AsyncFile(stdin), stdout=anyio.AsyncFile(stdout)) as (
        read_stream,
        write_stream,
    ):
        received = []
        async with read_stream:
            async for message in read_stream:
                received.append(message)

        assert received[0] == JSONRPCRequest(id=1, method="ping")
        assert isinstance(received[1], MalformedMessage)
        assert received[2] == JSONRPCNotification(method="x")
        assert len(received) == 3

        async with write_stream:
            await write_stream.send(JSONRPCResultResponse(id=1, result={}))
            await write_stream.send(JSONRPCResultResponse(id=2, result={"a": "b\nc"}))

    assert stdout.getvalue().splitlines() == [
        '{"jsonrpc":"2.0","id":1,"result":{}}',
        '{"jsonrpc":"2.0","id":2,"result":{"a":"b\\nc"}}',
    ]


async def test_coffee_shop_over_stdio_drops_malformed_line():
    lines = [
        {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "initialize",
            "params": {
                "protocolVersion": "2025-03-26",
                "capabilities": {},
                "clientInfo": {"name": "test-client", "version": "1.0.0"},
            },
        },
        {"jsonrpc": "2.0", "method": "notifications/initialized"},
        {"jsonrpc": "2.0", "id": 2, "method": "tools/call", "params": {"name": "getDrinkNames", "arguments": {}}},
        {"jsonrpc": "2.0", "id": 3, "method": "ping"},
    ]
    encoded = [json.dumps(line) for line in lines]
    encoded.insert(2, "{this is not json")
    stdin = io.StringIO("\n".join(encoded) + "\n")
    stdout = io.StringIO()

    server = create_server()
    with anyio.fail_after(5):
        async with stdio_server(stdin=anyio.AsyncFile(stdin), stdout=anyio.AsyncFile(stdout)) as (
            read_stream,
            write_stream,
        ):
            await server.run(read_stream, write_stream)

    replies = [json.loads(line) for line in stdout.getvalue().splitlines()]
    assert [reply["id"] for reply in replies] == [1, 2, 3]
    assert replies[0]["result"]["serverInfo"] == {"name": "Coffee Shop Server", "version": "1.0.0"}
    assert json.loads(replies[1]["result"]["content"][0]["text"]) == {"names": ["Latte", "Mocha", "Flat White"]}
    assert replies[2] == {"jsonrpc": "2.0", "id": 3, "result": {}}


async def test_undecodable_line_is_dropped(monkeypatch: pytest.MonkeyPatch):
    stdin = io.TextIOWrapper(io.BytesIO(b'\xff\xfe bad\n{"jsonrpc":"2.0","id":1,"method":"ping"}\n'), encoding="utf-8")
    stdout = io.TextIOWrapper(io.BytesIO(), encoding="utf-8")
    monkeypatch.setattr("sys.stdin", stdin)
    monkeypatch.setattr("sys.stdout", stdout)

    received = []
    with anyio.fail_after(5):
        async with stdio_server() as (read_stream, write_stream):
            async with read_stream:
                async for message in read_stream:
                    received.append(message)
                    if not isinstance(message, Exception):
                        await write_stream.send(JSONRPCResultResponse(id=message.id, result={}))
            await write_stream.aclose()

    assert isinstance(received[0], MalformedMessage)
    assert received[1] == JSONRPCRequest(id=1, method="ping")
    assert stdout.buffer.getvalue().decode().splitlines() == ['{"jsonrpc":"2.0","id":1,"result":{}}']
