"""Stdio Server Transport Module

This module provides the stdio transport for a server: requests are read
from the current process' stdin and replies are written to stdout, one JSON
message per line.

Example:
    ```python
    async def run_server():
        async with stdio_server() as (read_stream, write_stream):
            # read_stream yields parsed messages, or the MalformedMessage for
            # a line that could not be parsed
            # write_stream accepts messages to be written to stdout
            await server.run(read_stream, write_stream)

    anyio.run(run_server)
    ```
"""

import logging
import sys
from contextlib import asynccontextmanager
from io import TextIOWrapper
from typing import BinaryIO

import anyio
import anyio.lowlevel
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream

from coffee_mcp.server.lowlevel import Server
from coffee_mcp.shared.exceptions import MalformedMessage
from coffee_mcp.shared.framing import parse_message, serialize_message
from coffee_mcp.types import JSONRPCMessage

logger = logging.getLogger(__name__)


class _NonClosingTextIOWrapper(TextIOWrapper):
    """Text wrapper that never closes the underlying binary stream.

    stdio_server should not close the process' real stdin/stdout handles when its
    background tasks wind down.
    """

    def close(self) -> None:
        if self.closed:
            return

        if self.writable():
            self.flush()


def _wrap_process_stdio(binary_stream: BinaryIO) -> anyio.AsyncFile[str]:
    # Undecodable bytes become U+FFFD so the line fails to parse instead of ending the reader.
    return anyio.wrap_file(_NonClosingTextIOWrapper(binary_stream, encoding="utf-8", errors="replace"))


@asynccontextmanager
async def stdio_server(stdin: anyio.AsyncFile[str] | None = None, stdout: anyio.AsyncFile[str] | None = None):
    """Server transport for stdio: this communicates with a client by reading
    from the current process' stdin and writing to stdout.
    """
    # Encoding of stdin/stdout as text streams on python is platform-dependent,
    # so we re-wrap the underlying binary stream to ensure UTF-8.
    if not stdin:
        stdin = _wrap_process_stdio(sys.stdin.buffer)
    if not stdout:
        stdout = _wrap_process_stdio(sys.stdout.buffer)

    read_stream: MemoryObjectReceiveStream[JSONRPCMessage | Exception]
    read_stream_writer: MemoryObjectSendStream[JSONRPCMessage | Exception]

    write_stream: MemoryObjectSendStream[JSONRPCMessage]
    write_stream_reader: MemoryObjectReceiveStream[JSONRPCMessage]

    read_stream_writer, read_stream = anyio.create_memory_object_stream(0)
    write_stream, write_stream_reader = anyio.create_memory_object_stream(0)

    async def stdin_reader():
        try:
            async with read_stream_writer:
                async for line in stdin:
                    if not line.strip():
                        continue
                    try:
                        message = parse_message(line)
                    except MalformedMessage as exc:
                        await read_stream_writer.send(exc)
                        continue

                    await read_stream_writer.send(message)
        except anyio.ClosedResourceError:  # pragma: no cover
            await anyio.lowlevel.checkpoint()

    async def stdout_writer():
        try:
            async with write_stream_reader:
                async for message in write_stream_reader:
                    await stdout.write(serialize_message(message) + "\n")
                    await stdout.flush()
        except anyio.ClosedResourceError:  # pragma: no cover
            await anyio.lowlevel.checkpoint()

    async with anyio.create_task_group() as tg:
        tg.start_soon(stdin_reader)
        tg.start_soon(stdout_writer)
        yield read_stream, write_stream


async def run_stdio(server: Server) -> None:
    """Serve ``server`` over stdin/stdout until stdin reaches end of file."""
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream)
    logger.info("Input closed, shutting down")
