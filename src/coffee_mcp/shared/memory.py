"""In-memory stream pairs for connecting a client session and a server in one process."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import anyio
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream

from coffee_mcp.types import JSONRPCMessage

ReadStream = MemoryObjectReceiveStream[JSONRPCMessage | Exception]
WriteStream = MemoryObjectSendStream[JSONRPCMessage]
MessageStreams = tuple[ReadStream, WriteStream]


@asynccontextmanager
async def create_client_server_memory_streams() -> AsyncIterator[tuple[MessageStreams, MessageStreams]]:
    """Create a pair of bidirectional memory streams for client-server communication.

    Returns:
        A tuple of (client_streams, server_streams) where each is a tuple of
        (read_stream, write_stream)
    """
    # Like the stdio transports, these streams carry whole messages. Since no
    # framing happens, a parse failure never shows up here.
    server_to_client_send, server_to_client_receive = anyio.create_memory_object_stream[JSONRPCMessage | Exception](1)
    client_to_server_send, client_to_server_receive = anyio.create_memory_object_stream[JSONRPCMessage | Exception](1)

    client_streams = (server_to_client_receive, client_to_server_send)
    server_streams = (client_to_server_receive, server_to_client_send)

    async with (
        server_to_client_receive,
        client_to_server_send,
        client_to_server_receive,
        server_to_client_send,
    ):
        yield client_streams, server_streams
