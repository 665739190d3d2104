from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from types import TracebackType
from typing import Any, TypeVar

import anyio
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream
from pydantic import BaseModel, ValidationError
from typing_extensions import Self

from coffee_mcp import types
from coffee_mcp.shared.exceptions import McpError, ProtocolViolation, UnexpectedResult

DEFAULT_CLIENT_INFO = types.Implementation(name="custom-mcp-client", version="1.0.0")

logger = logging.getLogger("client")

ReceiveResultT = TypeVar("ReceiveResultT", bound=BaseModel)


class SessionState(Enum):
    NotInitialized = 1
    Initializing = 2
    Initialized = 3


@dataclass
class PendingCall:
    """Bookkeeping for a request that has been written but not yet answered."""

    request_id: types.RequestId
    method: str


def _error_from_result(result: dict[str, Any]) -> types.ErrorData | None:
    """Recognize an error reply nested inside ``result``."""
    error = result.get("error")
    if not isinstance(error, dict):
        return None
    try:
        return types.ErrorData.model_validate(error)
    except ValidationError:
        return None


class ClientSession:
    """One client's view of a connection: the handshake, then one request at a time.

    The session writes requests to ``write_stream`` and reads exactly one reply
    from ``read_stream`` for each of them. Request ids come from a counter owned
    by the session and start at 1.

    If ``read_timeout_seconds`` is None a request waits for its reply forever;
    otherwise an unanswered request fails with ``REQUEST_TIMEOUT``.
    """

    def __init__(
        self,
        read_stream: MemoryObjectReceiveStream[types.JSONRPCMessage | Exception],
        write_stream: MemoryObjectSendStream[types.JSONRPCMessage],
        read_timeout_seconds: timedelta | None = None,
        client_info: types.Implementation | None = None,
        protocol_version: str = types.LATEST_PROTOCOL_VERSION,
    ) -> None:
        self._read_stream = read_stream
        self._write_stream = write_stream
        self._session_read_timeout_seconds = read_timeout_seconds
        self._client_info = client_info or DEFAULT_CLIENT_INFO
        self._protocol_version = protocol_version
        self._request_id = 0
        self._pending: dict[types.RequestId, PendingCall] = {}
        # Requests given up on after a timeout; their late replies are dropped.
        self._abandoned: set[types.RequestId] = set()
        self._state = SessionState.NotInitialized
        self._server_info: types.Implementation | None = None
        self._server_capabilities: types.ServerCapabilities | None = None
        self._tools: tuple[types.Tool, ...] = ()
        self._resources: tuple[types.Resource, ...] = ()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self._pending.clear()

    # -------------------------
    # Handshake
    # -------------------------

    async def initialize(self) -> types.InitializeResult:
        """Run the handshake and cache the server's tools and resources.

        The steps are strictly ordered: initialize, the initialized
        notification, tools/list (if advertised), resources/list (if
        advertised). The session is usable only after the last one.
        """
        if self._state is not SessionState.NotInitialized:
            raise RuntimeError("Session has already been initialized")
        self._state = SessionState.Initializing

        try:
            result = await self._handshake()
        except BaseException:
            self._state = SessionState.NotInitialized
            raise

        self._state = SessionState.Initialized
        logger.info(
            "Connected to %s %s (%d tools, %d resources)",
            result.server_info.name,
            result.server_info.version,
            len(self._tools),
            len(self._resources),
        )
        return result

    async def _handshake(self) -> types.InitializeResult:
        self._tools = ()
        self._resources = ()
        result = await self.send_request(
            "initialize",
            types.InitializeRequestParams(
                protocol_version=self._protocol_version,
                capabilities=types.ClientCapabilities(),
                client_info=self._client_info,
            ).model_dump(by_alias=True, mode="json", exclude_none=True),
            types.InitializeResult,
        )

        if result.protocol_version not in types.SUPPORTED_PROTOCOL_VERSIONS:
            raise RuntimeError(f"Unsupported protocol version from the server: {result.protocol_version}")

        self._server_info = result.server_info
        self._server_capabilities = result.capabilities

        await self.send_notification("notifications/initialized")

        if result.capabilities.tools is not None:
            listed_tools = await self.send_request("tools/list", None, types.ListToolsResult)
            self._tools = tuple(listed_tools.tools)

        if result.capabilities.resources is not None:
            listed_resources = await self.send_request("resources/list", None, types.ListResourcesResult)
            self._resources = tuple(listed_resources.resources)

        return result

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def server_info(self) -> types.Implementation:
        self._require_initialized()
        assert self._server_info is not None
        return self._server_info

    @property
    def capabilities(self) -> types.ServerCapabilities:
        self._require_initialized()
        assert self._server_capabilities is not None
        return self._server_capabilities

    @property
    def tools(self) -> tuple[types.Tool, ...]:
        self._require_initialized()
        return self._tools

    @property
    def resources(self) -> tuple[types.Resource, ...]:
        self._require_initialized()
        return self._resources

    # -------------------------
    # Typed helpers
    # -------------------------

    async def ping(self) -> types.EmptyResult:
        """Send a ping request."""
        return await self.send_request("ping", None, types.EmptyResult)

    async def call_tool(self, name: str, arguments: dict[str, Any] | None = None) -> types.CallToolResult:
        """Send a tools/call request."""
        return await self.send_request(
            "tools/call",
            types.CallToolRequestParams(name=name, arguments=arguments or {}).model_dump(
                by_alias=True, mode="json", exclude_none=True
            ),
            types.CallToolResult,
        )

    async def read_resource(self, uri: str) -> types.ReadResourceResult:
        """Send a resources/read request."""
        return await self.send_request("resources/read", {"uri": uri}, types.ReadResourceResult)

    # -------------------------
    # Request/response
    # -------------------------

    async def send_request(
        self,
        method: str,
        params: dict[str, Any] | None,
        result_type: type[ReceiveResultT],
        request_read_timeout_seconds: timedelta | None = None,
    ) -> ReceiveResultT:
        """
        Sends a request and waits for its response. Raises an McpError if the
        response carries an error. If a request read timeout is provided, it
        will take precedence over the session read timeout.

        Do not use this method to emit notifications! Use send_notification()
        instead.
        """
        if self._state is SessionState.NotInitialized and method != "initialize":
            raise RuntimeError(f"Cannot send {method!r} before the session is initialized")
        if self._pending:
            # One outstanding request at a time; replies are not routed by id.
            raise RuntimeError("Another request is already waiting for its response")

        request_id = self._next_request_id()
        self._pending[request_id] = PendingCall(request_id=request_id, method=method)
        try:
            await self._write_stream.send(types.JSONRPCRequest(id=request_id, method=method, params=params))
            response = await self._receive_response(request_id, request_read_timeout_seconds)
        finally:
            self._pending.pop(request_id, None)

        if isinstance(response, types.JSONRPCErrorResponse):
            raise McpError(response.error)
        if (error := _error_from_result(response.result)) is not None:
            raise McpError(error)
        try:
            return result_type.model_validate(response.result)
        except ValidationError as e:
            raise UnexpectedResult(method, str(e)) from e

    async def send_notification(self, method: str, params: dict[str, Any] | None = None) -> None:
        """
        Emits a notification, which is a one-way message that does not expect
        a response.
        """
        await self._write_stream.send(types.JSONRPCNotification(method=method, params=params))

    def _next_request_id(self) -> int:
        self._request_id += 1
        return self._request_id

    async def _receive_response(
        self, request_id: types.RequestId, request_read_timeout_seconds: timedelta | None
    ) -> types.JSONRPCResponse:
        # request read timeout takes precedence over session read timeout
        timeout = None
        if request_read_timeout_seconds is not None:
            timeout = request_read_timeout_seconds.total_seconds()
        elif self._session_read_timeout_seconds is not None:
            timeout = self._session_read_timeout_seconds.total_seconds()

        try:
            with anyio.fail_after(timeout):
                while True:
                    message = await self._read_stream.receive()
                    if isinstance(message, Exception):
                        raise message
                    if isinstance(message, types.JSONRPCNotification):
                        logger.debug("Ignoring server notification %r", message.method)
                        continue
                    if isinstance(message, types.JSONRPCRequest):
                        logger.warning("Ignoring server request %r", message.method)
                        continue
                    if message.id in self._abandoned:
                        self._abandoned.discard(message.id)
                        logger.warning("Dropping late response to timed out request %r", message.id)
                        continue
                    if message.id != request_id:
                        raise ProtocolViolation(request_id, message.id)
                    return message
        except TimeoutError:
            self._abandoned.add(request_id)
            raise McpError(
                types.ErrorData(
                    code=types.REQUEST_TIMEOUT,
                    message=f"Timed out while waiting for response to request {request_id}. Waited {timeout} seconds.",
                )
            )
        except (anyio.EndOfStream, anyio.ClosedResourceError):
            raise McpError(types.ErrorData(code=types.CONNECTION_CLOSED, message="Connection closed"))

    def _require_initialized(self) -> None:
        if self._state is not SessionState.Initialized:
            raise RuntimeError("Session is not initialized")
