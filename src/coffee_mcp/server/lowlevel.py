"""
Server Module

The Server owns the tool and resource tables, answers the initialize
handshake, and routes every other request to its handler. It knows nothing
about the transport: ``run()`` consumes a stream of parsed messages and
produces a stream of replies, one message at a time, so replies leave in the
order the requests arrived.

Usage:
    server = Server("my-server", version="1.0.0")

    @server.tool(parameters={"name": "string"})
    async def greet(arguments):
        return f"Hello, {arguments['name']}!"

    server.add_resource(TextResource(uri="notes://today", name="today", text="..."))

    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream)

Every request receives exactly one reply. Failures are reported through the
reply helper, which by default nests the error inside ``result``
(``{"result": {"error": {...}}}``) for compatibility with existing peers;
``error_placement="envelope"`` emits the conventional top-level ``error``.
"""

from __future__ import annotations as _annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from enum import Enum
from typing import Any, Literal, TypeVar

import anyio
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream
from pydantic import BaseModel, ValidationError

from coffee_mcp import types
from coffee_mcp.server.capabilities import CapabilityTable, Resource, Tool
from coffee_mcp.shared.exceptions import McpError, UnknownCapability, UnknownMethod

logger = logging.getLogger(__name__)

ErrorPlacement = Literal["result", "envelope"]
RequestHandler = Callable[[dict[str, Any]], Awaitable[BaseModel | dict[str, Any]]]
NotificationHandler = Callable[[dict[str, Any]], Awaitable[None]]

ParamsT = TypeVar("ParamsT", bound=BaseModel)

# Requests a client may send before the handshake has completed.
_PRE_INITIALIZE_METHODS = frozenset({"initialize", "ping"})


class ServerState(Enum):
    AwaitingInitialize = 1
    Ready = 2


class NotificationOptions:
    def __init__(self, resources_changed: bool = False, tools_changed: bool = False):
        self.resources_changed = resources_changed
        self.tools_changed = tools_changed


def _parse_params(params_type: type[ParamsT], params: dict[str, Any]) -> ParamsT:
    try:
        return params_type.model_validate(params)
    except ValidationError as e:
        raise McpError(types.ErrorData(code=types.INVALID_PARAMS, message="Invalid params", data=str(e))) from e


class Server:
    def __init__(
        self,
        name: str,
        version: str = "0.1.0",
        *,
        protocol_version: str = types.LATEST_PROTOCOL_VERSION,
        notification_options: NotificationOptions | None = None,
        error_placement: ErrorPlacement = "result",
    ):
        self.name = name
        self.version = version
        self.protocol_version = protocol_version
        self.notification_options = notification_options or NotificationOptions()
        self.error_placement = error_placement
        self.state = ServerState.AwaitingInitialize
        self.client_info: types.Implementation | None = None

        self.tools: CapabilityTable[Tool] = CapabilityTable("Tool", key=lambda tool: tool.name)
        self.resources: CapabilityTable[Resource] = CapabilityTable("Resource", key=lambda resource: resource.uri)

        self._request_handlers: dict[str, RequestHandler] = {
            "ping": self._handle_ping,
            "initialize": self._handle_initialize,
            "tools/list": self._handle_list_tools,
            "tools/call": self._handle_call_tool,
            "resources/list": self._handle_list_resources,
            "resources/read": self._handle_read_resource,
        }
        self._notification_handlers: dict[str, NotificationHandler] = {
            "notifications/initialized": self._handle_initialized,
        }
        logger.debug("Initializing server %r", name)

    # -------------------------
    # Registration
    # -------------------------

    def add_tool(self, tool: Tool) -> Tool:
        return self.tools.add(tool)

    def add_resource(self, resource: Resource) -> Resource:
        return self.resources.add(resource)

    def tool(
        self,
        name: str | None = None,
        description: str | None = None,
        parameters: Mapping[str, types.ParameterType | types.ParameterSchema] | None = None,
        required: list[str] | None = None,
    ) -> Callable[[Callable[[dict[str, Any]], Any]], Callable[[dict[str, Any]], Any]]:
        """Decorator to register a function as a tool."""

        def decorator(fn: Callable[[dict[str, Any]], Any]) -> Callable[[dict[str, Any]], Any]:
            self.add_tool(
                Tool.from_function(fn, name=name, description=description, parameters=parameters, required=required)
            )
            return fn

        return decorator

    def request_handler(self, method: str) -> Callable[[RequestHandler], RequestHandler]:
        """Decorator to register (or replace) the handler for a request method."""

        def decorator(fn: RequestHandler) -> RequestHandler:
            self._request_handlers[method] = fn
            return fn

        return decorator

    def notification_handler(self, method: str) -> Callable[[NotificationHandler], NotificationHandler]:
        """Decorator to register a handler for a notification method."""

        def decorator(fn: NotificationHandler) -> NotificationHandler:
            self._notification_handlers[method] = fn
            return fn

        return decorator

    def get_capabilities(self) -> types.ServerCapabilities:
        """Advertise a capability iff at least one entity of that kind is registered."""
        caps = types.ServerCapabilities()
        if self.tools:
            caps.tools = {"listChanged": self.notification_options.tools_changed}
        if self.resources:
            caps.resources = {"listChanged": self.notification_options.resources_changed}
        return caps

    # -------------------------
    # Run loop
    # -------------------------

    async def run(
        self,
        read_stream: MemoryObjectReceiveStream[types.JSONRPCMessage | Exception],
        write_stream: MemoryObjectSendStream[types.JSONRPCMessage],
    ) -> None:
        """Serve messages until the read stream ends."""
        async with read_stream, write_stream:
            try:
                async for message in read_stream:
                    if isinstance(message, Exception):
                        # The peer gets no reply: a line that can't be parsed has no id to answer.
                        logger.warning("Discarding unparseable message: %s", message)
                        continue

                    response = await self.handle_message(message)
                    if response is not None:
                        await write_stream.send(response)
            except anyio.ClosedResourceError:
                logger.debug("Read stream closed by client")
        logger.debug("Server %r stopped", self.name)

    async def handle_message(self, message: types.JSONRPCMessage) -> types.JSONRPCResponse | None:
        """Process a single message and return the reply, if one is owed."""
        if isinstance(message, types.JSONRPCRequest):
            return await self.dispatch_request(message)

        if isinstance(message, types.JSONRPCNotification):
            await self.dispatch_notification(message)
            return None

        # Responses would answer server->client requests, which this server never sends.
        logger.warning("Ignoring unexpected response with id %r", message.id)
        return None

    async def dispatch_request(self, request: types.JSONRPCRequest) -> types.JSONRPCResponse:
        """Dispatch a request to the appropriate handler."""
        logger.debug("Received request %r (id=%r)", request.method, request.id)

        if self.state is ServerState.AwaitingInitialize and request.method not in _PRE_INITIALIZE_METHODS:
            return self._error_response(
                request.id,
                types.ErrorData(
                    code=types.INVALID_REQUEST,
                    message="Received request before initialization was complete",
                ),
            )

        try:
            handler = self._request_handlers.get(request.method)
            if handler is None:
                raise UnknownMethod(request.method)
            result = await handler(request.params or {})
        except McpError as e:
            logger.info("Request %r failed: %s", request.method, e.error.message)
            return self._error_response(request.id, e.error)
        except Exception as e:
            logger.exception("Handler error for %s", request.method)
            return self._error_response(request.id, types.ErrorData(code=types.INTERNAL_ERROR, message=str(e)))

        if isinstance(result, BaseModel):
            result = result.model_dump(by_alias=True, mode="json", exclude_none=True)
        return types.JSONRPCResultResponse(id=request.id, result=result)

    async def dispatch_notification(self, notification: types.JSONRPCNotification) -> None:
        handler = self._notification_handlers.get(notification.method)
        if handler is None:
            logger.debug("Ignoring notification %r", notification.method)
            return
        try:
            await handler(notification.params or {})
        except Exception:
            logger.exception("Notification handler error for %s", notification.method)

    def _error_response(self, request_id: types.RequestId, error: types.ErrorData) -> types.JSONRPCResponse:
        if self.error_placement == "envelope":
            return types.JSONRPCErrorResponse(id=request_id, error=error)
        return types.JSONRPCResultResponse(
            id=request_id,
            result={"error": error.model_dump(mode="json", exclude_none=True)},
        )

    # -------------------------
    # Built-in handlers
    # -------------------------

    async def _handle_ping(self, params: dict[str, Any]) -> types.EmptyResult:
        return types.EmptyResult()

    async def _handle_initialize(self, params: dict[str, Any]) -> types.InitializeResult:
        request = _parse_params(types.InitializeRequestParams, params)
        self.client_info = request.client_info
        if request.protocol_version != self.protocol_version:
            logger.info(
                "Client requested protocol %s, answering with %s", request.protocol_version, self.protocol_version
            )

        result = types.InitializeResult(
            protocol_version=self.protocol_version,
            capabilities=self.get_capabilities(),
            server_info=types.Implementation(name=self.name, version=self.version),
        )
        self.state = ServerState.Ready
        logger.info("Initialized session with %s %s", request.client_info.name, request.client_info.version)
        return result

    async def _handle_initialized(self, params: dict[str, Any]) -> None:
        logger.debug("Client finished the handshake")

    async def _handle_list_tools(self, params: dict[str, Any]) -> types.ListToolsResult:
        return types.ListToolsResult(tools=[tool.describe() for tool in self.tools])

    async def _handle_call_tool(self, params: dict[str, Any]) -> types.CallToolResult:
        request = _parse_params(types.CallToolRequestParams, params)
        tool = self.tools.get(request.name)
        if tool is None:
            raise UnknownCapability("Tool", request.name)
        return await tool.invoke(request.arguments or {})

    async def _handle_list_resources(self, params: dict[str, Any]) -> types.ListResourcesResult:
        return types.ListResourcesResult(resources=[resource.describe() for resource in self.resources])

    async def _handle_read_resource(self, params: dict[str, Any]) -> types.ReadResourceResult:
        request = _parse_params(types.ReadResourceRequestParams, params)
        resource = self.resources.get(request.uri)
        if resource is None:
            raise UnknownCapability("Resource", request.uri)
        return await resource.read()
