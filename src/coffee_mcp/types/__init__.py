from coffee_mcp.types.base import (
    LATEST_PROTOCOL_VERSION,
    SUPPORTED_PROTOCOL_VERSIONS,
    EmptyResult,
    MCPModel,
    RequestParams,
    Result,
)
from coffee_mcp.types.common import ClientCapabilities, Implementation, ServerCapabilities
from coffee_mcp.types.content import TextContent
from coffee_mcp.types.initialize import InitializeRequestParams, InitializeResult
from coffee_mcp.types.json_rpc import (
    CONNECTION_CLOSED,
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    JSONRPC_VERSION,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    REQUEST_TIMEOUT,
    ErrorData,
    JSONRPCErrorResponse,
    JSONRPCMessage,
    JSONRPCMessageAdapter,
    JSONRPCNotification,
    JSONRPCRequest,
    JSONRPCResponse,
    JSONRPCResultResponse,
    RequestId,
)
from coffee_mcp.types.resources import (
    ListResourcesResult,
    ReadResourceRequestParams,
    ReadResourceResult,
    Resource,
    TextResourceContents,
)
from coffee_mcp.types.tools import (
    CallToolRequestParams,
    CallToolResult,
    JsonSchema,
    ListToolsResult,
    ParameterSchema,
    ParameterType,
    Tool,
)

__all__ = [
    "CONNECTION_CLOSED",
    "INTERNAL_ERROR",
    "INVALID_PARAMS",
    "INVALID_REQUEST",
    "JSONRPC_VERSION",
    "LATEST_PROTOCOL_VERSION",
    "METHOD_NOT_FOUND",
    "PARSE_ERROR",
    "REQUEST_TIMEOUT",
    "SUPPORTED_PROTOCOL_VERSIONS",
    "CallToolRequestParams",
    "CallToolResult",
    "ClientCapabilities",
    "EmptyResult",
    "ErrorData",
    "Implementation",
    "InitializeRequestParams",
    "InitializeResult",
    "JSONRPCErrorResponse",
    "JSONRPCMessage",
    "JSONRPCMessageAdapter",
    "JSONRPCNotification",
    "JSONRPCRequest",
    "JSONRPCResponse",
    "JSONRPCResultResponse",
    "JsonSchema",
    "ListResourcesResult",
    "ListToolsResult",
    "MCPModel",
    "ParameterSchema",
    "ParameterType",
    "ReadResourceRequestParams",
    "ReadResourceResult",
    "RequestId",
    "RequestParams",
    "Resource",
    "TextContent",
    "TextResourceContents",
    "Tool",
]
