from typing import Any

from coffee_mcp.types import INTERNAL_ERROR, INVALID_PARAMS, METHOD_NOT_FOUND, ErrorData, RequestId


class McpError(Exception):
    """Exception raised when an MCP protocol error is produced or received.

    On the server it is raised by handlers and turned into an error reply at
    the dispatch boundary. On the client it is raised when the peer replies
    with an error instead of a result.

    Attributes:
        error: The ErrorData carried on the wire
    """

    error: ErrorData

    def __init__(self, error: ErrorData):
        super().__init__(error.message)
        self.error = error

    @property
    def code(self) -> int:
        return self.error.code


class MalformedMessage(ValueError):
    """A line on the stream is not a parseable JSON-RPC envelope."""

    def __init__(self, line: str | bytes, reason: str):
        if isinstance(line, bytes):
            line = line.decode("utf-8", errors="replace")
        super().__init__(f"Malformed message: {reason}")
        self.line = line
        self.reason = reason


class UnknownCapability(McpError):
    """A tool name or resource uri that is not registered."""

    def __init__(self, kind: str, key: str):
        super().__init__(ErrorData(code=INVALID_PARAMS, message=f"{kind} {key} not found"))
        self.kind = kind
        self.key = key


class UnknownMethod(McpError):
    def __init__(self, method: str):
        super().__init__(ErrorData(code=METHOD_NOT_FOUND, message="Method not found"))
        self.method = method


class InvalidArguments(McpError):
    """Tool arguments do not match their declared types."""

    def __init__(self, message: str, data: Any | None = None):
        super().__init__(ErrorData(code=INVALID_PARAMS, message=message, data=data))


class HandlerFailure(McpError):
    """A capability provider raised while executing or reading."""

    def __init__(self, message: str):
        super().__init__(ErrorData(code=INTERNAL_ERROR, message=message))


class ProtocolViolation(Exception):
    """The peer answered with a response that does not belong to the pending call."""

    def __init__(self, expected: RequestId, received: RequestId | None):
        super().__init__(f"Expected a response to request {expected!r}, got one for {received!r}")
        self.expected = expected
        self.received = received


class UnexpectedResult(ValueError):
    """The peer answered with a result that does not have the shape of the request's result type."""

    def __init__(self, method: str, reason: str):
        super().__init__(f"Unexpected result for {method}: {reason}")
        self.method = method
        self.reason = reason
