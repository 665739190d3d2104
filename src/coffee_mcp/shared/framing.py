"""Line framing for JSON-RPC envelopes.

Every message is exactly one line of compact JSON; the newline is the only
delimiter. JSON string escaping guarantees a serialized message never
contains a raw newline, so a writer only has to append ``"\\n"`` and flush.
"""

from pydantic import ValidationError

from coffee_mcp.shared.exceptions import MalformedMessage
from coffee_mcp.types import JSONRPCMessage, JSONRPCMessageAdapter


def serialize_message(message: JSONRPCMessage) -> str:
    """Encode an envelope as a single line of JSON, without the trailing newline."""
    return message.model_dump_json(by_alias=True, exclude_none=True)


def parse_message(line: str | bytes) -> JSONRPCMessage:
    """Decode one line into an envelope.

    Raises:
        MalformedMessage: the line is not JSON, or is JSON but not an envelope
    """
    try:
        return JSONRPCMessageAdapter.validate_json(line)
    except ValidationError as exc:
        reason = exc.errors(include_url=False)[0]["msg"] if exc.error_count() else str(exc)
        raise MalformedMessage(line, reason) from exc


def split_lines(buffer: str, chunk: str) -> tuple[list[str], str]:
    """Append a decoded chunk to the pending buffer and cut off complete lines.

    Returns the complete, non-blank lines and the trailing partial line that
    must be carried into the next call.
    """
    lines = (buffer + chunk).split("\n")
    buffer = lines.pop()
    return [line for line in lines if line.strip()], buffer
