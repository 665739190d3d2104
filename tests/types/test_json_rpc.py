"""
Tests for JSON-RPC TypeAdapter message discrimination.

Discrimination is based on field presence:
- Request:        has 'id' AND 'method'
- Notification:   has 'method' but NO 'id'
- ResultResponse: has 'id' AND 'result' (no 'method')
- ErrorResponse:  has 'error' field
"""

from typing import Any

import pytest

from coffee_mcp.types import (
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    ErrorData,
    JSONRPCErrorResponse,
    JSONRPCMessage,
    JSONRPCMessageAdapter,
    JSONRPCNotification,
    JSONRPCRequest,
    JSONRPCResultResponse,
)


@pytest.mark.parametrize(
    ("raw", "expected_type"),
    [
        # Requests: 'id' + 'method'
        ({"jsonrpc": "2.0", "id": 1, "method": "ping"}, JSONRPCRequest),
        ({"jsonrpc": "2.0", "id": "str-id", "method": "tools/call", "params": {"x": 1}}, JSONRPCRequest),
        # Notifications: 'method', no 'id'
        ({"jsonrpc": "2.0", "method": "notifications/initialized"}, JSONRPCNotification),
        ({"jsonrpc": "2.0", "method": "notifications/initialized", "params": {}}, JSONRPCNotification),
        # Result responses: 'id' + 'result', no 'method'
        ({"jsonrpc": "2.0", "id": 1, "result": {}}, JSONRPCResultResponse),
        ({"jsonrpc": "2.0", "id": "abc", "result": {"data": 123}}, JSONRPCResultResponse),
        # An error nested inside result is still a result response at the envelope level
        (
            {"jsonrpc": "2.0", "id": 3, "result": {"error": {"code": INVALID_PARAMS, "message": "Tool x not found"}}},
            JSONRPCResultResponse,
        ),
        # Error responses: has 'error'
        (
            {"jsonrpc": "2.0", "id": 1, "error": {"code": INVALID_REQUEST, "message": "Invalid Request"}},
            JSONRPCErrorResponse,
        ),
    ],
)
def test_adapter_returns_correct_type(raw: dict[str, Any], expected_type: type[JSONRPCMessage]) -> None:
    message = JSONRPCMessageAdapter.validate_python(raw)
    assert isinstance(message, expected_type)


def test_jsonrpc_version_defaults_to_2_0() -> None:
    message = JSONRPCMessageAdapter.validate_python({"id": 1, "method": "ping"})
    assert isinstance(message, JSONRPCRequest)
    assert message.jsonrpc == "2.0"


def test_other_jsonrpc_versions_are_rejected() -> None:
    with pytest.raises(ValueError):
        JSONRPCMessageAdapter.validate_python({"jsonrpc": "1.0", "id": 1, "method": "ping"})


def test_error_data_keeps_extra_fields() -> None:
    error = ErrorData.model_validate({"code": METHOD_NOT_FOUND, "message": "Method not found", "hint": "x"})
    assert error.model_dump(exclude_none=True) == {"code": METHOD_NOT_FOUND, "message": "Method not found", "hint": "x"}


@pytest.mark.parametrize(
    "raw",
    [
        {"jsonrpc": "2.0", "id": 1.0, "method": "ping"},
        {"jsonrpc": "2.0", "id": 2.5, "method": "ping"},
        {"jsonrpc": "2.0", "id": None, "method": "ping"},
        {"jsonrpc": "2.0", "id": True, "method": "ping"},
        {"jsonrpc": "2.0", "id": [1], "method": "tools/list"},
    ],
)
def test_requests_with_unusable_ids_are_not_notifications(raw: dict[str, Any]) -> None:
    with pytest.raises(ValueError):
        JSONRPCMessageAdapter.validate_python(raw)
