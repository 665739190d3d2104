from coffee_mcp import types


def test_tool_descriptor_uses_wire_aliases() -> None:
    tool = types.Tool(
        name="getDrinkInfo",
        description="Get more info about the drink",
        input_schema=types.JsonSchema(properties={"name": types.ParameterSchema(type="string")}, required=["name"]),
    )

    assert tool.model_dump(by_alias=True, exclude_none=True) == {
        "name": "getDrinkInfo",
        "description": "Get more info about the drink",
        "inputSchema": {"type": "object", "properties": {"name": {"type": "string"}}, "required": ["name"]},
    }


def test_tool_descriptor_without_schema_gets_empty_object_schema() -> None:
    tool = types.Tool.model_validate({"name": "getDrinkNames"})
    assert tool.input_schema.type == "object"
    assert tool.input_schema.properties == {}


def test_initialize_result_parses_wire_names() -> None:
    result = types.InitializeResult.model_validate(
        {
            "protocolVersion": "2025-03-26",
            "capabilities": {"tools": {"listChanged": True}},
            "serverInfo": {"name": "Coffee Shop Server", "version": "1.0.0"},
        }
    )

    assert result.protocol_version == "2025-03-26"
    assert result.capabilities.tools == {"listChanged": True}
    assert result.capabilities.resources is None
    assert result.server_info.name == "Coffee Shop Server"


def test_resource_contents_round_trip_mime_type_alias() -> None:
    contents = types.TextResourceContents(uri="menu://app", text="[]", mime_type="application/json")
    assert contents.model_dump(by_alias=True, exclude_none=True) == {
        "uri": "menu://app",
        "text": "[]",
        "mimeType": "application/json",
    }
