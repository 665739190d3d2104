"""The Coffee Shop server: two tools and a menu resource over the drink catalog."""

from typing import Any

from coffee_mcp.server import FunctionResource, NotificationOptions, Server, Tool
from coffee_mcp.server.lowlevel import ErrorPlacement
from coffee_mcp.shop.catalog import DRINKS, find_drink

SERVER_NAME = "Coffee Shop Server"
SERVER_VERSION = "1.0.0"
MENU_URI = "menu://app"


def get_drink_names(arguments: dict[str, Any]) -> dict[str, list[str]]:
    return {"names": [drink.name for drink in DRINKS]}


def get_drink_info(arguments: dict[str, Any]) -> dict[str, Any]:
    drink = find_drink(arguments.get("name", ""))
    if drink is None:
        return {"error": "Drink not found"}
    return drink.model_dump()


def get_menu() -> list[dict[str, Any]]:
    return [drink.model_dump() for drink in DRINKS]


def create_server(error_placement: ErrorPlacement = "result") -> Server:
    server = Server(
        SERVER_NAME,
        version=SERVER_VERSION,
        notification_options=NotificationOptions(resources_changed=True, tools_changed=True),
        error_placement=error_placement,
    )
    server.add_tool(
        Tool.from_function(
            get_drink_names,
            name="getDrinkNames",
            description="Get the names of the drinks in the shop",
        )
    )
    server.add_tool(
        Tool.from_function(
            get_drink_info,
            name="getDrinkInfo",
            description="Get more info about the drink",
            parameters={"name": "string"},
            required=["name"],
        )
    )
    server.add_resource(FunctionResource.from_function(get_menu, uri=MENU_URI, name="menu"))
    return server
