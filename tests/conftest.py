import pytest

from coffee_mcp.server.lowlevel import Server
from coffee_mcp.shop import create_server


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def coffee_server() -> Server:
    return create_server()
