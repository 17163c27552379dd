# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

from __future__ import annotations

from typing import Any

import httpx
import jwt
from mcp import types
import pytest

from docspace_mcp.client import Client
from docspace_mcp.config import ApiConfig, Config, OAuthConfig, ServerConfig, resolve_mcp
from docspace_mcp.errors import Errors, format_error
from docspace_mcp.result import Err, Ok
from docspace_mcp.server import DocSpaceServer, MisconfiguredServer
from docspace_mcp.server.app import MisconfiguredSource, ServerFactory, create_client
from docspace_mcp.server.authorization import AuthorizationContext
from docspace_mcp.server.core import ToolServer
from docspace_mcp.server.toolsets import TOOL_NAMES
from tests.conftest import BASE_URL


async def list_tools(server: Any) -> list[str]:
    handler = server.request_handlers[types.ListToolsRequest]
    result = await handler(types.ListToolsRequest(method="tools/list"))
    return [t.name for t in result.root.tools]


async def call_tool(server: Any, name: str, arguments: dict[str, Any] | None = None) -> types.CallToolResult:
    handler = server.request_handlers[types.CallToolRequest]
    params = types.CallToolRequestParams(name=name, arguments=arguments)
    request = types.CallToolRequest(method="tools/call", params=params)
    result = await handler(request)
    return result.root


def make_config(**overrides: Any) -> Config:
    values: dict[str, Any] = {
        "api": ApiConfig(base_url=BASE_URL, api_key="sk-test"),
        "mcp": resolve_mcp(False, ["people"], [], []).value,
    }
    values.update(overrides)
    return Config(**values)


@pytest.mark.anyio
async def test_docspace_server_lists_router_tools() -> None:
    server = ServerFactory.from_config(make_config()).create()

    assert isinstance(server, DocSpaceServer)
    assert await list_tools(server) == ["get_all_people"]


@pytest.mark.anyio
async def test_docspace_server_reports_unknown_tools() -> None:
    server = ServerFactory.from_config(make_config()).create()

    result = await call_tool(server, "delete_file", {"fileId": 1})

    assert result.isError
    assert result.content[0].text == "Tool delete_file not found."


@pytest.mark.anyio
async def test_dynamic_server_lists_meta_tools() -> None:
    config = make_config(mcp=resolve_mcp(True, ["all"], [], []).value)
    server = ServerFactory.from_config(config).create()

    assert "call_tool" in await list_tools(server)
    assert "get_all_people" not in await list_tools(server)


@pytest.mark.anyio
async def test_misconfigured_server_answers_with_the_error() -> None:
    error = Errors([ValueError("DOCSPACE_BASE_URL is required")], "Validating configuration")
    server = MisconfiguredServer(error)

    assert await list_tools(server) == list(TOOL_NAMES)

    result = await call_tool(server, "get_all_people", {})
    assert result.isError
    assert result.content[0].text == "Validating configuration\n\tDOCSPACE_BASE_URL is required"


def test_misconfigured_source_always_builds() -> None:
    source = MisconfiguredSource(ValueError("broken"))

    created = source.for_request({"x-mcp-api-key": "ignored"})

    assert isinstance(created, Ok)
    assert isinstance(created.value, MisconfiguredServer)


def test_tool_server_requires_tool_handlers() -> None:
    with pytest.raises(TypeError):
        ToolServer()  # type: ignore[abstract]


def test_create_client_prefers_configured_credentials() -> None:
    base = Client(BASE_URL, user_agent="agent/1.0")

    client = create_client(ApiConfig(base_url="https://other.example.com/", username="u", password="p"), base=base)

    assert client.base_url == "https://other.example.com/"
    assert client.build_request("GET", BASE_URL).headers["Authorization"].startswith("Basic ")
    assert "Authorization" not in base.build_request("GET", BASE_URL).headers


def test_for_request_uses_header_credentials() -> None:
    factory = ServerFactory.from_config(make_config(transport="http", api=ApiConfig()))

    created = factory.for_request({"x-mcp-base-url": BASE_URL, "x-mcp-api-key": "header-key"})

    assert isinstance(created, Ok)
    client = created.value.router.context.client
    assert client.base_url == BASE_URL
    assert client.build_request("GET", BASE_URL).headers["Authorization"] == "Bearer header-key"


def test_for_request_applies_tool_headers() -> None:
    factory = ServerFactory.from_config(make_config(transport="http"))

    created = factory.for_request({"x-mcp-toolsets": "files", "x-mcp-disabled-tools": "upload_file"})

    names = created.value.router.tool_names
    assert "delete_file" in names
    assert "upload_file" not in names
    assert "get_all_people" not in names


def test_for_request_without_credentials_fails() -> None:
    factory = ServerFactory.from_config(make_config(transport="http", api=ApiConfig()))

    created = factory.for_request({})

    assert isinstance(created, Err)
    assert format_error(created.error).splitlines()[0] == "Parsing API config"


def test_for_request_with_oauth_context_uses_token_audience() -> None:
    factory = ServerFactory.from_config(make_config(transport="http", api=ApiConfig()))
    token = jwt.encode({"aud": "https://tenant.example.com"}, "an-unchecked-signing-key-of-32-bytes", "HS256")
    auth = AuthorizationContext(subject="client", scopes=["files:read"], claims={}, token=token)

    created = factory.for_request({}, auth)

    assert isinstance(created, Ok), format_error(created.error)
    client = created.value.router.context.client
    assert client.base_url == "https://tenant.example.com/"
    assert client.build_request("GET", BASE_URL).headers["Authorization"] == f"Bearer {token}"


def test_for_request_with_unreadable_token() -> None:
    factory = ServerFactory.from_config(make_config(transport="http", api=ApiConfig()))
    auth = AuthorizationContext(subject=None, scopes=[], claims={}, token="garbage")

    created = factory.for_request({}, auth)

    assert isinstance(created, Err)
    assert format_error(created.error).splitlines()[0] == "Parsing API config"


def test_authorization_only_when_oauth_is_configured() -> None:
    assert ServerFactory.from_config(make_config()).authorization() is None

    config = make_config(
        transport="http",
        oauth=OAuthConfig(client_id="client", base_url="https://oauth.example.com/", scopes_supported=("read",)),
        server=ServerConfig(base_url="https://mcp.example.com/"),
    )
    manager = ServerFactory.from_config(config).authorization()

    assert manager is not None
    assert manager.enabled
    assert manager.config.authorization_servers == ["https://oauth.example.com"]
    assert manager.metadata_url == "https://mcp.example.com/.well-known/oauth-protected-resource"


@pytest.mark.anyio
async def test_factory_closes_shared_pool() -> None:
    http = httpx.AsyncClient()
    factory = ServerFactory.from_config(make_config(), http=http)

    await factory.aclose()

    assert http.is_closed
