# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

from __future__ import annotations

from typing import Any

import pytest

from docspace_mcp.config import (
    ApiConfig,
    Config,
    ServerConfig,
    load_config,
    mask,
    parse_base_url,
    parse_bool,
    parse_duration,
    request_api_config,
    request_mcp_config,
    resolve_mcp,
)
from docspace_mcp.errors import Errors, format_error
from docspace_mcp.result import Err, Ok
from docspace_mcp.server.toolsets import FILES, PEOPLE, TOOL_NAMES


STDIO_ENV = {
    "DOCSPACE_BASE_URL": "https://portal.example.com",
    "DOCSPACE_API_KEY": "sk-test",
}


def load_ok(environ: dict[str, str]) -> Config:
    result = load_config(environ)
    assert isinstance(result, Ok), format_error(result.error)
    return result.value


def load_err(environ: dict[str, str]) -> list[str]:
    result = load_config(environ)
    assert isinstance(result, Err)
    assert isinstance(result.error, Errors)
    assert result.error.message == "Validating configuration"
    return format_error(result.error).splitlines()


def test_stdio_defaults() -> None:
    config = load_ok(STDIO_ENV)

    assert config.transport == "stdio"
    assert config.api.base_url == "https://portal.example.com/"
    assert config.api.api_key == "sk-test"
    assert config.mcp.dynamic is False
    assert config.mcp.tools == TOOL_NAMES
    assert config.server.port == 8080
    assert config.server.session_ttl == 28_800.0
    assert config.server.session_interval == 240.0
    assert config.server.cors_origins == ("*",)
    assert config.server.request_header_prefix == "x-mcp-"
    assert config.oauth.enabled is False


def test_durations_are_milliseconds() -> None:
    config = load_ok(
        {
            **STDIO_ENV,
            "DOCSPACE_SESSION_TTL": "1500",
            "DOCSPACE_SESSION_INTERVAL": "0",
            "DOCSPACE_SERVER_CORS_MCP_MAX_AGE": "60000",
        }
    )

    assert config.server.session_ttl == 1.5
    assert config.server.session_interval == 0.0
    assert config.server.cors_max_age == 60.0


def test_empty_values_fall_back_to_defaults() -> None:
    config = load_ok({**STDIO_ENV, "DOCSPACE_PORT": "  ", "DOCSPACE_DYNAMIC": ""})

    assert config.server.port == 8080
    assert config.mcp.dynamic is False


def test_empty_cors_origin_disables_cors() -> None:
    config = load_ok({**STDIO_ENV, "DOCSPACE_SERVER_CORS_MCP_ORIGIN": ""})

    assert config.server.cors_origins == ()


def test_every_problem_is_reported() -> None:
    lines = load_err(
        {
            "DOCSPACE_BASE_URL": "ftp://portal.example.com",
            "DOCSPACE_PORT": "99999",
            "DOCSPACE_DYNAMIC": "maybe",
            "DOCSPACE_API_KEY": "sk-test",
        }
    )

    assert lines[0] == "Validating configuration"
    assert "\tParsing DOCSPACE_BASE_URL" in lines
    assert "\tParsing DOCSPACE_PORT" in lines
    assert "\tParsing DOCSPACE_DYNAMIC" in lines
    assert "\tDOCSPACE_BASE_URL is required" in lines


def test_unknown_tool_names_are_listed_individually() -> None:
    lines = load_err({**STDIO_ENV, "DOCSPACE_ENABLED_TOOLS": "delete_file,shred_file,burn_file"})

    assert lines == [
        "Validating configuration",
        "\tParsing DOCSPACE_ENABLED_TOOLS",
        "\t\tUnknown value: shred_file",
        "\t\tUnknown value: burn_file",
    ]


def test_unknown_transport() -> None:
    lines = load_err({**STDIO_ENV, "DOCSPACE_TRANSPORT": "carrier-pigeon"})

    assert lines[1:3] == ["\tParsing DOCSPACE_TRANSPORT", "\t\tUnknown value: carrier-pigeon"]


def test_stdio_requires_credentials() -> None:
    lines = load_err({"DOCSPACE_BASE_URL": "https://portal.example.com"})

    assert lines == [
        "Validating configuration",
        "\tExpected at least one of DOCSPACE_API_KEY, DOCSPACE_AUTH_TOKEN, or "
        "(DOCSPACE_USERNAME and DOCSPACE_PASSWORD) to be set",
    ]


def test_only_one_auth_method() -> None:
    lines = load_err({**STDIO_ENV, "DOCSPACE_AUTH_TOKEN": "token"})

    assert lines[1].startswith("\tExpected only one of ")


def test_username_needs_password() -> None:
    lines = load_err({"DOCSPACE_BASE_URL": "https://portal.example.com", "DOCSPACE_USERNAME": "admin"})

    assert lines == [
        "Validating configuration",
        "\tExpected both DOCSPACE_USERNAME and DOCSPACE_PASSWORD to be set",
    ]


def test_http_mode_allows_missing_credentials() -> None:
    config = load_ok({"DOCSPACE_TRANSPORT": "http"})

    assert config.transport == "http"
    assert config.api.base_url is None


def test_oauth_requires_server_base_url() -> None:
    lines = load_err({"DOCSPACE_TRANSPORT": "http", "DOCSPACE_OAUTH_CLIENT_ID": "client"})

    assert lines[1] == "\tDOCSPACE_SERVER_BASE_URL is required when DOCSPACE_OAUTH_CLIENT_ID is set"


def test_oauth_enabled() -> None:
    config = load_ok(
        {
            "DOCSPACE_TRANSPORT": "http",
            "DOCSPACE_OAUTH_CLIENT_ID": "client",
            "DOCSPACE_SERVER_BASE_URL": "https://mcp.example.com",
            "DOCSPACE_OAUTH_SCOPES_SUPPORTED": "files:read, files:write",
        }
    )

    assert config.oauth.enabled
    assert config.oauth.scopes_supported == ("files:read", "files:write")
    assert config.server.base_url == "https://mcp.example.com/"


class TestResolveMcp:
    def test_all_selects_every_tool(self) -> None:
        result = resolve_mcp(False, ["all"], [], [])

        assert result.value.tools == TOOL_NAMES

    def test_toolset_selection(self) -> None:
        result = resolve_mcp(True, ["people"], [], [])

        assert result.value.dynamic is True
        assert result.value.toolsets == ("people",)
        assert result.value.tools == tuple(PEOPLE.tool_names)

    def test_enabling_a_tool_pulls_in_its_toolset(self) -> None:
        result = resolve_mcp(False, ["people"], ["delete_file"], [])

        assert result.value.toolsets == ("files", "people")
        assert set(FILES.tool_names) <= set(result.value.tools)

    def test_disabling_tools(self) -> None:
        disabled = [name for name in FILES.tool_names if name != "delete_file"]
        result = resolve_mcp(False, ["files"], [], disabled)

        assert result.value.tools == ("delete_file",)
        assert result.value.toolsets == ("files",)

    def test_disabling_everything_fails(self) -> None:
        result = resolve_mcp(False, ["people"], [], list(PEOPLE.tool_names))

        assert isinstance(result, Err)
        assert format_error(result.error) == "No tools left"

    def test_tools_follow_canonical_order(self) -> None:
        result = resolve_mcp(False, ["people", "files"], [], [])

        assert result.value.tools == (*FILES.tool_names, *PEOPLE.tool_names)


def http_config(**api: Any) -> Config:
    return Config(transport="http", api=ApiConfig(**api), server=ServerConfig())


class TestRequestApiConfig:
    def test_headers_supply_everything(self) -> None:
        headers = {"X-MCP-Base-URL": "https://other.example.com", "X-MCP-Auth-Token": "token"}

        result = request_api_config(http_config(), headers)

        assert result.value.base_url == "https://other.example.com/"
        assert result.value.auth_token == "token"

    def test_header_credentials_replace_environment(self) -> None:
        config = http_config(base_url="https://portal.example.com/", api_key="env-key")

        result = request_api_config(config, {"x-mcp-username": "admin", "x-mcp-password": "secret"})

        assert result.value.api_key is None
        assert (result.value.username, result.value.password) == ("admin", "secret")
        assert result.value.base_url == "https://portal.example.com/"

    def test_environment_used_without_headers(self) -> None:
        config = http_config(base_url="https://portal.example.com/", api_key="env-key")

        assert request_api_config(config, {}).value == config.api

    def test_missing_everything(self) -> None:
        result = request_api_config(http_config(), {})

        assert isinstance(result, Err)
        lines = format_error(result.error).splitlines()
        assert lines[0] == "Parsing API config"
        assert "\tBase URL is required" in lines

    def test_invalid_header(self) -> None:
        result = request_api_config(http_config(api_key="k"), {"x-mcp-base-url": "not a url"})

        assert format_error(result.error).splitlines()[:2] == ["Parsing API config", "\tParsing x-mcp-base-url"]

    def test_disabled_prefix_ignores_headers(self) -> None:
        config = Config(
            transport="http",
            api=ApiConfig(base_url="https://portal.example.com/", api_key="env-key"),
            server=ServerConfig(request_header_prefix=""),
        )

        result = request_api_config(config, {"x-mcp-api-key": "other"})

        assert result.value.api_key == "env-key"


class TestRequestMcpConfig:
    def test_headers_select_tools(self) -> None:
        result = request_mcp_config(http_config(), {"x-mcp-toolsets": "people", "x-mcp-dynamic": "yes"})

        assert result.value.dynamic is True
        assert result.value.tools == tuple(PEOPLE.tool_names)

    def test_defaults_come_from_environment(self) -> None:
        config = http_config()

        assert request_mcp_config(config, {}).value.tools == TOOL_NAMES

    def test_unknown_toolset(self) -> None:
        result = request_mcp_config(http_config(), {"x-mcp-toolsets": "spreadsheets"})

        assert format_error(result.error).splitlines() == [
            "Parsing MCP config",
            "\tParsing x-mcp-toolsets",
            "\t\tUnknown value: spreadsheets",
        ]


def test_mask_hides_secrets() -> None:
    config = Config(api=ApiConfig(base_url="https://portal.example.com/", api_key="sk-live", password=None))

    masked = mask(config)

    assert masked["api"]["api_key"] == "***"
    assert masked["api"]["password"] is None
    assert masked["api"]["base_url"] == "https://portal.example.com/"


@pytest.mark.parametrize(("raw", "expected"), [("yes", True), ("Y", True), ("1", True), ("false", False), ("n", False)])
def test_parse_bool(raw: str, expected: bool) -> None:
    assert parse_bool(raw) is expected


def test_parse_duration_rejects_negative() -> None:
    with pytest.raises(ValueError, match="non-negative"):
        parse_duration("-5")


@pytest.mark.parametrize("raw", ["portal.example.com", "ftp://portal.example.com", "https://"])
def test_parse_base_url_rejects(raw: str) -> None:
    with pytest.raises(ValueError):
        parse_base_url(raw)


def test_parse_base_url_appends_slash() -> None:
    assert parse_base_url(" https://portal.example.com/docs ") == "https://portal.example.com/docs/"
