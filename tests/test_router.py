# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

from __future__ import annotations

from typing import Any

from mcp import types
from pydantic import BaseModel
import pytest

from docspace_mcp.client import Response
from docspace_mcp.server.router import Router
from docspace_mcp.server.toolsets.schemas import ToolInput
from docspace_mcp.tool import tool, toolset
from tests.helpers import make_response


class EchoInput(ToolInput):
    text_value: str


class Summary(BaseModel):
    name: str
    size: int


@tool(description="Echo text back.", input=EchoInput)
async def echo(ctx: Any, args: EchoInput) -> str:
    return args.text_value


@tool(description="Return a summary.", output=Summary)
async def summary(ctx: Any, args: None) -> dict[str, Any]:
    return {"name": "report.docx", "size": 12}


@tool(description="Return a list.")
async def listing(ctx: Any, args: None) -> list[int]:
    return [1, 2]


@tool(description="Return a JSON response.", output=Summary)
async def raw_json(ctx: Any, args: None) -> Response:
    return make_response(json={"name": "report.docx", "size": 12})


@tool(description="Return a text response.")
async def raw_text(ctx: Any, args: None) -> Response:
    return make_response(text="hello", content_type="text/plain; charset=utf-8")


@tool(description="Return an XML response.")
async def raw_xml(ctx: Any, args: None) -> Response:
    return make_response(text="<a/>", content_type="application/xml")


@tool(description="Return an unknown value.")
async def opaque(ctx: Any, args: None) -> object:
    return object()


@tool(description="Fail.")
async def boom(ctx: Any, args: None) -> str:
    try:
        raise ValueError("portal unreachable")
    except ValueError as exc:
        raise RuntimeError("Getting folder.") from exc


ALPHA = toolset("alpha", "First toolset.", echo, summary, listing)
BETA = toolset("beta", "Second toolset.", raw_json, raw_text, raw_xml, opaque, boom)


def make_router(**kwargs: Any) -> Router:
    return Router(None, toolsets=(ALPHA, BETA), **kwargs)


def text_of(result: types.CallToolResult) -> str:
    assert len(result.content) == 1
    content = result.content[0]
    assert isinstance(content, types.TextContent)
    return content.text


def test_lists_every_tool_by_default() -> None:
    names = [t.name for t in make_router().list_tools()]

    assert names == ["echo", "summary", "listing", "raw_json", "raw_text", "raw_xml", "opaque", "boom"]


def test_enabled_tools_drop_empty_toolsets() -> None:
    router = make_router(enabled_tools=["echo"])

    assert [t.name for t in router.list_tools()] == ["echo"]
    assert [ts.name for ts in router.toolsets] == ["alpha"]


def test_dynamic_router_lists_only_meta_tools() -> None:
    names = [t.name for t in make_router(dynamic=True).list_tools()]

    assert names == [
        "list_toolsets",
        "list_tools",
        "get_tool_input_schema",
        "get_tool_output_schema",
        "call_tool",
    ]


def test_tool_definitions_carry_schemas() -> None:
    tools = {t.name: t for t in make_router().list_tools()}

    assert tools["echo"].inputSchema["properties"].keys() == {"textValue"}
    assert tools["summary"].outputSchema is not None
    assert tools["echo"].outputSchema is None


@pytest.mark.anyio
async def test_string_results_become_text() -> None:
    result = await make_router().call_tool("echo", {"textValue": "hi"})

    assert not result.isError
    assert text_of(result) == "hi"
    assert result.structuredContent is None


@pytest.mark.anyio
async def test_dict_results_are_structured_when_schema_exists() -> None:
    result = await make_router().call_tool("summary", {})

    assert text_of(result) == '{\n  "name": "report.docx",\n  "size": 12\n}'
    assert result.structuredContent == {"name": "report.docx", "size": 12}


@pytest.mark.anyio
async def test_list_results_are_text_only() -> None:
    result = await make_router().call_tool("listing", None)

    assert text_of(result) == "[\n  1,\n  2\n]"
    assert result.structuredContent is None


@pytest.mark.anyio
async def test_json_responses_are_pretty_printed() -> None:
    result = await make_router().call_tool("raw_json", {})

    assert not result.isError
    assert text_of(result) == '{\n  "name": "report.docx",\n  "size": 12\n}'
    assert result.structuredContent == {"name": "report.docx", "size": 12}


@pytest.mark.anyio
async def test_text_responses_pass_through() -> None:
    result = await make_router().call_tool("raw_text", {})

    assert text_of(result) == "hello"


@pytest.mark.anyio
async def test_unsupported_content_type_is_an_error() -> None:
    result = await make_router().call_tool("raw_xml", {})

    assert result.isError
    assert text_of(result) == "Content-Type application/xml is not supported"


@pytest.mark.anyio
async def test_unknown_result_type_is_an_error() -> None:
    result = await make_router().call_tool("opaque", {})

    assert result.isError
    assert text_of(result) == "Unknown result type"


@pytest.mark.anyio
async def test_handler_errors_are_formatted() -> None:
    result = await make_router().call_tool("boom", {})

    assert result.isError
    assert text_of(result) == "Getting folder.\n\tportal unreachable"


@pytest.mark.anyio
async def test_invalid_input_is_reported() -> None:
    result = await make_router().call_tool("echo", {"textValue": 5})

    assert result.isError
    lines = text_of(result).splitlines()
    assert lines[0] == "Parsing input."
    assert lines[1] == "\tValidationError: 1 issue(s)."
    assert lines[2].startswith("\t\ttextValue: string_type ")


@pytest.mark.anyio
async def test_disabled_tools_are_not_found() -> None:
    result = await make_router(enabled_tools=["echo"]).call_tool("boom", {})

    assert result.isError
    assert text_of(result) == "Tool boom not found."


@pytest.mark.anyio
async def test_dynamic_router_rejects_direct_calls() -> None:
    result = await make_router(dynamic=True).call_tool("echo", {"textValue": "hi"})

    assert result.isError
    assert text_of(result) == "Tool echo not found."
