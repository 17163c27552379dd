# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Meta-tools for dynamic mode.

Instead of listing every tool schema up front, a dynamic server lists five
small tools that let a client discover toolsets, fetch one schema at a time
and call any allowed tool indirectly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pydantic import Field

from ..errors import RoutingError
from ..tool import ToolSpec, ToolsetSpec, tool, toolset
from .toolsets.schemas import ToolInput


if TYPE_CHECKING:
    from .router import Router


class ListToolsInput(ToolInput):
    toolset: str = Field(description="The name of the toolset to list tools from.")


class GetToolInputSchemaInput(ToolInput):
    tool: str = Field(description="The name of the tool to get input schema for.")


class GetToolOutputSchemaInput(ToolInput):
    tool: str = Field(description="The name of the tool to get output schema for.")


class CallToolInput(ToolInput):
    tool: str = Field(description="The name of the tool to call.")
    input: dict[str, Any] | None = Field(
        default=None, description="The value that corresponds to the input schema of the tool."
    )


@dataclass(slots=True, frozen=True)
class Routed:
    """Result of a tool reached through ``call_tool``."""

    spec: ToolSpec
    value: Any


@tool(
    description="This is a meta-tool for listing available toolsets. Toolset is a set of available tools.",
)
async def list_toolsets(router: Router, args: None) -> list[dict[str, str]]:
    summaries = [{"name": ts.name, "description": ts.description} for ts in router.toolsets]
    if not summaries:
        raise RoutingError("No toolsets found.")
    return summaries


@tool(
    description=(
        "This is a meta-tool for listing available tools of a specific toolset. The list of available toolsets "
        "can be obtained using the list_toolsets meta-tool."
    ),
    input=ListToolsInput,
)
async def list_tools(router: Router, args: ListToolsInput) -> list[dict[str, str]]:
    found = next((ts for ts in router.toolsets if ts.name == args.toolset), None)
    if found is None:
        raise RoutingError(f"Toolset '{args.toolset}' not found.")

    summaries = [{"name": spec.name, "description": spec.description} for spec in found.tools]
    if not summaries:
        raise RoutingError(f"No tools found for toolset '{args.toolset}'.")
    return summaries


@tool(
    description=(
        "This is a meta-tool for getting an input schema for a specific tool. The list of available tools can "
        "be obtained using the list_tools meta-tool."
    ),
    input=GetToolInputSchemaInput,
)
async def get_tool_input_schema(router: Router, args: GetToolInputSchemaInput) -> dict[str, Any]:
    spec = router.find(args.tool)
    if spec is None:
        raise RoutingError(f"Tool '{args.tool}' not found.")
    return spec.input_schema


@tool(
    description=(
        "This is a meta-tool for getting an output schema for a specific tool. The list of available tools can "
        "be obtained using the list_tools meta-tool."
    ),
    input=GetToolOutputSchemaInput,
)
async def get_tool_output_schema(router: Router, args: GetToolOutputSchemaInput) -> dict[str, Any]:
    spec = router.find(args.tool)
    if spec is None or spec.output_schema is None:
        raise RoutingError(f"Tool '{args.tool}' not found.")
    return spec.output_schema


@tool(
    description=(
        "This is a meta-tool for calling a tool. The list of available tools can be obtained using the "
        "list_tools meta-tool. The input schema can be obtained using the get_tool_input_schema meta-tool."
    ),
    input=CallToolInput,
)
async def call_tool(router: Router, args: CallToolInput) -> Routed:
    try:
        spec, value = await router.route(args.tool, args.input)
    except Exception as exc:
        raise RoutingError("Routing tool.") from exc
    return Routed(spec=spec, value=value)


META_TOOLS: ToolsetSpec = toolset(
    "meta",
    "Meta-tools for discovering and calling tools.",
    list_toolsets,
    list_tools,
    get_tool_input_schema,
    get_tool_output_schema,
    call_tool,
)


__all__ = ["META_TOOLS", "Routed"]
