# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Route tool calls to handlers and normalise what they return.

Handlers return one of three shapes: the raw :class:`~docspace_mcp.client.Response`
of a DocSpace call, a JSON-compatible object, or a string.  :meth:`Router.call_tool`
turns each into a ``CallToolResult``.  Tool-level failures never escape as
protocol errors; they come back as ``isError`` results whose text is the
formatted error chain.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from mcp import types
import orjson

from ..client import Response
from ..errors import RoutingError, format_error, is_aborted
from ..tool import ToolContext, ToolSpec, ToolsetSpec
from ..utils import get_logger
from .meta import META_TOOLS, Routed
from .toolsets import TOOLSETS


class Router:
    """Dispatch table for one server instance.

    ``enabled_tools`` is the allow-list; toolsets left without tools are
    dropped.  With ``dynamic`` set only the meta-tools are listed and regular
    tools are reached through ``call_tool``.
    """

    def __init__(
        self,
        context: ToolContext | None,
        *,
        toolsets: Sequence[ToolsetSpec] = TOOLSETS,
        enabled_tools: Iterable[str] | None = None,
        dynamic: bool = False,
    ) -> None:
        self.context = context
        self.dynamic = dynamic
        self._logger = get_logger("docspace_mcp.router")

        if enabled_tools is None:
            allowed = frozenset(spec.name for toolset in toolsets for spec in toolset.tools)
        else:
            allowed = frozenset(enabled_tools)

        self.toolsets: list[ToolsetSpec] = []
        for toolset in toolsets:
            active = toolset.only(allowed)
            if active.tools:
                self.toolsets.append(active)

        self._specs: dict[str, ToolSpec] = {spec.name: spec for toolset in self.toolsets for spec in toolset.tools}
        self._meta: dict[str, ToolSpec] = {spec.name: spec for spec in META_TOOLS.tools}

    @property
    def tool_names(self) -> list[str]:
        return list(self._specs)

    def find(self, name: str) -> ToolSpec | None:
        return self._specs.get(name)

    def list_tools(self) -> list[types.Tool]:
        if self.dynamic:
            return [spec.to_tool() for spec in META_TOOLS.tools]
        return [spec.to_tool() for spec in self._specs.values()]

    async def route(self, name: str, arguments: Mapping[str, Any] | None) -> tuple[ToolSpec, Any]:
        """Invoke a regular tool; errors propagate."""
        spec = self._specs.get(name)
        if spec is None:
            raise RoutingError(f"Tool {name} not found.")
        return spec, await spec.invoke(self.context, arguments)

    async def call_tool(self, name: str, arguments: Mapping[str, Any] | None) -> types.CallToolResult:
        self._logger.debug("calling tool %s", name, extra={"event": "router.call", "tool": name})

        try:
            if self.dynamic:
                spec = self._meta.get(name)
                if spec is None:
                    raise RoutingError(f"Tool {name} not found.")
                value = await spec.invoke(self, arguments)
            else:
                spec, value = await self.route(name, arguments)

            if isinstance(value, Routed):
                spec, value = value.spec, value.value
            return _normalize(spec, value)
        except Exception as exc:
            level = "debug" if is_aborted(exc) else "warning"
            getattr(self._logger, level)(
                "tool %s failed",
                name,
                extra={"event": "router.error", "tool": name, "error": str(exc)},
            )
            return error_result(exc)


def error_result(err: BaseException) -> types.CallToolResult:
    return types.CallToolResult(content=[types.TextContent(type="text", text=format_error(err))], isError=True)


def text_result(text: str, structured: dict[str, Any] | None = None) -> types.CallToolResult:
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=text)],
        structuredContent=structured,
    )


def pretty_json(value: Any) -> str:
    return orjson.dumps(value, option=orjson.OPT_INDENT_2).decode()


def _normalize(spec: ToolSpec, value: Any) -> types.CallToolResult:
    structured = spec.output_schema is not None

    if isinstance(value, Response):
        return _normalize_response(value, structured=structured)

    if isinstance(value, (dict, list)):
        content = value if structured and isinstance(value, dict) else None
        return text_result(pretty_json(value), content)

    if isinstance(value, str):
        return text_result(value)

    raise RoutingError("Unknown result type")


def _normalize_response(response: Response, *, structured: bool) -> types.CallToolResult:
    header = response.headers.get("content-type")
    if not header:
        raise RoutingError("Content-Type header is missing")

    media_type = header.split(";", 1)[0].strip().lower()

    if media_type == "application/json":
        try:
            payload = orjson.loads(response.response.content)
        except orjson.JSONDecodeError as exc:
            raise RoutingError("Parsing response body") from exc
        content = payload if structured and isinstance(payload, dict) else None
        return text_result(pretty_json(payload), content)

    if media_type.startswith("text/"):
        return text_result(response.response.text)

    raise RoutingError(f"Content-Type {header} is not supported")


__all__ = ["Router", "error_result", "pretty_json", "text_result"]
