# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""MCP servers built on the reference SDK's lowlevel ``Server``."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


try:
    import uvloop
    uvloop.install()
    _USING_UVLOOP = True
except ImportError:
    _USING_UVLOOP = False

from mcp import types
from mcp.server.lowlevel.server import Server

from ..utils import get_logger
from ..version import SERVER_NAME, __version__
from .router import Router, error_result
from .toolsets import TOOLSETS


class ToolServer(Server[Any, Any], ABC):
    """Lowlevel server answering ``tools/list`` and ``tools/call`` only.

    Handlers are installed straight into ``request_handlers`` so results
    reach the client exactly as built; the SDK decorators would re-validate
    structured output against the declared schema.
    """

    def __init__(self, name: str = SERVER_NAME, *, version: str | None = __version__) -> None:
        super().__init__(name, version=version)
        self._logger = get_logger(f"docspace_mcp.server.{name}")

        loop_impl = "uvloop" if _USING_UVLOOP else "asyncio"
        self._logger.debug("Event loop: %s", loop_impl)

        self.request_handlers[types.ListToolsRequest] = self._handle_list_tools
        self.request_handlers[types.CallToolRequest] = self._handle_call_tool

    @abstractmethod
    def list_tool_definitions(self) -> list[types.Tool]: ...

    @abstractmethod
    async def invoke_tool(self, name: str, arguments: dict[str, Any] | None) -> types.CallToolResult: ...

    async def _handle_list_tools(self, request: types.ListToolsRequest) -> types.ServerResult:
        return types.ServerResult(types.ListToolsResult(tools=self.list_tool_definitions()))

    async def _handle_call_tool(self, request: types.CallToolRequest) -> types.ServerResult:
        result = await self.invoke_tool(request.params.name, request.params.arguments)
        return types.ServerResult(result)


class DocSpaceServer(ToolServer):
    """Serves the tools a :class:`Router` allows."""

    def __init__(self, router: Router, *, name: str = SERVER_NAME) -> None:
        super().__init__(name)
        self.router = router

    def list_tool_definitions(self) -> list[types.Tool]:
        return self.router.list_tools()

    async def invoke_tool(self, name: str, arguments: dict[str, Any] | None) -> types.CallToolResult:
        return await self.router.call_tool(name, arguments)


class MisconfiguredServer(ToolServer):
    """Stand-in served when configuration fails to load.

    Every known tool is listed so clients can still connect; every call
    answers with the configuration error.
    """

    def __init__(self, error: BaseException, *, name: str = SERVER_NAME) -> None:
        super().__init__(name)
        self.error = error
        self._tools = [spec.to_tool() for toolset in TOOLSETS for spec in toolset.tools]

    def list_tool_definitions(self) -> list[types.Tool]:
        return list(self._tools)

    async def invoke_tool(self, name: str, arguments: dict[str, Any] | None) -> types.CallToolResult:
        self._logger.debug("rejecting %s on misconfigured server", name, extra={"event": "router.error", "tool": name})
        return error_result(self.error)


__all__ = ["DocSpaceServer", "MisconfiguredServer", "ToolServer"]
