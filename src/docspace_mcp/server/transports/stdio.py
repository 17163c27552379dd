# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""STDIO transport adapter built on the reference MCP SDK.

Delegates to the SDK's ``stdio_server`` helper, which handles
newline-delimited JSON-RPC traffic over ``stdin``/``stdout``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from mcp.server.stdio import stdio_server

from ...utils import get_logger
from .base import BaseTransport


if TYPE_CHECKING:
    from ..core import ToolServer


def get_stdio_server():
    """Return the SDK's stdio context manager.

    Separated into a helper so tests can patch it with in-memory transports.
    """
    return stdio_server


class StdioTransport(BaseTransport):
    """Run a single :class:`~docspace_mcp.server.core.ToolServer` over STDIO."""

    TRANSPORT = ("stdio", "STDIO", "Standard IO")

    def __init__(self, server: ToolServer) -> None:
        self._server = server
        self._logger = get_logger("docspace_mcp.transport.stdio")

    @property
    def server(self) -> ToolServer:
        return self._server

    async def run(self, *, raise_exceptions: bool = False) -> None:
        stdio_ctx = get_stdio_server()
        init_options = self.server.create_initialization_options()

        self._logger.info("Serving %s via STDIO", self.server.name)
        async with stdio_ctx() as (read_stream, write_stream):
            await self.server.run(read_stream, write_stream, init_options, raise_exceptions=raise_exceptions)


__all__ = ["StdioTransport", "get_stdio_server"]
