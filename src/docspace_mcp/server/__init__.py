# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""MCP server surface: tool routing, server classes and transports.

Assembly from configuration lives in :mod:`docspace_mcp.server.app`, which
is imported explicitly so that :mod:`docspace_mcp.config` can depend on the
toolsets without a cycle.
"""

from __future__ import annotations

from .core import DocSpaceServer, MisconfiguredServer, ToolServer
from .router import Router


__all__ = ["DocSpaceServer", "MisconfiguredServer", "Router", "ToolServer"]
