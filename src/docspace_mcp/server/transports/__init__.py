# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Transport adapters for DocSpace MCP servers.

These thin wrappers isolate the reference SDK's transport primitives so the
server classes stay transport-agnostic.
"""

from __future__ import annotations

from ._asgi import ASGITransportBase, CORSSettings, SessionSettings
from .base import BaseTransport, ServerSource
from .http import HTTPTransport
from .sse import SSETransport
from .stdio import StdioTransport
from .streamable_http import StreamableHTTPTransport


__all__ = [
    "ASGITransportBase",
    "BaseTransport",
    "CORSSettings",
    "HTTPTransport",
    "SSETransport",
    "ServerSource",
    "SessionSettings",
    "StdioTransport",
    "StreamableHTTPTransport",
]
