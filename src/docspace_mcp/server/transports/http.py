# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""One Starlette app serving both HTTP transport kinds.

Streamable HTTP answers on ``/mcp``; the legacy SSE transport on ``/sse`` and
``/messages``.  Each kind keeps its own session registry and sweep task.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ._asgi import ASGITransportBase, SessionTransportBase
from .sse import SSETransport
from .streamable_http import StreamableHTTPTransport


if TYPE_CHECKING:
    from starlette.routing import BaseRoute

    from ._asgi import Lifespan


class HTTPTransport(ASGITransportBase):
    """Serve Streamable HTTP and SSE side by side."""

    TRANSPORT = ("http", "HTTP")

    def parts(self) -> list[SessionTransportBase]:
        kwargs = {"sessions": self.sessions, "cors": self.cors, "authorization": self.authorization}
        return [StreamableHTTPTransport(self.source, **kwargs), SSETransport(self.source, **kwargs)]

    def _mount(self) -> tuple[list[BaseRoute], list[Lifespan]]:
        routes: list[BaseRoute] = []
        lifespans: list[Lifespan] = []
        for part in self.parts():
            part_routes, part_lifespans = part._mount()
            routes.extend(part_routes)
            lifespans.extend(part_lifespans)
        return routes, lifespans


__all__ = ["HTTPTransport"]
