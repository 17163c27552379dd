# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Shared transport primitives for :mod:`docspace_mcp.server`.

stdio serves one server for the life of the process; the HTTP transports
build one server per session through a :class:`ServerSource`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import TYPE_CHECKING, Protocol, runtime_checkable


if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from ...result import Result
    from ..authorization import AuthorizationContext
    from ..core import ToolServer


@runtime_checkable
class ServerSource(Protocol):
    """Produce the server for a session from the request that opens it."""

    def for_request(
        self,
        headers: Mapping[str, str],
        auth: AuthorizationContext | None = None,
    ) -> Result[ToolServer, Exception]: ...


class BaseTransport(ABC):
    """Common base for server transports.

    Implementations define :meth:`run`, which accepts keyword arguments
    specific to the transport (host/port for HTTP, ``raise_exceptions`` for
    stdio).
    """

    TRANSPORT: tuple[str, ...] = ()

    @property
    def transport_display_name(self) -> str:
        return self.TRANSPORT[1] if len(self.TRANSPORT) > 1 else type(self).__name__

    @abstractmethod
    async def run(self, **kwargs) -> None:
        """Start the transport and block until it stops."""


__all__ = ["BaseTransport", "ServerSource"]
