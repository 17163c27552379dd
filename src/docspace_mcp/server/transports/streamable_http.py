# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Streamable HTTP transport adapter.

Each session gets its own SDK ``StreamableHTTPServerTransport`` and its own
server, built from the ``initialize`` request that opens it.  Sessions live
in a :class:`~docspace_mcp.sessions.SessionRegistry` keyed by
``Mcp-Session-Id``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import anyio
from mcp.server.streamable_http import StreamableHTTPServerTransport
import orjson
from starlette.routing import Route

from ...result import Err
from ..authorization import request_authorization
from ._asgi import (
    SESSION_HEADER,
    RegistrySessionManager,
    SessionManagerHandler,
    SessionTransportBase,
    error_response,
)


if TYPE_CHECKING:
    from collections.abc import Iterable

    from anyio.abc import TaskStatus
    from starlette.types import Message, Receive, Scope, Send

    from ..core import ToolServer


DEFAULT_PATH = "/mcp"


@dataclass(slots=True)
class StreamableSession:
    """Registry entry pairing an SDK transport with the scope running it."""

    transport: StreamableHTTPServerTransport
    cancel_scope: anyio.CancelScope

    async def handle_request(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self.transport.handle_request(scope, receive, send)

    async def close(self) -> None:
        await self.transport.terminate()
        self.cancel_scope.cancel()


class StreamableHTTPSessionManager(RegistrySessionManager):
    """Route ``/mcp`` requests to per-session SDK transports."""

    label = "http"

    async def handle_request(self, scope: Scope, receive: Receive, send: Send) -> None:
        headers = self.request_headers(scope)
        values = headers.getlist(SESSION_HEADER)

        if len(values) > 1:
            response = error_response(400, "Mcp-Session-Id header must be a single value")
            await response(scope, receive, send)
            return

        if not values:
            if scope.get("method") != "POST":
                response = error_response(400, "Mcp-Session-Id header is required")
                await response(scope, receive, send)
                return
            await self._open_session(scope, receive, send)
            return

        session_id = values[0]
        found = self.registry.get(session_id)
        if isinstance(found, Err):
            response = error_response(404, "Getting session", found.error)
            await response(scope, receive, send)
            return

        await found.value.transport.handle_request(scope, receive, send)

    async def _open_session(self, scope: Scope, receive: Receive, send: Send) -> None:
        body = await _read_body(receive)
        if not _is_initialize(body):
            response = error_response(400, "Mcp-Session-Id header is required")
            await response(scope, receive, send)
            return

        created = self.source.for_request(self.request_headers(scope), request_authorization(scope))
        if isinstance(created, Err):
            response = error_response(400, "Creating server", created.error)
            await response(scope, receive, send)
            return

        session_id = self.new_session_id()
        transport = StreamableHTTPServerTransport(
            mcp_session_id=session_id,
            is_json_response_enabled=False,
            event_store=None,
            security_settings=None,
        )

        cancel_scope = await self.task_group.start(self._run_session, session_id, created.value, transport)
        self.registry.create(session_id, StreamableSession(transport, cancel_scope))
        self._logger.info(
            "session %s opened",
            session_id,
            extra={"event": "transport.http.open", "session": session_id},
        )

        await transport.handle_request(scope, _replay(body, receive), send)

    async def _run_session(
        self,
        session_id: str,
        server: ToolServer,
        transport: StreamableHTTPServerTransport,
        *,
        task_status: TaskStatus[anyio.CancelScope] = anyio.TASK_STATUS_IGNORED,
    ) -> None:
        with anyio.CancelScope() as cancel_scope:
            try:
                async with transport.connect() as (read_stream, write_stream):
                    task_status.started(cancel_scope)
                    await server.run(
                        read_stream,
                        write_stream,
                        server.create_initialization_options(),
                        stateless=False,
                    )
            except Exception:
                self._logger.exception(
                    "session %s crashed",
                    session_id,
                    extra={"event": "transport.http.crash", "session": session_id},
                )
            finally:
                self._forget(session_id)

    def _forget(self, session_id: str) -> None:
        deleted = self.registry.delete(session_id)
        if isinstance(deleted, Err):
            self._logger.debug(
                "session %s already removed",
                session_id,
                extra={"event": "transport.http.close", "session": session_id},
            )
            return
        self._logger.info(
            "session %s closed",
            session_id,
            extra={"event": "transport.http.close", "session": session_id},
        )


class StreamableHTTPTransport(SessionTransportBase):
    """Serve DocSpace sessions over Streamable HTTP."""

    TRANSPORT = ("streamable-http", "Streamable HTTP", "shttp", "sHTTP")

    path = DEFAULT_PATH

    def _build_session_manager(self) -> StreamableHTTPSessionManager:
        return StreamableHTTPSessionManager(self.source, settings=self.sessions)

    def _build_routes(self, *, handler: SessionManagerHandler) -> Iterable[Route]:
        return [Route(self.path, handler, methods=["GET", "POST", "DELETE"])]


async def _read_body(receive: Receive) -> bytes:
    chunks: list[bytes] = []
    while True:
        message = await receive()
        if message["type"] != "http.request":
            break
        chunks.append(message.get("body", b""))
        if not message.get("more_body", False):
            break
    return b"".join(chunks)


def _replay(body: bytes, receive: Receive) -> Receive:
    """Hand ``body`` back once, then defer to the real ``receive``."""
    sent = False

    async def _receive() -> Message:
        nonlocal sent
        if not sent:
            sent = True
            return {"type": "http.request", "body": body, "more_body": False}
        return await receive()

    return _receive


def _is_initialize(body: bytes) -> bool:
    try:
        payload: Any = orjson.loads(body)
    except orjson.JSONDecodeError:
        return False
    messages = payload if isinstance(payload, list) else [payload]
    return any(isinstance(item, dict) and item.get("method") == "initialize" for item in messages)


__all__ = ["StreamableHTTPSessionManager", "StreamableHTTPTransport", "StreamableSession"]
