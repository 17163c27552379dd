# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Legacy HTTP+SSE transport.

``GET /sse`` opens an event stream whose first ``endpoint`` event tells the
client where to ``POST`` its JSON-RPC messages; responses come back as
``message`` events on the stream.  The stream and its server live as long as
the client stays connected or until the registry expires the session.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import anyio
from mcp import types
from mcp.shared.message import SessionMessage
from pydantic import ValidationError
from sse_starlette.sse import EventSourceResponse
from starlette.requests import Request
from starlette.responses import PlainTextResponse
from starlette.routing import Route

from ...result import Err
from ..authorization import request_authorization
from ._asgi import RegistrySessionManager, SessionManagerHandler, SessionTransportBase, error_response


if TYPE_CHECKING:
    from collections.abc import Iterable

    from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream
    from starlette.types import Receive, Scope, Send

    from ..core import ToolServer


DEFAULT_SSE_PATH = "/sse"
DEFAULT_MESSAGES_PATH = "/messages"
SESSION_QUERY_PARAM = "sessionId"


@dataclass(slots=True)
class SSESession:
    """Registry entry for one open event stream."""

    writer: MemoryObjectSendStream[SessionMessage | Exception]
    cancel_scope: anyio.CancelScope

    async def send(self, message: SessionMessage) -> None:
        await self.writer.send(message)

    async def close(self) -> None:
        self.cancel_scope.cancel()


class SSESessionManager(RegistrySessionManager):
    """Serve the event stream and the message endpoint."""

    label = "sse"

    def __init__(self, *args: Any, messages_path: str = DEFAULT_MESSAGES_PATH, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.messages_path = messages_path

    async def handle_request(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("method") == "GET":
            await self._open_stream(scope, receive, send)
        else:
            await self._post_message(scope, receive, send)

    async def _open_stream(self, scope: Scope, receive: Receive, send: Send) -> None:
        created = self.source.for_request(self.request_headers(scope), request_authorization(scope))
        if isinstance(created, Err):
            response = error_response(400, "Creating server", created.error)
            await response(scope, receive, send)
            return

        server = created.value
        session_id = self.new_session_id()
        endpoint = f"{scope.get('root_path', '')}{self.messages_path}?{SESSION_QUERY_PARAM}={session_id}"

        read_writer, read_stream = anyio.create_memory_object_stream[SessionMessage | Exception](0)
        write_stream, write_reader = anyio.create_memory_object_stream[SessionMessage](0)

        async with read_writer, read_stream, write_stream, write_reader:
            async with anyio.create_task_group() as tg:
                session = SSESession(read_writer, tg.cancel_scope)
                try:
                    tg.start_soon(self._run_server, session_id, server, read_stream, write_stream)
                    events = _events(endpoint, write_reader, opened=lambda: self._register(session_id, session))
                    response = EventSourceResponse(events)
                    await response(scope, receive, send)
                finally:
                    tg.cancel_scope.cancel()
                    self._forget(session_id)

    async def _post_message(self, scope: Scope, receive: Receive, send: Send) -> None:
        request = Request(scope, receive)
        session_id = request.query_params.get(SESSION_QUERY_PARAM)
        if not session_id:
            response = error_response(400, f"{SESSION_QUERY_PARAM} query parameter is required")
            await response(scope, receive, send)
            return

        found = self.registry.get(session_id)
        if isinstance(found, Err):
            response = error_response(404, "Getting session", found.error)
            await response(scope, receive, send)
            return

        body = await request.body()
        try:
            message = types.JSONRPCMessage.model_validate_json(body)
        except ValidationError as exc:
            response = error_response(400, "Parsing message", exc)
            await response(scope, receive, send)
            return

        try:
            await found.value.transport.send(SessionMessage(message))
        except (anyio.ClosedResourceError, anyio.BrokenResourceError) as exc:
            response = error_response(404, "Getting session", exc)
            await response(scope, receive, send)
            return

        response = PlainTextResponse("Accepted", status_code=202)
        await response(scope, receive, send)

    async def _run_server(
        self,
        session_id: str,
        server: ToolServer,
        read_stream: MemoryObjectReceiveStream[SessionMessage | Exception],
        write_stream: MemoryObjectSendStream[SessionMessage],
    ) -> None:
        try:
            await server.run(read_stream, write_stream, server.create_initialization_options())
        except Exception:
            self._logger.exception(
                "session %s crashed",
                session_id,
                extra={"event": "transport.sse.crash", "session": session_id},
            )

    def _register(self, session_id: str, session: SSESession) -> None:
        self.registry.create(session_id, session)
        self._logger.info(
            "session %s opened",
            session_id,
            extra={"event": "transport.sse.open", "session": session_id},
        )

    def _forget(self, session_id: str) -> None:
        deleted = self.registry.delete(session_id)
        if isinstance(deleted, Err):
            self._logger.debug(
                "session %s already removed",
                session_id,
                extra={"event": "transport.sse.close", "session": session_id},
            )
            return
        self._logger.info(
            "session %s closed",
            session_id,
            extra={"event": "transport.sse.close", "session": session_id},
        )


class SSETransport(SessionTransportBase):
    """Serve DocSpace sessions over HTTP+SSE."""

    TRANSPORT = ("sse", "SSE")

    sse_path = DEFAULT_SSE_PATH
    messages_path = DEFAULT_MESSAGES_PATH

    def _build_session_manager(self) -> SSESessionManager:
        return SSESessionManager(self.source, settings=self.sessions, messages_path=self.messages_path)

    def _build_routes(self, *, handler: SessionManagerHandler) -> Iterable[Route]:
        return [
            Route(self.sse_path, handler, methods=["GET"]),
            Route(self.messages_path, handler, methods=["POST"]),
        ]


async def _events(
    endpoint: str,
    messages: MemoryObjectReceiveStream[SessionMessage],
    *,
    opened: Callable[[], None],
) -> AsyncIterator[dict[str, str]]:
    yield {"event": "endpoint", "data": endpoint}
    # Resumed only once the endpoint event has been flushed.
    opened()
    async for message in messages:
        yield {"event": "message", "data": message.message.model_dump_json(by_alias=True, exclude_none=True)}


__all__ = ["SSESession", "SSESessionManager", "SSETransport"]
