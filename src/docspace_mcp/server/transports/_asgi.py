# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Shared ASGI transport primitives.

Concrete subclasses supply the session manager implementation and route
configuration while this base class handles lifecycle management, optional
authorization and CORS wrapping, and startup of the uvicorn runtime.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Callable, Iterable, Sequence  # noqa: TC003
from contextlib import AbstractAsyncContextManager, AsyncExitStack, asynccontextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol
import uuid

import anyio
from starlette.applications import Starlette
from starlette.datastructures import Headers
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import PlainTextResponse
from uvicorn import Config, Server

from ...errors import AbortedError, MessageError, format_error, with_cause
from ...result import Err
from ...sessions import SessionRegistry
from ...utils import get_logger
from .base import BaseTransport, ServerSource


if TYPE_CHECKING:
    from anyio.abc import TaskGroup
    from starlette.routing import BaseRoute
    from starlette.types import ASGIApp, Receive, Scope, Send

    from ..authorization import AuthorizationManager

SESSION_HEADER = "mcp-session-id"

Lifespan = Callable[[Starlette], AbstractAsyncContextManager[None]]


class SessionManagerProtocol(Protocol):
    """Minimal contract required of the per-transport session managers."""

    async def handle_request(self, scope: Scope, receive: Receive, send: Send) -> None: ...

    def run(self) -> AbstractAsyncContextManager[None]: ...


@dataclass(slots=True)
class SessionManagerHandler:
    """ASGI adapter that connects a session manager to the runtime."""

    session_manager: SessionManagerProtocol
    transport_label: str
    allowed_scopes: tuple[str, ...]

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        scope_type = scope.get("type")
        if scope_type not in self.allowed_scopes:
            allowed = ", ".join(self.allowed_scopes)
            message = f"{self.transport_label} only handles ASGI scopes: {allowed} (got {scope_type!r})."
            raise TypeError(message)

        await self.session_manager.handle_request(scope, receive, send)

    def lifespan(self) -> Lifespan:
        """Return an ASGI lifespan hook bound to the session manager."""

        @asynccontextmanager
        async def _lifespan(_app: Starlette) -> AsyncIterator[None]:
            async with self.session_manager.run():
                yield

        return _lifespan


@dataclass(slots=True)
class SessionSettings:
    """Registry and sweep settings shared by the HTTP session managers."""

    ttl: float = 28_800.0
    interval: float = 240.0


@dataclass(slots=True)
class CORSSettings:
    origins: Sequence[str] = ()
    max_age: float = 86_400.0
    expose_headers: Sequence[str] = field(default_factory=lambda: ("Mcp-Session-Id",))


class RegistrySessionManager(ABC):
    """Session manager base owning one registry and one sweep task.

    Subclasses implement :meth:`handle_request`; sessions they start run in
    the task group opened by :meth:`run`.
    """

    label = "http"

    def __init__(
        self,
        source: ServerSource,
        *,
        settings: SessionSettings | None = None,
    ) -> None:
        self.source = source
        self.settings = settings or SessionSettings()
        self.registry = SessionRegistry(self.settings.ttl, label=f"sessions.{self.label}")
        self._logger = get_logger(f"docspace_mcp.transport.{self.label}")
        self._task_group: TaskGroup | None = None

    @property
    def task_group(self) -> TaskGroup:
        if self._task_group is None:
            raise RuntimeError("Session manager is not running")
        return self._task_group

    @asynccontextmanager
    async def run(self) -> AsyncIterator[None]:
        stop = anyio.Event()
        swept = anyio.Event()
        async with anyio.create_task_group() as tg:
            self._task_group = tg
            tg.start_soon(self._watch, stop, swept)
            try:
                yield
            finally:
                stop.set()
                with anyio.CancelScope(shield=True):
                    # A tick in flight may still be closing sessions.
                    await swept.wait()
                    result = await self.registry.clear()
                    if isinstance(result, Err):
                        self._logger.error(
                            "closing sessions failed:\n%s",
                            format_error(result.error),
                            extra={"event": f"transport.{self.label}.clear"},
                        )
                self._task_group = None
                tg.cancel_scope.cancel()

    @abstractmethod
    async def handle_request(self, scope: Scope, receive: Receive, send: Send) -> None: ...

    def new_session_id(self) -> str:
        return uuid.uuid4().hex

    def request_headers(self, scope: Scope) -> Headers:
        return Headers(scope=scope)

    async def _watch(self, stop: anyio.Event, swept: anyio.Event) -> None:
        try:
            result = await self.registry.watch(stop, self.settings.interval)
        finally:
            swept.set()
        if isinstance(result, Err) and not isinstance(result.error, AbortedError):
            self._logger.warning(
                "session sweep failed:\n%s",
                format_error(result.error),
                extra={"event": f"transport.{self.label}.sweep"},
            )


def error_response(status_code: int, message: str, cause: BaseException | None = None) -> PlainTextResponse:
    """Plain-text error body carrying the formatted error chain."""
    err = with_cause(MessageError(message), cause)
    return PlainTextResponse(str(err), status_code=status_code)


class ASGITransportBase(BaseTransport, ABC):
    """Template for transports that serve sessions through ASGI."""

    ALLOWED_SCOPES: tuple[str, ...] = ("http",)
    DEFAULT_HOST: str = "127.0.0.1"
    DEFAULT_PORT: int = 8080
    DEFAULT_LOG_LEVEL: str = "info"

    def __init__(
        self,
        source: ServerSource,
        *,
        sessions: SessionSettings | None = None,
        cors: CORSSettings | None = None,
        authorization: AuthorizationManager | None = None,
    ) -> None:
        self.source = source
        self.sessions = sessions or SessionSettings()
        self.cors = cors or CORSSettings()
        self.authorization = authorization
        self._logger = get_logger("docspace_mcp.transport.http")

    async def run(
        self,
        *,
        host: str | None = None,
        port: int | None = None,
        log_level: str | None = None,
        **uvicorn_options: Any,
    ) -> None:
        host = host or self.DEFAULT_HOST
        port = port or self.DEFAULT_PORT
        log_level = log_level or self.DEFAULT_LOG_LEVEL

        await self._serve(host, port, log_level, uvicorn_options)

    async def _serve(self, host: str, port: int, log_level: str, uvicorn_options: dict[str, Any]) -> None:
        app = self.build_app()
        self._logger.info("Serving via %s at http://%s:%s", self.transport_display_name, host, port)
        config = Config(app=app, host=host, port=port, log_level=log_level, **uvicorn_options)
        server_instance = Server(config)
        await server_instance.serve()

    def build_app(self) -> ASGIApp:
        """Assemble the Starlette app, authorization and CORS layers."""
        routes, lifespans = self._mount()

        authorization = self.authorization
        if authorization and authorization.enabled:
            routes.append(authorization.starlette_route())

        asgi_app = Starlette(routes=routes, lifespan=_combine_lifespans(lifespans))

        app: ASGIApp = asgi_app
        if authorization and authorization.enabled:
            app = authorization.wrap_asgi(app)
        return self._to_asgi(app)

    @abstractmethod
    def _mount(self) -> tuple[list[BaseRoute], list[Lifespan]]:
        """Routes and lifespan hooks this transport contributes to the app."""

    def _to_asgi(self, app: ASGIApp) -> ASGIApp:
        """Wrap the app in CORS handling when origins are configured."""
        if not self.cors.origins:
            return app
        return CORSMiddleware(
            app,
            allow_origins=list(self.cors.origins),
            allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
            allow_headers=["*"],
            expose_headers=list(self.cors.expose_headers),
            max_age=int(self.cors.max_age),
        )


class SessionTransportBase(ASGITransportBase):
    """ASGI transport backed by a single session manager."""

    def _mount(self) -> tuple[list[BaseRoute], list[Lifespan]]:
        manager = self._build_session_manager()
        handler = self._build_handler(manager)
        return list(self._build_routes(handler=handler)), [handler.lifespan()]

    def _build_handler(self, manager: SessionManagerProtocol) -> SessionManagerHandler:
        """Construct the default ASGI handler for the provided session manager."""
        return SessionManagerHandler(
            session_manager=manager,
            transport_label=self.transport_display_name,
            allowed_scopes=self.ALLOWED_SCOPES,
        )

    @abstractmethod
    def _build_session_manager(self) -> SessionManagerProtocol: ...

    @abstractmethod
    def _build_routes(self, *, handler: SessionManagerHandler) -> Iterable[BaseRoute]: ...


def _combine_lifespans(
    lifespans: Sequence[Lifespan],
) -> Lifespan:
    @asynccontextmanager
    async def _lifespan(app: Starlette) -> AsyncIterator[None]:
        async with AsyncExitStack() as stack:
            for lifespan in lifespans:
                await stack.enter_async_context(lifespan(app))
            yield

    return _lifespan


__all__ = [
    "ASGITransportBase",
    "CORSSettings",
    "Lifespan",
    "RegistrySessionManager",
    "SESSION_HEADER",
    "SessionManagerHandler",
    "SessionSettings",
    "SessionTransportBase",
    "error_response",
]
