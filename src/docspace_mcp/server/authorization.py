# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""OAuth protected-resource support for the HTTP transports.

Key pieces:

* :class:`AuthorizationConfig` – opt-in server configuration.
* :class:`AuthorizationProvider` protocol – pluggable token validation.
* :class:`IntrospectionProvider` – validates tokens against the DocSpace
  identity service (RFC 7662 introspection).
* :class:`AuthorizationManager` – serves protected-resource metadata and wraps
  ASGI apps with bearer-token enforcement.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

from starlette.datastructures import Headers
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from ..errors import format_error
from ..utils import get_logger


if TYPE_CHECKING:
    from starlette.types import ASGIApp, Receive, Scope, Send

    from ..client import Client


AUTH_SCOPE_KEY = "docspace.auth"


@dataclass(slots=True)
class AuthorizationConfig:
    """Server-side authorization configuration."""

    enabled: bool = False
    metadata_path: str = "/.well-known/oauth-protected-resource"
    resource_url: str | None = None
    authorization_servers: list[str] = field(default_factory=list)
    scopes_supported: list[str] = field(default_factory=list)
    resource_name: str | None = None
    resource_documentation: str | None = None
    cache_ttl: int = 300


@dataclass(slots=True)
class AuthorizationContext:
    """Context returned by providers after successful validation."""

    subject: str | None
    scopes: list[str]
    claims: dict[str, Any]
    token: str | None = None


class AuthorizationError(Exception):
    """Raised when token validation fails."""


class AuthorizationProvider(Protocol):
    async def validate(self, token: str) -> AuthorizationContext:
        """Validate a bearer token and return the associated context."""


class _NoopAuthorizationProvider:
    async def validate(self, token: str) -> AuthorizationContext:
        raise AuthorizationError("authorization provider not configured")


class IntrospectionProvider:
    """Accept tokens the identity service reports as active.

    An active token must also name its client and carry at least one scope.
    """

    def __init__(self, client: Client) -> None:
        self._client = client

    async def validate(self, token: str) -> AuthorizationContext:
        try:
            result, _ = await self._client.oauth.introspect(token)
        except Exception as exc:
            raise AuthorizationError("Introspecting OAuth token") from exc

        if not result.active:
            raise AuthorizationError("OAuth token is not active")
        if not result.client_id:
            raise AuthorizationError("OAuth token does not have a client ID")
        if not result.scope:
            raise AuthorizationError("OAuth token does not have scopes")

        return AuthorizationContext(
            subject=result.client_id,
            scopes=result.scope.split(),
            claims=result.model_dump(exclude_none=True),
            token=token,
        )


class AuthorizationManager:
    """Coordinates metadata serving and ASGI middleware for authorization."""

    def __init__(
        self,
        config: AuthorizationConfig,
        provider: AuthorizationProvider | None = None,
    ) -> None:
        self.config = config
        self._provider: AuthorizationProvider = provider or _NoopAuthorizationProvider()

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    def set_provider(self, provider: AuthorizationProvider) -> None:
        self._provider = provider

    @property
    def metadata_url(self) -> str:
        base = (self.config.resource_url or "").rstrip("/")
        return f"{base}{self.config.metadata_path}"

    def starlette_route(self) -> Route:
        """Route serving the protected-resource metadata document."""

        async def metadata_endpoint(request: Request) -> Response:
            config = self.config
            payload: dict[str, Any] = {
                "resource": config.resource_url or _request_origin(request),
                "authorization_servers": config.authorization_servers,
                "scopes_supported": config.scopes_supported,
                "bearer_methods_supported": ["header"],
            }
            optional = {"resource_name": config.resource_name, "resource_documentation": config.resource_documentation}
            payload.update({key: value for key, value in optional.items() if value})
            return JSONResponse(payload, headers={"Cache-Control": f"public, max-age={config.cache_ttl}"})

        return Route(self.config.metadata_path, metadata_endpoint, methods=["GET"])

    def wrap_asgi(self, app: ASGIApp) -> ASGIApp:
        return BearerMiddleware(app, self)

    async def authenticate(self, headers: Headers) -> AuthorizationContext:
        """Validate the ``Authorization`` header or raise :class:`AuthorizationError`."""
        scheme, _, token = headers.get("authorization", "").partition(" ")
        token = token.strip()
        if scheme.lower() != "bearer" or not token:
            raise AuthorizationError("missing bearer token")
        return await self._provider.validate(token)

    def challenge(self, reason: str) -> Response:
        header = f'Bearer error="invalid_token", resource_metadata="{self.metadata_url}"'
        body = {"error": "unauthorized", "detail": reason}
        return JSONResponse(body, status_code=401, headers={"WWW-Authenticate": header})


class BearerMiddleware:
    """Reject HTTP requests that lack a valid bearer token.

    Preflight requests and the metadata document pass through untouched.
    """

    def __init__(self, app: ASGIApp, manager: AuthorizationManager) -> None:
        self.app = app
        self.manager = manager
        self._logger = get_logger("docspace_mcp.authorization")

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or self._exempt(scope):
            await self.app(scope, receive, send)
            return

        try:
            context = await self.manager.authenticate(Headers(scope=scope))
        except AuthorizationError as exc:
            self._logger.warning(
                "authorization failed",
                extra={"event": "auth.reject", "reason": format_error(exc)},
            )
            await self.manager.challenge(str(exc))(scope, receive, send)
            return

        scope[AUTH_SCOPE_KEY] = context
        await self.app(scope, receive, send)

    def _exempt(self, scope: Scope) -> bool:
        return scope.get("method") == "OPTIONS" or scope.get("path") == self.manager.config.metadata_path


def _request_origin(request: Request) -> str:
    scheme = request.headers.get("x-forwarded-proto", request.url.scheme)
    host = request.headers.get("x-forwarded-host") or request.headers.get("host") or request.url.netloc
    return f"{scheme}://{host}".rstrip("/")


def request_authorization(scope: Mapping[str, Any]) -> AuthorizationContext | None:
    """Return the context the middleware stored for this request, if any."""
    return scope.get(AUTH_SCOPE_KEY)


__all__ = [
    "AUTH_SCOPE_KEY",
    "AuthorizationConfig",
    "AuthorizationContext",
    "AuthorizationError",
    "AuthorizationManager",
    "AuthorizationProvider",
    "BearerMiddleware",
    "IntrospectionProvider",
    "request_authorization",
]
