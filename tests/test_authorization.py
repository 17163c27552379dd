# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

from __future__ import annotations

import httpx
import pytest
from pytest_httpx import HTTPXMock
from starlette.applications import Starlette
from starlette.responses import JSONResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from docspace_mcp.client import Client
from docspace_mcp.server.authorization import (
    AUTH_SCOPE_KEY,
    AuthorizationConfig,
    AuthorizationContext,
    AuthorizationError,
    AuthorizationManager,
    IntrospectionProvider,
    request_authorization,
)
from tests.conftest import BASE_URL


OAUTH_URL = "https://oauth.example.com/"


@pytest.fixture
def auth_config() -> AuthorizationConfig:
    return AuthorizationConfig(
        enabled=True,
        resource_url="https://mcp.example.com/",
        authorization_servers=["https://oauth.example.com"],
        scopes_supported=["files:read", "files:write"],
        resource_name="docspace-mcp",
        resource_documentation="https://docs.example.com/",
        cache_ttl=123,
    )


@pytest.fixture
def manager(auth_config: AuthorizationConfig) -> AuthorizationManager:
    return AuthorizationManager(auth_config)


@pytest.fixture
def dummy_provider():
    class DummyProvider:
        async def validate(self, token: str) -> AuthorizationContext:
            if token == "good-token":
                return AuthorizationContext(subject="client", scopes=["files:read"], claims={}, token=token)
            raise AuthorizationError("OAuth token is not active")

    return DummyProvider()


async def whoami(request):
    ctx = request_authorization(request.scope)
    return JSONResponse({"subject": ctx.subject if ctx else None, "token": ctx.token if ctx else None})


def protected_client(manager: AuthorizationManager) -> TestClient:
    routes = [Route("/mcp", whoami, methods=["GET", "POST"]), manager.starlette_route()]
    return TestClient(manager.wrap_asgi(Starlette(routes=routes)))


# ==============================================================================
# Protected Resource Metadata
# ==============================================================================


def test_metadata_route_serves_resource_document(manager: AuthorizationManager) -> None:
    client = TestClient(Starlette(routes=[manager.starlette_route()]))

    resp = client.get("/.well-known/oauth-protected-resource")

    assert resp.status_code == 200
    assert resp.json() == {
        "resource": "https://mcp.example.com/",
        "authorization_servers": ["https://oauth.example.com"],
        "scopes_supported": ["files:read", "files:write"],
        "bearer_methods_supported": ["header"],
        "resource_name": "docspace-mcp",
        "resource_documentation": "https://docs.example.com/",
    }
    assert resp.headers["cache-control"] == "public, max-age=123"


def test_metadata_falls_back_to_forwarded_host() -> None:
    manager = AuthorizationManager(AuthorizationConfig(enabled=True))
    client = TestClient(Starlette(routes=[manager.starlette_route()]))

    resp = client.get(
        "/.well-known/oauth-protected-resource",
        headers={"X-Forwarded-Proto": "https", "X-Forwarded-Host": "api.example.com"},
    )

    data = resp.json()
    assert data["resource"] == "https://api.example.com"
    assert "resource_name" not in data


def test_metadata_only_accepts_get(manager: AuthorizationManager) -> None:
    client = TestClient(Starlette(routes=[manager.starlette_route()]))

    assert client.post("/.well-known/oauth-protected-resource").status_code == 405


def test_metadata_url(manager: AuthorizationManager) -> None:
    assert manager.metadata_url == "https://mcp.example.com/.well-known/oauth-protected-resource"


# ==============================================================================
# Bearer Token Middleware
# ==============================================================================


def test_middleware_blocks_requests_without_token(manager: AuthorizationManager) -> None:
    resp = protected_client(manager).post("/mcp")

    assert resp.status_code == 401
    assert resp.json() == {"error": "unauthorized", "detail": "missing bearer token"}
    assert resp.headers["WWW-Authenticate"] == (
        'Bearer error="invalid_token", '
        'resource_metadata="https://mcp.example.com/.well-known/oauth-protected-resource"'
    )


def test_middleware_rejects_other_schemes(manager: AuthorizationManager) -> None:
    resp = protected_client(manager).get("/mcp", headers={"Authorization": "Basic dXNlcjpwYXNz"})

    assert resp.status_code == 401


def test_middleware_rejects_invalid_token(manager: AuthorizationManager, dummy_provider) -> None:
    manager.set_provider(dummy_provider)

    resp = protected_client(manager).get("/mcp", headers={"Authorization": "Bearer bad-token"})

    assert resp.status_code == 401
    assert resp.json()["detail"] == "OAuth token is not active"


def test_middleware_stores_context(manager: AuthorizationManager, dummy_provider) -> None:
    manager.set_provider(dummy_provider)

    resp = protected_client(manager).get("/mcp", headers={"Authorization": "bearer   good-token "})

    assert resp.status_code == 200
    assert resp.json() == {"subject": "client", "token": "good-token"}


def test_middleware_bypasses_metadata_and_preflight(manager: AuthorizationManager) -> None:
    client = protected_client(manager)

    assert client.get("/.well-known/oauth-protected-resource").status_code == 200
    assert client.options("/mcp").status_code != 401


def test_noop_provider_rejects_everything(manager: AuthorizationManager) -> None:
    resp = protected_client(manager).get("/mcp", headers={"Authorization": "Bearer token"})

    assert resp.status_code == 401
    assert resp.json()["detail"] == "authorization provider not configured"


def test_request_authorization_reads_scope() -> None:
    ctx = AuthorizationContext(subject="s", scopes=[], claims={})

    assert request_authorization({AUTH_SCOPE_KEY: ctx}) is ctx
    assert request_authorization({}) is None


# ==============================================================================
# Token Introspection
# ==============================================================================


@pytest.fixture
def oauth_client(http_client: httpx.AsyncClient) -> Client:
    return Client(BASE_URL, user_agent="docspace-mcp tests", oauth_base_url=OAUTH_URL, http=http_client)


@pytest.mark.anyio
async def test_introspection_accepts_active_token(httpx_mock: HTTPXMock, oauth_client: Client) -> None:
    httpx_mock.add_response(
        method="POST",
        url=f"{OAUTH_URL}oauth2/introspect",
        json={"active": True, "scope": "files:read files:write", "client_id": "abc"},
    )

    ctx = await IntrospectionProvider(oauth_client).validate("tok")

    assert ctx.subject == "abc"
    assert ctx.scopes == ["files:read", "files:write"]
    assert ctx.token == "tok"
    assert ctx.claims["active"] is True


@pytest.mark.anyio
@pytest.mark.parametrize(
    ("body", "message"),
    [
        ({"active": False}, "OAuth token is not active"),
        ({"active": True, "scope": "files:read"}, "OAuth token does not have a client ID"),
        ({"active": True, "client_id": "abc", "scope": ""}, "OAuth token does not have scopes"),
    ],
)
async def test_introspection_rejects(httpx_mock: HTTPXMock, oauth_client: Client, body: dict, message: str) -> None:
    httpx_mock.add_response(method="POST", json=body)

    with pytest.raises(AuthorizationError, match=message):
        await IntrospectionProvider(oauth_client).validate("tok")


@pytest.mark.anyio
async def test_introspection_wraps_transport_errors(httpx_mock: HTTPXMock, oauth_client: Client) -> None:
    httpx_mock.add_response(method="POST", status_code=500)

    with pytest.raises(AuthorizationError, match="Introspecting OAuth token") as excinfo:
        await IntrospectionProvider(oauth_client).validate("tok")

    assert excinfo.value.__cause__ is not None
