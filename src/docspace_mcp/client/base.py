# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""HTTP plumbing for the DocSpace API client.

:class:`Client` owns an :class:`httpx.AsyncClient` and knows how to build
authenticated requests, check DocSpace error envelopes and unwrap the
``response`` field of successful replies.  Service objects
(:mod:`.files`, :mod:`.people`, :mod:`.oauth`) describe individual
endpoints on top of it.

Cancellation is whatever the surrounding anyio scope says it is: httpx
aborts in-flight requests when the task is cancelled.
"""

from __future__ import annotations

import base64
from collections.abc import Mapping
import copy
from typing import Any, TypeVar

import httpx
import orjson
from pydantic import TypeAdapter, ValidationError

from ..utils import get_logger


_logger = get_logger("docspace_mcp.client")

_T = TypeVar("_T")

DEFAULT_TIMEOUT = 30.0


class ClientError(Exception):
    """Base class for DocSpace client failures."""


class ErrorResponse(ClientError):
    """DocSpace answered with an error body or a non-2xx status."""

    def __init__(self, response: httpx.Response, message: str) -> None:
        request = response.request
        super().__init__(f"{request.method} {request.url}: {response.status_code} {message}")
        self.response = response


class Response:
    """Raw HTTP exchange behind a parsed payload."""

    __slots__ = ("response",)

    def __init__(self, response: httpx.Response) -> None:
        self.response = response

    @property
    def request(self) -> httpx.Request:
        return self.response.request

    @property
    def status_code(self) -> int:
        return self.response.status_code

    @property
    def headers(self) -> httpx.Headers:
        return self.response.headers

    def __repr__(self) -> str:
        return f"Response({self.request.method} {self.request.url} -> {self.status_code})"


class Client:
    """Authenticated access to a DocSpace portal.

    The ``with_*`` helpers return copies that share the underlying connection
    pool, so one base client can serve many differently-authenticated
    sessions.
    """

    def __init__(
        self,
        base_url: str,
        *,
        user_agent: str,
        origin: str | None = None,
        oauth_base_url: str | None = None,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        from .files import FilesService
        from .oauth import OAuthService
        from .people import PeopleService

        self.base_url = base_url
        self.oauth_base_url = oauth_base_url
        self.user_agent = user_agent
        self.origin = origin
        self._http = http or httpx.AsyncClient(timeout=DEFAULT_TIMEOUT)
        self._auth_headers: dict[str, str] = {}

        self.files = FilesService(self)
        self.people = PeopleService(self)
        self.oauth = OAuthService(self)

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    def with_api_key(self, key: str) -> Client:
        return self._with_auth({"Authorization": f"Bearer {key}"})

    def with_auth_token(self, token: str) -> Client:
        return self._with_auth({"Authorization": token, "Cookie": f"asc_auth_key={token}"})

    def with_basic_auth(self, username: str, password: str) -> Client:
        credentials = base64.b64encode(f"{username}:{password}".encode()).decode()
        return self._with_auth({"Authorization": f"Basic {credentials}"})

    def with_bearer_auth(self, token: str) -> Client:
        return self._with_auth({"Authorization": f"Bearer {token}"})

    def with_base_url(self, base_url: str) -> Client:
        clone = self._clone()
        clone.base_url = base_url
        return clone

    async def aclose(self) -> None:
        await self._http.aclose()

    # ------------------------------------------------------------------
    # Request helpers
    # ------------------------------------------------------------------

    def create_url(self, path: str, query: Mapping[str, Any] | None = None) -> str:
        return _join_url(self.base_url, path, query)

    def create_oauth_url(self, path: str) -> str:
        if not self.oauth_base_url:
            raise ClientError("OAuth base URL is not configured.")
        return _join_url(self.oauth_base_url, path, None)

    def build_request(
        self,
        method: str,
        url: str,
        body: Any = None,
        *,
        files: Mapping[str, Any] | None = None,
        form: Mapping[str, str] | None = None,
    ) -> httpx.Request:
        headers: dict[str, str] = {"Accept": "application/json", "User-Agent": self.user_agent}
        if self.origin:
            headers["Origin"] = self.origin

        content: bytes | None = None
        if body is not None:
            headers["Content-Type"] = "application/json"
            content = orjson.dumps(body)

        headers.update(self._auth_headers)
        return self._http.build_request(method, url, headers=headers, content=content, files=files, data=form)

    async def request(
        self,
        method: str,
        path: str,
        *,
        query: Mapping[str, Any] | None = None,
        body: Any = None,
    ) -> tuple[Any, Response]:
        """Send a JSON request and return the unwrapped payload."""
        request = self.build_request(method, self.create_url(path, query), body)
        return await self.send(request)

    async def send(self, request: httpx.Request) -> tuple[Any, Response]:
        response = await self.bare_send(request)
        return _unwrap(response), Response(response)

    async def bare_send(self, request: httpx.Request) -> httpx.Response:
        """Send ``request`` and check the reply without parsing it."""
        response = await self.fetch(request)
        _check(response)
        return response

    async def fetch(self, request: httpx.Request) -> httpx.Response:
        """Send ``request`` and read the body; no status or envelope checks."""
        _logger.debug(
            "%s %s",
            request.method,
            request.url,
            extra={"event": "client.request", "method": request.method, "url": str(request.url)},
        )
        response = await self._http.send(request)
        await response.aread()
        return response

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _with_auth(self, headers: dict[str, str]) -> Client:
        clone = self._clone()
        clone._auth_headers = dict(headers)
        return clone

    def _clone(self) -> Client:
        clone = copy.copy(self)
        clone._auth_headers = dict(self._auth_headers)
        clone.files = type(self.files)(clone)
        clone.people = type(self.people)(clone)
        clone.oauth = type(self.oauth)(clone)
        return clone


def parse_as(annotation: type[_T] | Any, payload: Any) -> _T:
    """Validate ``payload`` against ``annotation``, wrapping failures."""
    try:
        return TypeAdapter(annotation).validate_python(payload)
    except ValidationError as exc:
        raise ClientError("Parsing response.") from exc


def _join_url(base_url: str, path: str, query: Mapping[str, Any] | None) -> str:
    if not base_url.endswith("/"):
        raise ClientError(f"Base URL must end with a trailing slash, but {base_url} does not.")

    url = httpx.URL(base_url).join(path)
    if query:
        params = {key: _query_value(value) for key, value in query.items() if value is not None}
        if params:
            url = url.copy_merge_params(params)
    return str(url)


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(_query_value(item) for item in value)
    return str(value)


def _check(response: httpx.Response) -> None:
    message = _error_message(response.content)
    if message is not None:
        raise ErrorResponse(response, message)
    if not response.is_success:
        raise ErrorResponse(response, response.reason_phrase)


def _error_message(content: bytes) -> str | None:
    if not content:
        return None
    try:
        body = orjson.loads(content)
    except orjson.JSONDecodeError:
        return None
    if not isinstance(body, dict):
        return None

    error = body.get("error")
    if isinstance(error, dict) and isinstance(error.get("message"), str):
        return error["message"]
    if body.get("success") is False and isinstance(body.get("message"), str):
        return body["message"]
    return None


def _unwrap(response: httpx.Response) -> Any:
    try:
        body = orjson.loads(response.content)
    except orjson.JSONDecodeError as exc:
        raise ClientError("Parsing response.") from exc

    payload = body
    if isinstance(body, dict) and "response" in body:
        payload = body["response"]
    if isinstance(payload, dict) and isinstance(payload.get("success"), bool) and "data" in payload:
        payload = payload["data"]
    return payload


__all__ = [
    "Client",
    "ClientError",
    "ErrorResponse",
    "Response",
    "parse_as",
]
