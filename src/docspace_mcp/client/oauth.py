# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Token introspection against the DocSpace identity service."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import jwt
import orjson

from .base import ClientError, Response, parse_as
from .models import IntrospectionResponse, TokenPayload


if TYPE_CHECKING:
    from .base import Client


class OAuthError(ClientError):
    """The identity service rejected a request."""

    def __init__(self, response: httpx.Response) -> None:
        request = response.request
        message = f"{request.method} {request.url}: {response.status_code}"
        detail = _oauth_error_detail(response)
        if detail:
            message = f"{message} {detail}"
        super().__init__(message)
        self.response = response


class OAuthService:
    def __init__(self, client: Client) -> None:
        self._client = client

    async def introspect(self, token: str) -> tuple[IntrospectionResponse, Response]:
        """Ask the identity service whether ``token`` is active (RFC 7662)."""
        url = self._client.create_oauth_url("oauth2/introspect")
        request = self._client.build_request("POST", url, form={"token": token})
        response = await self._client.fetch(request)
        if not response.is_success:
            raise OAuthError(response)
        return parse_as(IntrospectionResponse, orjson.loads(response.content)), Response(response)


def decode_token_payload(token: str) -> TokenPayload:
    """Read the claims of ``token`` without checking its signature.

    Introspection is the trust check; the payload only tells which portal
    the token was issued for.
    """
    try:
        claims = jwt.decode(token, options={"verify_signature": False, "verify_aud": False})
    except jwt.PyJWTError as exc:
        raise ClientError("Decoding OAuth token payload.") from exc
    return parse_as(TokenPayload, claims)


def _oauth_error_detail(response: httpx.Response) -> str:
    try:
        body = orjson.loads(response.content)
    except orjson.JSONDecodeError:
        return response.reason_phrase
    if isinstance(body, dict):
        if isinstance(body.get("error"), str):
            description = body.get("error_description")
            return f"{body['error']} ({description})" if description else body["error"]
        if isinstance(body.get("reason"), str):
            return body["reason"]
    return response.reason_phrase


__all__ = ["OAuthError", "OAuthService", "decode_token_payload"]
