# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Asynchronous DocSpace API client built on httpx."""

from __future__ import annotations

from .base import Client, ClientError, ErrorResponse, Response, parse_as
from .files import FilesService
from .models import Operation
from .oauth import OAuthError, OAuthService, decode_token_payload
from .people import PeopleService


__all__ = [
    "Client",
    "ClientError",
    "ErrorResponse",
    "FilesService",
    "OAuthError",
    "OAuthService",
    "Operation",
    "PeopleService",
    "Response",
    "decode_token_payload",
    "parse_as",
]
