# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Endpoints of the DocSpace People API."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from .base import Response, parse_as
from .models import EmployeeDto


if TYPE_CHECKING:
    from .base import Client


class PeopleService:
    def __init__(self, client: Client) -> None:
        self._client = client

    async def get_all(self, filters: Mapping[str, Any] | None = None) -> tuple[list[EmployeeDto], Response]:
        payload, response = await self._client.request("GET", "api/2.0/people", query=filters)
        return parse_as(list[EmployeeDto], payload), response


__all__ = ["PeopleService"]
