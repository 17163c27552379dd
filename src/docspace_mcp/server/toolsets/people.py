# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Tools for working with users."""

from __future__ import annotations

from pydantic import Field

from ...client import Response
from ...client.models import EmployeeDto
from ...tool import ToolContext, tool, toolset
from .schemas import Envelope, PeopleFilters, ToolInput


class GetAllPeopleInput(ToolInput):
    filters: PeopleFilters = Field(
        description="The filters to apply to the list of people. Use them to reduce the size of the response."
    )


class PeopleEnvelope(Envelope[list[EmployeeDto]]):
    response: list[EmployeeDto]


@tool(description="Get all people.", input=GetAllPeopleInput, output=PeopleEnvelope)
async def get_all_people(ctx: ToolContext, args: GetAllPeopleInput) -> Response:
    try:
        _, response = await ctx.client.people.get_all(args.filters.to_query())
    except Exception as exc:
        raise RuntimeError("Getting people.") from exc
    return response


PEOPLE = toolset("people", "Operations for working with users.", get_all_people)


__all__ = ["PEOPLE"]
