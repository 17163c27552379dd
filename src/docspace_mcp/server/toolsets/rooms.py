# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Tools for working with rooms.

Rooms are folders with a type that decides which access levels members can
be invited with; :func:`get_room_access_levels` exposes that mapping.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field, model_validator

from ...client import Response
from ...client.models import FileShareDto, FolderContentDto, FolderDto, RoomSecurityDto, RoomType
from ...result import Err
from ...tool import ToolContext, tool, toolset
from .schemas import (
    ACCESS_LEVELS,
    ROOM_ACCESS_LEVELS,
    ROOM_TYPES,
    AccessLevel,
    Envelope,
    FolderFilters,
    RoomSecurityFilters,
    RoomSecurityInfoFilters,
    RoomsFolderFilters,
    ToolInput,
    described,
    literal_union_schema,
)


DEFAULT_ROOM_TYPE = 6


class CreateRoomInput(ToolInput):
    title: str = Field(description="The title of the room to create.")
    room_type: RoomType = Field(
        default=DEFAULT_ROOM_TYPE, description=described("The type of the room to create.", ROOM_TYPES)
    )
    filters: FolderFilters = Field(description="The filters to apply to the room creation.")


class GetRoomInfoInput(ToolInput):
    room_id: int = Field(description="The ID of the room to get info for.")
    filters: FolderFilters = Field(description="The filters to apply to the room info.")


class UpdateRoomInput(ToolInput):
    room_id: int = Field(description="The ID of the room to update.")
    title: str | None = Field(default=None, description="The new title of the room to set.")
    filters: FolderFilters = Field(description="The filters to apply to the room update.")


class ArchiveRoomInput(ToolInput):
    room_id: int = Field(description="The ID of the room to archive.")


class Invitation(ToolInput):
    """The invitation or removal of a user. Must contain either User ID or User Email."""

    id: str | None = Field(
        default=None, description="The ID of the user to invite or remove. Mutually exclusive with User Email."
    )
    email: str | None = Field(
        default=None, description="The email of the user to invite or remove. Mutually exclusive with User ID."
    )
    access: AccessLevel | None = Field(
        default=None,
        description=described(
            "The access level to grant to the user. May vary depending on the type of room.", ACCESS_LEVELS
        ),
    )

    @model_validator(mode="after")
    def _require_subject(self) -> Invitation:
        if self.id is None and self.email is None:
            raise ValueError("Either User ID or User Email must be provided.")
        return self


class SetRoomSecurityInput(ToolInput):
    room_id: int = Field(description="The ID of the room to invite or remove users from.")
    invitations: list[Invitation] = Field(description="The invitations or removals to perform.")
    notify: bool | None = Field(default=None, description="Whether to notify the user.")
    message: str | None = Field(default=None, description="The message to use for the invitation.")
    culture: str | None = Field(default=None, description="The languages to use for the invitation.")
    filters: RoomSecurityFilters = Field(description="The filters to apply to the room security info.")


class GetRoomSecurityInfoInput(ToolInput):
    room_id: int = Field(description="The ID of the room to get a list of users with their access level for.")
    filters: RoomSecurityInfoFilters = Field(description="The filters to apply to the room security info.")


class GetRoomsFolderInput(ToolInput):
    filters: RoomsFolderFilters = Field(description="The filters to apply to the rooms folder.")


class GetRoomAccessLevelsInput(ToolInput):
    room_id: int = Field(description="The ID of the room to get the invitation access for.")


class CreatedRoomEnvelope(Envelope[FolderContentDto]):
    response: FolderContentDto = Field(description="The contents of the created room.")


class RoomInfoEnvelope(Envelope[FolderDto]):
    response: FolderDto = Field(description="The room information.")


class UpdatedRoomEnvelope(Envelope[FolderDto]):
    response: FolderDto = Field(description="The updated room information.")


class RoomSecurityEnvelope(Envelope[RoomSecurityDto]):
    response: RoomSecurityDto = Field(description="The room security information after the operation.")


class RoomSecurityInfoEnvelope(Envelope[Any]):
    response: list[FileShareDto] | FileShareDto = Field(description="The room security information.")


class RoomsFolderEnvelope(Envelope[FolderContentDto]):
    response: FolderContentDto = Field(description="The contents of the rooms folder.")


@tool(description="Create a room.", input=CreateRoomInput, output=CreatedRoomEnvelope)
async def create_room(ctx: ToolContext, args: CreateRoomInput) -> Response:
    try:
        _, response = await ctx.client.files.create_room(
            title=args.title, room_type=args.room_type, filters=args.filters.to_query()
        )
    except Exception as exc:
        raise RuntimeError("Creating room.") from exc
    return response


@tool(description="Get room information.", input=GetRoomInfoInput, output=RoomInfoEnvelope)
async def get_room_info(ctx: ToolContext, args: GetRoomInfoInput) -> Response:
    try:
        _, response = await ctx.client.files.get_room_info(args.room_id, args.filters.to_query())
    except Exception as exc:
        raise RuntimeError("Getting room info.") from exc
    return response


@tool(description="Update a room.", input=UpdateRoomInput, output=UpdatedRoomEnvelope)
async def update_room(ctx: ToolContext, args: UpdateRoomInput) -> Response:
    try:
        _, response = await ctx.client.files.update_room(
            args.room_id, title=args.title, filters=args.filters.to_query()
        )
    except Exception as exc:
        raise RuntimeError("Updating room.") from exc
    return response


@tool(description="Archive a room.", input=ArchiveRoomInput)
async def archive_room(ctx: ToolContext, args: ArchiveRoomInput) -> str:
    try:
        operation, _ = await ctx.client.files.archive_room(args.room_id)
    except Exception as exc:
        raise RuntimeError("Archiving room.") from exc

    result = await ctx.resolver.resolve(operation)
    if isinstance(result, Err):
        raise RuntimeError("Resolving archive room operations.") from result.error

    return "Room archived."


@tool(description="Invite or remove users from a room.", input=SetRoomSecurityInput, output=RoomSecurityEnvelope)
async def set_room_security(ctx: ToolContext, args: SetRoomSecurityInput) -> Response:
    invitations = [invitation.model_dump(by_alias=True, exclude_none=True) for invitation in args.invitations]
    try:
        _, response = await ctx.client.files.set_room_security(
            args.room_id,
            invitations=invitations,
            notify=args.notify,
            message=args.message,
            culture=args.culture,
            filters=args.filters.to_query(),
        )
    except Exception as exc:
        raise RuntimeError("Setting room security.") from exc
    return response


@tool(
    description="Get a list of users with their access levels to a room.",
    input=GetRoomSecurityInfoInput,
    output=RoomSecurityInfoEnvelope,
)
async def get_room_security_info(ctx: ToolContext, args: GetRoomSecurityInfoInput) -> Response:
    try:
        _, response = await ctx.client.files.get_room_security_info(args.room_id, args.filters.to_query())
    except Exception as exc:
        raise RuntimeError("Getting room security info.") from exc
    return response


@tool(description="Get the 'Rooms' folder.", input=GetRoomsFolderInput, output=RoomsFolderEnvelope)
async def get_rooms_folder(ctx: ToolContext, args: GetRoomsFolderInput) -> Response:
    try:
        _, response = await ctx.client.files.get_rooms_folder(args.filters.to_query())
    except Exception as exc:
        raise RuntimeError("Getting rooms folder.") from exc
    return response


@tool(description="Get a list of available room types.")
async def get_room_types(ctx: ToolContext, args: None) -> dict[str, Any]:
    return literal_union_schema(ROOM_TYPES)


@tool(description="Get a list of available room invitation access levels.", input=GetRoomAccessLevelsInput)
async def get_room_access_levels(ctx: ToolContext, args: GetRoomAccessLevelsInput) -> dict[str, Any]:
    try:
        info, _ = await ctx.client.files.get_room_info(args.room_id)
    except Exception as exc:
        raise RuntimeError("Getting room info.") from exc

    if info.roomType is None:
        raise RuntimeError("Room type is not defined.")

    return literal_union_schema(ACCESS_LEVELS, ROOM_ACCESS_LEVELS.get(info.roomType))


ROOMS = toolset(
    "rooms",
    "Operations for working with rooms.",
    create_room,
    get_room_info,
    update_room,
    archive_room,
    set_room_security,
    get_room_security_info,
    get_rooms_folder,
    get_room_types,
    get_room_access_levels,
)


__all__ = ["ROOMS"]
