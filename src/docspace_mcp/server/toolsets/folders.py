# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Tools for working with folders."""

from __future__ import annotations

from pydantic import Field

from ...client import Response
from ...client.models import FolderContentDto, FolderDto
from ...result import Err
from ...tool import ToolContext, tool, toolset
from .schemas import Envelope, FolderContentFilters, FolderFilters, MyFolderFilters, ToolInput


class CreateFolderInput(ToolInput):
    parent_id: int = Field(description="The ID of the room or folder to create the folder in.")
    title: str = Field(description="The title of the folder to create.")
    filters: FolderFilters = Field(
        description="The filters to apply to the folder creation. Use them to reduce the size of the response."
    )


class DeleteFolderInput(ToolInput):
    folder_id: int = Field(description="The ID of the folder to delete.")


class GetFolderContentInput(ToolInput):
    folder_id: int = Field(description="The ID of the folder to get.")
    filters: FolderContentFilters = Field(
        description="The filters to apply to the contents of the folder. Use them to reduce the size of the response."
    )


class GetFolderInfoInput(ToolInput):
    folder_id: int = Field(description="The ID of the folder to get info for.")
    filters: FolderFilters = Field(
        description="The filters to apply to the folder info. Use them to reduce the size of the response."
    )


class RenameFolderInput(ToolInput):
    folder_id: int = Field(description="The ID of the folder to rename.")
    title: str = Field(description="The new title of the folder to set.")
    filters: FolderFilters = Field(
        description="The filters to apply to the folder renaming. Use them to reduce the size of the response."
    )


class GetMyFolderInput(ToolInput):
    filters: MyFolderFilters = Field(
        description="The filters to apply to the My Documents folder. Use them to reduce the size of the response."
    )


class CreatedFolderEnvelope(Envelope[FolderDto]):
    response: FolderDto = Field(description="The created folder information.")


class FolderContentEnvelope(Envelope[FolderContentDto]):
    response: FolderContentDto = Field(description="The contents of the folder.")


class FolderInfoEnvelope(Envelope[FolderDto]):
    response: FolderDto = Field(description="The folder information.")


class RenamedFolderEnvelope(Envelope[FolderDto]):
    response: FolderDto = Field(description="The renamed folder information.")


class MyFolderEnvelope(Envelope[FolderContentDto]):
    response: FolderContentDto = Field(description="The contents of the My Documents folder.")


@tool(description="Create a folder.", input=CreateFolderInput, output=CreatedFolderEnvelope)
async def create_folder(ctx: ToolContext, args: CreateFolderInput) -> Response:
    try:
        _, response = await ctx.client.files.create_folder(
            args.parent_id, title=args.title, filters=args.filters.to_query()
        )
    except Exception as exc:
        raise RuntimeError("Creating folder.") from exc
    return response


@tool(description="Delete a folder.", input=DeleteFolderInput)
async def delete_folder(ctx: ToolContext, args: DeleteFolderInput) -> str:
    try:
        operations, _ = await ctx.client.files.delete_folder(args.folder_id, delete_after=False, immediately=False)
    except Exception as exc:
        raise RuntimeError("Deleting folder.") from exc

    result = await ctx.resolver.resolve(*operations)
    if isinstance(result, Err):
        raise RuntimeError("Resolving delete folder operations.") from result.error

    return "Folder deleted."


@tool(description="Get content of a folder.", input=GetFolderContentInput, output=FolderContentEnvelope)
async def get_folder_content(ctx: ToolContext, args: GetFolderContentInput) -> Response:
    try:
        _, response = await ctx.client.files.get_folder(args.folder_id, args.filters.to_query())
    except Exception as exc:
        raise RuntimeError("Getting folder.") from exc
    return response


@tool(description="Get folder information.", input=GetFolderInfoInput, output=FolderInfoEnvelope)
async def get_folder_info(ctx: ToolContext, args: GetFolderInfoInput) -> Response:
    try:
        _, response = await ctx.client.files.get_folder_info(args.folder_id, args.filters.to_query())
    except Exception as exc:
        raise RuntimeError("Getting folder info.") from exc
    return response


@tool(description="Rename a folder.", input=RenameFolderInput, output=RenamedFolderEnvelope)
async def rename_folder(ctx: ToolContext, args: RenameFolderInput) -> Response:
    try:
        _, response = await ctx.client.files.rename_folder(
            args.folder_id, title=args.title, filters=args.filters.to_query()
        )
    except Exception as exc:
        raise RuntimeError("Renaming folder.") from exc
    return response


@tool(description="Get the 'My Documents' folder.", input=GetMyFolderInput, output=MyFolderEnvelope)
async def get_my_folder(ctx: ToolContext, args: GetMyFolderInput) -> Response:
    try:
        _, response = await ctx.client.files.get_my_folder(args.filters.to_query())
    except Exception as exc:
        raise RuntimeError("Getting my folder.") from exc
    return response


FOLDERS = toolset(
    "folders",
    "Operations for working with folders.",
    create_folder,
    delete_folder,
    get_folder_content,
    get_folder_info,
    rename_folder,
    get_my_folder,
)


__all__ = ["FOLDERS"]
