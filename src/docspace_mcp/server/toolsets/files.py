# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Tools for working with files."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import Field

from ...client import Response
from ...client.models import FileDto
from ...result import Err
from ...tool import ToolContext, tool, toolset
from .schemas import Envelope, FileFilters, ToolInput


TEXT_EXTENSIONS = (".csv", ".txt")


class DeleteFileInput(ToolInput):
    file_id: int = Field(description="The ID of the file to delete.")


class GetFileInfoInput(ToolInput):
    file_id: int = Field(description="The ID of the file to get info for.")
    filters: FileFilters = Field(
        description="The filters to apply to the file info. Use them to reduce the size of the response."
    )


class UpdateFileInput(ToolInput):
    file_id: int = Field(description="The ID of the file to update.")
    title: str = Field(description="The new title of the file to set.")


class CopyBatchItemsInput(ToolInput):
    folder_ids: list[Any] | None = Field(default=None, description="The IDs of the folders to copy.")
    file_ids: list[Any] | None = Field(default=None, description="The IDs of the files to copy.")
    dest_folder_id: Any = Field(default=None, description="The ID of the destination folder to copy the items to.")


class MoveBatchItemsInput(ToolInput):
    folder_ids: list[Any] | None = Field(default=None, description="The IDs of the folders to move items to.")
    file_ids: list[Any] | None = Field(default=None, description="The IDs of the files to move.")
    dest_folder_id: Any = Field(default=None, description="The ID of the destination folder to move the items to.")


class DownloadFileAsTextInput(ToolInput):
    file_id: int = Field(description="The ID of the file to download as text.")


class UploadFileInput(ToolInput):
    parent_id: int = Field(description="The ID of the room or folder to upload the file to.")
    filename: str = Field(description="The file name with an extension to upload.")
    content: str = Field(description="The content of the file to upload.")


class FileEnvelope(Envelope[FileDto]):
    response: FileDto = Field(description="The file information.")


@tool(description="Delete a file.", input=DeleteFileInput)
async def delete_file(ctx: ToolContext, args: DeleteFileInput) -> str:
    try:
        operations, _ = await ctx.client.files.delete_file(args.file_id, delete_after=False, immediately=False)
    except Exception as exc:
        raise RuntimeError("Deleting file.") from exc

    result = await ctx.resolver.resolve(*operations)
    if isinstance(result, Err):
        raise RuntimeError("Resolving delete file operations.") from result.error

    return "File deleted."


@tool(description="Get file information.", input=GetFileInfoInput, output=FileEnvelope)
async def get_file_info(ctx: ToolContext, args: GetFileInfoInput) -> Response:
    try:
        _, response = await ctx.client.files.get_file_info(args.file_id, args.filters.to_query())
    except Exception as exc:
        raise RuntimeError("Getting file info.") from exc
    return response


@tool(description="Update a file.", input=UpdateFileInput, output=FileEnvelope)
async def update_file(ctx: ToolContext, args: UpdateFileInput) -> Response:
    try:
        _, response = await ctx.client.files.update_file(args.file_id, title=args.title)
    except Exception as exc:
        raise RuntimeError("Updating file.") from exc
    return response


@tool(description="Copy to a folder.", input=CopyBatchItemsInput)
async def copy_batch_items(ctx: ToolContext, args: CopyBatchItemsInput) -> str:
    try:
        operations, _ = await ctx.client.files.copy_batch_items(
            folder_ids=args.folder_ids, file_ids=args.file_ids, dest_folder_id=args.dest_folder_id, delete_after=False
        )
    except Exception as exc:
        raise RuntimeError("Copying batch items.") from exc

    result = await ctx.resolver.resolve(*operations)
    if isinstance(result, Err):
        raise RuntimeError("Resolving copy batch items operations.") from result.error

    return "Batch items copied."


@tool(description="Move to a folder.", input=MoveBatchItemsInput)
async def move_batch_items(ctx: ToolContext, args: MoveBatchItemsInput) -> str:
    try:
        operations, _ = await ctx.client.files.move_batch_items(
            folder_ids=args.folder_ids, file_ids=args.file_ids, dest_folder_id=args.dest_folder_id, delete_after=False
        )
    except Exception as exc:
        raise RuntimeError("Moving batch items.") from exc

    result = await ctx.resolver.resolve(*operations)
    if isinstance(result, Err):
        raise RuntimeError("Resolving move batch items operations.") from result.error

    return "Batch items moved."


@tool(description="Download a file as text.", input=DownloadFileAsTextInput)
async def download_file_as_text(ctx: ToolContext, args: DownloadFileAsTextInput) -> str:
    try:
        info, _ = await ctx.client.files.get_file_info(args.file_id)
    except Exception as exc:
        raise RuntimeError("Getting file info.") from exc

    extension = await _text_extension(ctx, info)

    try:
        operations, _ = await ctx.client.files.bulk_download([{"key": args.file_id, "value": extension}])
    except Exception as exc:
        raise RuntimeError("Making bulk download.") from exc

    result = await ctx.resolver.resolve(*operations)
    if isinstance(result, Err):
        raise RuntimeError("Resolving bulk download operations.") from result.error

    resolved = result.value.operations
    if not resolved:
        raise RuntimeError("No resolved operations.")
    if len(resolved) > 1:
        raise RuntimeError(f"Expected 1 resolved operation, got {len(resolved)}.")

    url = resolved[0].url
    if url is None:
        raise RuntimeError("Resolved operation has no URL.")

    try:
        request = ctx.client.build_request("GET", url)
        request.headers["Accept"] = "text/plain"
    except Exception as exc:
        raise RuntimeError("Creating download request.") from exc

    try:
        response = await ctx.client.bare_send(request)
    except Exception as exc:
        raise RuntimeError("Downloading file.") from exc

    try:
        return response.text
    except Exception as exc:
        raise RuntimeError("Converting response to text.") from exc


@tool(description="Upload a file.", input=UploadFileInput)
async def upload_file(ctx: ToolContext, args: UploadFileInput) -> Response:
    content = args.content.encode("utf-8")

    try:
        session, _ = await ctx.client.files.create_upload_session(
            args.parent_id,
            file_name=args.filename,
            file_size=len(content),
            create_on=datetime.now(timezone.utc).isoformat(),
        )
    except Exception as exc:
        raise RuntimeError("Creating upload session.") from exc

    if session.id is None:
        raise RuntimeError("Upload session ID is not defined.")

    result = await ctx.uploader.upload(session.id, content)
    if isinstance(result, Err):
        raise RuntimeError("Uploading file.") from result.error

    _, response = result.value
    return response


async def _text_extension(ctx: ToolContext, info: FileDto) -> str:
    if not info.fileExst:
        raise RuntimeError("File extension is not defined.")

    if info.fileExst in TEXT_EXTENSIONS:
        return info.fileExst

    try:
        settings, _ = await ctx.client.files.get_files_settings()
    except Exception as exc:
        raise RuntimeError("Getting files settings.") from exc

    if settings.extsConvertible is None:
        raise RuntimeError("Convertible file extensions are not defined.")

    targets = settings.extsConvertible.get(info.fileExst)
    if not targets:
        raise RuntimeError(f"File extension {info.fileExst} is not convertible.")

    for target in targets:
        if target in TEXT_EXTENSIONS:
            return target

    raise RuntimeError(f"No convertible extension found for {info.fileExst}.")


FILES = toolset(
    "files",
    "Operations for working with files.",
    delete_file,
    get_file_info,
    update_file,
    copy_batch_items,
    move_batch_items,
    download_file_as_text,
    upload_file,
)


__all__ = ["FILES"]
