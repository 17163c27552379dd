# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Endpoints of the DocSpace Files API (files, folders, rooms, operations)."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from .base import Response, parse_as
from .models import (
    FileDto,
    FilesSettingsDto,
    FolderContentDto,
    FolderDto,
    Operation,
    RoomSecurityDto,
    UploadSessionData,
)


if TYPE_CHECKING:
    from .base import Client


Filters = Mapping[str, Any] | None


class FilesService:
    def __init__(self, client: Client) -> None:
        self._client = client

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    async def delete_file(
        self, file_id: int, *, delete_after: bool = False, immediately: bool = False
    ) -> tuple[list[Operation], Response]:
        body = {"deleteAfter": delete_after, "immediately": immediately}
        payload, response = await self._client.request("DELETE", f"api/2.0/files/file/{file_id}", body=body)
        return parse_as(list[Operation], payload), response

    async def get_file_info(self, file_id: int, filters: Filters = None) -> tuple[FileDto, Response]:
        payload, response = await self._client.request("GET", f"api/2.0/files/file/{file_id}", query=filters)
        return parse_as(FileDto, payload), response

    async def update_file(self, file_id: int, *, title: str) -> tuple[FileDto, Response]:
        payload, response = await self._client.request("PUT", f"api/2.0/files/file/{file_id}", body={"title": title})
        return parse_as(FileDto, payload), response

    # ------------------------------------------------------------------
    # Folders
    # ------------------------------------------------------------------

    async def create_folder(self, parent_id: int, *, title: str, filters: Filters = None) -> tuple[FolderDto, Response]:
        payload, response = await self._client.request(
            "POST", f"api/2.0/files/folder/{parent_id}", query=filters, body={"title": title}
        )
        return parse_as(FolderDto, payload), response

    async def delete_folder(
        self, folder_id: int, *, delete_after: bool = False, immediately: bool = False
    ) -> tuple[list[Operation], Response]:
        body = {"deleteAfter": delete_after, "immediately": immediately}
        payload, response = await self._client.request("DELETE", f"api/2.0/files/folder/{folder_id}", body=body)
        return parse_as(list[Operation], payload), response

    async def get_folder(self, folder_id: int, filters: Filters = None) -> tuple[FolderContentDto, Response]:
        payload, response = await self._client.request("GET", f"api/2.0/files/{folder_id}", query=filters)
        return parse_as(FolderContentDto, payload), response

    async def get_folder_info(self, folder_id: int, filters: Filters = None) -> tuple[FolderDto, Response]:
        payload, response = await self._client.request("GET", f"api/2.0/files/folder/{folder_id}", query=filters)
        return parse_as(FolderDto, payload), response

    async def rename_folder(self, folder_id: int, *, title: str, filters: Filters = None) -> tuple[FolderDto, Response]:
        payload, response = await self._client.request(
            "PUT", f"api/2.0/files/folder/{folder_id}", query=filters, body={"title": title}
        )
        return parse_as(FolderDto, payload), response

    async def get_my_folder(self, filters: Filters = None) -> tuple[FolderContentDto, Response]:
        payload, response = await self._client.request("GET", "api/2.0/files/@my", query=filters)
        return parse_as(FolderContentDto, payload), response

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def bulk_download(self, file_convert_ids: Sequence[Mapping[str, Any]]) -> tuple[list[Operation], Response]:
        body = {"fileConvertIds": [dict(item) for item in file_convert_ids]}
        payload, response = await self._client.request("PUT", "api/2.0/files/fileops/bulkdownload", body=body)
        return parse_as(list[Operation], payload), response

    async def copy_batch_items(
        self,
        *,
        folder_ids: Sequence[Any] | None = None,
        file_ids: Sequence[Any] | None = None,
        dest_folder_id: Any = None,
        delete_after: bool = False,
    ) -> tuple[list[Operation], Response]:
        body = _batch_body(folder_ids, file_ids, dest_folder_id, delete_after)
        payload, response = await self._client.request("PUT", "api/2.0/files/fileops/copy", body=body)
        return parse_as(list[Operation], payload), response

    async def move_batch_items(
        self,
        *,
        folder_ids: Sequence[Any] | None = None,
        file_ids: Sequence[Any] | None = None,
        dest_folder_id: Any = None,
        delete_after: bool = False,
    ) -> tuple[list[Operation], Response]:
        body = _batch_body(folder_ids, file_ids, dest_folder_id, delete_after)
        payload, response = await self._client.request("PUT", "api/2.0/files/fileops/move", body=body)
        return parse_as(list[Operation], payload), response

    async def get_operation_statuses(self) -> tuple[list[Operation], Response]:
        payload, response = await self._client.request("GET", "api/2.0/files/fileops")
        return parse_as(list[Operation], payload), response

    # ------------------------------------------------------------------
    # Settings and uploads
    # ------------------------------------------------------------------

    async def get_files_settings(self) -> tuple[FilesSettingsDto, Response]:
        payload, response = await self._client.request("GET", "api/2.0/files/settings")
        return parse_as(FilesSettingsDto, payload), response

    async def create_upload_session(
        self, folder_id: int, *, file_name: str, file_size: int, create_on: str
    ) -> tuple[UploadSessionData, Response]:
        body = {"fileName": file_name, "fileSize": file_size, "createOn": create_on}
        payload, response = await self._client.request(
            "POST", f"api/2.0/files/{folder_id}/upload/create_session", body=body
        )
        return parse_as(UploadSessionData, payload), response

    async def upload_chunk(self, session_id: str, chunk: bytes) -> tuple[Any, Response]:
        url = self._client.create_url(f"ChunkedUploader.ashx?uid={session_id}")
        request = self._client.build_request("POST", url, files={"file": ("blob", chunk, "text/plain")})
        return await self._client.send(request)

    # ------------------------------------------------------------------
    # Rooms
    # ------------------------------------------------------------------

    async def create_room(
        self, *, title: str, room_type: int, filters: Filters = None
    ) -> tuple[FolderContentDto, Response]:
        body = {"title": title, "roomType": room_type}
        payload, response = await self._client.request("POST", "api/2.0/files/rooms", query=filters, body=body)
        return parse_as(FolderContentDto, payload), response

    async def get_room_info(self, room_id: int, filters: Filters = None) -> tuple[FolderDto, Response]:
        payload, response = await self._client.request("GET", f"api/2.0/files/rooms/{room_id}", query=filters)
        return parse_as(FolderDto, payload), response

    async def update_room(
        self, room_id: int, *, title: str | None = None, filters: Filters = None
    ) -> tuple[FolderDto, Response]:
        body = {"title": title} if title is not None else {}
        payload, response = await self._client.request(
            "PUT", f"api/2.0/files/rooms/{room_id}", query=filters, body=body
        )
        return parse_as(FolderDto, payload), response

    async def archive_room(self, room_id: int) -> tuple[Operation, Response]:
        payload, response = await self._client.request("PUT", f"api/2.0/files/rooms/{room_id}/archive", body={})
        return parse_as(Operation, payload), response

    async def set_room_security(
        self,
        room_id: int,
        *,
        invitations: Sequence[Mapping[str, Any]],
        notify: bool | None = None,
        message: str | None = None,
        culture: str | None = None,
        filters: Filters = None,
    ) -> tuple[RoomSecurityDto, Response]:
        body: dict[str, Any] = {"invitations": [dict(item) for item in invitations]}
        for key, value in (("notify", notify), ("message", message), ("culture", culture)):
            if value is not None:
                body[key] = value
        payload, response = await self._client.request(
            "PUT", f"api/2.0/files/rooms/{room_id}/share", query=filters, body=body
        )
        return parse_as(RoomSecurityDto, payload), response

    async def get_room_security_info(self, room_id: int, filters: Filters = None) -> tuple[Any, Response]:
        return await self._client.request("GET", f"api/2.0/files/rooms/{room_id}/share", query=filters)

    async def get_rooms_folder(self, filters: Filters = None) -> tuple[FolderContentDto, Response]:
        payload, response = await self._client.request("GET", "api/2.0/files/rooms", query=filters)
        return parse_as(FolderContentDto, payload), response


def _batch_body(
    folder_ids: Sequence[Any] | None, file_ids: Sequence[Any] | None, dest_folder_id: Any, delete_after: bool
) -> dict[str, Any]:
    body: dict[str, Any] = {"deleteAfter": delete_after}
    if folder_ids is not None:
        body["folderIds"] = list(folder_ids)
    if file_ids is not None:
        body["fileIds"] = list(file_ids)
    if dest_folder_id is not None:
        body["destFolderId"] = dest_folder_id
    return body


__all__ = ["FilesService"]
