# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Pydantic models for DocSpace API payloads.

Only the fields this package reads are declared; everything else the
server sends is preserved through ``extra="allow"`` so raw responses can be
handed to clients unchanged.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


RoomType = Literal[1, 2, 5, 6, 8]
FileType = Literal[0, 1, 2, 3, 4, 5, 6, 7, 10]
FileShare = Literal[0, 1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 11]


class DocSpaceModel(BaseModel):
    model_config = ConfigDict(extra="allow")


class Operation(DocSpaceModel):
    """A background job reported by ``api/2.0/files/fileops``."""

    id: str | None = None
    progress: float | None = None
    error: str | None = None
    finished: bool | None = None
    url: str | None = None

    @property
    def has_error(self) -> bool:
        return bool(self.error)

    @property
    def is_finished(self) -> bool:
        return self.progress == 100 or self.finished is True

    @property
    def is_done(self) -> bool:
        return self.has_error or self.is_finished


class FileDto(DocSpaceModel):
    id: int | str | None = None
    title: str | None = None
    fileExst: str | None = None
    fileType: FileType | None = None


class FolderDto(DocSpaceModel):
    id: int | str | None = None
    title: str | None = None
    roomType: RoomType | None = None


class FolderContentDto(DocSpaceModel):
    files: list[FileDto] | None = None
    folders: list[FolderDto] | None = None
    current: FolderDto | None = None
    startIndex: int | None = None
    count: int | None = None
    total: int | None = None


class EmployeeDto(DocSpaceModel):
    id: str | None = None
    displayName: str | None = None
    isAnonim: bool | None = None


class FileShareDto(DocSpaceModel):
    access: FileShare | None = None
    sharedTo: dict[str, Any] | None = None
    isLocked: bool | None = None
    isOwner: bool | None = None
    canEditAccess: bool | None = None
    subjectType: int | None = None


class RoomSecurityDto(DocSpaceModel):
    members: list[FileShareDto] | None = None
    warning: str | None = None
    error: int | str | None = None


class FilesSettingsDto(DocSpaceModel):
    extsConvertible: dict[str, list[str]] | None = None


class UploadSessionData(DocSpaceModel):
    id: str | None = None


class IntrospectionResponse(BaseModel):
    """RFC 7662 token introspection result."""

    active: bool
    scope: str | None = None
    client_id: str | None = None
    exp: int | None = None


class TokenPayload(BaseModel):
    aud: str


class Link(BaseModel):
    href: str
    action: str


class SuccessEnvelope(BaseModel):
    """The ``{"response": ..., "status": ...}`` wrapper around every reply."""

    status: int
    statusCode: int
    response: Any = None
    count: int | None = None
    total: int | None = None
    links: list[Link] = Field(default_factory=list)


__all__ = [
    "DocSpaceModel",
    "EmployeeDto",
    "FileDto",
    "FileShare",
    "FileShareDto",
    "FileType",
    "FilesSettingsDto",
    "FolderContentDto",
    "FolderDto",
    "IntrospectionResponse",
    "Link",
    "Operation",
    "RoomSecurityDto",
    "RoomType",
    "SuccessEnvelope",
    "TokenPayload",
    "UploadSessionData",
]
