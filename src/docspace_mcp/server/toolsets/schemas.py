# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Shared input and output shapes for the DocSpace toolsets.

Numeric enums carry their meaning in the field description
(``"<text>\\n\\n<value> - <meaning>"``) because JSON Schema has no place for
per-value labels that every client renders.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Annotated, Any, Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ...client.models import RoomType, SuccessEnvelope
from ...utils.schema import JsonSchema


_T = TypeVar("_T")


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

ROOM_TYPES: dict[int, str] = {
    1: (
        "Form Filling Room. Upload PDF forms into the room. Invite members and guests to fill out a PDF form. "
        "Review completed forms and analyze data automatically collected in a spreadsheet."
    ),
    2: "Collaboration room. Collaborate on one or multiple documents with your team.",
    5: "Custom room. Apply your own settings to use this room for any custom purpose.",
    6: (
        "Public room. Share documents for viewing, editing, commenting, or reviewing without registration. "
        "You can also embed this room into any web interface."
    ),
    8: (
        "Virtual Data Room. Use VDR for advanced file security and transparency. Set watermarks, automatically "
        "index and track all content, restrict downloading and copying."
    ),
}

ACCESS_LEVELS: dict[int, str] = {
    0: "None. No access to the room.",
    2: "Viewer. File viewing.",
    5: "Reviewer. Operations with existing files: viewing, reviewing, commenting.",
    6: "Commenter. Operations with existing files: viewing, commenting.",
    7: (
        "Form filler. Form fillers can fill out forms and view only their completed/started forms within the "
        "Complete and In Process folders."
    ),
    9: (
        "Room manager (Paid). Room managers can manage the assigned rooms, invite new users and assign roles "
        "below their level."
    ),
    10: "Editor. Operations with existing files: viewing, editing, form filling, reviewing, commenting.",
    11: (
        "Content creator. Content creators can create and edit files in the room, but can't manage users, "
        "or access settings."
    ),
}

ROOM_ACCESS_LEVELS: dict[int, tuple[int, ...]] = {
    1: (7, 9, 11),
    2: (2, 9, 10, 11),
    5: (2, 5, 6, 9, 10, 11),
    6: (9, 11),
    8: (2, 7, 9, 10, 11),
}

FILTER_TYPES: dict[int, str] = {
    0: "None",
    1: "Files only",
    2: "Folders only",
    3: "Documents only",
    4: "Presentations only",
    5: "Spreadsheets only",
    7: "Images only",
    8: "By user",
    9: "By department",
    10: "Archive only",
    11: "By extension",
    12: "Media only",
    13: "Filling forms rooms",
    14: "Editing rooms",
    17: "Custom rooms",
    20: "Public rooms",
    22: "Pdf",
    23: "Pdf form",
    24: "Virtual data rooms",
}

SHARE_FILTER_TYPES: dict[int, str] = {
    0: "User or group",
    1: "Invitation link",
    2: "External link",
    4: "Additional external link",
    8: "Primary external link",
    16: "User",
    32: "Group",
}

SORT_ORDERS: dict[int, str] = {0: "Ascending order", 1: "Descending order"}

AccessLevel = Literal[0, 2, 5, 6, 7, 9, 10, 11]
FilterType = Literal[0, 1, 2, 3, 4, 5, 7, 8, 9, 10, 11, 12, 13, 14, 17, 20, 22, 23, 24]
ShareFilterType = Literal[0, 1, 2, 4, 8, 16, 32]
SortOrder = Literal[0, 1]
ApplyFilterOption = Literal["All", "Files", "Folders"]
SearchArea = Literal["Active", "Archive", "Any", "RecentByLinks", "Template"]


def described(description: str, options: Mapping[Any, str]) -> str:
    """Append ``"<value> - <meaning>"`` lines to ``description``."""
    lines = "\n".join(f"{value} - {meaning}" for value, meaning in options.items())
    if description and lines:
        return f"{description}\n\n{lines}"
    return description or lines


def literal_union_schema(options: Mapping[int, str], values: Iterable[int] | None = None) -> JsonSchema:
    """Describe a set of numeric constants, one branch per value."""
    selected = list(options) if values is None else list(values)
    return {"anyOf": [{"type": "number", "const": value, "description": options[value]} for value in selected]}


# ---------------------------------------------------------------------------
# Response field selectors
# ---------------------------------------------------------------------------


def _prefixed(prefix: str, names: Iterable[str]) -> tuple[str, ...]:
    return tuple(f"{prefix}.{name}" for name in names)


EMPLOYEE_FIELDS = ("id", "displayName", "isAnonim")

FILE_ENTRY_FIELDS = (
    "id",
    "rootFolderId",
    "canShare",
    "security",
    "title",
    "access",
    "shared",
    "created.utcTime",
    *_prefixed("createdBy", EMPLOYEE_FIELDS),
    "fileEntryType",
)

FILE_FIELDS = (
    *FILE_ENTRY_FIELDS,
    "folderId",
    "fileType",
    "fileExst",
    "comment",
    "encrypted",
    "locked",
)

FOLDER_FIELDS = (
    *FILE_ENTRY_FIELDS,
    "parentId",
    "filesCount",
    "foldersCount",
    "isShareable",
    "isFavorite",
    "tags",
    "roomType",
    "private",
    "type",
    "inRoom",
)

FOLDER_CONTENT_FIELDS = (
    *_prefixed("files", FILE_FIELDS),
    *_prefixed("folders", FOLDER_FIELDS),
    *_prefixed("current", FOLDER_FIELDS),
    "startIndex",
    "count",
    "total",
)

FILE_SHARE_FIELDS = ("access", "sharedTo", "isLocked", "isOwner", "canEditAccess", "subjectType")

ROOM_SECURITY_FIELDS = (*_prefixed("members", FILE_SHARE_FIELDS), "warning", "error")

EMPLOYEE_FULL_FIELDS = (
    *EMPLOYEE_FIELDS,
    "email",
    "birthday.utcTime",
    "status",
    "department",
    "isAdmin",
    "isRoomAdmin",
    "isOwner",
    "isVisitor",
    "isCollaborator",
)

FileField = Literal[FILE_FIELDS]  # type: ignore[valid-type]
FolderField = Literal[FOLDER_FIELDS]  # type: ignore[valid-type]
FolderContentField = Literal[FOLDER_CONTENT_FIELDS]  # type: ignore[valid-type]
RoomSecurityField = Literal[ROOM_SECURITY_FIELDS]  # type: ignore[valid-type]
EmployeeFullField = Literal[EMPLOYEE_FULL_FIELDS]  # type: ignore[valid-type]

FIELDS_DESCRIPTION = "The fields to include in the response."


# ---------------------------------------------------------------------------
# Base models
# ---------------------------------------------------------------------------


class ToolInput(BaseModel):
    """Tool arguments use camelCase on the wire and snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Filters(ToolInput):
    """Query parameters that shape a DocSpace response."""

    def to_query(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class FileFilters(Filters):
    fields: list[FileField] = Field(description=FIELDS_DESCRIPTION)


class FolderFilters(Filters):
    fields: list[FolderField] = Field(description=FIELDS_DESCRIPTION)


class RoomSecurityFilters(Filters):
    fields: list[RoomSecurityField] = Field(description=FIELDS_DESCRIPTION)


Count = Annotated[int, Field(ge=1, le=50)]
SortOrderField = Annotated[
    SortOrder | None, Field(description=described("The order in which the results are sorted.", SORT_ORDERS))
]


class FolderContentFilters(Filters):
    """Filters of ``GET api/2.0/files/{folderId}``."""

    user_id_or_group_id: str | None = Field(
        default=None, description="The user or group ID.", json_schema_extra={"format": "uuid"}
    )
    filter_type: FilterType | None = Field(default=None, description=described("The filter type.", FILTER_TYPES))
    room_id: int | None = Field(default=None, description="The room ID.")
    exclude_subject: bool | None = Field(
        default=None, description="Specifies whether to exclude search by user or group ID."
    )
    apply_filter_option: ApplyFilterOption | None = Field(
        default=None,
        description="Specifies whether to return only files, only folders or all elements from the specified folder.",
    )
    extension: str | None = Field(
        default=None, description="Specifies whether to search for the specific file extension."
    )
    search_area: SearchArea | None = Field(default=None, description="The search area.")
    count: Count = Field(default=30, description="The maximum number of items to retrieve in the request.")
    start_index: int | None = Field(
        default=None, description="The zero-based index of the first item to retrieve in a paginated request."
    )
    sort_by: str | None = Field(
        default=None, description="Specifies the property used for sorting the folder request results."
    )
    sort_order: SortOrderField = None
    filter_value: str | None = Field(
        default=None, description="The text value used as a filter parameter for folder queries."
    )
    fields: list[FolderContentField] = Field(description=FIELDS_DESCRIPTION)


class MyFolderFilters(Filters):
    """Filters of ``GET api/2.0/files/@my``."""

    user_id_or_group_id: str | None = Field(
        default=None, description="The user or group ID.", json_schema_extra={"format": "uuid"}
    )
    filter_type: FilterType | None = Field(default=None, description=described("The filter type.", FILTER_TYPES))
    apply_filter_option: ApplyFilterOption | None = Field(
        default=None, description="Specifies whether to return only files, only folders or all elements."
    )
    count: Count = Field(default=30, description="The maximum number of items to retrieve in the response.")
    start_index: int | None = Field(default=None, description="The starting position of the items to be retrieved.")
    sort_by: str | None = Field(
        default=None, description="The property used to specify the sorting criteria for folder contents."
    )
    sort_order: SortOrderField = None
    filter_value: str | None = Field(
        default=None, description="The text used for filtering or searching folder contents."
    )
    fields: list[FolderContentField] = Field(description=FIELDS_DESCRIPTION)


class RoomSecurityInfoFilters(Filters):
    """Filters of ``GET api/2.0/files/rooms/{id}/share``."""

    filter_type: ShareFilterType | None = Field(
        default=None, description=described("The filter type of the access rights.", SHARE_FILTER_TYPES)
    )
    count: Count = Field(default=30, description="The number of items to be retrieved or processed.")
    start_index: int | None = Field(
        default=None, description="The starting index of the items to retrieve in a paginated request."
    )
    filter_value: str | None = Field(
        default=None, description="The text filter value used for filtering room security information."
    )
    fields: list[RoomSecurityField] = Field(description=FIELDS_DESCRIPTION)


class RoomsFolderFilters(Filters):
    """Filters of ``GET api/2.0/files/rooms``."""

    type: list[RoomType] | None = Field(default=None, description=described("The filter by room type.", ROOM_TYPES))
    subject_id: str | None = Field(default=None, description="The filter by user ID.")
    search_area: SearchArea | None = Field(
        default=None, description="The room search area (Active, Archive, Any, Recent by links)."
    )
    without_tags: bool | None = Field(default=None, description="Specifies whether to search by tags or not.")
    tags: str | None = Field(default=None, description="The tags in the serialized format.")
    exclude_subject: bool | None = Field(
        default=None, description="Specifies whether to exclude search by user or group ID."
    )
    count: Count = Field(default=30, description="Specifies the maximum number of items to retrieve.")
    start_index: int | None = Field(
        default=None, description="The index from which to start retrieving the room content."
    )
    sort_by: str | None = Field(
        default=None, description="Specifies the field by which the room content should be sorted."
    )
    sort_order: SortOrderField = None
    filter_value: str | None = Field(
        default=None, description="The text used for filtering or searching folder contents."
    )
    fields: list[FolderContentField] = Field(description=FIELDS_DESCRIPTION)


class PeopleFilters(Filters):
    """Filters of ``GET api/2.0/people``."""

    count: Count = Field(default=30, description="The maximum number of items to be retrieved in the response.")
    start_index: int | None = Field(
        default=None, description="The zero-based index of the first item to be retrieved in a filtered result set."
    )
    filter_by: str | None = Field(default=None, description="Specifies the filter criteria for user-related queries.")
    sort_by: str | None = Field(
        default=None, description="Specifies the property or field name by which the results should be sorted."
    )
    sort_order: SortOrderField = None
    filter_separator: str | None = Field(
        default=None,
        description="The character or string used to separate multiple filter values in a filtering query.",
    )
    filter_value: str | None = Field(
        default=None, description="The text value used as an additional filter criterion for profiles retrieval."
    )
    fields: list[EmployeeFullField] = Field(description=FIELDS_DESCRIPTION)


# ---------------------------------------------------------------------------
# Output envelopes
# ---------------------------------------------------------------------------


class Envelope(SuccessEnvelope, Generic[_T]):
    """A success envelope whose ``response`` has a known shape."""

    response: _T


__all__ = [
    "ACCESS_LEVELS",
    "AccessLevel",
    "Envelope",
    "FileFilters",
    "Filters",
    "FolderContentFilters",
    "FolderFilters",
    "MyFolderFilters",
    "PeopleFilters",
    "ROOM_ACCESS_LEVELS",
    "ROOM_TYPES",
    "RoomSecurityFilters",
    "RoomSecurityInfoFilters",
    "RoomsFolderFilters",
    "ToolInput",
    "described",
    "literal_union_schema",
]
