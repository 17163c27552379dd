# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Chunked uploads into a DocSpace upload session."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Any, Protocol

from .errors import UploadError, with_cause
from .result import Err, Ok, Result
from .utils import get_logger


if TYPE_CHECKING:
    from .client import Response


MAX_CHUNK_SIZE = 10 * 1024 * 1024
COMPLETED_STATUS = 201


class ChunkUploads(Protocol):
    async def upload_chunk(self, session_id: str, chunk: bytes) -> tuple[Any, Response]: ...


class _UploaderClient(Protocol):
    @property
    def files(self) -> ChunkUploads: ...


class Uploader:
    """Send content to an upload session one chunk at a time.

    Chunks go strictly in order because the session on the server side is
    stateful.  The server answers ``201 Created`` once the file is
    assembled; any upload that ends without that status is reported as
    incomplete.
    """

    def __init__(self, client: _UploaderClient, *, max_chunk_size: int = MAX_CHUNK_SIZE) -> None:
        self._client = client
        self.max_chunk_size = max_chunk_size
        self._logger = get_logger("docspace_mcp.uploader")

    async def upload(self, session_id: str, content: bytes) -> Result[tuple[Any, Response], UploadError]:
        chunks = math.ceil(len(content) / self.max_chunk_size)

        payload: Any = None
        response: Response | None = None
        done = False

        for index in range(chunks):
            chunk = content[index * self.max_chunk_size : (index + 1) * self.max_chunk_size]
            try:
                payload, response = await self._client.files.upload_chunk(session_id, chunk)
            except Exception as exc:
                return Err(with_cause(UploadError(f"Uploading chunk {index + 1} of {chunks}."), exc))

            self._logger.debug(
                "uploaded chunk %d of %d",
                index + 1,
                chunks,
                extra={"event": "uploader.chunk", "session": session_id, "status": response.status_code},
            )

            if response.status_code == COMPLETED_STATUS:
                done = True
                break

        if payload is None or response is None or not done:
            return Err(UploadError("Upload session not completed."))

        return Ok((payload, response))


__all__ = ["MAX_CHUNK_SIZE", "Uploader"]
