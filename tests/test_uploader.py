# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

from __future__ import annotations

import pytest

from docspace_mcp.errors import UploadError, format_error
from docspace_mcp.result import Err, Ok
from docspace_mcp.uploader import Uploader
from tests.helpers import FakeChunks, fake_client


@pytest.mark.anyio
async def test_splits_content_into_ordered_chunks() -> None:
    chunks = FakeChunks([200, 200, 201])
    uploader = Uploader(fake_client(chunks), max_chunk_size=4)

    result = await uploader.upload("session", b"0123456789")

    assert isinstance(result, Ok)
    assert chunks.chunks == [b"0123", b"4567", b"89"]
    payload, response = result.value
    assert payload == {"id": 1}
    assert response.status_code == 201


@pytest.mark.anyio
async def test_missing_completion_status_fails_after_all_chunks() -> None:
    chunks = FakeChunks([200])
    uploader = Uploader(fake_client(chunks), max_chunk_size=4)

    result = await uploader.upload("session", b"x" * 10)

    assert isinstance(result, Err)
    assert isinstance(result.error, UploadError)
    assert len(chunks.chunks) == 3
    assert str(result.error) == "Upload session not completed."


@pytest.mark.anyio
async def test_stops_at_first_completion_status() -> None:
    chunks = FakeChunks([201])
    uploader = Uploader(fake_client(chunks), max_chunk_size=4)

    result = await uploader.upload("session", b"x" * 12)

    assert isinstance(result, Ok)
    assert len(chunks.chunks) == 1


@pytest.mark.anyio
async def test_chunk_failure_names_the_chunk() -> None:
    chunks = FakeChunks([200, 200, 201], fail_at=1)
    uploader = Uploader(fake_client(chunks), max_chunk_size=4)

    result = await uploader.upload("session", b"x" * 12)

    assert isinstance(result, Err)
    assert len(chunks.chunks) == 2
    assert format_error(result.error).splitlines() == ["Uploading chunk 2 of 3.", "\tconnection reset"]


@pytest.mark.anyio
async def test_empty_content_is_not_completed() -> None:
    chunks = FakeChunks([201])
    uploader = Uploader(fake_client(chunks))

    result = await uploader.upload("session", b"")

    assert isinstance(result, Err)
    assert chunks.chunks == []
