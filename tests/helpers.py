# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Shared test helpers: fake DocSpace collaborators and response builders."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from types import SimpleNamespace
from typing import Any

import anyio
import anyio.lowlevel
import httpx
import orjson

from docspace_mcp.client import Operation, Response


def make_response(
    status_code: int = 200,
    *,
    json: Any = None,
    text: str | None = None,
    content_type: str | None = "application/json",
    url: str = "https://portal.example.com/api/2.0/test",
) -> Response:
    """Build a :class:`Response` without touching the network."""
    headers = {"content-type": content_type} if content_type else {}
    if json is not None:
        content = orjson.dumps(json)
    else:
        content = (text or "").encode()
    raw = httpx.Response(status_code, headers=headers, content=content, request=httpx.Request("GET", url))
    return Response(raw)


def ops(*items: dict[str, Any]) -> list[Operation]:
    return [Operation.model_validate(item) for item in items]


class FakeStatuses:
    """``files.get_operation_statuses`` replaying prepared batches.

    The last batch repeats once the script runs out.
    """

    def __init__(self, batches: Sequence[Iterable[dict[str, Any]]], *, error: Exception | None = None) -> None:
        self.batches = [ops(*batch) for batch in batches]
        self.error = error
        self.calls = 0

    async def get_operation_statuses(self) -> tuple[list[Operation], Response]:
        self.calls += 1
        await anyio.lowlevel.checkpoint()
        if self.error is not None:
            raise self.error
        index = min(self.calls - 1, len(self.batches) - 1)
        return self.batches[index], make_response(json={"response": []})


class FakeChunks:
    """``files.upload_chunk`` answering with prepared status codes."""

    def __init__(self, statuses: Sequence[int], *, fail_at: int | None = None) -> None:
        self.statuses = list(statuses)
        self.fail_at = fail_at
        self.chunks: list[bytes] = []

    async def upload_chunk(self, session_id: str, chunk: bytes) -> tuple[Any, Response]:
        index = len(self.chunks)
        self.chunks.append(chunk)
        await anyio.lowlevel.checkpoint()
        if self.fail_at is not None and index == self.fail_at:
            raise RuntimeError("connection reset")
        status = self.statuses[min(index, len(self.statuses) - 1)]
        payload = {"success": True, "data": {"id": 1}}
        return payload["data"], make_response(status, json={"response": payload})


def fake_client(files: Any) -> SimpleNamespace:
    return SimpleNamespace(files=files)


class RecordingTransport:
    """Closable stand-in for a transport session."""

    def __init__(self, *, error: Exception | None = None) -> None:
        self.error = error
        self.closed = 0

    async def close(self) -> None:
        self.closed += 1
        if self.error is not None:
            raise self.error


class FakeClock:
    def __init__(self, start: float = 1_000.0) -> None:
        self.value = start

    def now(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds
