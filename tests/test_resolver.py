# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

from __future__ import annotations

import pytest

from docspace_mcp.errors import ResolverError, format_error
from docspace_mcp.resolver import Resolver
from docspace_mcp.result import Err, Ok
from tests.helpers import FakeStatuses, fake_client, ops


@pytest.mark.anyio
async def test_resolves_after_single_poll_when_everything_is_done() -> None:
    statuses = FakeStatuses([[{"id": "a", "progress": 100}, {"id": "b", "finished": True}]])
    resolver = Resolver(fake_client(statuses), delay=0)

    result = await resolver.resolve(*ops({"id": "a", "progress": 10}, {"id": "b", "progress": 0}))

    assert isinstance(result, Ok)
    assert statuses.calls == 1
    assert [op.id for op in result.value.operations] == ["a", "b"]
    assert len(result.value.responses) == 1


@pytest.mark.anyio
async def test_gives_up_after_limit_polls() -> None:
    statuses = FakeStatuses([[{"id": "a", "progress": 50}, {"id": "b", "progress": 50}]])
    resolver = Resolver(fake_client(statuses), limit=4, delay=0)

    result = await resolver.resolve(*ops({"id": "a"}, {"id": "b"}))

    assert isinstance(result, Err)
    assert isinstance(result.error, ResolverError)
    assert statuses.calls == 4
    assert result.error.unresolved == ["a", "b"]
    assert str(result.error) == "2 out of 2 operations are unresolved."
    assert len(result.error.response.responses) == 4


@pytest.mark.anyio
async def test_keeps_latest_snapshot_per_operation() -> None:
    statuses = FakeStatuses(
        [
            [{"id": "a", "progress": 20}, {"id": "b", "progress": 40}],
            [{"id": "b", "progress": 100}, {"id": "a", "progress": 100}, {"id": "other", "progress": 5}],
        ]
    )
    resolver = Resolver(fake_client(statuses), delay=0)

    result = await resolver.resolve(*ops({"id": "a"}, {"id": "b"}))

    assert isinstance(result, Ok)
    operations = result.value.operations
    assert [op.id for op in operations] == ["a", "b"]
    assert [op.progress for op in operations] == [100, 100]


@pytest.mark.anyio
async def test_empty_input_fails_without_polling() -> None:
    statuses = FakeStatuses([[]])
    resolver = Resolver(fake_client(statuses))

    result = await resolver.resolve()

    assert isinstance(result, Err)
    assert statuses.calls == 0
    assert result.error.unresolved == []


@pytest.mark.anyio
async def test_operation_errors_count_as_unresolved() -> None:
    statuses = FakeStatuses([[{"id": "a", "progress": 100}, {"id": "b", "error": "Access denied"}]])
    resolver = Resolver(fake_client(statuses), delay=0)

    result = await resolver.resolve(*ops({"id": "a"}, {"id": "b"}))

    assert isinstance(result, Err)
    assert statuses.calls == 1
    assert result.error.unresolved == ["b"]
    assert "1 out of 2 operations are unresolved." in format_error(result.error)


@pytest.mark.anyio
async def test_status_call_failure_is_wrapped_with_partial_progress() -> None:
    statuses = FakeStatuses([[]], error=RuntimeError("boom"))
    resolver = Resolver(fake_client(statuses), delay=0)

    result = await resolver.resolve(*ops({"id": "a"}))

    assert isinstance(result, Err)
    assert result.error.unresolved == ["a"]
    assert format_error(result.error).splitlines() == [
        "Resolving operations.",
        "\tCalling operation statuses callback.",
        "\t\tboom",
    ]


@pytest.mark.anyio
async def test_operations_without_id_are_not_tracked() -> None:
    statuses = FakeStatuses([[{"id": "a", "progress": 100}]])
    resolver = Resolver(fake_client(statuses), delay=0)

    result = await resolver.resolve(*ops({"id": "a"}, {"progress": 0}))

    assert isinstance(result, Ok)
    assert statuses.calls == 1
