# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Poll DocSpace background operations until they settle.

Deletes, moves, copies, archives and bulk downloads answer immediately with
a list of operation descriptors and keep working in the background.  The
:class:`Resolver` polls ``api/2.0/files/fileops`` (which reports every
active operation, not only ours) until each tracked id reports an error or
completion, or until the attempt budget runs out.

Polling is bounded: ``limit`` status calls separated by ``delay`` seconds,
so the default budget is roughly two seconds.  Cancellation of the
surrounding task propagates out of the poll sleep unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

import anyio

from .client.models import Operation
from .errors import ResolverError, with_cause
from .result import Err, Ok, Result
from .utils import get_logger


if TYPE_CHECKING:
    from .client import Response


DEFAULT_LIMIT = 20
DEFAULT_DELAY = 0.1


class OperationStatuses(Protocol):
    async def get_operation_statuses(self) -> tuple[list[Operation], Response]: ...


class _ResolverClient(Protocol):
    @property
    def files(self) -> OperationStatuses: ...


@dataclass(slots=True)
class ResolverResponse:
    """Everything observed while polling.

    ``responses`` keeps every raw status reply in order; ``operations`` keeps
    the latest snapshot of each tracked operation, one per id, in the order
    the ids were first seen.
    """

    responses: list[Response] = field(default_factory=list)
    operations: list[Operation] = field(default_factory=list)

    def upsert(self, operation: Operation) -> None:
        for index, existing in enumerate(self.operations):
            if existing.id == operation.id:
                self.operations[index] = operation
                return
        self.operations.append(operation)


@dataclass(slots=True)
class _State:
    id: str | None
    error: str | None
    done: bool

    @property
    def unresolved(self) -> bool:
        return bool(self.error) or not self.done


class Resolver:
    """Reconcile fire-and-forget backend jobs into a single outcome."""

    def __init__(self, client: _ResolverClient, *, limit: int = DEFAULT_LIMIT, delay: float = DEFAULT_DELAY) -> None:
        self._client = client
        self.limit = limit
        self.delay = delay
        self._logger = get_logger("docspace_mcp.resolver")

    async def resolve(self, *operations: Operation) -> Result[ResolverResponse, ResolverError]:
        if not operations:
            return Err(ResolverError("No operations to sync.", response=ResolverResponse(), unresolved=[]))

        tracked = {op.id: _State(id=op.id, error=op.error, done=op.is_done) for op in operations if op.id is not None}

        response = ResolverResponse()
        failure: Exception | None = None
        attempts = self.limit

        while attempts > 0:
            try:
                current, raw = await self._client.files.get_operation_statuses()
            except Exception as exc:
                failure = with_cause(RuntimeError("Calling operation statuses callback."), exc)
                break

            response.responses.append(raw)

            for op in current:
                state = tracked.get(op.id) if op.id is not None else None
                if state is None:
                    continue
                state.error = op.error
                state.done = op.is_done
                response.upsert(op)

            self._logger.debug(
                "polled operation statuses",
                extra={
                    "event": "resolver.poll",
                    "attempt": self.limit - attempts + 1,
                    "pending": sum(1 for state in tracked.values() if not state.done),
                },
            )

            if all(state.done for state in tracked.values()):
                break

            attempts -= 1
            if attempts > 0:
                await anyio.sleep(self.delay)

        unresolved = [state.id for state in tracked.values() if state.unresolved]

        if failure is not None:
            error = ResolverError("Resolving operations.", response=response, unresolved=unresolved)
            return Err(with_cause(error, failure))

        if unresolved:
            self._logger.warning(
                "operations are unresolved",
                extra={"event": "resolver.unresolved", "unresolved": unresolved},
            )
            message = f"{len(unresolved)} out of {len(operations)} operations are unresolved."
            return Err(ResolverError(message, response=response, unresolved=unresolved))

        return Ok(response)


__all__ = ["Resolver", "ResolverResponse"]
