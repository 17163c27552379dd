# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Two-variant result type returned by the resolver, uploader and registry.

Expected failures travel as :class:`Err` values instead of exceptions so the
caller decides whether they are fatal.  Match with ``isinstance``::

    result = registry.get(session_id)
    if isinstance(result, Err):
        ...
    session = result.value
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union


T = TypeVar("T")
E = TypeVar("E", bound=BaseException)


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    error: E

    @property
    def ok(self) -> bool:
        return False


Result = Union[Ok[T], Err[E]]


__all__ = ["Err", "Ok", "Result"]
