# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Error types shared by the resolver, uploader, registry and router.

Context is attached by chaining (``raise Outer(...) from inner`` or
:func:`with_cause`), and :func:`format_error` flattens the chain into the
tab-indented trace that clients receive as tool-result text::

    Resolving delete file operations.
        1 out of 1 operations are unresolved.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import ValidationError


if TYPE_CHECKING:
    from .resolver import ResolverResponse


DEFAULT_ERRORS_MESSAGE = "Multiple errors"

_E = TypeVar("_E", bound=BaseException)


class Errors(ExceptionGroup):
    """Aggregate of independent failures, none of which is dropped."""

    def __new__(cls, errors: Iterable[Exception], message: str = DEFAULT_ERRORS_MESSAGE) -> Errors:
        return super().__new__(cls, message, list(errors))

    def __init__(self, errors: Iterable[Exception], message: str = DEFAULT_ERRORS_MESSAGE) -> None:
        super().__init__(message, list(self.exceptions))

    def derive(self, excs: Sequence[Exception]) -> Errors:
        return Errors(excs, self.message)


class AbortedError(Exception):
    """The operation stopped because its owner asked it to."""

    def __init__(self, message: str = "Aborted") -> None:
        super().__init__(message)


class ResolverError(Exception):
    """Operations did not settle; carries the partial progress."""

    def __init__(self, message: str, *, response: ResolverResponse, unresolved: list[str]) -> None:
        super().__init__(message)
        self.response = response
        self.unresolved = unresolved


class SessionError(Exception):
    """Base class for session registry failures."""


class SessionNotFoundError(SessionError):
    pass


class SessionExpiredError(SessionError):
    pass


class UploadError(Exception):
    pass


class RoutingError(Exception):
    pass


class InputError(Exception):
    """Tool arguments failed validation."""


class MessageError(Exception):
    """Error whose string form is the whole formatted chain.

    Used for plain-text HTTP error bodies.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return format_error(self)


def with_cause(err: _E, cause: BaseException | None) -> _E:
    """Attach ``cause`` to ``err`` and return ``err``."""
    err.__cause__ = cause
    return err


def is_aborted(err: BaseException | None) -> bool:
    """Return ``True`` when cancellation appears anywhere in the chain."""
    if err is None:
        return False
    if isinstance(err, (AbortedError, asyncio.CancelledError)):
        return True
    if isinstance(err, BaseExceptionGroup):
        if any(is_aborted(member) for member in err.exceptions):
            return True
    return is_aborted(err.__cause__)


def format_error(err: BaseException) -> str:
    """Render ``err`` and its causes as a tab-indented, multi-line trace."""
    lines: list[str] = []
    _format_into(err, 0, lines)
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _format_into(err: BaseException, depth: int, lines: list[str]) -> None:
    if isinstance(err, ValidationError):
        issues = err.errors()
        lines.append(_indent(depth, f"{type(err).__name__}: {len(issues)} issue(s)."))
        for issue in issues:
            location = _format_location(issue.get("loc", ()))
            if location:
                lines.append(_indent(depth + 1, f"{location}: {issue['type']} {issue['msg']}"))
            else:
                lines.append(_indent(depth + 1, f"{issue['type']}: {issue['msg']}"))
        return

    if isinstance(err, BaseExceptionGroup):
        if err.message == DEFAULT_ERRORS_MESSAGE:
            for member in err.exceptions:
                _format_into(member, depth, lines)
        else:
            lines.append(_indent(depth, err.message))
            for member in err.exceptions:
                _format_into(member, depth + 1, lines)
        if err.__cause__ is not None:
            _format_into(err.__cause__, depth + 1, lines)
        return

    lines.append(_indent(depth, _message(err)))
    if err.__cause__ is not None:
        _format_into(err.__cause__, depth + 1, lines)


def _message(err: BaseException) -> str:
    if isinstance(err, MessageError):
        text = err.message
    else:
        text = str(err)
    return text or type(err).__name__


def _format_location(loc: Iterable[Any]) -> str:
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        elif path:
            path += f".{part}"
        else:
            path = str(part)
    return path


def _indent(depth: int, text: str) -> str:
    return "\t" * depth + text


__all__ = [
    "AbortedError",
    "Errors",
    "InputError",
    "MessageError",
    "ResolverError",
    "RoutingError",
    "SessionError",
    "SessionExpiredError",
    "SessionNotFoundError",
    "UploadError",
    "format_error",
    "is_aborted",
    "with_cause",
]
