"""Exception hierarchy for implementor fragment handling."""

from __future__ import annotations

from pathlib import Path


class ImplementorIndexError(RuntimeError):
    """Base exception for implementor index failures."""


class MalformedFragmentError(ImplementorIndexError):
    """Raised when a fragment entry lacks the identifiers a record needs."""


class FragmentDecodeError(ImplementorIndexError):
    """Raised when a fragment file cannot be decoded into a module mapping."""

    def __init__(self, message: str, *, path: Path | str | None = None) -> None:
        self.path = Path(path) if path is not None else None
        if self.path is not None:
            message = f"{self.path}: {message}"
        super().__init__(message)


def exception_messages(exc: BaseException) -> list[str]:
    """Return the collected message chain for an exception and its causes."""
    messages: list[str] = []
    visited: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in visited:
        visited.add(id(current))
        text = str(current).strip()
        if text:
            first_line = text.splitlines()[0].strip()
            if first_line:
                messages.append(first_line)
        current = current.__cause__ or current.__context__
    return messages


def exception_hint(exc: BaseException) -> str | None:
    """Return the most specific message available for an exception chain."""
    messages = exception_messages(exc)
    return messages[-1] if messages else None


__all__ = [
    "FragmentDecodeError",
    "ImplementorIndexError",
    "MalformedFragmentError",
    "exception_hint",
    "exception_messages",
]
