"""Diagnostic abstractions shared by the registrar, the gate and the loaders."""

from __future__ import annotations

from collections.abc import Mapping
import logging
from typing import Any, Protocol, runtime_checkable


logger = logging.getLogger(__name__)


@runtime_checkable
class DiagnosticEmitter(Protocol):
    """Interface used to surface warnings, errors, and structured events."""

    debug_enabled: bool

    def warning(self, message: str, exc: BaseException | None = None) -> None: ...

    def error(self, message: str, exc: BaseException | None = None) -> None: ...

    def event(self, name: str, payload: Mapping[str, Any]) -> None: ...


class NullEmitter:
    """Emitter that ignores every diagnostic."""

    debug_enabled: bool = False

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        return

    def error(self, message: str, exc: BaseException | None = None) -> None:
        return

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        return


class LoggingEmitter:
    """Emitter that forwards diagnostics to the standard logging module."""

    def __init__(
        self, *, logger_obj: logging.Logger | None = None, debug_enabled: bool = False
    ) -> None:
        self._logger = logger_obj or logger
        self.debug_enabled = debug_enabled

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        if exc is not None:
            self._logger.warning(message, exc_info=exc)
        else:
            self._logger.warning(message)

    def error(self, message: str, exc: BaseException | None = None) -> None:
        if exc is not None:
            self._logger.error(message, exc_info=exc)
        else:
            self._logger.error(message)

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        message = format_event_message(name, payload)
        if message:
            self._logger.info(message)
            return
        self._logger.debug("diagnostic event %s: %s", name, dict(payload))


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


def format_event_message(name: str, payload: Mapping[str, Any]) -> str | None:
    """Return a human-friendly summary for selected diagnostic events."""
    data = dict(payload)

    if name == "fragment_registered":
        modules = data.get("modules") or []
        records = int(data.get("records") or 0)
        listed = ", ".join(str(module) for module in modules) or "<empty>"
        return f"Registered {_plural(records, 'implementor')} for {listed}"

    if name == "implementors_delivered":
        modules = int(data.get("modules") or 0)
        return f"Delivered implementors of {_plural(modules, 'module')} to consumer"

    if name == "implementors_buffered":
        modules = int(data.get("modules") or 0)
        return f"No consumer attached, buffering implementors of {_plural(modules, 'module')}"

    if name == "implementors_drained":
        modules = int(data.get("modules") or 0)
        return f"Drained pending implementors of {_plural(modules, 'module')}"

    if name == "fragment_loaded":
        path = data.get("path") or "<unknown>"
        records = int(data.get("records") or 0)
        return f"Loaded {path} ({_plural(records, 'record')})"

    if name == "fragment_failed":
        path = data.get("path") or "<unknown>"
        return f"Failed to load {path}"

    return None


__all__ = [
    "DiagnosticEmitter",
    "LoggingEmitter",
    "NullEmitter",
    "format_event_message",
]
