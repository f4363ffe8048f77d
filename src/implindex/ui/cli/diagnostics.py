"""Diagnostic emitter bridging the registry with CLI rendering utilities."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from implindex.diagnostics import DiagnosticEmitter, format_event_message

from .state import CLIState, emit_error, emit_warning, get_cli_state, render_message


class CliEmitter(DiagnosticEmitter):
    """Print diagnostics with Rich and keep the problems seen during a load.

    Warnings raised while a fragment is decoded or registered are attributed
    to that fragment once its ``fragment_loaded`` event arrives. Warnings of a
    fragment that fails to decode are dropped on ``fragment_failed``, since the
    load report already lists that fragment.
    """

    def __init__(self, state: CLIState | None = None, *, debug_enabled: bool | None = None) -> None:
        self._state = state or get_cli_state()
        if debug_enabled is None:
            debug_enabled = self._state.show_tracebacks
        self.debug_enabled = bool(debug_enabled)
        self.problems: dict[str, list[str]] = {}
        self._unattributed: list[str] = []

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        self._unattributed.append(message)
        emit_warning(message, exception=exc)

    def error(self, message: str, exc: BaseException | None = None) -> None:
        emit_error(message, exception=exc)

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        data = dict(payload)
        if name == "fragment_loaded" and self._unattributed:
            source = str(data.get("path") or "<fragment>")
            self.problems.setdefault(source, []).extend(self._unattributed)
        if name in {"fragment_loaded", "fragment_failed"}:
            self._unattributed.clear()
        message = format_event_message(name, data)
        if message:
            render_message("info", message)


__all__ = ["CliEmitter"]
