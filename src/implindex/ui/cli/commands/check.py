"""Implementation of the `implindex check` command."""

from __future__ import annotations

import typer

from implindex.fragments import load_fragments
from implindex.registrar import IndexSession

from .._options import ConfigOption, DebugOption, FragmentPathsArgument, VerboseOption
from ..diagnostics import CliEmitter
from ..presenter import present_load_report
from ..state import set_cli_state
from .show import resolve_config


def check(
    paths: FragmentPathsArgument,
    config: ConfigOption = None,
    verbose: VerboseOption = 0,
    debug: DebugOption = False,
) -> None:
    """Decode every fragment and report unreadable files and skipped entries."""
    state = set_cli_state(verbosity=verbose, debug=debug)
    settings = resolve_config(config)
    emitter = CliEmitter(state)
    # A private session keeps the process-wide registry untouched.
    session = IndexSession(config=settings, emitter=emitter)
    report = load_fragments(paths, session=session)
    present_load_report(state, report, emitter.problems)
    if not report.ok or emitter.problems:
        raise typer.Exit(code=1)


__all__ = ["check"]
