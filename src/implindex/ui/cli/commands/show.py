"""Implementation of the `implindex show` command."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import typer

from implindex.config import IndexConfig, load_config
from implindex.exceptions import ImplementorIndexError
from implindex.fragments import load_fragments
from implindex.records import RegistrySnapshot, filter_by_trait
from implindex.registrar import reset_session

from .._options import (
    AttachMode,
    AttachOption,
    ConfigOption,
    DebugOption,
    FragmentPathsArgument,
    JsonOption,
    TraitOption,
    VerboseOption,
)
from ..diagnostics import CliEmitter
from ..presenter import present_load_report, present_registry
from ..state import emit_error, emit_warning, set_cli_state


@dataclass(slots=True)
class _CollectingConsumer:
    """Consumer keeping the latest snapshot it received."""

    latest: RegistrySnapshot | None = None
    deliveries: list[int] = field(default_factory=list)

    def __call__(self, registry: RegistrySnapshot) -> None:
        self.latest = registry
        self.deliveries.append(len(registry))


def resolve_config(path: Path | None) -> IndexConfig:
    """Load the configuration file when one is given, exiting on errors."""
    if path is None:
        return IndexConfig()
    try:
        return load_config(path)
    except ImplementorIndexError as exc:
        emit_error(str(exc), exception=exc)
        raise typer.Exit(code=1) from exc


def show(
    paths: FragmentPathsArgument,
    trait: TraitOption = None,
    as_json: JsonOption = False,
    attach: AttachOption = AttachMode.LATE,
    config: ConfigOption = None,
    verbose: VerboseOption = 0,
    debug: DebugOption = False,
) -> None:
    """Merge implementor fragments and print the resulting registry."""
    state = set_cli_state(verbosity=verbose, debug=debug)
    settings = resolve_config(config)
    emitter = CliEmitter(state)
    session = reset_session(config=settings, emitter=emitter)

    consumer = _CollectingConsumer()
    if attach is AttachMode.EARLY:
        session.attach_consumer(consumer)
    report = load_fragments(paths, session=session)
    if attach is AttachMode.LATE:
        session.attach_consumer(consumer)

    if consumer.latest is None:
        emit_warning("No implementor fragments were registered.")
        consumer.latest = session.registry.snapshot()

    snapshot = filter_by_trait(consumer.latest, trait) if trait else consumer.latest
    present_registry(state, snapshot, as_json=as_json)
    if not as_json and verbose >= 1:
        present_load_report(state, report, emitter.problems)
    if not report.ok:
        raise typer.Exit(code=1)


__all__ = ["resolve_config", "show"]
