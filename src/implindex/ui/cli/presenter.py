"""Rich presenters for merged registries and load reports."""

from __future__ import annotations

from collections.abc import Mapping
import json
from typing import Any

from rich import box
from rich.table import Table
import typer

from implindex.fragments import LoadReport
from implindex.records import ImplementorRecord, RegistrySnapshot

from .state import CLIState


def _format_list(values: tuple[str, ...] | list[str]) -> str:
    return ", ".join(values) if values else "-"


def _record_payload(record: ImplementorRecord) -> dict[str, Any]:
    return {
        "trait_id": record.trait_id,
        "implementor_id": record.implementor_id,
        "generic_parameters": list(record.generic_parameters),
        "display_facts": record.display_facts,
    }


def snapshot_to_json(snapshot: RegistrySnapshot) -> str:
    """Serialise a registry snapshot, preserving module and record order."""
    payload = {
        module: [_record_payload(record) for record in records]
        for module, records in snapshot.items()
    }
    return json.dumps(payload, indent=2, ensure_ascii=False, default=str)


def present_registry(state: CLIState, snapshot: RegistrySnapshot, *, as_json: bool = False) -> None:
    """Print the registry as JSON or as a table grouped by module."""
    console = state.console
    if as_json:
        typer.echo(snapshot_to_json(snapshot))
        return

    table = Table(
        title="Implementors",
        box=box.SQUARE,
        show_edge=True,
        header_style="bold cyan",
    )
    table.add_column("Module", style="magenta")
    table.add_column("Implementor", style="green")
    table.add_column("Generics")
    table.add_column("Trait")

    if not snapshot:
        table.add_row("-", "-", "-", "No implementors registered")
    for module, records in snapshot.items():
        for record in records:
            table.add_row(
                module,
                record.implementor_id,
                _format_list(record.generic_parameters),
                record.trait_id,
            )
    console.print(table)


def present_load_report(
    state: CLIState,
    report: LoadReport,
    problems: Mapping[str, list[str]] | None = None,
) -> None:
    """Summarise a batch load, listing failing fragments and skipped entries."""
    console = state.console
    table = Table(title="Fragments", box=box.SIMPLE, header_style="bold cyan")
    table.add_column("Loaded", justify="right")
    table.add_column("Failed", justify="right")
    table.add_column("Records", justify="right")
    table.add_column("Skipped", justify="right")
    table.add_row(
        str(len(report.loaded)),
        str(len(report.failures)),
        str(report.records),
        str(report.skipped),
    )
    console.print(table)

    if problems:
        skipped = Table(title="Skipped entries", box=box.SIMPLE, header_style="bold yellow")
        skipped.add_column("Path", style="magenta")
        skipped.add_column("Problem")
        for source, messages in problems.items():
            for message in messages:
                skipped.add_row(source, message)
        console.print(skipped)

    if not report.failures:
        return
    issues = Table(title="Malformed fragments", box=box.SIMPLE, header_style="bold red")
    issues.add_column("Path", style="magenta")
    issues.add_column("Problem")
    for path, message in report.failures:
        issues.add_row(str(path), message)
    console.print(issues)


__all__ = [
    "present_load_report",
    "present_registry",
    "snapshot_to_json",
]
