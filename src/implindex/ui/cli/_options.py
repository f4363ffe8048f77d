"""Shared Typer option definitions for CLI commands."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Annotated

import typer


INPUTS_PANEL = "Input Handling"
OUTPUT_PANEL = "Output"
DIAGNOSTICS_PANEL = "Diagnostics"


class AttachMode(str, Enum):
    """When the CLI consumer attaches relative to fragment loading."""

    EARLY = "early"
    LATE = "late"


FragmentPathsArgument = Annotated[
    list[Path],
    typer.Argument(
        metavar="PATH...",
        help="Implementor fragment files, or directories searched for fragments.",
        exists=True,
        file_okay=True,
        dir_okay=True,
        readable=True,
        resolve_path=True,
        rich_help_panel=INPUTS_PANEL,
    ),
]

ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="YAML or JSON file with loader settings.",
        exists=True,
        dir_okay=False,
        readable=True,
        resolve_path=True,
        rich_help_panel=INPUTS_PANEL,
    ),
]

TraitOption = Annotated[
    str | None,
    typer.Option(
        "--trait",
        "-t",
        help="Only show implementors of this trait (e.g. core::marker::StructuralEq).",
        rich_help_panel=OUTPUT_PANEL,
    ),
]

JsonOption = Annotated[
    bool,
    typer.Option(
        "--json",
        help="Print the merged registry as JSON instead of a table.",
        rich_help_panel=OUTPUT_PANEL,
    ),
]

AttachOption = Annotated[
    AttachMode,
    typer.Option(
        "--attach",
        case_sensitive=False,
        help=(
            "Attach the consumer before loading fragments (early) or once every "
            "fragment is registered (late)."
        ),
        rich_help_panel=OUTPUT_PANEL,
    ),
]

VerboseOption = Annotated[
    int,
    typer.Option(
        "--verbose",
        "-v",
        count=True,
        help="Increase CLI verbosity. Combine multiple times for additional diagnostics.",
        rich_help_panel=DIAGNOSTICS_PANEL,
    ),
]

DebugOption = Annotated[
    bool,
    typer.Option(
        "--debug",
        help="Show full tracebacks when an unexpected error occurs.",
        rich_help_panel=DIAGNOSTICS_PANEL,
    ),
]


__all__ = [
    "AttachMode",
    "AttachOption",
    "ConfigOption",
    "DebugOption",
    "FragmentPathsArgument",
    "JsonOption",
    "TraitOption",
    "VerboseOption",
]
