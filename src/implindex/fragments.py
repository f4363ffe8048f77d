"""Decode generated implementor fragments into module mappings.

Documentation builds emit one script per trait and crate, shaped like::

    (function() {var implementors = {
    "crate_name":[["impl <a class=\"trait\" ...>Eq</a> for <a ...>Foo</a>"], ...]
    };if (window.register_implementors) {...} else {...}})()

The object literal is valid JSON. Each entry's markup is kept verbatim as
the record's display facts; only anchor titles and the leading ``impl<...>``
clause are read to recover identifiers. Plain JSON fragments holding
``{"trait_id": ..., "implementor_id": ...}`` objects are accepted too.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
import json
from pathlib import Path
import re
from typing import Any

from bs4 import BeautifulSoup, NavigableString, Tag
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .config import IndexConfig
from .diagnostics import DiagnosticEmitter
from .exceptions import FragmentDecodeError, MalformedFragmentError
from .records import ImplementorRecord, RegistrySnapshot
from .registrar import IndexSession, get_session


_LITERAL_MARKER = re.compile(r"var\s+implementors\s*=\s*")
_IMPL_PREFIX = re.compile(r"^\s*(?:unsafe\s+)?impl\s*<")
_TRAIT_FILE = re.compile(r"^trait\.(?P<name>[^.]+)\.js$")
_FOR_SEPARATOR = " for "


class _RecordModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    trait_id: str = ""
    implementor_id: str = ""
    generic_parameters: list[str] = Field(default_factory=list)
    display_facts: Any = None


def trait_id_from_path(path: Path | str) -> str | None:
    """Derive a trait identifier from the generated ``implementors/`` layout."""
    candidate = Path(path)
    match = _TRAIT_FILE.match(candidate.name)
    if match is None:
        return None
    parts = list(candidate.parent.parts)
    if "implementors" in parts:
        parts = parts[len(parts) - parts[::-1].index("implementors") :]
    else:
        parts = parts[-1:]
    return "::".join([*parts, match.group("name")])


def _extract_literal(text: str, source: str) -> dict[str, Any]:
    marker = _LITERAL_MARKER.search(text)
    try:
        if marker is not None:
            payload, _ = json.JSONDecoder().raw_decode(text, marker.end())
        else:
            payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise FragmentDecodeError(f"invalid implementor literal ({exc.msg})", path=source) from exc
    if not isinstance(payload, dict):
        raise FragmentDecodeError(
            f"expected an object of modules, got {type(payload).__name__}", path=source
        )
    return payload


def _title_path(anchor: Tag) -> str:
    title = str(anchor.get("title") or "").strip()
    if " " in title:
        # "struct core::cell::Cell" -> "core::cell::Cell"
        return title.split(" ", 1)[1].strip()
    return title or anchor.get_text(strip=True)


def _classes(anchor: Tag) -> list[str]:
    value = anchor.get("class") or []
    if isinstance(value, str):
        return value.split()
    return list(value)


def _scan_text(text: str, depth: int, seen_for: bool) -> tuple[int, bool]:
    """Track angle-bracket depth and spot the top-level ``for`` keyword."""
    previous = " "
    for index, char in enumerate(text):
        if char == "<":
            depth += 1
        elif char == ">" and previous != "-":
            depth = max(0, depth - 1)
        elif (
            not seen_for
            and depth == 0
            and previous.isspace()
            and text.startswith(_FOR_SEPARATOR.lstrip(), index)
        ):
            seen_for = True
        previous = char
    return depth, seen_for


def _split_generics(text: str) -> tuple[str, ...]:
    """Return the parameter names of a leading ``impl<...>`` clause."""
    opening = _IMPL_PREFIX.match(text)
    if opening is None:
        return ()
    depth = 1
    previous = "<"
    current: list[str] = []
    chunks: list[str] = []
    for char in text[opening.end() :]:
        arrow = previous == "-"
        previous = char
        if char == "<":
            depth += 1
        elif char == ">" and not arrow:
            depth -= 1
            if depth == 0:
                break
        elif char == "," and depth == 1:
            chunks.append("".join(current))
            current = []
            continue
        current.append(char)
    chunks.append("".join(current))

    names: list[str] = []
    for chunk in chunks:
        name = re.split(r"[:=]", chunk, maxsplit=1)[0].strip()
        if name.startswith("const "):
            name = name[len("const ") :].strip()
        if name:
            names.append(name)
    return tuple(names)


def decode_markup(markup: str, *, trait_hint: str | None = None) -> ImplementorRecord:
    """Build a record from an ``impl ... for ...`` markup line."""
    soup = BeautifulSoup(markup, "html.parser")
    text = soup.get_text()

    trait_id = ""
    implementor_id = ""
    depth = 0
    seen_for = False
    for node in soup.contents:
        if isinstance(node, NavigableString):
            depth, seen_for = _scan_text(str(node), depth, seen_for)
            continue
        if not isinstance(node, Tag) or node.name != "a" or depth:
            continue
        # Anchors nested in angle brackets are bounds or type arguments.
        if not seen_for and "trait" in _classes(node):
            trait_id = _title_path(node)
        elif seen_for and not implementor_id:
            implementor_id = _title_path(node)

    if not implementor_id and _FOR_SEPARATOR in text:
        implementor_id = text.split(_FOR_SEPARATOR, 1)[1].strip()
    if not trait_id and trait_hint:
        trait_id = trait_hint

    return ImplementorRecord(
        trait_id=trait_id,
        implementor_id=implementor_id,
        generic_parameters=_split_generics(text),
        display_facts=markup,
    )


def decode_entry(entry: Any, *, trait_hint: str | None = None) -> ImplementorRecord:
    """Decode one module entry in either the generated or the JSON record form."""
    if isinstance(entry, dict):
        try:
            model = _RecordModel.model_validate(entry)
        except ValidationError as exc:
            raise MalformedFragmentError(f"invalid implementor record: {exc}") from exc
        return ImplementorRecord(
            trait_id=model.trait_id or (trait_hint or ""),
            implementor_id=model.implementor_id,
            generic_parameters=tuple(model.generic_parameters),
            display_facts=model.display_facts,
        )
    if isinstance(entry, list) and entry and isinstance(entry[0], str):
        return decode_markup(entry[0], trait_hint=trait_hint)
    if isinstance(entry, str):
        return decode_markup(entry, trait_hint=trait_hint)
    raise MalformedFragmentError(f"unsupported implementor entry of type {type(entry).__name__}")


def parse_fragment(
    text: str,
    *,
    source: Path | str | None = None,
    config: IndexConfig | None = None,
    emitter: DiagnosticEmitter | None = None,
) -> RegistrySnapshot:
    """Decode fragment ``text`` into a module mapping.

    Entries that cannot be decoded are skipped and reported to ``emitter``;
    text that holds no implementor object raises :class:`FragmentDecodeError`.
    """
    settings = config or IndexConfig()
    label = str(source) if source is not None else "<fragment>"
    trait_hint = None
    if source is not None and settings.trait_from_path:
        trait_hint = trait_id_from_path(source)

    payload = _extract_literal(text, label)
    mapping: RegistrySnapshot = {}
    for module, entries in payload.items():
        if not isinstance(entries, list):
            raise FragmentDecodeError(f"module '{module}' does not hold a list", path=label)
        records: list[ImplementorRecord] = []
        for position, entry in enumerate(entries):
            try:
                records.append(decode_entry(entry, trait_hint=trait_hint))
            except MalformedFragmentError as exc:
                if emitter is not None:
                    emitter.warning(f"{label}: skipping entry {position} of '{module}': {exc}")
        mapping[module] = records
    return mapping


def iter_fragment_paths(
    paths: Iterable[Path | str], config: IndexConfig | None = None
) -> Iterator[Path]:
    """Expand directories into matching fragment files, keeping files as given."""
    settings = config or IndexConfig()
    for raw in paths:
        path = Path(raw)
        if not path.is_dir():
            yield path
            continue
        matches: set[Path] = set()
        for pattern in settings.patterns:
            matches.update(candidate for candidate in path.rglob(pattern) if candidate.is_file())
        yield from sorted(matches)


@dataclass(slots=True)
class LoadReport:
    """Summary of a batch fragment load."""

    loaded: list[Path] = field(default_factory=list)
    failures: list[tuple[Path, str]] = field(default_factory=list)
    records: int = 0
    skipped: int = 0

    @property
    def ok(self) -> bool:
        return not self.failures


def read_fragment(path: Path, config: IndexConfig | None = None) -> str:
    settings = config or IndexConfig()
    try:
        return path.read_text(encoding=settings.encoding)
    except (OSError, UnicodeDecodeError) as exc:
        raise FragmentDecodeError(f"unable to read fragment ({exc})", path=path) from exc


def load_fragments(
    paths: Iterable[Path | str],
    *,
    session: IndexSession | None = None,
    config: IndexConfig | None = None,
    emitter: DiagnosticEmitter | None = None,
) -> LoadReport:
    """Decode every fragment under ``paths`` and register it with ``session``.

    Failures are isolated per file: they are reported to the emitter and
    recorded in the returned :class:`LoadReport`, and loading continues.
    """
    target = session or get_session()
    settings = config or target.config
    diagnostics = emitter or target.emitter
    report = LoadReport()

    for path in iter_fragment_paths(paths, settings):
        try:
            mapping = parse_fragment(
                read_fragment(path, settings),
                source=path,
                config=settings,
                emitter=diagnostics,
            )
        except FragmentDecodeError as exc:
            diagnostics.warning(str(exc))
            report.failures.append((path, str(exc)))
            diagnostics.event("fragment_failed", {"path": str(path), "reason": str(exc)})
            continue

        added = target.merge(mapping)
        report.loaded.append(path)
        report.records += added
        report.skipped += sum(len(records) for records in mapping.values()) - added
        diagnostics.event("fragment_loaded", {"path": str(path), "records": added})

    return report


__all__ = [
    "LoadReport",
    "decode_entry",
    "decode_markup",
    "iter_fragment_paths",
    "load_fragments",
    "parse_fragment",
    "read_fragment",
    "trait_id_from_path",
]
