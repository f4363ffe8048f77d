"""Configuration model for fragment loading and record validation.

IndexConfig

`validate_records` (`bool`)
: Drop entries that lack a trait or implementor identifier instead of
  registering them. Dropped entries are reported as warnings.

`patterns` (`list[str]`)
: Glob patterns matched recursively when a directory is handed to the
  loader. Files passed explicitly are always loaded.

`encoding` (`str`)
: Text encoding used to read fragment files.

`trait_from_path` (`bool`)
: When an entry's markup does not name its trait, derive the trait from the
  generated file layout (`implementors/core/marker/trait.Eq.js` gives
  `core::marker::Eq`).
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
import yaml

from .exceptions import ImplementorIndexError


class IndexConfig(BaseModel):
    """Options controlling how fragments are decoded and registered."""

    model_config = ConfigDict(extra="forbid")

    validate_records: bool = True
    patterns: list[str] = Field(default_factory=lambda: ["*.js", "*.json"])
    encoding: str = "utf-8"
    trait_from_path: bool = True

    @field_validator("patterns")
    @classmethod
    def _require_patterns(cls, value: list[str]) -> list[str]:
        cleaned = [pattern.strip() for pattern in value if pattern and pattern.strip()]
        if not cleaned:
            raise ValueError("at least one glob pattern is required")
        return cleaned


def load_config(path: Path | str) -> IndexConfig:
    """Read an :class:`IndexConfig` from a YAML or JSON file."""
    source = Path(path)
    try:
        raw = source.read_text(encoding="utf-8")
    except OSError as exc:
        raise ImplementorIndexError(f"Unable to read configuration '{source}': {exc}") from exc

    data: Any
    try:
        if source.suffix.lower() == ".json":
            data = json.loads(raw)
        else:
            data = yaml.safe_load(raw)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ImplementorIndexError(f"Invalid configuration file '{source}': {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ImplementorIndexError(
            f"Configuration '{source}' must contain a mapping, got {type(data).__name__}."
        )
    try:
        return IndexConfig.model_validate(data)
    except ValidationError as exc:
        raise ImplementorIndexError(f"Invalid configuration file '{source}': {exc}") from exc


__all__ = ["IndexConfig", "load_config"]
