from __future__ import annotations

from pathlib import Path

from pydantic import ValidationError
import pytest

from implindex.config import IndexConfig, load_config
from implindex.exceptions import ImplementorIndexError


def test_defaults() -> None:
    config = IndexConfig()
    assert config.validate_records is True
    assert config.patterns == ["*.js", "*.json"]
    assert config.encoding == "utf-8"
    assert config.trait_from_path is True


def test_unknown_keys_are_rejected() -> None:
    with pytest.raises(ValidationError):
        IndexConfig.model_validate({"dedupe": True})


def test_patterns_are_cleaned_and_required() -> None:
    assert IndexConfig(patterns=[" *.js ", ""]).patterns == ["*.js"]
    with pytest.raises(ValidationError):
        IndexConfig(patterns=["  "])


def test_load_yaml_config(tmp_path: Path) -> None:
    path = tmp_path / "implindex.yml"
    path.write_text("validate_records: false\npatterns:\n  - 'trait.*.js'\n", encoding="utf-8")
    config = load_config(path)
    assert config.validate_records is False
    assert config.patterns == ["trait.*.js"]


def test_load_json_config(tmp_path: Path) -> None:
    path = tmp_path / "implindex.json"
    path.write_text('{"encoding": "latin-1"}', encoding="utf-8")
    assert load_config(path).encoding == "latin-1"


def test_empty_yaml_uses_defaults(tmp_path: Path) -> None:
    path = tmp_path / "empty.yml"
    path.write_text("", encoding="utf-8")
    assert load_config(path) == IndexConfig()


@pytest.mark.parametrize(
    ("name", "content"),
    [
        ("list.yml", "- a\n- b\n"),
        ("broken.yml", "patterns: [unterminated\n"),
        ("broken.json", "{"),
        ("typo.yml", "validate_record: true\n"),
    ],
)
def test_invalid_configs_raise(tmp_path: Path, name: str, content: str) -> None:
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ImplementorIndexError):
        load_config(path)


def test_missing_config_raises(tmp_path: Path) -> None:
    with pytest.raises(ImplementorIndexError, match="Unable to read configuration"):
        load_config(tmp_path / "absent.yml")
