"""Implementor records and the registry accumulating them across fragments."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class ImplementorRecord:
    """One fact stating that ``implementor_id`` implements ``trait_id``."""

    trait_id: str
    implementor_id: str
    generic_parameters: tuple[str, ...] = ()
    display_facts: Any = field(default=None, hash=False)

    def __post_init__(self) -> None:
        params = self.generic_parameters
        if isinstance(params, str):
            params = (params,)
        if not isinstance(params, tuple):
            params = tuple(params)
        object.__setattr__(self, "generic_parameters", params)

    @property
    def is_blanket(self) -> bool:
        """Whether the implementation covers a family of types."""
        return bool(self.generic_parameters)


ModuleMapping = Mapping[str, Sequence[ImplementorRecord]]
RegistrySnapshot = dict[str, list[ImplementorRecord]]
ConsumerHandle = Callable[[RegistrySnapshot], None]


def filter_by_trait(modules: ModuleMapping, trait_id: str) -> RegistrySnapshot:
    """Return the records of ``modules`` implementing ``trait_id``, dropping empty modules."""
    matches: RegistrySnapshot = {}
    for module, records in modules.items():
        selected = [record for record in records if record.trait_id == trait_id]
        if selected:
            matches[module] = selected
    return matches


@dataclass(slots=True)
class ImplementorRegistry:
    """Ordered module-to-records mapping accumulated over a session.

    Each module keeps the concatenation of every contribution made under its
    name, in the order the contributions were appended.
    """

    _modules: dict[str, list[ImplementorRecord]] = field(default_factory=dict)

    def extend(self, module: str, records: Sequence[ImplementorRecord]) -> None:
        """Append ``records`` after whatever ``module`` already holds."""
        self._modules.setdefault(module, []).extend(records)

    def clear(self) -> None:
        """Reset the registry to its initial empty state."""
        self._modules.clear()

    def modules(self) -> list[str]:
        """Return module names in first-seen order."""
        return list(self._modules)

    def records(self, module: str) -> list[ImplementorRecord]:
        """Return a copy of the records registered under ``module``."""
        return list(self._modules.get(module, ()))

    def snapshot(self) -> RegistrySnapshot:
        """Return a detached copy of the registry contents."""
        return {module: list(records) for module, records in self._modules.items()}

    def __contains__(self, module: object) -> bool:
        return module in self._modules

    def __len__(self) -> int:
        return sum(len(records) for records in self._modules.values())


__all__ = [
    "ConsumerHandle",
    "ImplementorRecord",
    "ImplementorRegistry",
    "ModuleMapping",
    "RegistrySnapshot",
    "filter_by_trait",
]
