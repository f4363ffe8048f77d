"""Process-wide session merging implementor fragments and feeding the gate."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from .config import IndexConfig
from .diagnostics import DiagnosticEmitter, LoggingEmitter
from .exceptions import MalformedFragmentError
from .gate import ConsumerGate
from .records import ConsumerHandle, ImplementorRecord, ImplementorRegistry, ModuleMapping


def check_record(record: object) -> ImplementorRecord:
    """Return ``record`` when it carries both identifiers, raise otherwise."""
    if not isinstance(record, ImplementorRecord):
        raise MalformedFragmentError(f"Expected an implementor record, got {type(record).__name__}.")
    if not isinstance(record.trait_id, str) or not record.trait_id.strip():
        raise MalformedFragmentError(
            f"Implementor '{record.implementor_id}' does not name its trait."
        )
    if not isinstance(record.implementor_id, str) or not record.implementor_id.strip():
        raise MalformedFragmentError(f"Record for trait '{record.trait_id}' has no implementor.")
    return record


@dataclass(slots=True)
class IndexSession:
    """Registry and consumer gate shared by every fragment of a viewing session.

    Fragments are merged with :meth:`register`, which never raises: a fragment
    that cannot be read is reported through the emitter and leaves the
    registry untouched, so later fragments still register.
    """

    config: IndexConfig = field(default_factory=IndexConfig)
    emitter: DiagnosticEmitter = field(default_factory=LoggingEmitter)
    registry: ImplementorRegistry = field(default_factory=ImplementorRegistry)
    gate: ConsumerGate = field(init=False)

    def __post_init__(self) -> None:
        self.gate = ConsumerGate(emitter=self.emitter)

    def register(self, mapping: ModuleMapping) -> None:
        """Append each module's records to the registry and deliver the result."""
        self.merge(mapping)

    def merge(self, mapping: ModuleMapping) -> int:
        """Register ``mapping`` and return how many of its records were appended."""
        try:
            staged = self._stage(mapping)
        except Exception as exc:
            self.emitter.warning("Ignoring malformed implementor fragment.", exc)
            return 0

        appended = 0
        for module, records in staged:
            self.registry.extend(module, records)
            appended += len(records)
        self.emitter.event(
            "fragment_registered",
            {"modules": [module for module, _ in staged], "records": appended},
        )
        self.gate.deliver(self.registry.snapshot())
        return appended

    def attach_consumer(self, handle: ConsumerHandle | None) -> ConsumerHandle | None:
        """Attach ``handle`` to the gate, draining any pending snapshot."""
        return self.gate.attach_consumer(handle)

    def _stage(self, mapping: ModuleMapping) -> list[tuple[str, list[ImplementorRecord]]]:
        if not isinstance(mapping, Mapping):
            raise MalformedFragmentError(
                f"Expected a mapping of modules, got {type(mapping).__name__}."
            )
        staged: list[tuple[str, list[ImplementorRecord]]] = []
        for module, records in mapping.items():
            if isinstance(records, (str, bytes)):
                raise MalformedFragmentError(f"Module '{module}' does not hold a record sequence.")
            accepted: list[ImplementorRecord] = []
            for record in records:
                if self.config.validate_records:
                    try:
                        check_record(record)
                    except MalformedFragmentError as exc:
                        self.emitter.warning(f"Skipping implementor of '{module}': {exc}")
                        continue
                accepted.append(record)
            staged.append((str(module), accepted))
        return staged


_SESSION: IndexSession | None = None


def get_session() -> IndexSession:
    """Return the process-wide session, creating it on first use."""
    global _SESSION
    if _SESSION is None:
        _SESSION = IndexSession()
    return _SESSION


def reset_session(
    *,
    config: IndexConfig | None = None,
    emitter: DiagnosticEmitter | None = None,
) -> IndexSession:
    """Replace the process-wide session wholesale and return the new one."""
    global _SESSION
    _SESSION = IndexSession(
        config=config or IndexConfig(),
        emitter=emitter or LoggingEmitter(),
    )
    return _SESSION


def register(mapping: ModuleMapping) -> None:
    """Merge ``mapping`` into the process-wide session."""
    get_session().register(mapping)


def attach_consumer(handle: ConsumerHandle | None) -> ConsumerHandle | None:
    """Attach ``handle`` as the consumer of the process-wide session."""
    return get_session().attach_consumer(handle)


__all__ = [
    "IndexSession",
    "attach_consumer",
    "check_record",
    "get_session",
    "register",
    "reset_session",
]
