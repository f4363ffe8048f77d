"""Single-slot handoff between merged implementor data and its consumer."""

from __future__ import annotations

from dataclasses import dataclass, field

from .diagnostics import DiagnosticEmitter, LoggingEmitter
from .records import ConsumerHandle, RegistrySnapshot


@dataclass(slots=True)
class ConsumerGate:
    """Forward registry snapshots to a consumer, or hold one until it attaches.

    The gate has two independent slots. ``consumer`` is the attached handle,
    if any. ``pending`` holds the latest undelivered snapshot and is only ever
    populated while no consumer is attached.
    """

    emitter: DiagnosticEmitter = field(default_factory=LoggingEmitter)
    _consumer: ConsumerHandle | None = field(default=None, init=False)
    _pending: RegistrySnapshot | None = field(default=None, init=False)

    @property
    def consumer(self) -> ConsumerHandle | None:
        return self._consumer

    @property
    def pending(self) -> RegistrySnapshot | None:
        return self._pending

    def deliver(self, registry: RegistrySnapshot) -> None:
        """Hand the full accumulated ``registry`` to the consumer or buffer it."""
        consumer = self._consumer
        if consumer is None:
            self._pending = registry
            self.emitter.event("implementors_buffered", {"modules": len(registry)})
            return
        self._invoke(consumer, registry)
        self.emitter.event("implementors_delivered", {"modules": len(registry)})

    def attach_consumer(self, handle: ConsumerHandle | None) -> ConsumerHandle | None:
        """Install ``handle`` as the active consumer and drain any pending snapshot.

        Passing ``None`` detaches the current consumer; later deliveries are
        buffered again. The handle is returned so this method doubles as a
        decorator.
        """
        self._consumer = handle
        if handle is None or self._pending is None:
            return handle
        pending, self._pending = self._pending, None
        self._invoke(handle, pending)
        self.emitter.event("implementors_drained", {"modules": len(pending)})
        return handle

    def _invoke(self, consumer: ConsumerHandle, registry: RegistrySnapshot) -> None:
        try:
            consumer(registry)
        except Exception as exc:
            self.emitter.error("Implementor consumer failed while receiving data.", exc)


__all__ = ["ConsumerGate"]
