from __future__ import annotations

from implindex.diagnostics import NullEmitter
from implindex.gate import ConsumerGate
from implindex.records import ImplementorRecord, RegistrySnapshot


REC = ImplementorRecord("core::marker::StructuralEq", "presage::Thread")


class Recorder:
    def __init__(self) -> None:
        self.calls: list[RegistrySnapshot] = []

    def __call__(self, registry: RegistrySnapshot) -> None:
        self.calls.append(registry)


class CollectingEmitter(NullEmitter):
    def __init__(self) -> None:
        self.errors: list[tuple[str, BaseException | None]] = []
        self.events: list[str] = []

    def error(self, message: str, exc: BaseException | None = None) -> None:
        self.errors.append((message, exc))

    def event(self, name, payload) -> None:
        self.events.append(name)


def test_deliver_without_consumer_buffers_latest_snapshot() -> None:
    gate = ConsumerGate(emitter=NullEmitter())
    first = {"m1": [REC]}
    second = {"m1": [REC, REC]}
    gate.deliver(first)
    gate.deliver(second)
    assert gate.pending is second
    assert gate.consumer is None


def test_attach_drains_pending_exactly_once() -> None:
    gate = ConsumerGate(emitter=NullEmitter())
    snapshot = {"m1": [REC]}
    gate.deliver(snapshot)
    consumer = Recorder()

    gate.attach_consumer(consumer)

    assert consumer.calls == [snapshot]
    assert gate.pending is None


def test_deliver_with_consumer_calls_it_directly() -> None:
    gate = ConsumerGate(emitter=NullEmitter())
    consumer = Recorder()
    gate.attach_consumer(consumer)
    assert consumer.calls == []

    gate.deliver({"m1": [REC]})
    gate.deliver({"m1": [REC, REC]})

    assert consumer.calls == [{"m1": [REC]}, {"m1": [REC, REC]}]
    assert gate.pending is None


def test_reattach_replaces_consumer_without_redelivery() -> None:
    gate = ConsumerGate(emitter=NullEmitter())
    first, second = Recorder(), Recorder()
    gate.deliver({"m1": [REC]})
    gate.attach_consumer(first)
    gate.attach_consumer(second)

    assert len(first.calls) == 1
    assert second.calls == []

    gate.deliver({"m2": [REC]})
    assert len(first.calls) == 1
    assert second.calls == [{"m2": [REC]}]


def test_detaching_consumer_buffers_again() -> None:
    gate = ConsumerGate(emitter=NullEmitter())
    consumer = Recorder()
    gate.attach_consumer(consumer)
    gate.attach_consumer(None)
    gate.deliver({"m1": [REC]})

    assert consumer.calls == []
    assert gate.pending == {"m1": [REC]}


def test_attach_consumer_works_as_decorator() -> None:
    gate = ConsumerGate(emitter=NullEmitter())
    received: list[RegistrySnapshot] = []
    gate.deliver({"m1": [REC]})

    @gate.attach_consumer
    def consumer(registry: RegistrySnapshot) -> None:
        received.append(registry)

    assert callable(consumer)
    assert received == [{"m1": [REC]}]


def test_failing_consumer_is_reported_not_raised() -> None:
    emitter = CollectingEmitter()
    gate = ConsumerGate(emitter=emitter)

    def broken(registry: RegistrySnapshot) -> None:
        raise ValueError("cannot render")

    gate.deliver({"m1": [REC]})
    gate.attach_consumer(broken)
    gate.deliver({"m1": [REC, REC]})

    assert len(emitter.errors) == 2
    assert all(isinstance(exc, ValueError) for _, exc in emitter.errors)
    assert gate.pending is None


def test_gate_emits_lifecycle_events() -> None:
    emitter = CollectingEmitter()
    gate = ConsumerGate(emitter=emitter)
    gate.deliver({"m1": [REC]})
    gate.attach_consumer(Recorder())
    gate.deliver({"m1": [REC]})
    assert emitter.events == [
        "implementors_buffered",
        "implementors_drained",
        "implementors_delivered",
    ]
