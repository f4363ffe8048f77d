from __future__ import annotations

import itertools
import logging

import pytest

from implindex import registrar
from implindex.config import IndexConfig
from implindex.diagnostics import NullEmitter
from implindex.records import ImplementorRecord, RegistrySnapshot
from implindex.registrar import IndexSession, attach_consumer, get_session, register, reset_session


REC1 = ImplementorRecord("core::marker::StructuralEq", "libsignal_protocol::DeviceId")
REC2 = ImplementorRecord("core::marker::StructuralEq", "libsignal_protocol::PublicKey")
REC3 = ImplementorRecord(
    "core::marker::StructuralEq",
    "zkgroup::common::array_utils::OneBased",
    ("T",),
)

FRAGMENT_A = {"m1": [REC1]}
FRAGMENT_B = {"m1": [REC2], "m2": [REC3]}


class Recorder:
    def __init__(self) -> None:
        self.calls: list[RegistrySnapshot] = []

    def __call__(self, registry: RegistrySnapshot) -> None:
        self.calls.append(registry)


def test_no_loss_under_late_attach() -> None:
    register(FRAGMENT_A)
    register(FRAGMENT_B)
    consumer = Recorder()

    attach_consumer(consumer)

    assert consumer.calls == [{"m1": [REC1, REC2], "m2": [REC3]}]
    assert get_session().gate.pending is None


def test_direct_delivery_when_pre_attached() -> None:
    consumer = Recorder()
    attach_consumer(consumer)

    register(FRAGMENT_A)

    assert consumer.calls == [{"m1": [REC1]}]
    assert get_session().gate.pending is None


def test_duplicate_fragment_registration_is_preserved() -> None:
    register({"m1": [REC1]})
    register({"m1": [REC1]})
    assert get_session().registry.snapshot() == {"m1": [REC1, REC1]}


def test_duplicate_implementors_within_module_are_kept() -> None:
    register({"m1": [REC1, REC1, REC2]})
    assert get_session().registry.records("m1") == [REC1, REC1, REC2]


def test_pending_tracks_full_registry_after_every_register() -> None:
    session = get_session()
    register(FRAGMENT_A)
    assert session.gate.pending == {"m1": [REC1]}
    register(FRAGMENT_B)
    assert session.gate.pending == session.registry.snapshot()
    assert session.gate.pending == {"m1": [REC1, REC2], "m2": [REC3]}


def test_empty_module_creates_key() -> None:
    register({"empty": []})
    assert get_session().registry.modules() == ["empty"]


@pytest.mark.parametrize("attach_at", [0, 1, 2, 3])
def test_final_registry_is_independent_of_attach_point(attach_at: int) -> None:
    fragments = [FRAGMENT_A, FRAGMENT_B, {"m3": [REC2]}]
    consumer = Recorder()
    for index, fragment in enumerate(fragments):
        if index == attach_at:
            attach_consumer(consumer)
        register(fragment)
    if attach_at == len(fragments):
        attach_consumer(consumer)

    expected = {"m1": [REC1, REC2], "m2": [REC3], "m3": [REC2]}
    assert get_session().registry.snapshot() == expected
    assert consumer.calls[-1] == expected
    assert get_session().gate.pending is None


def test_registration_order_determines_concatenation() -> None:
    fragments = [{"m": [REC1]}, {"m": [REC2]}, {"m": [REC3]}]
    for ordering in itertools.permutations(fragments):
        session = reset_session(emitter=NullEmitter())
        for fragment in ordering:
            session.register(fragment)
        assert session.registry.records("m") == [fragment["m"][0] for fragment in ordering]


def test_malformed_fragment_does_not_block_later_ones(caplog: pytest.LogCaptureFixture) -> None:
    consumer = Recorder()
    attach_consumer(consumer)
    with caplog.at_level(logging.WARNING):
        register(["not", "a", "mapping"])  # type: ignore[arg-type]
        register({"m1": "not-a-sequence"})  # type: ignore[dict-item]
        register({"m1": None})  # type: ignore[dict-item]
        register(FRAGMENT_A)

    assert get_session().registry.snapshot() == {"m1": [REC1]}
    assert consumer.calls == [{"m1": [REC1]}]
    assert any("malformed" in record.message for record in caplog.records)


def test_failing_fragment_contributes_nothing() -> None:
    def records():
        yield REC2
        raise RuntimeError("truncated fragment")

    register(FRAGMENT_A)
    register({"m1": records(), "m2": [REC3]})  # type: ignore[dict-item]
    assert get_session().registry.snapshot() == {"m1": [REC1]}


def test_validation_skips_records_without_identifiers(caplog: pytest.LogCaptureFixture) -> None:
    unnamed = ImplementorRecord("", "presage::Thread")
    anonymous = ImplementorRecord("core::marker::Send", "  ")
    with caplog.at_level(logging.WARNING):
        register({"m1": [unnamed, REC1, anonymous, "junk"]})  # type: ignore[list-item]

    assert get_session().registry.records("m1") == [REC1]
    assert len([r for r in caplog.records if "Skipping implementor" in r.message]) == 3


def test_validation_can_be_disabled() -> None:
    session = reset_session(config=IndexConfig(validate_records=False), emitter=NullEmitter())
    unnamed = ImplementorRecord("", "presage::Thread")
    session.register({"m1": [unnamed]})
    assert session.registry.records("m1") == [unnamed]


def test_consumer_failure_does_not_escape_register(caplog: pytest.LogCaptureFixture) -> None:
    def broken(registry: RegistrySnapshot) -> None:
        raise RuntimeError("render failed")

    attach_consumer(broken)
    with caplog.at_level(logging.ERROR):
        register(FRAGMENT_A)
    assert get_session().registry.snapshot() == {"m1": [REC1]}
    assert any("consumer failed" in record.message for record in caplog.records)


def test_consumer_may_register_from_callback() -> None:
    seen: list[int] = []

    def consumer(registry: RegistrySnapshot) -> None:
        seen.append(sum(len(records) for records in registry.values()))
        if len(seen) == 1:
            register({"late": [REC3]})

    attach_consumer(consumer)
    register(FRAGMENT_A)
    assert seen == [1, 2]


def test_get_session_is_process_wide() -> None:
    assert get_session() is get_session()
    previous = get_session()
    replaced = reset_session()
    assert replaced is get_session()
    assert replaced is not previous


def test_sessions_are_isolated() -> None:
    private = IndexSession(emitter=NullEmitter())
    private.register(FRAGMENT_A)
    assert len(private.registry) == 1
    assert len(get_session().registry) == 0


def test_register_emits_summary_event(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.INFO, logger="implindex.diagnostics"):
        register(FRAGMENT_B)
    messages = [record.message for record in caplog.records]
    assert "Registered 2 implementors for m1, m2" in messages
    assert "No consumer attached, buffering implementors of 2 modules" in messages


def test_check_record_rejects_non_records() -> None:
    with pytest.raises(registrar.MalformedFragmentError):
        registrar.check_record({"trait_id": "x", "implementor_id": "y"})
    assert registrar.check_record(REC1) is REC1


def test_merge_returns_appended_record_count() -> None:
    session = IndexSession(emitter=NullEmitter())
    incomplete = ImplementorRecord("", "m::Missing")

    assert session.merge(FRAGMENT_B) == 2
    assert session.merge({"m3": [REC1, incomplete]}) == 1
    assert session.merge({"m4": "not-a-list"}) == 0  # type: ignore[dict-item]
    assert len(session.registry) == 3
