"""Pruebas del registro de la llamada activa."""

from callrelay.calls.state import CallPhase, CallRecord, CallTracker


def test_tracker_starts_idle() -> None:
    tracker = CallTracker()
    assert tracker.record == CallRecord()
    assert not tracker.is_active


def test_bind_sets_identity_and_ringing_phase() -> None:
    tracker = CallTracker()

    record = tracker.bind("V1", "+1555")

    assert record.voice_id == "V1"
    assert record.destination == "+1555"
    assert record.phase is CallPhase.RINGING
    assert tracker.is_active


def test_second_incoming_call_overwrites_record() -> None:
    tracker = CallTracker()
    tracker.bind("V1", "+1555")
    tracker.advance(CallPhase.CONNECTED)

    tracker.bind("V2", "+1666")

    assert tracker.record.voice_id == "V2"
    assert tracker.record.phase is CallPhase.RINGING


def test_advance_only_changes_phase() -> None:
    tracker = CallTracker()
    tracker.bind("V1", "+1555")

    tracker.advance(CallPhase.DISCONNECTED)

    assert tracker.record == CallRecord("V1", "+1555", CallPhase.DISCONNECTED)
    assert not tracker.is_active


def test_label_uses_placeholder_without_voice_id() -> None:
    assert CallRecord().label == "[unknown]"
    assert CallRecord(voice_id="V1").label == "[V1]"
