"""Tests del estado de correlación y la calibración en vuelo."""

import threading
from datetime import timedelta

from biogas_ingest.models import CalibrationRequest, CalibrationStatus
from biogas_ingest.state import CorrelationState, utcnow


def _request(offset=0.2, age_seconds=0.0) -> CalibrationRequest:
    return CalibrationRequest(
        reference_ph=7.0,
        current_ph=7.0 - offset,
        offset=offset,
        timestamp=utcnow() - timedelta(seconds=age_seconds),
    )


class TestCorrelation:
    def test_initial_state(self, state):
        assert state.latest_sensor_id is None
        assert state.warmup_active is False
        assert state.calibration_in_progress is False
        assert state.last_calibration is None

    def test_latest_sensor_id(self, state):
        state.set_latest_sensor_id(10)
        state.set_latest_sensor_id(11)
        assert state.latest_sensor_id == 11

    def test_set_warmup_reports_changes(self, state):
        assert state.set_warmup(True) is True
        assert state.set_warmup(True) is False
        assert state.warmup_active is True
        assert state.set_warmup(False) is True


class TestCalibrationLifecycle:
    def test_only_one_calibration_in_flight(self, state):
        first = _request()
        assert state.begin_calibration(first) is True
        assert state.begin_calibration(_request(offset=0.5)) is False
        assert state.pending_calibration is first

    def test_rollback_only_clears_same_request(self, state):
        first = _request()
        state.begin_calibration(first)
        state.rollback_calibration(_request())
        assert state.calibration_in_progress is True
        state.rollback_calibration(first)
        assert state.calibration_in_progress is False

    def test_complete_with_pending(self, state):
        request = _request(offset=0.3)
        state.begin_calibration(request)
        log = state.complete_calibration({"success": True}, True)

        assert log.status is CalibrationStatus.SUCCESS
        assert log.offset == 0.3
        assert log.requested_at == request.timestamp
        assert log.response == {"success": True}
        assert state.pending_calibration is None
        assert state.last_calibration is log

    def test_complete_without_pending(self, state):
        log = state.complete_calibration({"status": "error"}, False)
        assert log.status is CalibrationStatus.FAILED
        assert log.offset is None
        assert log.requested_at is None
        assert log.to_dict()["requestedAt"] is None

    def test_expire_before_timeout_keeps_pending(self, state):
        state.begin_calibration(_request(age_seconds=5))
        assert state.expire_calibration(30) is None
        assert state.calibration_in_progress is True

    def test_expire_after_timeout(self, state):
        state.begin_calibration(_request(age_seconds=31))
        log = state.expire_calibration(30)

        assert log is not None
        assert log.status is CalibrationStatus.TIMEOUT
        assert log.success is False
        assert state.calibration_in_progress is False
        assert state.last_calibration is log

    def test_expire_without_pending(self, state):
        assert state.expire_calibration(0) is None

    def test_snapshot(self, state):
        state.set_latest_sensor_id(4)
        state.begin_calibration(_request())
        snap = state.snapshot()
        assert snap["latest_sensor_id"] == 4
        assert snap["calibration_in_progress"] is True
        assert snap["pending_calibration"]["offset"] == 0.2
        assert snap["last_calibration"] is None


def test_calibration_log_row_uses_offset_column():
    state = CorrelationState()
    state.begin_calibration(_request(offset=0.4))
    row = state.complete_calibration({"success": True}, True).to_row()
    assert row["ph_offset"] == 0.4
    assert row["status"] == "success"
    assert "offset" not in row


def test_begin_calibration_is_atomic_across_threads():
    state = CorrelationState()
    barrier = threading.Barrier(8)
    accepted = []

    def begin():
        request = _request()
        barrier.wait()
        if state.begin_calibration(request):
            accepted.append(request)

    threads = [threading.Thread(target=begin) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=5)

    assert len(accepted) == 1
    assert state.pending_calibration is accepted[0]
