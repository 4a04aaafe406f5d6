"""Tests for read-time punch state classification."""

from datetime import datetime, timedelta

from attendance_metrics.services.punch_state import PunchState, classify, default_window

NOW = datetime(2026, 3, 10, 18, 0)


def test_no_check_in_has_no_state():
    assert classify(None, None, NOW) is None
    assert classify(None, NOW, NOW) is None


def test_checkout_closes_record():
    assert classify(NOW - timedelta(hours=8), NOW, NOW) is PunchState.CLOSED


def test_open_inside_window_is_active():
    assert classify(NOW - timedelta(hours=8, minutes=59), None, NOW) is PunchState.OPEN_ACTIVE


def test_open_at_window_edge_is_stale():
    """Exactly nine hours after check-in the record is pending auto-closure."""
    assert classify(NOW - timedelta(hours=9), None, NOW) is PunchState.OPEN_STALE


def test_open_past_window_is_stale():
    assert classify(NOW - timedelta(hours=10), None, NOW) is PunchState.OPEN_STALE


def test_window_is_injectable():
    check_in = NOW - timedelta(hours=3)
    assert classify(check_in, None, NOW, timedelta(hours=2)) is PunchState.OPEN_STALE
    assert classify(check_in, None, NOW, timedelta(hours=4)) is PunchState.OPEN_ACTIVE


def test_default_window_is_nine_hours():
    assert default_window() == timedelta(hours=9)


def test_open_records_partition_into_active_and_stale():
    check_ins = [NOW - timedelta(minutes=m) for m in range(0, 24 * 60, 37)]
    states = [classify(ci, None, NOW) for ci in check_ins]
    active = [ci for ci, s in zip(check_ins, states) if s is PunchState.OPEN_ACTIVE]
    stale = [ci for ci, s in zip(check_ins, states) if s is PunchState.OPEN_STALE]
    assert len(active) + len(stale) == len(check_ins)
    assert all(NOW - ci < timedelta(hours=9) for ci in active)
    assert all(NOW - ci >= timedelta(hours=9) for ci in stale)
