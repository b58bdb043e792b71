# tests/test_timer_service.py

from __future__ import annotations

import datetime as dt

import pytest

from core.exceptions import MultipleActiveTimers, NoActiveTimer, TimerAlreadyActive
from core.models import TimeEntry
from core.timefmt import format_duration
from services.timer_service import TimerSession, elapsed, pick_active

T0 = dt.datetime(2024, 5, 1, 9, 0, tzinfo=dt.timezone.utc)


def entry(id: int, start: dt.datetime, end: dt.datetime | None = None) -> TimeEntry:
    return TimeEntry(id=id, task_id=7, start_time=start, end_time=end)


@pytest.fixture()
def session(backend, state, notifier) -> TimerSession:
    return TimerSession(backend, state, notifier, clock=lambda: backend.now)


def test_elapsed_counts_up_for_open_entry() -> None:
    e = entry(1, T0)
    readings = [elapsed(e, T0 + dt.timedelta(seconds=s)) for s in (0, 1, 59, 3600)]
    assert readings == [0, 1, 59, 3600]
    assert readings == sorted(readings)


def test_elapsed_is_fixed_for_closed_entry() -> None:
    e = entry(1, T0, T0 + dt.timedelta(minutes=5))
    assert elapsed(e, T0) == 300
    assert elapsed(e, T0 + dt.timedelta(days=3)) == 300


def test_elapsed_clamps_clock_skew_to_zero() -> None:
    assert elapsed(entry(1, T0), T0 - dt.timedelta(seconds=30)) == 0


def test_start_creates_entry_and_tracks_it(session, backend, state) -> None:
    active = session.start(7, "drafting")
    assert active is not None and active.task_id == 7
    assert state.active_timer == active
    assert backend.network_calls("start_timer") == [("start_timer", 7, "drafting")]


def test_second_start_without_stop_fails(session, backend) -> None:
    session.start(7)
    with pytest.raises(TimerAlreadyActive):
        session.start(8)
    assert len(backend.network_calls("start_timer")) == 1


def test_stop_without_active_timer_fails(session, backend) -> None:
    with pytest.raises(NoActiveTimer):
        session.stop()
    assert backend.network_calls("stop_timer") == []


def test_stop_closes_the_active_entry(session, backend, state) -> None:
    started = session.start(7)
    backend.now = backend.now + dt.timedelta(minutes=2)
    assert session.stop() == started.id
    assert state.active_timer is None
    closed = next(e for e in state.time_entries if e.id == started.id)
    assert elapsed(closed, backend.now + dt.timedelta(hours=1)) == 120


def test_reconcile_picks_latest_and_warns_on_multiple_open(session, state, notifier) -> None:
    entries = [entry(1, T0), entry(2, T0 + dt.timedelta(hours=1)), entry(3, T0, T0 + dt.timedelta(minutes=1))]
    with pytest.warns(MultipleActiveTimers):
        active = session.reconcile(entries)
    assert active.id == 2
    assert state.active_timer.id == 2
    assert notifier.errors


def test_reconcile_with_no_open_entry_clears_timer(session, state) -> None:
    state.active_timer = entry(9, T0)
    assert session.reconcile([entry(1, T0, T0)]) is None
    assert state.active_timer is None


def test_tick_text_formats_elapsed(session, state) -> None:
    assert session.tick_text(T0) == ""
    state.active_timer = entry(1, T0)
    assert session.tick_text(T0 + dt.timedelta(seconds=3725)) == "01:02:05"


def test_format_duration() -> None:
    assert format_duration(0) == "00:00:00"
    assert format_duration(90061) == "25:01:01"


def test_pick_active_returns_the_other_open_entries() -> None:
    closed = entry(3, T0, T0 + dt.timedelta(minutes=1))
    assert pick_active([closed]) == (None, [])
    active, others = pick_active([entry(1, T0), entry(2, T0 + dt.timedelta(hours=1)), closed])
    assert active.id == 2
    assert [e.id for e in others] == [1]
    # same start: higher id wins
    active, others = pick_active([entry(5, T0), entry(4, T0)])
    assert (active.id, [e.id for e in others]) == (5, [4])


def test_reconcile_warns_once_per_call(session, notifier) -> None:
    entries = [entry(1, T0), entry(2, T0), entry(3, T0)]
    with pytest.warns(MultipleActiveTimers) as record:
        session.reconcile(entries)
    assert len([w for w in record if issubclass(w.category, MultipleActiveTimers)]) == 1
    assert notifier.errors == ["3 open time entries (3, 1, 2); using 3"]


def test_adopt_entries_drops_a_snapshot_older_than_start(session, backend, state) -> None:
    mark = session.snapshot_mark()
    started = session.start(7)
    assert session.adopt_entries([], mark) is False
    assert state.active_timer == started

    assert session.adopt_entries([entry(started.id, T0)], session.snapshot_mark()) is True
    assert state.time_entries == [entry(started.id, T0)]
