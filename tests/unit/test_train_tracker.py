from __future__ import annotations

from src.app.services.train_tracker import TrainTracker
from src.domain.algorithms.position_simulator import simulate_positions
from src.domain.models import RunningState, ScheduleStore


def test_train_disappearing_is_reported_as_ended(line_store: ScheduleStore) -> None:
    tracker = TrainTracker(store=line_store)

    assert tracker.observe(simulate_positions(line_store, ["T1"], 29000)) == []
    assert [p.trip_id for p in tracker.live] == ["T1"]

    ended = tracker.observe(simulate_positions(line_store, ["T1"], 32401))

    assert [p.trip_id for p in ended] == ["T1"]
    assert ended[0].state is RunningState.ENDED
    assert (ended[0].lat, ended[0].lon) == (40.0, -3.0)
    assert tracker.live == ()

    # Reported once only.
    assert tracker.observe([]) == []


def test_status_prefers_live_then_ended_then_scheduled(
    line_store: ScheduleStore,
) -> None:
    tracker = TrainTracker(store=line_store)

    scheduled = tracker.status("T1")
    assert scheduled is not None and scheduled.state is RunningState.SCHEDULED
    assert not tracker.was_observed("T1")

    tracker.observe(simulate_positions(line_store, ["T1"], 31000))
    live = tracker.status("T1")
    assert live is not None and live.state is RunningState.MOVING

    tracker.observe([])
    ended = tracker.status("T1")
    assert ended is not None and ended.state is RunningState.ENDED
    assert tracker.was_observed("T1")

    assert tracker.status("UNKNOWN") is None


def test_train_reappearing_clears_ended(line_store: ScheduleStore) -> None:
    tracker = TrainTracker(store=line_store)
    tracker.observe(simulate_positions(line_store, ["T1"], 29000))
    tracker.observe([])

    tracker.observe(simulate_positions(line_store, ["T1"], 29000))

    status = tracker.status("T1")
    assert status is not None and status.state is RunningState.MOVING
