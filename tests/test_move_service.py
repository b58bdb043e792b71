# tests/test_move_service.py

from __future__ import annotations

import threading

import pytest

from core.board import project
from core.exceptions import BackendError, InvalidTarget, MoveInFlight, TaskNotFound
from core.status import STATUSES
from services.move_service import MoveService

from .fakes import unavailable


def status_of(state, task_id: int) -> str:
    return state.find_task(task_id).status


@pytest.fixture()
def service(backend, state, notifier) -> MoveService:
    return MoveService(backend, state, notifier)


def test_same_status_move_succeeds_without_network(service, backend) -> None:
    result = service.request_move(7, "todo")
    assert result.ok and not result.changed
    assert backend.network_calls("move_task") == []
    assert backend.network_calls("list_tasks") == []


def test_unknown_target_is_rejected_before_any_request(service, backend) -> None:
    with pytest.raises(InvalidTarget):
        service.request_move(7, "archived")
    assert backend.calls == []


def test_move_is_optimistic_then_confirmed(backend, state, notifier) -> None:
    seen_during_call: list[list[int]] = []

    def move_task(task_id, new_status, position=0):
        seen_during_call.append([t.id for t in project(state.tasks, 1)["in_progress"]])
        type(backend).move_task(backend, task_id, new_status, position)

    backend.move_task = move_task  # type: ignore[method-assign]
    service = MoveService(backend, state, notifier)

    result = service.request_move(7, "in_progress", position=1)

    assert seen_during_call == [[7, 8]]
    assert result.ok and result.changed
    assert result.from_status == "todo"
    assert backend.network_calls("move_task") == [("move_task", 7, "in_progress", 1)]
    # board re-pulled after success
    assert backend.network_calls("list_tasks")
    assert status_of(state, 7) == "in_progress"
    assert [t.id for t in state.confirmed_tasks if t.status == "in_progress"] == [7, 8]
    assert notifier.infos == ["Task moved successfully"]


def test_failed_move_restores_server_state(backend, state, notifier) -> None:
    backend.fail_move = unavailable()
    service = MoveService(backend, state, notifier)

    result = service.request_move(7, "in_progress")

    assert not result.ok
    assert result.error is backend.fail_move
    assert status_of(state, 7) == "todo"
    assert len(notifier.errors) == 1
    assert "Failed to move task" in notifier.errors[0]


def test_failed_move_falls_back_to_confirmed_snapshot_when_repull_fails(backend, state, notifier) -> None:
    backend.fail_move = unavailable()
    backend.fail_list = unavailable()
    service = MoveService(backend, state, notifier)

    result = service.request_move(7, "done")

    assert not result.ok
    assert status_of(state, 7) == "todo"
    assert not state.find_task(7).done


def test_unknown_task_on_backend_is_reported(backend, state, notifier) -> None:
    backend.tasks = [t for t in backend.tasks if t["id"] != 7]
    service = MoveService(backend, state, notifier)

    result = service.request_move(7, "done")

    assert isinstance(result.error, TaskNotFound)
    assert state.find_task(7) is None  # re-pulled from the backend
    assert notifier.errors


def test_move_to_done_marks_task_done(service, state) -> None:
    service.request_move(8, "done")
    assert state.find_task(8).done


def test_change_listener_fires_for_optimistic_and_final_render(backend, state, notifier) -> None:
    renders: list[str] = []
    service = MoveService(backend, state, notifier,
                          on_change=lambda: renders.append(status_of(state, 5)))
    service.request_move(5, "in_review")
    assert renders == ["in_review", "in_review"]


def test_second_move_of_same_task_while_in_flight_is_refused(backend, state, notifier) -> None:
    entered = threading.Event()
    release = threading.Event()
    original = backend.move_task

    def slow_move(task_id, new_status, position=0):
        if task_id == 7:
            entered.set()
            release.wait(timeout=5)
        return original(task_id, new_status, position)

    backend.move_task = slow_move  # type: ignore[method-assign]
    service = MoveService(backend, state, notifier)
    worker = threading.Thread(target=service.request_move, args=(7, "in_progress"))
    worker.start()
    try:
        assert entered.wait(timeout=5)
        assert service.is_moving(7)
        with pytest.raises(MoveInFlight):
            service.request_move(7, "done")
        # other tasks are not blocked
        assert service.request_move(5, "todo").ok
    finally:
        release.set()
        worker.join(timeout=5)
    assert not service.is_moving(7)
    assert status_of(state, 7) == "in_progress"


def test_status_stays_in_lattice_after_mixed_moves(backend, state, notifier) -> None:
    service = MoveService(backend, state, notifier)
    sequence = ["done", "backlog", "in_review", "in_review", "todo"]
    for i, target in enumerate(sequence):
        backend.fail_move = BackendError("boom", 500) if i % 2 else None
        service.request_move(8, target)
    assert all(t.status in STATUSES for t in state.tasks)
