# tests/test_filters.py

from __future__ import annotations

import pytest

from core.exceptions import InvalidStatus
from core.filters import TaskFilter, filter_tasks


def ids(tasks) -> list[int]:
    return [t.id for t in tasks]


def test_empty_filter_is_identity(sample_tasks) -> None:
    assert filter_tasks(sample_tasks, TaskFilter()) == sample_tasks
    assert filter_tasks(sample_tasks) == sample_tasks


def test_result_is_a_new_list(sample_tasks) -> None:
    result = filter_tasks(sample_tasks, TaskFilter())
    assert result is not sample_tasks


def test_priority_zero_is_a_real_filter(sample_tasks) -> None:
    assert ids(filter_tasks(sample_tasks, TaskFilter(priority=0))) == [1]


def test_search_is_case_insensitive_over_description_category_assignee(sample_tasks) -> None:
    assert ids(filter_tasks(sample_tasks, TaskFilter(search_text="LOGIN"))) == [1]
    assert ids(filter_tasks(sample_tasks, TaskFilter(search_text="ui"))) == [2]
    assert ids(filter_tasks(sample_tasks, TaskFilter(search_text="BOB"))) == [3]


def test_criteria_are_conjunctive(sample_tasks) -> None:
    assert ids(filter_tasks(sample_tasks, TaskFilter(project_id=1, status="todo"))) == [1]
    assert filter_tasks(sample_tasks, TaskFilter(project_id=2, status="todo")) == []


@pytest.mark.parametrize(
    "first, second, combined",
    [
        (TaskFilter(project_id=1), TaskFilter(priority=2), TaskFilter(project_id=1, priority=2)),
        (TaskFilter(search_text="e"), TaskFilter(status="done"), TaskFilter(search_text="e", status="done")),
    ],
)
def test_filters_compose(sample_tasks, first, second, combined) -> None:
    assert filter_tasks(filter_tasks(sample_tasks, first), second) == filter_tasks(sample_tasks, combined)


def test_from_form_treats_blank_inputs_as_no_filter() -> None:
    assert TaskFilter.from_form().is_empty()
    criteria = TaskFilter.from_form(project="2", status="done", priority="0", search="  docs ")
    assert criteria == TaskFilter(project_id=2, status="done", priority=0, search_text="docs")
    with pytest.raises(InvalidStatus):
        TaskFilter.from_form(status="archived")
