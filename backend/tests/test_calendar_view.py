from datetime import date

from factories import child, milestone, subtask, task, tree, user

from app.models.subtask import SubtaskRole
from app.schemas.calendar import CalendarFilters
from app.services.calendar_view import UNASSIGNED, build_calendar, bucket_by_day
from app.services.hierarchy import is_task_closed


def _login_tree():
    return tree(
        tasks=[task("t1", "Login"), task("t2", "Billing")],
        subtasks=[
            subtask("p1", "t1", "PLANNED"),
            subtask("s1", "t1", "UI", assigned_to="u1"),
            subtask("s2", "t1", "Backend", assigned_to="u2"),
            subtask("s3", "t2", "API"),
        ],
        children=[child("c1", "s2", "OAuth")],
        milestones=[
            milestone("2024-03-10", "Dev Complete", subtask_id="p1"),
            milestone("2024-03-15", "Dev Complete", subtask_id="s1"),
            milestone("2024-03-15", "Dev Complete", sub_subtask_id="c1"),
            milestone("2024-03-16", "CLOSED", subtask_id="s3"),
        ],
        users=[user("u1", "Alice"), user("u2", "Bob")],
    )


def test_entries_carry_subtask_and_composed_child_names():
    view = build_calendar(_login_tree())
    bucket = view.days[date(2024, 3, 15)]
    names = [entry.subtask_name for entry in bucket.entries]
    assert names == ["UI", "Backend → OAuth"]
    assert bucket.entries[0].task_name == "Login"
    # Sub-subtask entries take the parent subtask's assignee
    assert bucket.entries[1].engineer_name == "Bob"
    assert bucket.engineer_ids == ["u1", "u2"]


def test_unassigned_entries():
    view = build_calendar(_login_tree())
    entry = view.days[date(2024, 3, 16)].entries[0]
    assert entry.engineer_name == UNASSIGNED
    assert entry.engineer_id == ""


def test_filters_combine_and_drop_empty_days():
    grouped = _login_tree()
    view = build_calendar(grouped, CalendarFilters(engineer_id="u1"))
    assert list(view.days) == [date(2024, 3, 15)]

    view = build_calendar(grouped, CalendarFilters(show_planned=False, milestone_text="Dev Complete"))
    assert date(2024, 3, 10) not in view.days
    assert date(2024, 3, 16) not in view.days

    view = build_calendar(grouped, CalendarFilters(hide_closed=True))
    assert date(2024, 3, 16) not in view.days


def test_task_level_only_keeps_planned_and_actual_rows():
    view = build_calendar(
        _login_tree(), CalendarFilters(task_level_only=True, include_actual_row=True)
    )
    roles = {entry.subtask_role for bucket in view.days.values() for entry in bucket.entries}
    assert roles == {SubtaskRole.PLANNED, SubtaskRole.ACTUAL}
    actual = [e for e in view.days[date(2024, 3, 15)].entries if e.subtask_role == SubtaskRole.ACTUAL]
    assert actual[0].subtask_name == "ACTUAL"


def test_milestone_types_and_weeks():
    view = build_calendar(_login_tree())
    assert view.milestone_types == ["CLOSED", "Dev Complete"]
    assert view.weeks[0][0] == date(2024, 3, 10)


def test_empty_input():
    assert bucket_by_day([]) == {}
    view = build_calendar([])
    assert view.days == {}
    assert view.weeks == []


def _half_closed_tree():
    return tree(
        tasks=[task("t1", "Login"), task("t2", "Billing")],
        subtasks=[
            subtask("s1", "t1", "UI", assigned_to="u1"),
            subtask("s2", "t1", "Backend", assigned_to="u2"),
            subtask("s3", "t2", "API", assigned_to="u1"),
            subtask("s4", "t2", "Docs", assigned_to="u2"),
        ],
        milestones=[
            milestone("2024-03-15", "Dev Complete", subtask_id="s1"),
            milestone("2024-03-15", "Dev Complete", subtask_id="s2"),
            milestone("2024-03-15", "Dev Complete", subtask_id="s3"),
            milestone("2024-03-16", "CLOSED", subtask_id="s3"),
            milestone("2024-03-17", "Dev Complete", subtask_id="s4"),
        ],
        users=[user("u1", "Alice"), user("u2", "Bob")],
    )


def _entries(view):
    return {day: bucket.entries for day, bucket in view.days.items()}


def test_hide_closed_commutes_with_entry_filters():
    grouped = _half_closed_tree()
    closed_names = {node.task.name for node in grouped if is_task_closed(node)}
    entry_filters = {"engineer_id": "u1", "milestone_text": "Dev Complete"}

    combined = _entries(build_calendar(grouped, CalendarFilters(hide_closed=True, **entry_filters)))

    hidden_first = _entries(
        build_calendar(
            [node for node in grouped if not is_task_closed(node)],
            CalendarFilters(**entry_filters),
        )
    )

    filtered_first = {}
    for day, entries in _entries(build_calendar(grouped, CalendarFilters(**entry_filters))).items():
        kept = [entry for entry in entries if entry.task_name not in closed_names]
        if kept:
            filtered_first[day] = kept

    assert list(combined) == [date(2024, 3, 15)]
    assert [entry.subtask_name for entry in combined[date(2024, 3, 15)]] == ["UI"]
    assert combined == hidden_first == filtered_first


def test_calendar_is_stable_across_runs():
    grouped = _login_tree()
    filters = CalendarFilters(include_actual_row=True)
    assert build_calendar(grouped, filters) == build_calendar(grouped, filters)
