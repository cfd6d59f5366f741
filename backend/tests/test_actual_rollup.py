from datetime import date

from factories import child, milestone, subtask, task, tree

from app.services.actual_rollup import actual_milestones, actual_row, latest_dates_by_text


def _node():
    return tree(
        tasks=[task("t1")],
        subtasks=[
            subtask("p1", "t1", "PLANNED"),
            subtask("s1", "t1", "Backend"),
            subtask("s2", "t1", "Frontend"),
        ],
        children=[child("c1", "s1")],
        milestones=[
            milestone("2024-05-30", "Dev Complete", subtask_id="p1"),
            milestone("2024-05-01", "Dev Complete", subtask_id="s1"),
            milestone("2024-05-09", "Dev Complete", sub_subtask_id="c1"),
            milestone("2024-05-04", "Dev Complete", subtask_id="s2"),
            milestone("2024-05-20", "Prod Merge Done", subtask_id="s2"),
        ],
    )[0]


def test_latest_date_wins_across_subtasks_and_children():
    latest = latest_dates_by_text(_node())
    # PLANNED dates never leak into the ACTUAL row
    assert latest == {"Dev Complete": date(2024, 5, 9), "Prod Merge Done": date(2024, 5, 20)}


def test_actual_row_is_keyed_by_date():
    assert actual_milestones(_node()) == {
        date(2024, 5, 9): "Dev Complete",
        date(2024, 5, 20): "Prod Merge Done",
    }
    row = actual_row(_node())
    assert row.task_id == "t1"
    assert row.by_date[date(2024, 5, 9)] == "Dev Complete"


def test_task_with_only_planned_has_no_actual_row():
    node = tree(
        tasks=[task("t1")],
        subtasks=[subtask("p1", "t1", "PLANNED")],
        milestones=[milestone("2024-05-30", "Dev Complete", subtask_id="p1")],
    )[0]
    assert actual_milestones(node) == {}
