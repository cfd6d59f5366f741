from factories import child, milestone, subtask, task, tree, user

from app.schemas.config import DEFAULT_MILESTONE_OPTIONS, MilestoneOption
from app.services.hierarchy import is_task_closed
from app.services.kanban import COLOR_PALETTE, build_kanban, column_key


def _grouped():
    return tree(
        tasks=[task("t1", "Login"), task("t2", "Billing")],
        subtasks=[
            subtask("s1", "t1", "Backend", assigned_to="u1"),
            subtask("s2", "t2", "API", assigned_to="u2"),
        ],
        children=[child("c1", "s1", "OAuth")],
        milestones=[
            milestone("2024-01-02", "Dev Complete", subtask_id="s1"),
            milestone("2024-01-03", "Dev Complete", sub_subtask_id="c1"),
            milestone("2024-01-04", "Something Else", subtask_id="s1"),
            milestone("2024-01-05", "CLOSED", subtask_id="s2"),
        ],
        users=[user("u1", "Alice"), user("u2", "Bob")],
    )


def _column(board, column_id):
    return next(column for column in board.columns if column.id == column_id)


def test_column_key():
    assert column_key("Dev Complete") == "dev-complete"
    assert column_key("Staging  Merge\tDone") == "staging-merge-done"


def test_cards_land_in_configured_columns():
    board = build_kanban(_grouped(), DEFAULT_MILESTONE_OPTIONS)
    assert [column.id for column in board.columns] == [o.value for o in DEFAULT_MILESTONE_OPTIONS]

    dev = _column(board, "dev-complete")
    assert [card.subtask_name for card in dev.cards] == ["Backend", "Backend"]
    assert dev.cards[1].sub_subtask_name == "OAuth"
    assert dev.cards[1].assigned_user_name == "Alice"
    assert len(_column(board, "closed").cards) == 1

    # Unconfigured texts are dropped
    total = sum(len(column.cards) for column in board.columns)
    assert total == 3


def test_colors_cycle_through_palette():
    options = [MilestoneOption(value=f"step-{i}", label=f"Step {i}") for i in range(12)]
    board = build_kanban([], options)
    assert board.columns[0].color == COLOR_PALETTE[0]
    assert board.columns[10].color == COLOR_PALETTE[0]
    assert all(column.cards == [] for column in board.columns)


def test_engineer_and_closed_filters():
    board = build_kanban(_grouped(), DEFAULT_MILESTONE_OPTIONS, engineer_name="Bob")
    assert len(_column(board, "dev-complete").cards) == 0
    assert len(_column(board, "closed").cards) == 1

    board = build_kanban(_grouped(), DEFAULT_MILESTONE_OPTIONS, hide_closed=True)
    assert len(_column(board, "closed").cards) == 0
    assert len(_column(board, "dev-complete").cards) == 2


def _half_closed():
    return tree(
        tasks=[task("t1", "Login"), task("t2", "Billing")],
        subtasks=[
            subtask("s1", "t1", "Backend", assigned_to="u1"),
            subtask("s2", "t2", "API", assigned_to="u1"),
            subtask("s3", "t2", "Docs", assigned_to="u2"),
        ],
        milestones=[
            milestone("2024-01-02", "Dev Complete", subtask_id="s1"),
            milestone("2024-01-02", "Dev Complete", subtask_id="s2"),
            milestone("2024-01-05", "CLOSED", subtask_id="s2"),
            milestone("2024-01-03", "Dev Complete", subtask_id="s3"),
        ],
        users=[user("u1", "Alice"), user("u2", "Bob")],
    )


def test_hide_closed_commutes_with_engineer_filter():
    grouped = _half_closed()
    closed_names = {node.task.name for node in grouped if is_task_closed(node)}
    options = DEFAULT_MILESTONE_OPTIONS

    combined = build_kanban(grouped, options, engineer_name="Alice", hide_closed=True)
    hidden_first = build_kanban(
        [node for node in grouped if not is_task_closed(node)], options, engineer_name="Alice"
    )
    filtered_first = build_kanban(grouped, options, engineer_name="Alice")
    for column in filtered_first.columns:
        column.cards = [card for card in column.cards if card.task_name not in closed_names]

    assert [card.task_name for card in _column(combined, "dev-complete").cards] == ["Login"]
    assert _column(combined, "closed").cards == []
    assert combined == hidden_first == filtered_first


def test_board_is_stable_across_runs():
    grouped = _grouped()
    board = build_kanban(grouped, DEFAULT_MILESTONE_OPTIONS, hide_closed=True)
    assert board == build_kanban(grouped, DEFAULT_MILESTONE_OPTIONS, hide_closed=True)
