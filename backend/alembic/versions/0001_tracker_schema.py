"""tracker schema

Revision ID: 0001_tracker_schema
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_tracker_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('role', sa.Enum('USER', 'ADMIN', name='userrole'), nullable=False),
        sa.Column('realm_id', sa.String(36), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('email', name='uq_users_email'),
    )
    op.create_index('ix_users_realm_id', 'users', ['realm_id'])

    op.create_table(
        'tasks',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column(
            'category',
            sa.Enum('DEV', 'TEST', 'INFRA', 'SUPPORT', name='taskcategory'),
            nullable=False,
        ),
        sa.Column('priority', sa.Integer(), nullable=False, server_default='2'),
        sa.Column('realm_id', sa.String(36), nullable=True),
        sa.Column(
            'created_by', sa.String(36), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True
        ),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('priority BETWEEN 1 AND 3', name='ck_tasks_priority'),
    )
    op.create_index('ix_tasks_realm_id', 'tasks', ['realm_id'])

    op.create_table(
        'subtasks',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column(
            'task_id', sa.String(36), sa.ForeignKey('tasks.id', ondelete='CASCADE'), nullable=False
        ),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column(
            'role',
            sa.Enum('PLANNED', 'ACTUAL', 'ORDINARY', name='subtaskrole'),
            nullable=False,
        ),
        sa.Column(
            'assigned_to', sa.String(36), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True
        ),
        sa.Column('created_by', sa.String(36), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_subtasks_task_id', 'subtasks', ['task_id'])
    op.create_index('ix_subtasks_assigned_to', 'subtasks', ['assigned_to'])

    op.create_table(
        'sub_subtasks',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column(
            'subtask_id', sa.String(36), sa.ForeignKey('subtasks.id', ondelete='CASCADE'), nullable=False
        ),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column(
            'assigned_to', sa.String(36), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True
        ),
        sa.Column('order_index', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_by', sa.String(36), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_sub_subtasks_subtask_id', 'sub_subtasks', ['subtask_id'])

    op.create_table(
        'milestones',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column(
            'subtask_id', sa.String(36), sa.ForeignKey('subtasks.id', ondelete='CASCADE'), nullable=True
        ),
        sa.Column(
            'sub_subtask_id',
            sa.String(36),
            sa.ForeignKey('sub_subtasks.id', ondelete='CASCADE'),
            nullable=True,
        ),
        sa.Column('milestone_date', sa.Date(), nullable=False),
        sa.Column('milestone_text', sa.String(255), nullable=False),
        sa.Column('created_by', sa.String(36), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint(
            '(subtask_id IS NULL) <> (sub_subtask_id IS NULL)',
            name='ck_milestones_single_owner',
        ),
    )
    op.create_index('ix_milestones_subtask_id', 'milestones', ['subtask_id'])
    op.create_index('ix_milestones_sub_subtask_id', 'milestones', ['sub_subtask_id'])

    op.create_table(
        'action_history',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('action_type', sa.String(16), nullable=False),
        sa.Column('entity_type', sa.String(32), nullable=False),
        sa.Column('entity_id', sa.String(36), nullable=False),
        sa.Column('entity_name', sa.String(255), nullable=False),
        sa.Column('details', sa.JSON(), nullable=False),
        sa.Column('performed_by', sa.String(255), nullable=True),
        sa.Column('user_id', sa.String(36), nullable=True),
        sa.Column('realm_id', sa.String(36), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_action_history_created_at', 'action_history', ['created_at'])
    op.create_index('ix_action_history_realm_id', 'action_history', ['realm_id'])

    op.create_table(
        'app_config',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('config_key', sa.String(64), nullable=False, unique=True),
        sa.Column('config_value', sa.JSON(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table('app_config')
    op.drop_index('ix_action_history_realm_id', table_name='action_history')
    op.drop_index('ix_action_history_created_at', table_name='action_history')
    op.drop_table('action_history')
    op.drop_index('ix_milestones_sub_subtask_id', table_name='milestones')
    op.drop_index('ix_milestones_subtask_id', table_name='milestones')
    op.drop_table('milestones')
    op.drop_index('ix_sub_subtasks_subtask_id', table_name='sub_subtasks')
    op.drop_table('sub_subtasks')
    op.drop_index('ix_subtasks_assigned_to', table_name='subtasks')
    op.drop_index('ix_subtasks_task_id', table_name='subtasks')
    op.drop_table('subtasks')
    op.drop_index('ix_tasks_realm_id', table_name='tasks')
    op.drop_table('tasks')
    op.drop_index('ix_users_realm_id', table_name='users')
    op.drop_table('users')
    sa.Enum(name='subtaskrole').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='taskcategory').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='userrole').drop(op.get_bind(), checkfirst=True)
