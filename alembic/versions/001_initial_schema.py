"""Initial schema with users, projects, tasks, issues and activities tables.

Revision ID: 001
Revises:
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _doc_columns():
    # Every collection table: internal sequence (insertion order) + public string id
    return [
        sa.Column('seq', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('id', sa.String(64), nullable=False),
    ]


def upgrade() -> None:
    # Create users table
    op.create_table(
        'users',
        *_doc_columns(),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('display_name', sa.String(255), nullable=False, server_default=''),
        sa.Column('photo_url', sa.Text),
        sa.Column('role', sa.String(20), nullable=False, server_default='member'),
        sa.Column('department', sa.String(255)),
        sa.Column('position', sa.String(255)),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("role IN ('admin', 'manager', 'member')", name='valid_user_role'),
    )
    op.create_index('ix_users_id', 'users', ['id'], unique=True)
    op.create_index('ix_users_email', 'users', ['email'])
    op.create_index('ix_users_role', 'users', ['role'])

    # Create projects table
    op.create_table(
        'projects',
        *_doc_columns(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text, nullable=False, server_default=''),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('created_by', sa.String(64), nullable=False),
        sa.Column('members', sa.JSON, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "status IN ('active', 'completed', 'on-hold')",
            name='valid_project_status'
        ),
    )
    op.create_index('ix_projects_id', 'projects', ['id'], unique=True)
    op.create_index('ix_projects_status', 'projects', ['status'])
    op.create_index('ix_projects_created_by', 'projects', ['created_by'])
    op.create_index('ix_projects_created_at', 'projects', ['created_at'])

    # Create tasks table
    op.create_table(
        'tasks',
        *_doc_columns(),
        sa.Column('project_id', sa.String(64), nullable=False),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('description', sa.Text, nullable=False, server_default=''),
        sa.Column('status', sa.String(20), nullable=False, server_default='todo'),
        sa.Column('priority', sa.String(20), nullable=False, server_default='medium'),
        sa.Column('assigned_to', sa.String(64)),
        sa.Column('assigned_by', sa.String(64), nullable=False),
        sa.Column('started_at', sa.DateTime(timezone=True)),
        sa.Column('completed_at', sa.DateTime(timezone=True)),
        sa.Column('due_date', sa.DateTime(timezone=True)),
        sa.Column('tags', sa.JSON, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "status IN ('todo', 'in-progress', 'review', 'done')",
            name='valid_task_status'
        ),
        sa.CheckConstraint(
            "priority IN ('low', 'medium', 'high', 'urgent')",
            name='valid_task_priority'
        ),
    )
    op.create_index('ix_tasks_id', 'tasks', ['id'], unique=True)
    op.create_index('ix_tasks_project_id', 'tasks', ['project_id'])
    op.create_index('ix_tasks_status', 'tasks', ['status'])
    op.create_index('ix_tasks_assigned_to', 'tasks', ['assigned_to'])
    op.create_index('ix_tasks_due_date', 'tasks', ['due_date'])
    op.create_index('ix_tasks_created_at', 'tasks', ['created_at'])

    # Create issues table
    op.create_table(
        'issues',
        *_doc_columns(),
        sa.Column('project_id', sa.String(64), nullable=False),
        sa.Column('task_id', sa.String(64)),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('description', sa.Text, nullable=False, server_default=''),
        sa.Column('severity', sa.String(20), nullable=False, server_default='medium'),
        sa.Column('status', sa.String(20), nullable=False, server_default='open'),
        sa.Column('reported_by', sa.String(64), nullable=False),
        sa.Column('assigned_to', sa.String(64)),
        sa.Column('resolved_at', sa.DateTime(timezone=True)),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "severity IN ('low', 'medium', 'high', 'critical')",
            name='valid_issue_severity'
        ),
        sa.CheckConstraint(
            "status IN ('open', 'in-progress', 'resolved', 'closed')",
            name='valid_issue_status'
        ),
    )
    op.create_index('ix_issues_id', 'issues', ['id'], unique=True)
    op.create_index('ix_issues_project_id', 'issues', ['project_id'])
    op.create_index('ix_issues_task_id', 'issues', ['task_id'])
    op.create_index('ix_issues_status', 'issues', ['status'])
    op.create_index('ix_issues_assigned_to', 'issues', ['assigned_to'])
    op.create_index('ix_issues_created_at', 'issues', ['created_at'])

    # Create activities table (append-only feed)
    op.create_table(
        'activities',
        *_doc_columns(),
        sa.Column('project_id', sa.String(64)),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('action', sa.String(255), nullable=False),
        sa.Column('target_type', sa.String(20), nullable=False),
        sa.Column('target_id', sa.String(64), nullable=False),
        sa.Column('target_title', sa.String(500), nullable=False, server_default=''),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "target_type IN ('task', 'project', 'issue', 'member')",
            name='valid_activity_target_type'
        ),
    )
    op.create_index('ix_activities_id', 'activities', ['id'], unique=True)
    op.create_index('ix_activities_project_id', 'activities', ['project_id'])
    op.create_index('ix_activities_user_id', 'activities', ['user_id'])
    op.create_index('ix_activities_target_type', 'activities', ['target_type'])
    op.create_index('ix_activities_created_at', 'activities', ['created_at'])


def downgrade() -> None:
    # Drop tables (indexes go with them)
    op.drop_table('activities')
    op.drop_table('issues')
    op.drop_table('tasks')
    op.drop_table('projects')
    op.drop_table('users')
