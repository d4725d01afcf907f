"""SQLAlchemy database models and shared enums.

One table per store collection. Rows are addressed by the string ``id``
assigned by the store; ``seq`` only exists to give a stable insertion order
for ties when sorting.
"""
import enum

from sqlalchemy import (
    Column,
    String,
    Text,
    Integer,
    DateTime,
    JSON,
    CheckConstraint,
)
from sqlalchemy.orm import declarative_base

# Base class for all models
Base = declarative_base()


class Role(str, enum.Enum):
    """Principal role enum. The only input to authorization decisions."""

    ADMIN = "admin"
    MANAGER = "manager"
    MEMBER = "member"


class ProjectStatus(str, enum.Enum):
    """Project status enum."""

    ACTIVE = "active"
    COMPLETED = "completed"
    ON_HOLD = "on-hold"


class TaskStatus(str, enum.Enum):
    """Task status enum (kanban columns, in board order)."""

    TODO = "todo"
    IN_PROGRESS = "in-progress"
    REVIEW = "review"
    DONE = "done"


class TaskPriority(str, enum.Enum):
    """Task priority enum."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class IssueSeverity(str, enum.Enum):
    """Issue severity enum."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class IssueStatus(str, enum.Enum):
    """Issue status enum."""

    OPEN = "open"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class TargetType(str, enum.Enum):
    """Kind of entity an activity record points at."""

    TASK = "task"
    PROJECT = "project"
    ISSUE = "issue"
    MEMBER = "member"


def _values_check(column: str, enum_cls: type[enum.Enum], name: str) -> CheckConstraint:
    values = ", ".join(f"'{e.value}'" for e in enum_cls)
    return CheckConstraint(f"{column} IN ({values})", name=name)


class User(Base):
    """
    User profile document.

    The id is the identity provider's uid. Authentication itself happens
    outside this service; only the profile and role live here.
    """

    __tablename__ = "users"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(64), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, index=True)
    display_name = Column(String(255), nullable=False, default="")
    photo_url = Column(Text)
    role = Column(String(20), nullable=False, default=Role.MEMBER.value, index=True)
    department = Column(String(255))
    position = Column(String(255))
    created_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        _values_check("role", Role, "valid_user_role"),
    )

    def __repr__(self) -> str:
        return f"<User {self.email} ({self.role})>"


class Project(Base):
    """Project document. ``members`` holds user ids, creator first."""

    __tablename__ = "projects"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(64), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    status = Column(String(20), nullable=False, default=ProjectStatus.ACTIVE.value, index=True)
    created_by = Column(String(64), nullable=False, index=True)
    members = Column(JSON, nullable=False, default=list)

    # Audit fields
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        _values_check("status", ProjectStatus, "valid_project_status"),
    )

    def __repr__(self) -> str:
        return f"<Project {self.id}: {self.name}>"


class Task(Base):
    """Task document on a project's kanban board."""

    __tablename__ = "tasks"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(64), nullable=False, unique=True, index=True)
    project_id = Column(String(64), nullable=False, index=True)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=False, default="")
    status = Column(String(20), nullable=False, default=TaskStatus.TODO.value, index=True)
    priority = Column(String(20), nullable=False, default=TaskPriority.MEDIUM.value)
    assigned_to = Column(String(64), index=True)
    assigned_by = Column(String(64), nullable=False)
    started_at = Column(DateTime(timezone=True))
    completed_at = Column(DateTime(timezone=True))
    due_date = Column(DateTime(timezone=True), index=True)
    tags = Column(JSON, nullable=False, default=list)

    # Audit fields
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        _values_check("status", TaskStatus, "valid_task_status"),
        _values_check("priority", TaskPriority, "valid_task_priority"),
    )

    def __repr__(self) -> str:
        return f"<Task {self.id}: {self.title} ({self.status})>"


class Issue(Base):
    """Issue document, optionally linked to a task."""

    __tablename__ = "issues"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(64), nullable=False, unique=True, index=True)
    project_id = Column(String(64), nullable=False, index=True)
    task_id = Column(String(64), index=True)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=False, default="")
    severity = Column(String(20), nullable=False, default=IssueSeverity.MEDIUM.value)
    status = Column(String(20), nullable=False, default=IssueStatus.OPEN.value, index=True)
    reported_by = Column(String(64), nullable=False)
    assigned_to = Column(String(64), index=True)
    resolved_at = Column(DateTime(timezone=True))

    # Audit fields
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        _values_check("severity", IssueSeverity, "valid_issue_severity"),
        _values_check("status", IssueStatus, "valid_issue_status"),
    )

    def __repr__(self) -> str:
        return f"<Issue {self.id}: {self.title} ({self.status})>"


class Activity(Base):
    """
    Activity feed entry.

    Append-only: written once after a successful mutation, never updated.
    ``project_id`` is empty for account-level events (sign-up, role change).
    """

    __tablename__ = "activities"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(64), nullable=False, unique=True, index=True)
    project_id = Column(String(64), index=True)
    user_id = Column(String(64), nullable=False, index=True)
    action = Column(String(255), nullable=False)
    target_type = Column(String(20), nullable=False, index=True)
    target_id = Column(String(64), nullable=False)
    target_title = Column(String(500), nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)

    __table_args__ = (
        _values_check("target_type", TargetType, "valid_activity_target_type"),
    )

    def __repr__(self) -> str:
        return f"<Activity {self.user_id} {self.action} {self.target_type}:{self.target_id}>"


# Store collection name -> model class
COLLECTION_MODELS: dict[str, type] = {
    "projects": Project,
    "tasks": Task,
    "issues": Issue,
    "activities": Activity,
    "users": User,
}
