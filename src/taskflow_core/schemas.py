"""Pydantic schemas for entities, request payloads and API responses."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, ConfigDict

from .models import (
    Role,
    ProjectStatus,
    TaskStatus,
    TaskPriority,
    IssueSeverity,
    IssueStatus,
    TargetType,
)
from .permissions import Action


# Principal / User Schemas

class Principal(BaseModel):
    """The authenticated actor. Role is the only authorization input."""

    id: str
    role: Role

    model_config = ConfigDict(use_enum_values=True)


class UserCreate(BaseModel):
    """Sign-up payload sent by the identity provider.

    The id is the provider's uid. Role is not accepted here: every new
    account starts as a member.
    """

    id: str = Field(..., min_length=1, max_length=64)
    email: str = Field(..., min_length=3, max_length=255)
    display_name: str = Field("", max_length=255)
    photo_url: Optional[str] = None


class UserProfileUpdate(BaseModel):
    """Schema for updating profile fields. Role changes go through the role endpoint."""

    display_name: Optional[str] = Field(None, max_length=255)
    photo_url: Optional[str] = None
    department: Optional[str] = Field(None, max_length=255)
    position: Optional[str] = Field(None, max_length=255)


class UserRoleUpdate(BaseModel):
    """Schema for changing a user's role."""

    role: Role


class User(BaseModel):
    """Schema for user profile responses."""

    id: str
    email: str
    display_name: str = ""
    photo_url: Optional[str] = None
    role: Role = Role.MEMBER
    department: Optional[str] = None
    position: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)


class TeamMember(User):
    """User with task counts computed at read time."""

    tasks_completed: int = 0
    tasks_in_progress: int = 0


class SettingsOverview(BaseModel):
    """Settings page payload: own profile, permissions and (admins only) all users."""

    profile: User
    role_label: str
    allowed_actions: list[Action]
    users: Optional[list[User]] = None

    model_config = ConfigDict(use_enum_values=True)


# Project Schemas

class ProjectCreate(BaseModel):
    """Schema for creating a project. The creator is added to members automatically."""

    name: str = Field(..., max_length=255)
    description: str = ""
    members: list[str] = Field(default_factory=list, description="Additional member user ids")


class ProjectUpdate(BaseModel):
    """Schema for updating a project."""

    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    status: Optional[ProjectStatus] = None


class ProjectMemberAdd(BaseModel):
    """Schema for adding a user to a project."""

    user_id: str = Field(..., min_length=1)


class Project(BaseModel):
    """Schema for project responses."""

    id: str
    name: str
    description: str = ""
    status: ProjectStatus
    created_by: str
    members: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)


# Task Schemas

class TaskCreate(BaseModel):
    """Schema for creating a task. New tasks always start in 'todo'."""

    project_id: str = Field("", description="Project id")
    title: str = Field(..., max_length=500, description="Task title")
    description: str = ""
    assigned_to: Optional[str] = Field(None, description="Assignee user id")
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[datetime] = None
    tags: list[str] = Field(default_factory=list)


class TaskUpdate(BaseModel):
    """Schema for updating a task.

    started_at and completed_at are not accepted: they are stamped by the
    data access layer on the first qualifying status change.
    """

    title: Optional[str] = Field(None, max_length=500)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    assigned_to: Optional[str] = None
    due_date: Optional[datetime] = None
    tags: Optional[list[str]] = None


class TaskStatusUpdate(BaseModel):
    """Schema for a status-only task change (kanban move)."""

    status: TaskStatus


class Task(BaseModel):
    """Schema for task responses."""

    id: str
    project_id: str
    title: str
    description: str = ""
    status: TaskStatus
    priority: TaskPriority
    assigned_to: Optional[str] = None
    assigned_by: str
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    due_date: Optional[datetime] = None
    tags: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)


# Issue Schemas

class IssueCreate(BaseModel):
    """Schema for reporting an issue. New issues always start 'open'."""

    project_id: str = Field("", description="Project id")
    title: str = Field(..., max_length=500)
    description: str = ""
    severity: IssueSeverity = IssueSeverity.MEDIUM
    task_id: Optional[str] = None
    assigned_to: Optional[str] = None


class IssueUpdate(BaseModel):
    """Schema for updating an issue. resolved_at is stamped, never accepted."""

    title: Optional[str] = Field(None, max_length=500)
    description: Optional[str] = None
    severity: Optional[IssueSeverity] = None
    status: Optional[IssueStatus] = None
    assigned_to: Optional[str] = None


class Issue(BaseModel):
    """Schema for issue responses."""

    id: str
    project_id: str
    task_id: Optional[str] = None
    title: str
    description: str = ""
    severity: IssueSeverity
    status: IssueStatus
    reported_by: str
    assigned_to: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    resolved_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)


class IssueCounts(BaseModel):
    """Per-status issue counts."""

    open: int = 0
    in_progress: int = 0
    resolved: int = 0
    closed: int = 0
    total: int = 0


# Activity Schemas

class Activity(BaseModel):
    """Schema for activity feed entries."""

    id: str
    project_id: Optional[str] = None
    user_id: str
    action: str
    target_type: TargetType
    target_id: str
    target_title: str = ""
    created_at: datetime

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)


# Dashboard Schemas

class DashboardSummary(BaseModel):
    """Headline numbers for the dashboard, scoped to what the principal can see."""

    total_projects: int
    active_tasks: int
    completed_tasks: int
    completion_rate: int = Field(description="Completed tasks as a whole percentage (0-100)")
    open_issues: int
    recent_activity: list[Activity] = Field(default_factory=list)


# Search Schemas

class SearchResults(BaseModel):
    """Quick-search hits, newest first within each group."""

    tasks: list[Task] = Field(default_factory=list)
    projects: list[Project] = Field(default_factory=list)
    issues: list[Issue] = Field(default_factory=list)


# List Responses

class ProjectListResponse(BaseModel):
    """Schema for project lists."""

    items: list[Project]
    total: int


class TaskListResponse(BaseModel):
    """Schema for task lists."""

    items: list[Task]
    total: int


class IssueListResponse(BaseModel):
    """Schema for issue lists."""

    items: list[Issue]
    total: int


class ActivityListResponse(BaseModel):
    """Schema for activity feed pages."""

    items: list[Activity]
    total: int


class CreatedResponse(BaseModel):
    """Schema returned by create endpoints."""

    id: str
