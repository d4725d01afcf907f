"""Data access layer: role-gated CRUD for projects, tasks, issues and users.

Every mutating operation follows the same sequence:

1. permission check (PermissionDeniedError, before any store access)
2. required-field validation (ValidationError)
3. existence checks (NotFoundError)
4. a single store write, with created_at/updated_at stamped here
5. one activity record, written after the store returned

Reads always go to the store; nothing is cached between calls.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Iterable, Optional, Union

from pydantic import BaseModel

from . import schemas
from .audit import get_activities, log_activity
from .errors import NotFoundError, PermissionDeniedError, ValidationError
from .lifecycle import derive_issue_stamps, derive_task_stamps, next_task_status
from .models import (
    Role,
    ProjectStatus,
    TaskStatus,
    IssueStatus,
    TargetType,
)
from .permissions import Action, allowed_actions, is_allowed, require_permission, role_label
from .store import (
    DataStore,
    Filter,
    OrderBy,
    PROJECTS,
    TASKS,
    ISSUES,
    USERS,
)

logger = logging.getLogger("taskflow-core.crud")

NEWEST_FIRST = OrderBy("created_at", descending=True)
OLDEST_FIRST = OrderBy("created_at", descending=False)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _value(value: Any) -> Any:
    """Unwrap enum members to their stored string value."""
    return getattr(value, "value", value)


def _changes(data: BaseModel, nullable: Iterable[str] = ()) -> dict:
    """
    Turn an update payload into a store patch.

    Only fields the caller actually sent are included. None is dropped
    unless the field is listed in ``nullable`` (fields that can be cleared).
    """
    nullable = set(nullable)
    changes = {}
    for field, value in data.model_dump(exclude_unset=True).items():
        if value is None and field not in nullable:
            continue
        changes[field] = _value(value)
    return changes


def _require_text(value: Optional[str], field: str, label: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{label} is required", field=field)
    return text


def _clean_tags(tags: Iterable[str]) -> list[str]:
    return [tag.strip() for tag in tags if tag and tag.strip()]


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    return value if value else None


# ============================================================================
# Project Operations
# ============================================================================

def create_project(
    store: DataStore,
    principal: schemas.Principal,
    data: schemas.ProjectCreate,
) -> str:
    """
    Create a new project.

    The creator is always the first member; duplicate member ids are dropped.

    Args:
        store: Data store
        principal: Acting principal (admin or manager)
        data: Project creation data

    Returns:
        New project id

    Raises:
        PermissionDeniedError: If the role may not create projects
        ValidationError: If the name is blank
    """
    require_permission(principal, Action.CREATE_PROJECT)
    name = _require_text(data.name, "name", "Project name")

    now = _now()
    others = [m for m in dict.fromkeys(data.members) if m and m != principal.id]
    record = {
        "name": name,
        "description": data.description or "",
        "status": ProjectStatus.ACTIVE.value,
        "created_by": principal.id,
        "members": [principal.id, *others],
        "created_at": now,
        "updated_at": now,
    }
    project_id = store.insert(PROJECTS, record)
    logger.info(f"Created project {project_id} '{name}' by {principal.id}")

    log_activity(store, project_id, principal.id, "created project", TargetType.PROJECT, project_id, name)
    return project_id


def get_projects(
    store: DataStore,
    member_id: Optional[str] = None,
    status: Optional[Union[ProjectStatus, str]] = None,
) -> list[schemas.Project]:
    """
    Get projects, newest first.

    Args:
        store: Data store
        member_id: Only projects this user is a member of
        status: Only projects with this status

    Returns:
        List of projects
    """
    filters = []
    if member_id:
        filters.append(Filter("members", "array-contains", member_id))
    if status:
        filters.append(Filter("status", "==", ProjectStatus(status).value))
    records = store.query(PROJECTS, filters=filters, order_by=NEWEST_FIRST)
    return [schemas.Project.model_validate(r) for r in records]


def get_project(store: DataStore, project_id: str) -> schemas.Project:
    """
    Get a project by id.

    Raises:
        NotFoundError: If the project does not exist
    """
    return schemas.Project.model_validate(store.get(PROJECTS, project_id))


def update_project(
    store: DataStore,
    principal: schemas.Principal,
    project_id: str,
    data: schemas.ProjectUpdate,
) -> None:
    """
    Update a project's name, description or status.

    Raises:
        PermissionDeniedError: If the role may not edit projects
        ValidationError: If a blank name is supplied
        NotFoundError: If the project does not exist
    """
    require_permission(principal, Action.EDIT_PROJECT)
    changes = _changes(data)
    if "name" in changes:
        changes["name"] = _require_text(changes["name"], "name", "Project name")

    current = store.get(PROJECTS, project_id)
    store.patch(PROJECTS, project_id, {**changes, "updated_at": _now()})
    logger.info(f"Updated project {project_id}: {sorted(changes)}")

    if "status" in changes:
        action = f"updated project status to {changes['status']}"
    else:
        action = "updated project"
    title = changes.get("name", current["name"])
    log_activity(store, project_id, principal.id, action, TargetType.PROJECT, project_id, title)


def delete_project(
    store: DataStore,
    principal: schemas.Principal,
    project_id: str,
) -> None:
    """
    Delete a project.

    Tasks and issues of the project are left in place.

    Raises:
        PermissionDeniedError: If the role may not delete projects
        NotFoundError: If the project does not exist
    """
    require_permission(principal, Action.DELETE_PROJECT)
    current = store.get(PROJECTS, project_id)
    store.remove(PROJECTS, project_id)
    logger.info(f"Deleted project {project_id} by {principal.id}")

    log_activity(
        store, project_id, principal.id, "deleted project", TargetType.PROJECT, project_id, current["name"]
    )


def add_project_member(
    store: DataStore,
    principal: schemas.Principal,
    project_id: str,
    user_id: str,
) -> None:
    """
    Add a user to a project's member list.

    Adding someone who is already a member changes nothing and records no
    activity.

    Raises:
        PermissionDeniedError: If the role may not edit projects
        ValidationError: If user_id is blank
        NotFoundError: If the project or the user does not exist
    """
    require_permission(principal, Action.EDIT_PROJECT)
    user_id = _require_text(user_id, "user_id", "User id")

    project = store.get(PROJECTS, project_id)
    user = store.get(USERS, user_id)
    members = list(project.get("members") or [])
    if user_id in members:
        logger.debug(f"User {user_id} is already a member of project {project_id}")
        return

    store.patch(PROJECTS, project_id, {"members": [*members, user_id], "updated_at": _now()})
    logger.info(f"Added user {user_id} to project {project_id}")

    title = user.get("display_name") or user.get("email") or user_id
    log_activity(store, project_id, principal.id, "added member", TargetType.MEMBER, user_id, title)


# ============================================================================
# Task Operations
# ============================================================================

def create_task(
    store: DataStore,
    principal: schemas.Principal,
    data: schemas.TaskCreate,
) -> str:
    """
    Create a new task in 'todo'.

    Args:
        store: Data store
        principal: Acting principal, recorded as assigned_by
        data: Task creation data

    Returns:
        New task id

    Raises:
        PermissionDeniedError: If the role may not create tasks
        ValidationError: If project_id or title is missing
        NotFoundError: If the project does not exist
    """
    require_permission(principal, Action.CREATE_TASK)
    project_id = _require_text(data.project_id, "project_id", "Project")
    title = _require_text(data.title, "title", "Title")
    store.get(PROJECTS, project_id)

    now = _now()
    record = {
        "project_id": project_id,
        "title": title,
        "description": data.description or "",
        "status": TaskStatus.TODO.value,
        "priority": _value(data.priority),
        "assigned_to": _blank_to_none(data.assigned_to),
        "assigned_by": principal.id,
        "started_at": None,
        "completed_at": None,
        "due_date": data.due_date,
        "tags": _clean_tags(data.tags),
        "created_at": now,
        "updated_at": now,
    }
    task_id = store.insert(TASKS, record)
    logger.info(f"Created task {task_id} '{title}' in project {project_id}")

    log_activity(store, project_id, principal.id, "created task", TargetType.TASK, task_id, title)
    return task_id


def get_tasks(
    store: DataStore,
    project_id: Optional[str] = None,
    assigned_to: Optional[str] = None,
    status: Optional[Union[TaskStatus, str]] = None,
    due_from: Optional[datetime] = None,
    due_to: Optional[datetime] = None,
) -> list[schemas.Task]:
    """
    Get tasks, newest first.

    Args:
        store: Data store
        project_id: Only tasks of this project
        assigned_to: Only tasks assigned to this user
        status: Only tasks in this status
        due_from: Only tasks due at or after this time
        due_to: Only tasks due at or before this time

    Returns:
        List of tasks
    """
    filters = []
    if project_id:
        filters.append(Filter("project_id", "==", project_id))
    if assigned_to:
        filters.append(Filter("assigned_to", "==", assigned_to))
    if status:
        filters.append(Filter("status", "==", TaskStatus(status).value))
    if due_from:
        filters.append(Filter("due_date", ">=", due_from))
    if due_to:
        filters.append(Filter("due_date", "<=", due_to))
    records = store.query(TASKS, filters=filters, order_by=NEWEST_FIRST)
    return [schemas.Task.model_validate(r) for r in records]


def get_tasks_for_principal(
    store: DataStore,
    principal: schemas.Principal,
    **filters,
) -> list[schemas.Task]:
    """
    Get the tasks a principal works with.

    Members only see tasks assigned to them; admins and managers see all.
    Remaining keyword arguments are passed to get_tasks.
    """
    if principal.role == Role.MEMBER:
        filters["assigned_to"] = principal.id
    return get_tasks(store, **filters)


def get_task(store: DataStore, task_id: str) -> schemas.Task:
    """
    Get a task by id.

    Raises:
        NotFoundError: If the task does not exist
    """
    return schemas.Task.model_validate(store.get(TASKS, task_id))


def _apply_task_update(
    store: DataStore,
    principal: schemas.Principal,
    current: dict,
    changes: dict,
) -> None:
    now = _now()
    stamps = derive_task_stamps(current, changes, now)
    store.patch(TASKS, current["id"], {**changes, **stamps, "updated_at": now})
    logger.info(f"Updated task {current['id']}: {sorted(changes)}")

    if "status" in changes:
        action = f"updated task status to {changes['status']}"
    else:
        action = "updated task"
    title = changes.get("title", current["title"])
    log_activity(store, current["project_id"], principal.id, action, TargetType.TASK, current["id"], title)


def update_task(
    store: DataStore,
    principal: schemas.Principal,
    task_id: str,
    data: schemas.TaskUpdate,
) -> None:
    """
    Update any editable task fields.

    started_at/completed_at are stamped on the first move into
    in-progress/done; any target status is accepted.

    Raises:
        PermissionDeniedError: If the role may not edit tasks
        ValidationError: If a blank title is supplied
        NotFoundError: If the task does not exist
    """
    require_permission(principal, Action.EDIT_TASK)
    changes = _changes(data, nullable=("assigned_to", "due_date"))
    if "title" in changes:
        changes["title"] = _require_text(changes["title"], "title", "Title")
    if "tags" in changes:
        changes["tags"] = _clean_tags(changes["tags"])
    if "assigned_to" in changes:
        changes["assigned_to"] = _blank_to_none(changes["assigned_to"])

    current = store.get(TASKS, task_id)
    _apply_task_update(store, principal, current, changes)


def update_task_status(
    store: DataStore,
    principal: schemas.Principal,
    task_id: str,
    status: Union[TaskStatus, str],
) -> None:
    """
    Move a task to another status.

    Allowed for every role. Whether a member owns the task is checked by the
    caller before calling this.

    Raises:
        ValidationError: If the status is not a task status
        NotFoundError: If the task does not exist
    """
    require_permission(principal, Action.UPDATE_TASK_STATUS)
    try:
        new_status = TaskStatus(_value(status))
    except ValueError:
        raise ValidationError(f"Invalid task status: {status!r}", field="status") from None

    current = store.get(TASKS, task_id)
    _apply_task_update(store, principal, current, {"status": new_status.value})


def advance_task(
    store: DataStore,
    principal: schemas.Principal,
    task_id: str,
) -> TaskStatus:
    """
    Move a task one step along todo -> in-progress -> review -> done.

    Returns:
        The task's new status

    Raises:
        ValidationError: If the task is already done
        NotFoundError: If the task does not exist
    """
    require_permission(principal, Action.UPDATE_TASK_STATUS)
    current = store.get(TASKS, task_id)
    new_status = next_task_status(current["status"])
    if new_status is None:
        raise ValidationError(f"Task {task_id} is already {current['status']}", field="status")

    _apply_task_update(store, principal, current, {"status": new_status.value})
    return new_status


def delete_task(
    store: DataStore,
    principal: schemas.Principal,
    task_id: str,
) -> None:
    """
    Delete a task.

    Raises:
        PermissionDeniedError: If the role may not delete tasks
        NotFoundError: If the task does not exist
    """
    require_permission(principal, Action.DELETE_TASK)
    current = store.get(TASKS, task_id)
    store.remove(TASKS, task_id)
    logger.info(f"Deleted task {task_id} by {principal.id}")

    log_activity(
        store, current["project_id"], principal.id, "deleted task", TargetType.TASK, task_id, current["title"]
    )


# ============================================================================
# Issue Operations
# ============================================================================

def create_issue(
    store: DataStore,
    principal: schemas.Principal,
    data: schemas.IssueCreate,
) -> str:
    """
    Report a new issue. Any signed-in user may report issues.

    Returns:
        New issue id

    Raises:
        ValidationError: If project_id or title is missing
        NotFoundError: If the project (or the linked task) does not exist
    """
    project_id = _require_text(data.project_id, "project_id", "Project")
    title = _require_text(data.title, "title", "Title")
    store.get(PROJECTS, project_id)
    task_id = _blank_to_none(data.task_id)
    if task_id:
        store.get(TASKS, task_id)

    now = _now()
    record = {
        "project_id": project_id,
        "task_id": task_id,
        "title": title,
        "description": data.description or "",
        "severity": _value(data.severity),
        "status": IssueStatus.OPEN.value,
        "reported_by": principal.id,
        "assigned_to": _blank_to_none(data.assigned_to),
        "resolved_at": None,
        "created_at": now,
        "updated_at": now,
    }
    issue_id = store.insert(ISSUES, record)
    logger.info(f"Reported issue {issue_id} '{title}' in project {project_id}")

    log_activity(store, project_id, principal.id, "reported issue", TargetType.ISSUE, issue_id, title)
    return issue_id


def get_issues(
    store: DataStore,
    project_id: Optional[str] = None,
    status: Optional[Union[IssueStatus, str]] = None,
) -> list[schemas.Issue]:
    """Get issues, newest first, optionally scoped to a project and/or status."""
    filters = []
    if project_id:
        filters.append(Filter("project_id", "==", project_id))
    if status:
        filters.append(Filter("status", "==", IssueStatus(status).value))
    records = store.query(ISSUES, filters=filters, order_by=NEWEST_FIRST)
    return [schemas.Issue.model_validate(r) for r in records]


def get_issue(store: DataStore, issue_id: str) -> schemas.Issue:
    """
    Get an issue by id.

    Raises:
        NotFoundError: If the issue does not exist
    """
    return schemas.Issue.model_validate(store.get(ISSUES, issue_id))


def get_issue_counts(store: DataStore, project_id: Optional[str] = None) -> schemas.IssueCounts:
    """Count issues per status."""
    counts = {status: 0 for status in IssueStatus}
    for issue in get_issues(store, project_id=project_id):
        counts[IssueStatus(issue.status)] += 1
    return schemas.IssueCounts(
        open=counts[IssueStatus.OPEN],
        in_progress=counts[IssueStatus.IN_PROGRESS],
        resolved=counts[IssueStatus.RESOLVED],
        closed=counts[IssueStatus.CLOSED],
        total=sum(counts.values()),
    )


def update_issue(
    store: DataStore,
    principal: schemas.Principal,
    issue_id: str,
    data: schemas.IssueUpdate,
) -> None:
    """
    Update an issue. resolved_at is stamped on the first move into
    resolved or closed and kept afterwards.

    Raises:
        ValidationError: If a blank title is supplied
        NotFoundError: If the issue does not exist
    """
    changes = _changes(data, nullable=("assigned_to",))
    if "title" in changes:
        changes["title"] = _require_text(changes["title"], "title", "Title")
    if "assigned_to" in changes:
        changes["assigned_to"] = _blank_to_none(changes["assigned_to"])

    current = store.get(ISSUES, issue_id)
    now = _now()
    stamps = derive_issue_stamps(current, changes, now)
    store.patch(ISSUES, issue_id, {**changes, **stamps, "updated_at": now})
    logger.info(f"Updated issue {issue_id}: {sorted(changes)}")

    if "status" in changes:
        action = f"updated issue status to {changes['status']}"
    else:
        action = "updated issue"
    title = changes.get("title", current["title"])
    log_activity(store, current["project_id"], principal.id, action, TargetType.ISSUE, issue_id, title)


def delete_issue(
    store: DataStore,
    principal: schemas.Principal,
    issue_id: str,
) -> None:
    """
    Delete an issue.

    Raises:
        NotFoundError: If the issue does not exist
    """
    current = store.get(ISSUES, issue_id)
    store.remove(ISSUES, issue_id)
    logger.info(f"Deleted issue {issue_id} by {principal.id}")

    log_activity(
        store, current["project_id"], principal.id, "deleted issue", TargetType.ISSUE, issue_id, current["title"]
    )


# ============================================================================
# User and Team Operations
# ============================================================================

def _user_title(user: dict) -> str:
    return user.get("display_name") or user.get("email") or user["id"]


def register_user(store: DataStore, data: schemas.UserCreate) -> str:
    """
    Create the profile for a newly signed-up user.

    Called by the identity provider integration. Every account starts as a
    member; only an admin can change that later.

    Returns:
        The user id (the identity provider's uid)

    Raises:
        ValidationError: If id/email is blank or the user already exists
    """
    user_id = _require_text(data.id, "id", "User id")
    email = _require_text(data.email, "email", "Email")
    try:
        store.get(USERS, user_id)
    except NotFoundError:
        pass
    else:
        raise ValidationError(f"User {user_id} is already registered", field="id")

    record = {
        "id": user_id,
        "email": email,
        "display_name": data.display_name or "",
        "photo_url": data.photo_url,
        "role": Role.MEMBER.value,
        "department": None,
        "position": None,
        "created_at": _now(),
    }
    store.insert(USERS, record)
    logger.info(f"Registered user {user_id} ({email})")

    log_activity(store, None, user_id, "joined", TargetType.MEMBER, user_id, _user_title(record))
    return user_id


def get_user(store: DataStore, user_id: str) -> schemas.User:
    """
    Get a user profile.

    Raises:
        NotFoundError: If the user does not exist
    """
    return schemas.User.model_validate(store.get(USERS, user_id))


def get_principal(store: DataStore, user_id: str) -> schemas.Principal:
    """
    Resolve a user id to a principal (id + role).

    Raises:
        NotFoundError: If the user does not exist
    """
    user = store.get(USERS, user_id)
    return schemas.Principal(id=user["id"], role=user["role"])


def _task_counts(store: DataStore, user_id: str, project_id: Optional[str] = None) -> tuple[int, int]:
    base = [Filter("assigned_to", "==", user_id)]
    if project_id:
        base.append(Filter("project_id", "==", project_id))
    completed = store.query(TASKS, filters=[*base, Filter("status", "==", TaskStatus.DONE.value)])
    in_progress = store.query(TASKS, filters=[*base, Filter("status", "==", TaskStatus.IN_PROGRESS.value)])
    return len(completed), len(in_progress)


def _team_member(store: DataStore, user: dict, project_id: Optional[str] = None) -> schemas.TeamMember:
    completed, in_progress = _task_counts(store, user["id"], project_id)
    return schemas.TeamMember.model_validate(
        {**user, "tasks_completed": completed, "tasks_in_progress": in_progress}
    )


def list_users(store: DataStore, principal: schemas.Principal) -> list[schemas.TeamMember]:
    """
    List every user with task counts across all projects.

    Raises:
        PermissionDeniedError: If the role may not view the team
    """
    require_permission(principal, Action.VIEW_TEAM)
    users = store.query(USERS, order_by=OLDEST_FIRST)
    return [_team_member(store, user) for user in users]


def get_team_members(store: DataStore, project_id: str) -> list[schemas.TeamMember]:
    """
    Get a project's members with their task counts in that project.

    Counts are recomputed on every call. Member ids without a user profile
    are skipped.

    Raises:
        NotFoundError: If the project does not exist
    """
    project = store.get(PROJECTS, project_id)
    members = []
    for user_id in project.get("members") or []:
        try:
            user = store.get(USERS, user_id)
        except NotFoundError:
            logger.debug(f"Skipping member {user_id} of project {project_id}: no profile")
            continue
        members.append(_team_member(store, user, project_id))
    return members


def update_user_role(
    store: DataStore,
    principal: schemas.Principal,
    user_id: str,
    role: Union[Role, str],
) -> None:
    """
    Change a user's role.

    Raises:
        PermissionDeniedError: If the principal is not an admin, or targets itself
        ValidationError: If the role is not a known role
        NotFoundError: If the user does not exist
    """
    require_permission(principal, Action.MANAGE_USERS)
    if user_id == principal.id:
        logger.warning(f"User {principal.id} attempted to change their own role")
        raise PermissionDeniedError(
            "You cannot change your own role",
            role=_value(principal.role),
            action=Action.MANAGE_USERS.value,
        )
    try:
        new_role = Role(_value(role))
    except ValueError:
        raise ValidationError(f"Invalid role: {role!r}", field="role") from None

    user = store.get(USERS, user_id)
    store.patch(USERS, user_id, {"role": new_role.value})
    logger.info(f"Changed role of {user_id} from {user['role']} to {new_role.value}")

    log_activity(
        store, None, principal.id, f"changed role to {new_role.value}", TargetType.MEMBER, user_id, _user_title(user)
    )


def update_member_profile(
    store: DataStore,
    principal: schemas.Principal,
    user_id: str,
    data: schemas.UserProfileUpdate,
) -> None:
    """
    Update profile fields (display name, photo, department, position).

    Users may edit their own profile; editing someone else's requires
    user management rights.

    Raises:
        PermissionDeniedError: If editing another user without manageUsers
        NotFoundError: If the user does not exist
    """
    if user_id != principal.id:
        require_permission(principal, Action.MANAGE_USERS)
    changes = _changes(data, nullable=("photo_url", "department", "position"))

    user = store.get(USERS, user_id)
    store.patch(USERS, user_id, changes)
    logger.info(f"Updated profile of {user_id}: {sorted(changes)}")

    title = changes.get("display_name") or _user_title(user)
    log_activity(store, None, principal.id, "updated profile", TargetType.MEMBER, user_id, title)


def get_settings_overview(store: DataStore, principal: schemas.Principal) -> schemas.SettingsOverview:
    """
    Build the settings page payload.

    Everyone gets their own profile and permissions; the full user list is
    only included for roles with full settings access.
    """
    profile = get_user(store, principal.id)
    users = None
    if is_allowed(principal.role, Action.ACCESS_FULL_SETTINGS):
        users = [schemas.User.model_validate(u) for u in store.query(USERS, order_by=OLDEST_FIRST)]
    return schemas.SettingsOverview(
        profile=profile,
        role_label=role_label(principal.role),
        allowed_actions=allowed_actions(principal.role),
        users=users,
    )


# ============================================================================
# Dashboard
# ============================================================================

def get_dashboard_summary(
    store: DataStore,
    principal: schemas.Principal,
    recent_limit: int = 10,
) -> schemas.DashboardSummary:
    """
    Compute the dashboard numbers for a principal.

    Task figures cover the tasks the principal can see (own tasks for
    members). Open issues are those not yet resolved or closed.
    """
    projects = get_projects(store, member_id=principal.id)
    tasks = get_tasks_for_principal(store, principal)
    issues = get_issues(store)

    completed = sum(1 for t in tasks if t.status == TaskStatus.DONE)
    active = len(tasks) - completed
    completion_rate = int(completed * 100 / len(tasks) + 0.5) if tasks else 0
    open_issues = sum(1 for i in issues if i.status not in (IssueStatus.RESOLVED, IssueStatus.CLOSED))

    return schemas.DashboardSummary(
        total_projects=len(projects),
        active_tasks=active,
        completed_tasks=completed,
        completion_rate=completion_rate,
        open_issues=open_issues,
        recent_activity=get_activities(store, limit=recent_limit),
    )


# ============================================================================
# Search
# ============================================================================

SEARCH_LIMITS = {"tasks": 5, "projects": 3, "issues": 3}


def search(store: DataStore, principal: schemas.Principal, q: str) -> schemas.SearchResults:
    """
    Quick search across task titles, project names and issue titles.

    Matching is a case-insensitive substring test. Tasks are limited to the
    ones the principal can see. A blank query returns empty results without
    reading the store.
    """
    needle = (q or "").strip().lower()
    if not needle:
        return schemas.SearchResults()

    tasks = [t for t in get_tasks_for_principal(store, principal) if needle in t.title.lower()]
    projects = [p for p in get_projects(store) if needle in p.name.lower()]
    issues = [i for i in get_issues(store) if needle in i.title.lower()]
    logger.debug(f"Search '{needle}' by {principal.id}: {len(tasks)} tasks, {len(projects)} projects, {len(issues)} issues")

    return schemas.SearchResults(
        tasks=tasks[:SEARCH_LIMITS["tasks"]],
        projects=projects[:SEARCH_LIMITS["projects"]],
        issues=issues[:SEARCH_LIMITS["issues"]],
    )
