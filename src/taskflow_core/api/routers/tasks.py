"""Tasks API endpoints, including the kanban status moves."""
import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from taskflow_core import crud, schemas, models
from taskflow_core.errors import PermissionDeniedError
from taskflow_core.permissions import Action
from taskflow_core.store import DataStore

from ..dependencies import get_current_principal
from ...database import get_store

logger = logging.getLogger("taskflow-core.tasks")

router = APIRouter(tags=["tasks"])


def _check_task_owner(store: DataStore, principal: schemas.Principal, task_id: str) -> None:
    """Members may only move tasks assigned to them."""
    if principal.role != models.Role.MEMBER:
        return
    task = crud.get_task(store, task_id)
    if task.assigned_to != principal.id:
        logger.warning(f"Member {principal.id} tried to move task {task_id} assigned to {task.assigned_to}")
        raise PermissionDeniedError(
            "Members can only update the status of their own tasks",
            role=principal.role,
            action=Action.UPDATE_TASK_STATUS.value,
        )


@router.post("/", response_model=schemas.CreatedResponse, status_code=201)
def create_task(
    task: schemas.TaskCreate,
    principal: schemas.Principal = Depends(get_current_principal),
    store: DataStore = Depends(get_store),
):
    """
    Create a new task (admins and managers).

    - **project_id**: Project the task belongs to
    - **title**: Task title
    - **assigned_to**: Optional assignee user id
    - **priority**: low, medium, high or urgent (default: medium)
    - **due_date**: Optional due date
    - **tags**: Optional tags
    """
    task_id = crud.create_task(store, principal, task)
    return schemas.CreatedResponse(id=task_id)


@router.get("/", response_model=schemas.TaskListResponse)
def list_tasks(
    project_id: Optional[str] = Query(None, description="Filter by project"),
    assigned_to: Optional[str] = Query(None, description="Filter by assignee"),
    status: Optional[models.TaskStatus] = Query(None, description="Filter by status"),
    due_from: Optional[datetime] = Query(None, description="Due at or after"),
    due_to: Optional[datetime] = Query(None, description="Due at or before"),
    principal: schemas.Principal = Depends(get_current_principal),
    store: DataStore = Depends(get_store),
):
    """
    List tasks, newest first.

    Members only ever see tasks assigned to them; the assigned_to filter is
    ignored for them.
    """
    tasks = crud.get_tasks_for_principal(
        store,
        principal,
        project_id=project_id,
        assigned_to=assigned_to,
        status=status,
        due_from=due_from,
        due_to=due_to,
    )
    return schemas.TaskListResponse(items=tasks, total=len(tasks))


@router.get("/{task_id}", response_model=schemas.Task)
def get_task(
    task_id: str,
    principal: schemas.Principal = Depends(get_current_principal),
    store: DataStore = Depends(get_store),
):
    """Get a specific task by ID."""
    return crud.get_task(store, task_id)


@router.put("/{task_id}", response_model=schemas.Task)
def update_task(
    task_id: str,
    task_update: schemas.TaskUpdate,
    principal: schemas.Principal = Depends(get_current_principal),
    store: DataStore = Depends(get_store),
):
    """
    Update a task (admins and managers).

    All fields are optional. Only provided fields will be updated.
    """
    crud.update_task(store, principal, task_id, task_update)
    return crud.get_task(store, task_id)


@router.patch("/{task_id}/status", response_model=schemas.Task)
def update_task_status(
    task_id: str,
    status_update: schemas.TaskStatusUpdate,
    principal: schemas.Principal = Depends(get_current_principal),
    store: DataStore = Depends(get_store),
):
    """Move a task to any status. Members can only move their own tasks."""
    _check_task_owner(store, principal, task_id)
    crud.update_task_status(store, principal, task_id, status_update.status)
    return crud.get_task(store, task_id)


@router.post("/{task_id}/advance", response_model=schemas.Task)
def advance_task(
    task_id: str,
    principal: schemas.Principal = Depends(get_current_principal),
    store: DataStore = Depends(get_store),
):
    """Move a task one step forward (todo -> in-progress -> review -> done)."""
    _check_task_owner(store, principal, task_id)
    crud.advance_task(store, principal, task_id)
    return crud.get_task(store, task_id)


@router.delete("/{task_id}", status_code=204)
def delete_task(
    task_id: str,
    principal: schemas.Principal = Depends(get_current_principal),
    store: DataStore = Depends(get_store),
):
    """Delete a task (admins and managers)."""
    crud.delete_task(store, principal, task_id)
    return None
