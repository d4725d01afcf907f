"""Issues API endpoints. Any signed-in user can report and edit issues."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from taskflow_core import crud, schemas, models
from taskflow_core.store import DataStore

from ..dependencies import get_current_principal
from ...database import get_store

logger = logging.getLogger("taskflow-core.issues")

router = APIRouter(tags=["issues"])


@router.post("/", response_model=schemas.CreatedResponse, status_code=201)
def create_issue(
    issue: schemas.IssueCreate,
    principal: schemas.Principal = Depends(get_current_principal),
    store: DataStore = Depends(get_store),
):
    """
    Report a new issue.

    - **project_id**: Project the issue belongs to
    - **title**: Issue title
    - **severity**: low, medium, high or critical (default: medium)
    - **task_id**: Optional related task
    """
    issue_id = crud.create_issue(store, principal, issue)
    return schemas.CreatedResponse(id=issue_id)


@router.get("/", response_model=schemas.IssueListResponse)
def list_issues(
    project_id: Optional[str] = Query(None, description="Filter by project"),
    status: Optional[models.IssueStatus] = Query(None, description="Filter by status"),
    principal: schemas.Principal = Depends(get_current_principal),
    store: DataStore = Depends(get_store),
):
    """List issues, newest first."""
    issues = crud.get_issues(store, project_id=project_id, status=status)
    return schemas.IssueListResponse(items=issues, total=len(issues))


@router.get("/counts", response_model=schemas.IssueCounts)
def issue_counts(
    project_id: Optional[str] = Query(None, description="Filter by project"),
    principal: schemas.Principal = Depends(get_current_principal),
    store: DataStore = Depends(get_store),
):
    """Count issues per status."""
    return crud.get_issue_counts(store, project_id=project_id)


@router.get("/{issue_id}", response_model=schemas.Issue)
def get_issue(
    issue_id: str,
    principal: schemas.Principal = Depends(get_current_principal),
    store: DataStore = Depends(get_store),
):
    """Get a specific issue by ID."""
    return crud.get_issue(store, issue_id)


@router.put("/{issue_id}", response_model=schemas.Issue)
def update_issue(
    issue_id: str,
    issue_update: schemas.IssueUpdate,
    principal: schemas.Principal = Depends(get_current_principal),
    store: DataStore = Depends(get_store),
):
    """Update an issue. Only provided fields will be updated."""
    crud.update_issue(store, principal, issue_id, issue_update)
    return crud.get_issue(store, issue_id)


@router.delete("/{issue_id}", status_code=204)
def delete_issue(
    issue_id: str,
    principal: schemas.Principal = Depends(get_current_principal),
    store: DataStore = Depends(get_store),
):
    """Delete an issue."""
    crud.delete_issue(store, principal, issue_id)
    return None
