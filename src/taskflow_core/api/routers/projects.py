"""Projects API endpoints."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from taskflow_core import crud, schemas, models
from taskflow_core.store import DataStore

from ..dependencies import get_current_principal
from ...database import get_store

logger = logging.getLogger("taskflow-core.projects")

router = APIRouter(tags=["projects"])


@router.post("/", response_model=schemas.CreatedResponse, status_code=201)
def create_project(
    project: schemas.ProjectCreate,
    principal: schemas.Principal = Depends(get_current_principal),
    store: DataStore = Depends(get_store),
):
    """
    Create a new project (admins and managers).

    - **name**: Project name
    - **description**: Optional description
    - **members**: Additional member user ids (the creator is always a member)
    """
    project_id = crud.create_project(store, principal, project)
    return schemas.CreatedResponse(id=project_id)


@router.get("/", response_model=schemas.ProjectListResponse)
def list_projects(
    mine: bool = Query(False, description="Only projects the caller is a member of"),
    member_id: Optional[str] = Query(None, description="Only projects this user is a member of"),
    status: Optional[models.ProjectStatus] = Query(None, description="Filter by status"),
    principal: schemas.Principal = Depends(get_current_principal),
    store: DataStore = Depends(get_store),
):
    """List projects, newest first."""
    if mine:
        member_id = principal.id
    projects = crud.get_projects(store, member_id=member_id, status=status)
    return schemas.ProjectListResponse(items=projects, total=len(projects))


@router.get("/{project_id}", response_model=schemas.Project)
def get_project(
    project_id: str,
    principal: schemas.Principal = Depends(get_current_principal),
    store: DataStore = Depends(get_store),
):
    """Get a specific project by ID."""
    return crud.get_project(store, project_id)


@router.put("/{project_id}", response_model=schemas.Project)
def update_project(
    project_id: str,
    project_update: schemas.ProjectUpdate,
    principal: schemas.Principal = Depends(get_current_principal),
    store: DataStore = Depends(get_store),
):
    """
    Update a project (admins and managers).

    All fields are optional. Only provided fields will be updated.
    """
    crud.update_project(store, principal, project_id, project_update)
    return crud.get_project(store, project_id)


@router.delete("/{project_id}", status_code=204)
def delete_project(
    project_id: str,
    principal: schemas.Principal = Depends(get_current_principal),
    store: DataStore = Depends(get_store),
):
    """Delete a project (admins and managers). Its tasks and issues are kept."""
    crud.delete_project(store, principal, project_id)
    return None


@router.get("/{project_id}/members", response_model=list[schemas.TeamMember])
def list_project_members(
    project_id: str,
    principal: schemas.Principal = Depends(get_current_principal),
    store: DataStore = Depends(get_store),
):
    """List project members with their task counts in this project."""
    return crud.get_team_members(store, project_id)


@router.post("/{project_id}/members", response_model=schemas.Project)
def add_project_member(
    project_id: str,
    member: schemas.ProjectMemberAdd,
    principal: schemas.Principal = Depends(get_current_principal),
    store: DataStore = Depends(get_store),
):
    """Add a user to a project (admins and managers)."""
    crud.add_project_member(store, principal, project_id, member.user_id)
    return crud.get_project(store, project_id)
