"""Users API endpoints: sign-up hook, profiles, roles and settings."""
import logging

from fastapi import APIRouter, Depends
from taskflow_core import crud, schemas
from taskflow_core.store import DataStore

from ..dependencies import get_current_principal
from ...database import get_store

logger = logging.getLogger("taskflow-core.users")

router = APIRouter(tags=["users"])


@router.post("/", response_model=schemas.User, status_code=201)
def register_user(
    user: schemas.UserCreate,
    store: DataStore = Depends(get_store),
):
    """
    Create the profile of a newly signed-up user.

    Called by the identity provider integration, so no X-User-Id is required.
    New users always start with the member role.
    """
    user_id = crud.register_user(store, user)
    return crud.get_user(store, user_id)


@router.get("/", response_model=list[schemas.TeamMember])
def list_users(
    principal: schemas.Principal = Depends(get_current_principal),
    store: DataStore = Depends(get_store),
):
    """List all users with their task counts (admins and managers)."""
    return crud.list_users(store, principal)


@router.get("/me", response_model=schemas.User)
def get_me(
    principal: schemas.Principal = Depends(get_current_principal),
    store: DataStore = Depends(get_store),
):
    """Get the caller's own profile."""
    return crud.get_user(store, principal.id)


@router.get("/me/settings", response_model=schemas.SettingsOverview)
def get_my_settings(
    principal: schemas.Principal = Depends(get_current_principal),
    store: DataStore = Depends(get_store),
):
    """Get the settings page payload for the caller."""
    return crud.get_settings_overview(store, principal)


@router.get("/{user_id}", response_model=schemas.User)
def get_user(
    user_id: str,
    principal: schemas.Principal = Depends(get_current_principal),
    store: DataStore = Depends(get_store),
):
    """Get a user profile by ID."""
    return crud.get_user(store, user_id)


@router.put("/{user_id}", response_model=schemas.User)
def update_profile(
    user_id: str,
    profile: schemas.UserProfileUpdate,
    principal: schemas.Principal = Depends(get_current_principal),
    store: DataStore = Depends(get_store),
):
    """Update a profile. Users edit their own; admins can edit anyone's."""
    crud.update_member_profile(store, principal, user_id, profile)
    return crud.get_user(store, user_id)


@router.put("/{user_id}/role", response_model=schemas.User)
def update_role(
    user_id: str,
    role_update: schemas.UserRoleUpdate,
    principal: schemas.Principal = Depends(get_current_principal),
    store: DataStore = Depends(get_store),
):
    """Change a user's role (admins only, never on themselves)."""
    crud.update_user_role(store, principal, user_id, role_update.role)
    return crud.get_user(store, user_id)
