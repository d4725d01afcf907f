"""Shared fixtures: an in-memory store seeded with one user per role."""
import os

# The API module builds its engine at import time; keep tests off the default file database
os.environ.setdefault("TASKFLOW_DATABASE_URL", "sqlite://")
os.environ.setdefault("TASKFLOW_CREATE_TABLES_ON_STARTUP", "false")

from datetime import datetime, timezone

import pytest

from taskflow_core import crud, schemas
from taskflow_core.store import InMemoryStore, USERS


def add_user(store, user_id: str, role: str, display_name: str = "") -> schemas.Principal:
    """Insert a user profile directly and return its principal."""
    store.insert(USERS, {
        "id": user_id,
        "email": f"{user_id}@example.com",
        "display_name": display_name or user_id.title(),
        "photo_url": None,
        "role": role,
        "department": None,
        "position": None,
        "created_at": datetime.now(timezone.utc),
    })
    return schemas.Principal(id=user_id, role=role)


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def admin(store):
    return add_user(store, "admin-1", "admin", "Ada Admin")


@pytest.fixture
def manager(store):
    return add_user(store, "manager-1", "manager", "Max Manager")


@pytest.fixture
def member(store):
    return add_user(store, "member-1", "member", "Mia Member")


@pytest.fixture
def other_member(store):
    return add_user(store, "member-2", "member", "Omar Member")


@pytest.fixture
def project_id(store, manager, member):
    """A project created by the manager with the member on it."""
    return crud.create_project(
        store, manager, schemas.ProjectCreate(name="Website Relaunch", members=[member.id])
    )
