"""Role-based permission table.

Every mutation in the data access layer is gated through this module.
Actions form a closed set; asking about anything outside it raises
UnknownActionError instead of falling back to allow.

Role matrix:
- admin: everything
- manager: project/task management and the team roster
- member: task status updates only
"""
import enum
import logging
from typing import Union

from .errors import PermissionDeniedError, UnknownActionError
from .models import Role

logger = logging.getLogger("taskflow-core.permissions")


class Action(str, enum.Enum):
    """Closed set of actions the permission table decides on."""

    CREATE_PROJECT = "createProject"
    EDIT_PROJECT = "editProject"
    DELETE_PROJECT = "deleteProject"
    CREATE_TASK = "createTask"
    EDIT_TASK = "editTask"
    DELETE_TASK = "deleteTask"
    UPDATE_TASK_STATUS = "updateTaskStatus"
    VIEW_TEAM = "viewTeam"
    MANAGE_USERS = "manageUsers"
    ACCESS_FULL_SETTINGS = "accessFullSettings"


_ALL_ROLES = frozenset(Role)
_MANAGEMENT = frozenset({Role.ADMIN, Role.MANAGER})
_ADMIN_ONLY = frozenset({Role.ADMIN})

# Action -> roles allowed to perform it
PERMISSION_TABLE: dict[Action, frozenset[Role]] = {
    Action.CREATE_PROJECT: _MANAGEMENT,
    Action.EDIT_PROJECT: _MANAGEMENT,
    Action.DELETE_PROJECT: _MANAGEMENT,
    Action.CREATE_TASK: _MANAGEMENT,
    Action.EDIT_TASK: _MANAGEMENT,
    Action.DELETE_TASK: _MANAGEMENT,
    # Ownership of the task is checked by the caller, not here
    Action.UPDATE_TASK_STATUS: _ALL_ROLES,
    Action.VIEW_TEAM: _MANAGEMENT,
    Action.MANAGE_USERS: _ADMIN_ONLY,
    Action.ACCESS_FULL_SETTINGS: _ADMIN_ONLY,
}

ROLE_LABELS: dict[Role, str] = {
    Role.ADMIN: "Admin",
    Role.MANAGER: "Manager",
    Role.MEMBER: "Member",
}


def _coerce_action(action: Union[Action, str]) -> Action:
    try:
        return Action(action)
    except ValueError:
        raise UnknownActionError(action) from None


def _coerce_role(role: Union[Role, str]) -> Union[Role, None]:
    try:
        return Role(role)
    except ValueError:
        return None


def is_allowed(role: Union[Role, str], action: Union[Action, str]) -> bool:
    """
    Decide whether a role may perform an action.

    Args:
        role: Principal role (enum member or its string value)
        action: Action (enum member or its string value, e.g. "deleteProject")

    Returns:
        True if the role is allowed, False otherwise. Unknown roles are denied.

    Raises:
        UnknownActionError: If the action is not part of the permission table
    """
    resolved_action = _coerce_action(action)
    resolved_role = _coerce_role(role)
    if resolved_role is None:
        return False
    return resolved_role in PERMISSION_TABLE[resolved_action]


def require_permission(principal, action: Union[Action, str]) -> None:
    """
    Raise if the principal's role may not perform the action.

    Args:
        principal: Object with ``id`` and ``role`` attributes
        action: Action being attempted

    Raises:
        PermissionDeniedError: If the permission table denies the action
        UnknownActionError: If the action is not part of the permission table
    """
    resolved_action = _coerce_action(action)
    role = getattr(principal.role, "value", principal.role)
    if not is_allowed(role, resolved_action):
        logger.warning(f"Denied {resolved_action.value} for user {principal.id} (role: {role})")
        raise PermissionDeniedError(
            f"Role '{role}' is not allowed to {resolved_action.value}",
            role=role,
            action=resolved_action.value,
        )


def allowed_actions(role: Union[Role, str]) -> list[Action]:
    """List the actions a role holds, in table order."""
    return [action for action in Action if is_allowed(role, action)]


def role_label(role: Union[Role, str]) -> str:
    """Display label for a role, falling back to "Member"."""
    resolved = _coerce_role(role)
    return ROLE_LABELS.get(resolved, ROLE_LABELS[Role.MEMBER])
