"""Status flows and derived timestamp stamping for tasks and issues.

Status updates are open: any status may be set directly, including skips
and regressions. What is state-aware is the stamping of lifecycle
timestamps, which are set exactly once on the first qualifying transition:

- Task.started_at: first move into in-progress
- Task.completed_at: first move into done
- Issue.resolved_at: first move into resolved or closed

The functions here are pure: they take the stored record and the requested
patch and return the extra fields to merge into the same write.
"""
import logging
from datetime import datetime
from typing import Any, Mapping, Optional

from .models import TaskStatus, IssueStatus

logger = logging.getLogger("taskflow-core.lifecycle")


# Forward flow used by the board's "advance" control
TASK_STATUS_FLOW: list[TaskStatus] = [
    TaskStatus.TODO,
    TaskStatus.IN_PROGRESS,
    TaskStatus.REVIEW,
    TaskStatus.DONE,
]

# Forward flow for issues; closed is terminal
ISSUE_STATUS_FLOW: list[IssueStatus] = [
    IssueStatus.OPEN,
    IssueStatus.IN_PROGRESS,
    IssueStatus.RESOLVED,
    IssueStatus.CLOSED,
]

# Issue statuses that count as resolution
RESOLVED_ISSUE_STATUSES = frozenset({IssueStatus.RESOLVED, IssueStatus.CLOSED})


def _requested_status(patch: Mapping[str, Any]) -> Optional[str]:
    status = patch.get("status")
    return getattr(status, "value", status)


def derive_task_stamps(
    current: Mapping[str, Any],
    patch: Mapping[str, Any],
    now: datetime,
) -> dict[str, datetime]:
    """
    Compute lifecycle stamps for a task update.

    Args:
        current: Task record as stored before the update
        patch: Requested field changes
        now: Timestamp to stamp with

    Returns:
        Fields to add to the patch (empty when nothing qualifies)
    """
    status = _requested_status(patch)
    stamps: dict[str, datetime] = {}
    if status == TaskStatus.IN_PROGRESS.value and not current.get("started_at"):
        stamps["started_at"] = now
    if status == TaskStatus.DONE.value and not current.get("completed_at"):
        stamps["completed_at"] = now
    if stamps:
        logger.debug(f"Stamping task {current.get('id')}: {sorted(stamps)}")
    return stamps


def derive_issue_stamps(
    current: Mapping[str, Any],
    patch: Mapping[str, Any],
    now: datetime,
) -> dict[str, datetime]:
    """
    Compute lifecycle stamps for an issue update.

    Args:
        current: Issue record as stored before the update
        patch: Requested field changes
        now: Timestamp to stamp with

    Returns:
        ``{"resolved_at": now}`` on the first move into resolved/closed, else ``{}``
    """
    status = _requested_status(patch)
    resolved_values = {s.value for s in RESOLVED_ISSUE_STATUSES}
    if status in resolved_values and not current.get("resolved_at"):
        logger.debug(f"Stamping issue {current.get('id')}: resolved_at")
        return {"resolved_at": now}
    return {}


def next_task_status(status: TaskStatus) -> Optional[TaskStatus]:
    """
    Get the next status along the task flow.

    Returns:
        The following status, or None when the task is already done
    """
    index = TASK_STATUS_FLOW.index(TaskStatus(status))
    if index + 1 < len(TASK_STATUS_FLOW):
        return TASK_STATUS_FLOW[index + 1]
    return None


def next_issue_status(status: IssueStatus) -> Optional[IssueStatus]:
    """
    Get the next status along the issue flow.

    Returns:
        The following status, or None when the issue is already closed
    """
    index = ISSUE_STATUS_FLOW.index(IssueStatus(status))
    if index + 1 < len(ISSUE_STATUS_FLOW):
        return ISSUE_STATUS_FLOW[index + 1]
    return None
