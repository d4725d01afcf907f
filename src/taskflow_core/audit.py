"""Activity feed: append-after-commit audit records and feed queries.

``log_activity`` is called by the data access layer only after the primary
write has returned. The two writes are independent: if the activity insert
fails, the failure is logged and swallowed, and the already committed
mutation stands.
"""
import logging
from datetime import datetime, timezone
from typing import Optional, Union

from . import schemas
from .config import get_settings
from .errors import StoreError, ValidationError
from .models import TargetType
from .store import ACTIVITIES, DataStore, Filter, OrderBy

logger = logging.getLogger("taskflow-core.audit")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def log_activity(
    store: DataStore,
    project_id: Optional[str],
    user_id: str,
    action: str,
    target_type: Union[TargetType, str],
    target_id: str,
    target_title: str,
) -> Optional[str]:
    """
    Append one activity record.

    Args:
        store: Data store
        project_id: Project the activity belongs to (None for account-level events)
        user_id: Acting user id
        action: Human-readable action, e.g. "created task"
        target_type: Kind of entity acted on
        target_id: Id of the entity acted on
        target_title: Title/name of the entity at the time of the action

    Returns:
        The new activity id, or None if the store rejected the write
    """
    record = {
        "project_id": project_id,
        "user_id": user_id,
        "action": action,
        "target_type": TargetType(target_type).value,
        "target_id": target_id,
        "target_title": target_title or "",
        "created_at": _now(),
    }
    try:
        activity_id = store.insert(ACTIVITIES, record)
    except StoreError as e:
        logger.error(
            f"Failed to record activity '{action}' on {record['target_type']} {target_id} "
            f"by {user_id}: {e}"
        )
        return None
    logger.debug(f"Recorded activity {activity_id}: {user_id} {action} {target_id}")
    return activity_id


def get_activities(
    store: DataStore,
    project_id: Optional[str] = None,
    limit: Optional[int] = None,
    target_type: Optional[Union[TargetType, str]] = None,
    since: Optional[datetime] = None,
    until: Optional[datetime] = None,
) -> list[schemas.Activity]:
    """
    Get the activity feed, newest first.

    Args:
        store: Data store
        project_id: Only activities of this project
        limit: Maximum number of records (default: settings.activity_feed_limit)
        target_type: Only activities on this kind of entity
        since: Only activities created at or after this time
        until: Only activities created at or before this time

    Returns:
        Activities ordered by created_at descending

    Raises:
        ValidationError: If limit is smaller than 1
    """
    if limit is None:
        limit = get_settings().activity_feed_limit
    if limit < 1:
        raise ValidationError(f"limit must be at least 1, got {limit}", field="limit")

    filters = []
    if project_id:
        filters.append(Filter("project_id", "==", project_id))
    if target_type:
        filters.append(Filter("target_type", "==", TargetType(target_type).value))
    if since:
        filters.append(Filter("created_at", ">=", since))
    if until:
        filters.append(Filter("created_at", "<=", until))

    records = store.query(
        ACTIVITIES,
        filters=filters,
        order_by=OrderBy("created_at", descending=True),
        limit=limit,
    )
    return [schemas.Activity.model_validate(r) for r in records]
