"""Activity feed API endpoints."""
import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from taskflow_core import schemas, models
from taskflow_core.audit import get_activities
from taskflow_core.store import DataStore

from ..dependencies import get_current_principal
from ...database import get_store

logger = logging.getLogger("taskflow-core.activities")

router = APIRouter(tags=["activities"])


@router.get("/", response_model=schemas.ActivityListResponse)
def list_activities(
    project_id: Optional[str] = Query(None, description="Filter by project"),
    target_type: Optional[models.TargetType] = Query(None, description="Filter by target type"),
    since: Optional[datetime] = Query(None, description="Created at or after"),
    until: Optional[datetime] = Query(None, description="Created at or before"),
    limit: Optional[int] = Query(None, description="Maximum number of entries"),
    principal: schemas.Principal = Depends(get_current_principal),
    store: DataStore = Depends(get_store),
):
    """
    Get the activity feed, newest first.

    - **limit**: Defaults to the configured feed size; must be at least 1
    """
    items = get_activities(
        store,
        project_id=project_id,
        limit=limit,
        target_type=target_type,
        since=since,
        until=until,
    )
    return schemas.ActivityListResponse(items=items, total=len(items))
