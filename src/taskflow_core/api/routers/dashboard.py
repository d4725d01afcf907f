"""Dashboard API endpoint."""
import logging

from fastapi import APIRouter, Depends
from taskflow_core import crud, schemas
from taskflow_core.store import DataStore

from ..dependencies import get_current_principal
from ...database import get_store

logger = logging.getLogger("taskflow-core.dashboard")

router = APIRouter(tags=["dashboard"])


@router.get("/", response_model=schemas.DashboardSummary)
def get_dashboard(
    principal: schemas.Principal = Depends(get_current_principal),
    store: DataStore = Depends(get_store),
):
    """Headline numbers and recent activity for the caller."""
    return crud.get_dashboard_summary(store, principal)
