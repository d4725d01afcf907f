"""Quick search API endpoint."""
import logging

from fastapi import APIRouter, Depends, Query
from taskflow_core import crud, schemas
from taskflow_core.store import DataStore

from ..dependencies import get_current_principal
from ...database import get_store

logger = logging.getLogger("taskflow-core.search")

router = APIRouter(tags=["search"])


@router.get("/", response_model=schemas.SearchResults)
def search(
    q: str = Query("", max_length=200, description="Case-insensitive text to look for"),
    principal: schemas.Principal = Depends(get_current_principal),
    store: DataStore = Depends(get_store),
):
    """
    Search task titles, project names and issue titles.

    - Up to 5 tasks (members only see their own), 3 projects and 3 issues
    - A blank query returns empty lists
    """
    return crud.search(store, principal, q)
