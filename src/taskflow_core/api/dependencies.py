"""Request dependencies: resolving the calling principal."""
import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException

from taskflow_core import crud, schemas
from taskflow_core.errors import NotFoundError
from taskflow_core.store import DataStore

from ..database import get_store

logger = logging.getLogger("taskflow-core.auth")


def get_current_principal(
    x_user_id: Optional[str] = Header(None, description="Authenticated user id from the identity provider"),
    store: DataStore = Depends(get_store),
) -> schemas.Principal:
    """
    Resolve the X-User-Id header to a principal.

    Token verification happens upstream; this layer trusts the forwarded uid
    and looks up the role stored on the user profile.

    Raises:
        HTTPException: 401 if the header is missing or the user is unknown
    """
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    try:
        return crud.get_principal(store, x_user_id)
    except NotFoundError:
        logger.warning(f"Rejected request from unknown user {x_user_id}")
        raise HTTPException(status_code=401, detail="Unknown user") from None
