"""FastAPI dependencies for resolving the calling user."""

from typing import Optional

import structlog
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from parrotflow.auth.models import User
from parrotflow.auth.security import token_manager
from parrotflow.database_deps import get_db

logger = structlog.get_logger()

# Security scheme
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """Return the authenticated caller, or ``None`` when there is none.

    Routes decide how to answer an anonymous request; this dependency never
    raises for missing or invalid credentials.
    """
    if not credentials:
        return None

    payload = token_manager.verify_token(credentials.credentials, "access")
    if not payload:
        logger.debug("Rejected bearer token")
        return None

    user_id = payload.get("user_id")
    if not user_id:
        return None

    user = await db.get(User, str(user_id))
    if not user or not user.is_active:
        return None

    return user
