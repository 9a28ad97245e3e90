"""
Jokebox Backend: Identity Provider
===================================

What:  Resolves the caller's identity from the signed session cookie.
How:   Starlette's SessionMiddleware verifies and decodes the cookie into
       request.session; these helpers read and write the user id stored there.
Who:   Route handlers depend on get_optional_user_id / require_user_id;
       services call ensure_authenticated where the check must run after
       other checks (the delete action validates its intent first).

Identity is an Optional[str] passed by value down the call chain:
    None   → anonymous caller (fine for reads, 401 for writes)
    "..."  → the logged-in user's id
"""

import logging
from typing import Optional

from fastapi import Depends, Request

from jokebox.exceptions import UnauthenticatedError

logger = logging.getLogger(__name__)

SESSION_USER_KEY = "userId"


async def get_optional_user_id(request: Request) -> Optional[str]:
    """FastAPI dependency: the logged-in user's id, or None."""
    user_id = request.session.get(SESSION_USER_KEY)
    if not isinstance(user_id, str) or not user_id:
        return None
    return user_id


def ensure_authenticated(user_id: Optional[str]) -> str:
    """
    Narrow an optional identity to a required one.

    Raises:
        UnauthenticatedError: no user is logged in (→ 401)
    """
    if not user_id:
        raise UnauthenticatedError()
    return user_id


async def require_user_id(
    user_id: Optional[str] = Depends(get_optional_user_id),
) -> str:
    """FastAPI dependency: the logged-in user's id, failing with 401 when absent."""
    return ensure_authenticated(user_id)


def create_user_session(request: Request, user_id: str) -> None:
    """Start a fresh session for `user_id`, dropping anything stored before."""
    request.session.clear()
    request.session[SESSION_USER_KEY] = user_id
    logger.info("Session started for user %s", user_id)


def destroy_user_session(request: Request) -> None:
    user_id = request.session.get(SESSION_USER_KEY)
    request.session.clear()
    if user_id:
        logger.info("Session ended for user %s", user_id)
