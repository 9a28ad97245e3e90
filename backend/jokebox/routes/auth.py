"""
Jokebox Backend: Login / Logout Routes
=======================================

What:  POST /login (log in or register) and POST /logout.
How:   AuthService runs the form workflow; on success the user id is stored
       in the signed session cookie and the client is redirected.
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from jokebox.auth import create_user_session, destroy_user_session
from jokebox.database import get_db_session
from jokebox.schemas.joke import FormErrorResponse
from jokebox.services.auth_service import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])


@router.post(
    "/login",
    status_code=303,
    response_class=RedirectResponse,
    responses={
        303: {"description": "Logged in; session cookie set"},
        400: {"description": "Malformed form, field errors, or bad credentials", "model": FormErrorResponse},
    },
    summary="Log in or register",
)
async def login(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> RedirectResponse:
    """
    Form fields: loginType ("login" | "register"), username, password,
    and an optional redirectTo path (defaults to /jokes).
    """
    form = await request.form()
    user, redirect_to = await auth_service.handle_login_form(db=db, form=form)
    create_user_session(request, user.id)
    return RedirectResponse(url=redirect_to, status_code=303)


@router.post(
    "/logout",
    status_code=303,
    response_class=RedirectResponse,
    summary="Log out",
)
async def logout(request: Request) -> RedirectResponse:
    destroy_user_session(request)
    return RedirectResponse(url="/login", status_code=303)
