"""
Jokebox Backend: Joke Route Handlers
=====================================

What:  Handles the /jokes pages: listing, random joke, new-joke form,
       single joke view, and the joke action (delete).
How:   Resolves identity and form data, delegates to JokeService, and turns
       successful writes into 303 redirects. Failures are raised as
       application exceptions and rendered by the global handlers.

Route Inventory:
    GET  /jokes            newest jokes + current user
    GET  /jokes/random     one joke at random
    GET  /jokes/new        new-joke page (login required)
    POST /jokes/new        submit a joke (login required) → 303 /jokes/{id}
    GET  /jokes/{joke_id}  joke view model with isOwner
    POST /jokes/{joke_id}  joke action, intent=delete → 303 /jokes

/jokes/random and /jokes/new are declared before /jokes/{joke_id} so the
literal paths win.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from jokebox.auth import get_optional_user_id, require_user_id
from jokebox.database import get_db_session
from jokebox.schemas.common import ErrorResponse
from jokebox.schemas.joke import (
    FormErrorResponse,
    JokeListResponse,
    JokeView,
    RandomJokeResponse,
)
from jokebox.services.joke_service import joke_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/jokes", tags=["Jokes"])


@router.get(
    "",
    response_model=JokeListResponse,
    summary="List the newest jokes",
)
async def list_jokes(
    user_id: Optional[str] = Depends(get_optional_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> JokeListResponse:
    return await joke_service.list_jokes(db=db, user_id=user_id)


@router.get(
    "/random",
    response_model=RandomJokeResponse,
    responses={404: {"description": "No jokes yet", "model": ErrorResponse}},
    summary="Get a random joke",
)
async def random_joke(
    db: AsyncSession = Depends(get_db_session),
) -> RandomJokeResponse:
    return await joke_service.random_joke(db=db)


@router.get(
    "/new",
    responses={401: {"description": "Not logged in", "model": ErrorResponse}},
    summary="Load the new-joke form",
)
async def new_joke_page(user_id: str = Depends(require_user_id)) -> dict:
    """The form itself is rendered client-side; the page only needs a login."""
    return {}


@router.post(
    "/new",
    status_code=303,
    response_class=RedirectResponse,
    responses={
        303: {"description": "Joke created; Location points at the new joke"},
        400: {"description": "Malformed form or field errors", "model": FormErrorResponse},
        401: {"description": "Not logged in", "model": ErrorResponse},
    },
    summary="Submit a new joke",
)
async def create_joke(
    request: Request,
    user_id: str = Depends(require_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> RedirectResponse:
    """
    Create a joke from form fields `name` and `content`.

    On validation failure the response is 400 with fieldErrors (one slot per
    field) and the submitted fields, so the form can be re-displayed.
    """
    form = await request.form()
    joke = await joke_service.create(db=db, user_id=user_id, form=form)
    return RedirectResponse(url=f"/jokes/{joke.id}", status_code=303)


@router.get(
    "/{joke_id}",
    response_model=JokeView,
    responses={404: {"description": "Joke not found", "model": ErrorResponse}},
    summary="Get a single joke",
)
async def read_joke(
    joke_id: str,
    user_id: Optional[str] = Depends(get_optional_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> JokeView:
    return await joke_service.read(db=db, joke_id=joke_id, user_id=user_id)


@router.post(
    "/{joke_id}",
    status_code=303,
    response_class=RedirectResponse,
    responses={
        303: {"description": "Joke deleted; Location points at the listing"},
        400: {"description": "Unsupported intent", "model": ErrorResponse},
        401: {"description": "Not logged in", "model": ErrorResponse},
        403: {"description": "Not the jokester", "model": ErrorResponse},
        404: {"description": "Joke not found", "model": ErrorResponse},
    },
    summary="Perform an action on a joke",
)
async def joke_action(
    joke_id: str,
    request: Request,
    user_id: Optional[str] = Depends(get_optional_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> RedirectResponse:
    """
    Only intent=delete is supported. Identity is resolved optionally here and
    enforced by the service after the intent check.
    """
    form = await request.form()
    await joke_service.delete(
        db=db,
        joke_id=joke_id,
        user_id=user_id,
        intent=form.get("intent"),
    )
    return RedirectResponse(url="/jokes", status_code=303)
