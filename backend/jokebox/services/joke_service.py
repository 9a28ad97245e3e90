"""
Jokebox Backend: Joke Service (Business Logic)
===============================================

What:  The reader and writer flows for jokes, independent of HTTP concerns.
How:   Composes the identity helpers, the form validators, and JokeStore.
Who:   Called by the /jokes route handlers.

Flows:
    read(joke_id, user_id)
        find (display projection) → 404 | {joke, isOwner}

    create(user_id, form)
        identity (401) → extract fields (400 malformed)
        → validate both fields (400 with fieldErrors + fields)
        → owner still exists? (401) → insert

    delete(joke_id, user_id, intent)
        intent == "delete"? (400) → identity (401) → find (404)
        → owner? (403) → delete

Error Handling Strategy:
    Taxonomy errors (NotFoundError, ForbiddenError, ...) propagate unchanged.
    SQLAlchemy errors are wrapped in DatabaseError so the client only ever
    sees a generic message; the original error is logged here.

The service is stateless: it receives the request's session on every call.
"""

import logging
from typing import Any, Mapping, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from jokebox.auth import ensure_authenticated
from jokebox.exceptions import (
    BadRequestError,
    DatabaseError,
    ForbiddenError,
    FormValidationError,
    NotFoundError,
    UnauthenticatedError,
)
from jokebox.models.joke import Joke
from jokebox.schemas.joke import (
    JokeListItem,
    JokeListResponse,
    JokeOut,
    JokeView,
    RandomJokeResponse,
    UserOut,
)
from jokebox.services.auth_service import auth_service
from jokebox.services.joke_store import JokeStore
from jokebox.services.validation import (
    extract_joke_fields,
    has_field_errors,
    validate_joke_fields,
)

logger = logging.getLogger(__name__)

DELETE_INTENT = "delete"


class JokeService:
    """
    Business logic layer for joke operations.

    Responsibilities:
        - read():        single joke with ownership flag
        - create():      validated insert owned by the caller
        - delete():      owner-only removal
        - list_jokes():  newest jokes plus the current user
        - random_joke(): one joke at random
    """

    async def read(
        self,
        db: AsyncSession,
        joke_id: str,
        user_id: Optional[str],
    ) -> JokeView:
        """
        Fetch a joke for display.

        Anonymous callers are fine: is_owner is simply False for them.

        Raises:
            NotFoundError: no joke with this id (→ 404)
            DatabaseError: query failed (→ 500)
        """
        try:
            joke = await JokeStore(db).find_by_id(joke_id, display_only=True)
        except SQLAlchemyError as e:
            logger.error("Database error fetching joke %s: %s", joke_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the joke. Please try again.",
                context={"joke_id": joke_id},
            )

        if joke is None:
            raise NotFoundError(
                resource="joke",
                resource_id=joke_id,
                message="What a joke! Not found.",
            )

        return JokeView(
            joke=JokeOut.model_validate(joke),
            is_owner=user_id is not None and user_id == joke.jokester_id,
        )

    async def create(
        self,
        db: AsyncSession,
        user_id: Optional[str],
        form: Mapping[str, Any],
    ) -> Joke:
        """
        Validate a new-joke form and persist it for the caller.

        Returns:
            The inserted Joke; the route redirects to /jokes/{joke.id}.

        Raises:
            UnauthenticatedError: no logged-in user, or the session names a
                                  user that no longer exists (→ 401)
            FormValidationError:  malformed form or field errors (→ 400);
                                  nothing is written
            DatabaseError:        insert failed (→ 500)
        """
        jokester_id = ensure_authenticated(user_id)

        fields = extract_joke_fields(form)
        field_errors = validate_joke_fields(fields)
        if has_field_errors(field_errors):
            logger.info(
                "Rejected joke submission from %s: %s",
                jokester_id,
                {field: message for field, message in field_errors.items() if message},
            )
            raise FormValidationError(field_errors=field_errors, fields=fields)

        if await auth_service.get_user(db, jokester_id) is None:
            logger.warning("Session names user %s, who no longer exists", jokester_id)
            raise UnauthenticatedError(context={"user_id": jokester_id})

        try:
            return await JokeStore(db).insert(fields, jokester_id=jokester_id)
        except IntegrityError as e:
            # Owner removed between the lookup and the insert (FK violation)
            logger.warning("Joke insert for %s violated a constraint: %s", jokester_id, str(e))
            raise UnauthenticatedError(context={"user_id": jokester_id})
        except SQLAlchemyError as e:
            logger.error("Database error creating joke for %s: %s", jokester_id, str(e))
            raise DatabaseError(
                message="Could not save your joke. Please try again.",
                context={"jokester_id": jokester_id},
            )

    async def delete(
        self,
        db: AsyncSession,
        joke_id: str,
        user_id: Optional[str],
        intent: Any,
    ) -> None:
        """
        Delete a joke on behalf of its owner.

        The intent is checked before identity or the store are touched.
        Deleting the same joke twice yields NotFoundError the second time.
        The existence check and the delete are separate statements; a
        concurrent delete in between surfaces as NotFoundError from the store.

        Raises:
            BadRequestError:      intent is not "delete" (→ 400)
            UnauthenticatedError: no logged-in user (→ 401)
            NotFoundError:        no joke with this id (→ 404)
            ForbiddenError:       caller is not the jokester (→ 403)
            DatabaseError:        query failed (→ 500)
        """
        if intent != DELETE_INTENT:
            shown = intent if isinstance(intent, str) else "null"
            raise BadRequestError(
                message=f"The intent {shown} is not supported.",
                context={"intent": intent, "joke_id": joke_id},
            )

        caller_id = ensure_authenticated(user_id)
        store = JokeStore(db)

        try:
            joke = await store.find_by_id(joke_id)
            if joke is None:
                raise NotFoundError(
                    resource="joke",
                    resource_id=joke_id,
                    message="Can't delete a joke that doesn't exist.",
                )
            if joke.jokester_id != caller_id:
                raise ForbiddenError(
                    message="You can't delete a joke you didn't create.",
                    context={"joke_id": joke_id, "user_id": caller_id},
                )
            await store.delete_by_id(joke_id)
        except SQLAlchemyError as e:
            logger.error("Database error deleting joke %s: %s", joke_id, str(e))
            raise DatabaseError(
                message="Could not delete the joke. Please try again.",
                context={"joke_id": joke_id},
            )

    async def list_jokes(
        self,
        db: AsyncSession,
        user_id: Optional[str],
        limit: int = 5,
    ) -> JokeListResponse:
        """Newest jokes (id and name only) plus the logged-in user, if any."""
        try:
            jokes = await JokeStore(db).list_recent(limit=limit)
        except SQLAlchemyError as e:
            logger.error("Database error listing jokes: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve jokes. Please try again.",
                context={"error_type": type(e).__name__},
            )
        user = await auth_service.get_user(db, user_id)

        return JokeListResponse(
            joke_list_items=[JokeListItem.model_validate(joke) for joke in jokes],
            user=UserOut.model_validate(user) if user is not None else None,
        )

    async def random_joke(self, db: AsyncSession) -> RandomJokeResponse:
        """
        Raises:
            NotFoundError: there are no jokes yet (→ 404)
        """
        try:
            joke = await JokeStore(db).find_random()
        except SQLAlchemyError as e:
            logger.error("Database error picking a random joke: %s", str(e))
            raise DatabaseError(message="Could not retrieve a joke. Please try again.")

        if joke is None:
            raise NotFoundError(resource="joke", message="No random joke found")
        return RandomJokeResponse(random_joke=JokeOut.model_validate(joke))


joke_service = JokeService()
