"""
Jokebox Backend: Auth Service
==============================

What:  Account registration, credential checks, and the login form workflow.
How:   Passwords are hashed with passlib's bcrypt scheme; users are stored
       through the request's AsyncSession.
Who:   Called by the /login route and by the jokes listing (current user).

Login form workflow (POST /login):
    1. Extract loginType, username, password, redirectTo (all strings)
    2. Validate username and password lengths (both always checked)
    3. loginType "login"    → verify credentials
       loginType "register" → reject taken usernames, create the account
       anything else        → form error
    4. Return the user and a safe redirect target; the route starts the session
"""

import logging
from typing import Any, Mapping, Optional, Tuple

from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from jokebox.config import settings
from jokebox.exceptions import DatabaseError, FormValidationError
from jokebox.models.user import User
from jokebox.schemas.auth import LoginFieldErrors, LoginFields
from jokebox.services.validation import (
    MALFORMED_FORM_MESSAGE,
    validate_password,
    validate_redirect_url,
    validate_username,
)

logger = logging.getLogger(__name__)

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.password_hash_rounds,
)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


class AuthService:
    """
    Stateless user/credential operations.

    Every method receives the request's session; errors from SQLAlchemy are
    wrapped in DatabaseError so the client only ever sees a generic message.
    """

    async def get_user(self, db: AsyncSession, user_id: Optional[str]) -> Optional[User]:
        """Look up the user behind a session id; None for anonymous callers."""
        if not user_id:
            return None
        try:
            result = await db.execute(select(User).where(User.id == user_id))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching user %s: %s", user_id, str(e))
            raise DatabaseError(context={"user_id": user_id})

    async def find_by_username(self, db: AsyncSession, username: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def register(self, db: AsyncSession, username: str, password: str) -> User:
        user = User(username=username, password_hash=hash_password(password))
        db.add(user)
        await db.flush()
        logger.info("Registered user %s (%s)", user.id, username)
        return user

    async def authenticate(
        self, db: AsyncSession, username: str, password: str
    ) -> Optional[User]:
        """Return the user when the credentials match, otherwise None."""
        user = await self.find_by_username(db, username)
        if user is None or not verify_password(password, user.password_hash):
            return None
        return user

    async def handle_login_form(
        self, db: AsyncSession, form: Mapping[str, Any]
    ) -> Tuple[User, str]:
        """
        Run the login/register workflow for a submitted form.

        Returns:
            (user, redirect_to) on success.

        Raises:
            FormValidationError: malformed form, field errors, unknown login
                type, bad credentials, or a taken username. All map to 400.
            DatabaseError: the user table could not be read or written.
        """
        login_type = form.get("loginType")
        username = form.get("username")
        password = form.get("password")
        raw_redirect = form.get("redirectTo")
        redirect_to = validate_redirect_url(raw_redirect if isinstance(raw_redirect, str) else None)

        if not all(isinstance(value, str) for value in (login_type, username, password)):
            raise FormValidationError(form_error=MALFORMED_FORM_MESSAGE)

        fields = LoginFields(login_type=login_type, username=username, redirect_to=redirect_to)
        echoed = fields.model_dump(by_alias=True)

        field_errors = LoginFieldErrors(
            username=validate_username(username),
            password=validate_password(password),
        )
        if field_errors.has_errors():
            raise FormValidationError(
                field_errors=field_errors.model_dump(),
                fields=echoed,
            )

        try:
            if login_type == "login":
                user = await self.authenticate(db, username, password)
                if user is None:
                    raise FormValidationError(
                        fields=echoed,
                        form_error="Username/Password combination is incorrect",
                    )
                return user, redirect_to

            if login_type == "register":
                taken = FormValidationError(
                    fields=echoed,
                    form_error=f"User with username {username} already exists",
                )
                if await self.find_by_username(db, username) is not None:
                    raise taken
                try:
                    user = await self.register(db, username, password)
                except IntegrityError:
                    # A concurrent registration claimed the name after our lookup
                    logger.info("Registration race lost for username %s", username)
                    raise taken
                return user, redirect_to
        except SQLAlchemyError as e:
            logger.error("Database error during %s for %s: %s", login_type, username, str(e))
            raise DatabaseError(context={"login_type": login_type})

        raise FormValidationError(fields=echoed, form_error="Login type invalid")


auth_service = AuthService()
