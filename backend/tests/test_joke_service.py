"""
Jokebox Backend: Joke Service Unit Tests
=========================================

What:  Tests for JokeService business logic (read, create, delete).
How:   Uses mock DB sessions and transient Joke instances (no real DB).

What we test:
    ✅ Read: not found, isOwner for owner / other user / anonymous
    ✅ Create: login required, malformed form, both field errors, insert
    ✅ Create: a session naming a removed user gets 401
    ✅ Delete: intent checked first, then identity, existence, ownership
    ✅ A missing intent is reported as "null"
    ✅ SQLAlchemy failures surface as DatabaseError
"""

import pytest
from unittest.mock import AsyncMock
from sqlalchemy.exc import IntegrityError, OperationalError

from conftest import scalar_result
from jokebox.exceptions import (
    BadRequestError,
    DatabaseError,
    ForbiddenError,
    FormValidationError,
    NotFoundError,
    UnauthenticatedError,
)
from jokebox.models.joke import Joke
from jokebox.models.user import User
from jokebox.services.joke_service import JokeService

OWNER_ID = "0b7c6f8e-owner"
STRANGER_ID = "9d1e2a3b-stranger"
JOKE_ID = "4f1c2d3e-joke"


def make_joke(**overrides) -> Joke:
    values = {
        "id": JOKE_ID,
        "name": "Chicken",
        "content": "Why did the chicken cross the road?",
        "jokester_id": OWNER_ID,
    }
    values.update(overrides)
    return Joke(**values)


def make_owner() -> User:
    return User(id=OWNER_ID, username="kody", password_hash="not-a-real-hash")


class TestJokeServiceRead:

    def setup_method(self):
        self.service = JokeService()

    @pytest.mark.asyncio
    async def test_missing_joke_raises_not_found(self, mock_db_session):
        mock_db_session.execute.return_value = scalar_result(None)

        with pytest.raises(NotFoundError) as exc_info:
            await self.service.read(mock_db_session, "missing", user_id=OWNER_ID)

        assert "not found" in exc_info.value.message.lower()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "user_id, expected",
        [(OWNER_ID, True), (STRANGER_ID, False), (None, False)],
    )
    async def test_is_owner_reflects_caller(self, mock_db_session, user_id, expected):
        mock_db_session.execute.return_value = scalar_result(make_joke())

        view = await self.service.read(mock_db_session, JOKE_ID, user_id=user_id)

        assert view.is_owner is expected
        assert view.joke.id == JOKE_ID
        assert view.joke.jokester_id == OWNER_ID

    @pytest.mark.asyncio
    async def test_view_serializes_with_camel_case_keys(self, mock_db_session):
        mock_db_session.execute.return_value = scalar_result(make_joke())

        view = await self.service.read(mock_db_session, JOKE_ID, user_id=None)

        assert view.model_dump(by_alias=True) == {
            "joke": {
                "id": JOKE_ID,
                "name": "Chicken",
                "content": "Why did the chicken cross the road?",
                "jokesterId": OWNER_ID,
            },
            "isOwner": False,
        }

    @pytest.mark.asyncio
    async def test_query_failure_becomes_database_error(self, mock_db_session):
        mock_db_session.execute.side_effect = OperationalError("SELECT", {}, Exception("gone"))

        with pytest.raises(DatabaseError):
            await self.service.read(mock_db_session, JOKE_ID, user_id=None)


class TestJokeServiceCreate:

    def setup_method(self):
        self.service = JokeService()

    @pytest.mark.asyncio
    async def test_anonymous_caller_is_rejected(self, mock_db_session):
        with pytest.raises(UnauthenticatedError):
            await self.service.create(
                mock_db_session,
                user_id=None,
                form={"name": "Chicken", "content": "Why did the chicken cross the road?"},
            )
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_malformed_form_is_a_form_error(self, mock_db_session):
        with pytest.raises(FormValidationError) as exc_info:
            await self.service.create(mock_db_session, user_id=OWNER_ID, form={"name": "Chicken"})

        assert exc_info.value.form_error == "Form not submitted correctly."
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_field_errors_are_reported_together(self, mock_db_session):
        with pytest.raises(FormValidationError) as exc_info:
            await self.service.create(
                mock_db_session,
                user_id=OWNER_ID,
                form={"name": "ab", "content": "short"},
            )

        assert exc_info.value.field_errors == {
            "name": "That joke's name is too short",
            "content": "That joke was too short",
        }
        assert exc_info.value.fields == {"name": "ab", "content": "short"}
        assert exc_info.value.form_error is None
        mock_db_session.add.assert_not_called()
        mock_db_session.flush.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_valid_joke_is_inserted_for_caller(self, mock_db_session):
        mock_db_session.execute.return_value = scalar_result(make_owner())

        joke = await self.service.create(
            mock_db_session,
            user_id=OWNER_ID,
            form={"name": "Chicken", "content": "Why did the chicken cross the road?"},
        )

        mock_db_session.add.assert_called_once_with(joke)
        mock_db_session.flush.assert_awaited_once()
        assert joke.jokester_id == OWNER_ID
        assert joke.name == "Chicken"

    @pytest.mark.asyncio
    async def test_session_for_deleted_user_is_rejected(self, mock_db_session):
        mock_db_session.execute.return_value = scalar_result(None)

        with pytest.raises(UnauthenticatedError):
            await self.service.create(
                mock_db_session,
                user_id=OWNER_ID,
                form={"name": "Chicken", "content": "Why did the chicken cross the road?"},
            )
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_owner_removed_before_insert_is_rejected(self, mock_db_session):
        mock_db_session.execute.return_value = scalar_result(make_owner())
        mock_db_session.flush = AsyncMock(
            side_effect=IntegrityError("INSERT", {}, Exception("FOREIGN KEY constraint failed"))
        )

        with pytest.raises(UnauthenticatedError):
            await self.service.create(
                mock_db_session,
                user_id=OWNER_ID,
                form={"name": "Chicken", "content": "Why did the chicken cross the road?"},
            )

    @pytest.mark.asyncio
    async def test_flush_failure_becomes_database_error(self, mock_db_session):
        mock_db_session.execute.return_value = scalar_result(make_owner())
        mock_db_session.flush = AsyncMock(
            side_effect=OperationalError("INSERT", {}, Exception("disk full"))
        )

        with pytest.raises(DatabaseError):
            await self.service.create(
                mock_db_session,
                user_id=OWNER_ID,
                form={"name": "Chicken", "content": "Why did the chicken cross the road?"},
            )


class TestJokeServiceDelete:

    def setup_method(self):
        self.service = JokeService()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "intent, shown",
        [("archive", "archive"), (None, "null"), ("", ""), ("DELETE", "DELETE")],
    )
    async def test_unsupported_intent_fails_before_store_access(
        self, mock_db_session, intent, shown
    ):
        with pytest.raises(BadRequestError) as exc_info:
            await self.service.delete(mock_db_session, JOKE_ID, user_id=OWNER_ID, intent=intent)

        assert exc_info.value.message == f"The intent {shown} is not supported."
        mock_db_session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_bad_intent_wins_over_missing_login(self, mock_db_session):
        with pytest.raises(BadRequestError):
            await self.service.delete(mock_db_session, JOKE_ID, user_id=None, intent="archive")

    @pytest.mark.asyncio
    async def test_anonymous_caller_is_rejected(self, mock_db_session):
        with pytest.raises(UnauthenticatedError):
            await self.service.delete(mock_db_session, JOKE_ID, user_id=None, intent="delete")
        mock_db_session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_joke_raises_not_found(self, mock_db_session):
        mock_db_session.execute.return_value = scalar_result(None)

        with pytest.raises(NotFoundError) as exc_info:
            await self.service.delete(mock_db_session, JOKE_ID, user_id=OWNER_ID, intent="delete")

        assert exc_info.value.message == "Can't delete a joke that doesn't exist."
        assert mock_db_session.execute.await_count == 1

    @pytest.mark.asyncio
    async def test_non_owner_is_forbidden(self, mock_db_session):
        mock_db_session.execute.return_value = scalar_result(make_joke())

        with pytest.raises(ForbiddenError) as exc_info:
            await self.service.delete(
                mock_db_session, JOKE_ID, user_id=STRANGER_ID, intent="delete"
            )

        assert exc_info.value.message == "You can't delete a joke you didn't create."
        assert mock_db_session.execute.await_count == 1

    @pytest.mark.asyncio
    async def test_owner_deletes_joke(self, mock_db_session):
        mock_db_session.execute.side_effect = [
            scalar_result(make_joke()),
            scalar_result(None, rowcount=1),
        ]

        await self.service.delete(mock_db_session, JOKE_ID, user_id=OWNER_ID, intent="delete")

        assert mock_db_session.execute.await_count == 2

    @pytest.mark.asyncio
    async def test_concurrent_delete_surfaces_as_not_found(self, mock_db_session):
        mock_db_session.execute.side_effect = [
            scalar_result(make_joke()),
            scalar_result(None, rowcount=0),
        ]

        with pytest.raises(NotFoundError):
            await self.service.delete(mock_db_session, JOKE_ID, user_id=OWNER_ID, intent="delete")
