"""
Jokebox Backend: Auth Service Tests
====================================

What we test:
    ✅ Password hashing round trip
    ✅ Login with correct / incorrect credentials
    ✅ Registration, including a taken username and a lost registration race
    ✅ Field errors, malformed forms, unknown login types
    ✅ Redirect targets are limited to local paths
    ✅ The password is never echoed back
"""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import IntegrityError

from conftest import JOKESTER_PASSWORD, scalar_result
from jokebox.exceptions import FormValidationError
from jokebox.services.auth_service import AuthService, hash_password, verify_password


def login_form(**overrides):
    form = {"loginType": "login", "username": "kody", "password": JOKESTER_PASSWORD}
    form.update(overrides)
    return form


def test_hash_password_round_trip():
    hashed = hash_password("twixrox")
    assert hashed != "twixrox"
    assert verify_password("twixrox", hashed)
    assert not verify_password("twixrocks", hashed)


class TestHandleLoginForm:

    def setup_method(self):
        self.service = AuthService()

    @pytest.mark.asyncio
    async def test_login_with_correct_password(self, db_session, jokester):
        user, redirect_to = await self.service.handle_login_form(db_session, login_form())

        assert user.id == jokester.id
        assert redirect_to == "/jokes"

    @pytest.mark.asyncio
    async def test_login_keeps_local_redirect(self, db_session, jokester):
        _, redirect_to = await self.service.handle_login_form(
            db_session, login_form(redirectTo="/jokes/new")
        )
        assert redirect_to == "/jokes/new"

    @pytest.mark.asyncio
    async def test_login_drops_foreign_redirect(self, db_session, jokester):
        _, redirect_to = await self.service.handle_login_form(
            db_session, login_form(redirectTo="https://evil.example/")
        )
        assert redirect_to == "/jokes"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("username, password", [("kody", "wrong-password"), ("nobody", "twixrox")])
    async def test_bad_credentials(self, db_session, jokester, username, password):
        with pytest.raises(FormValidationError) as exc_info:
            await self.service.handle_login_form(
                db_session, login_form(username=username, password=password)
            )

        assert exc_info.value.form_error == "Username/Password combination is incorrect"
        assert "password" not in exc_info.value.fields
        assert exc_info.value.fields["username"] == username

    @pytest.mark.asyncio
    async def test_register_creates_user(self, db_session):
        user, _ = await self.service.handle_login_form(
            db_session,
            login_form(loginType="register", username="newbie", password="s3cret!"),
        )
        await db_session.commit()

        stored = await self.service.find_by_username(db_session, "newbie")
        assert stored.id == user.id
        assert verify_password("s3cret!", stored.password_hash)

    @pytest.mark.asyncio
    async def test_register_taken_username(self, db_session, jokester):
        with pytest.raises(FormValidationError) as exc_info:
            await self.service.handle_login_form(
                db_session, login_form(loginType="register")
            )
        assert exc_info.value.form_error == "User with username kody already exists"

    @pytest.mark.asyncio
    async def test_register_race_on_unique_username(self, mock_db_session):
        # Lookup finds nobody, then the insert hits the UNIQUE constraint
        mock_db_session.execute.return_value = scalar_result(None)
        mock_db_session.flush = AsyncMock(
            side_effect=IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))
        )

        with pytest.raises(FormValidationError) as exc_info:
            await self.service.handle_login_form(
                mock_db_session, login_form(loginType="register")
            )

        assert exc_info.value.form_error == "User with username kody already exists"
        assert exc_info.value.fields["username"] == "kody"

    @pytest.mark.asyncio
    async def test_field_errors_reported_together(self, db_session):
        with pytest.raises(FormValidationError) as exc_info:
            await self.service.handle_login_form(
                db_session, login_form(username="ab", password="123")
            )

        assert exc_info.value.field_errors == {
            "username": "Usernames must be at least 3 characters long",
            "password": "Passwords must be at least 6 characters long",
        }
        assert exc_info.value.fields == {
            "loginType": "login",
            "username": "ab",
            "redirectTo": "/jokes",
        }

    @pytest.mark.asyncio
    async def test_unknown_login_type(self, db_session):
        with pytest.raises(FormValidationError) as exc_info:
            await self.service.handle_login_form(db_session, login_form(loginType="sudo"))
        assert exc_info.value.form_error == "Login type invalid"

    @pytest.mark.asyncio
    async def test_missing_fields_are_malformed(self, db_session):
        with pytest.raises(FormValidationError) as exc_info:
            await self.service.handle_login_form(db_session, {"username": "kody"})
        assert exc_info.value.form_error == "Form not submitted correctly."
        assert exc_info.value.fields is None

    @pytest.mark.asyncio
    async def test_get_user_for_anonymous_is_none(self, db_session):
        assert await self.service.get_user(db_session, None) is None
