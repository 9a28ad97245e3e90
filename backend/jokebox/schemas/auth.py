"""Schemas for the login / register form."""

from typing import Optional

from pydantic import Field

from jokebox.schemas.common import CamelModel


class LoginFields(CamelModel):
    """
    Submitted login values echoed back on failure. Never includes the password.
    """

    login_type: str = Field(description="'login' or 'register'")
    username: str
    redirect_to: str = Field(default="/jokes")


class LoginFieldErrors(CamelModel):
    username: Optional[str] = None
    password: Optional[str] = None

    def has_errors(self) -> bool:
        return any(value is not None for value in (self.username, self.password))
