"""
Jokebox Backend: Form Validation
=================================

What:  Field validators shared by the create-joke flow, the optimistic
       preview, and the login form.
How:   Every function works on plain strings or a string-keyed mapping (a
       Starlette FormData, a dict in tests), so nothing here depends on the
       HTTP layer.

Validation rules:
    joke name      at least 3 characters   "That joke's name is too short"
    joke content   at least 10 characters  "That joke was too short"
    username       at least 3 characters
    password       at least 6 characters
    redirect URL   local path only ("/..." but not "//..."), else "/jokes"

Each validator returns the error message, or None when the value is valid.
Callers always run every validator before deciding, so all field errors are
reported together.
"""

from typing import Any, Dict, Mapping, Optional

from jokebox.exceptions import FormValidationError
from jokebox.schemas.joke import JokePreview

NAME_MIN_LENGTH = 3
CONTENT_MIN_LENGTH = 10
USERNAME_MIN_LENGTH = 3
PASSWORD_MIN_LENGTH = 6

DEFAULT_REDIRECT = "/jokes"
MALFORMED_FORM_MESSAGE = "Form not submitted correctly."


# ══════════════════════════════════════════════════════════════════════════
# Joke fields
# ══════════════════════════════════════════════════════════════════════════

def validate_joke_name(name: str) -> Optional[str]:
    if len(name) < NAME_MIN_LENGTH:
        return "That joke's name is too short"
    return None


def validate_joke_content(content: str) -> Optional[str]:
    if len(content) < CONTENT_MIN_LENGTH:
        return "That joke was too short"
    return None


def extract_joke_fields(form: Mapping[str, Any]) -> Dict[str, str]:
    """
    Pull `name` and `content` out of a submitted form.

    Raises:
        FormValidationError: either field is missing or is not a string
            (e.g. a file upload). No field errors are attached; the form
            itself is malformed.
    """
    name = form.get("name")
    content = form.get("content")
    if not isinstance(name, str) or not isinstance(content, str):
        raise FormValidationError(form_error=MALFORMED_FORM_MESSAGE)
    return {"name": name, "content": content}


def validate_joke_fields(fields: Mapping[str, str]) -> Dict[str, Optional[str]]:
    """
    Run both joke validators and return one slot per field.

    Both checks always run; a submission with a bad name and bad content gets
    both messages back.
    """
    return {
        "name": validate_joke_name(fields["name"]),
        "content": validate_joke_content(fields["content"]),
    }


def has_field_errors(field_errors: Mapping[str, Optional[str]]) -> bool:
    return any(message is not None for message in field_errors.values())


def build_optimistic_preview(form: Mapping[str, Any]) -> Optional[JokePreview]:
    """
    Build the provisional preview shown while a create request is in flight.

    Uses exactly the validators the server applies, so a preview is only
    ever shown for a submission the server will accept. Returns None when
    either field is missing or fails validation.
    """
    name = form.get("name")
    content = form.get("content")
    if not isinstance(name, str) or not isinstance(content, str):
        return None
    if validate_joke_name(name) is not None or validate_joke_content(content) is not None:
        return None
    return JokePreview(name=name, content=content)


# ══════════════════════════════════════════════════════════════════════════
# Login fields
# ══════════════════════════════════════════════════════════════════════════

def validate_username(username: str) -> Optional[str]:
    if len(username) < USERNAME_MIN_LENGTH:
        return "Usernames must be at least 3 characters long"
    return None


def validate_password(password: str) -> Optional[str]:
    if len(password) < PASSWORD_MIN_LENGTH:
        return "Passwords must be at least 6 characters long"
    return None


def validate_redirect_url(url: Optional[str]) -> str:
    """
    Return `url` if it is a path on this site, otherwise the jokes listing.

    Rejects absolute URLs and protocol-relative ones ("//evil.example") so a
    crafted login link cannot bounce users to another host.
    """
    if not url or not url.startswith("/") or url.startswith("//"):
        return DEFAULT_REDIRECT
    return url
