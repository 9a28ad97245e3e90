"""
Jokebox Backend: Joke Schemas
==============================

What:  Pydantic models for the joke routes.
How:   Response models are built from ORM rows (from_attributes=True) and
       serialized with camelCase keys to match the client contract.

Contract summary:
    GET  /jokes/{id}   → JokeView            {"joke": {...}, "isOwner": bool}
    GET  /jokes        → JokeListResponse    {"jokeListItems": [...], "user": {...}|null}
    GET  /jokes/random → RandomJokeResponse  {"randomJoke": {...}}
    POST /jokes/new    → 303, or 400 FormErrorResponse
"""

from typing import Dict, List, Optional

from pydantic import Field

from jokebox.schemas.common import CamelModel


class JokeOut(CamelModel):
    """The display projection of a joke: id, name, content, owner."""

    id: str = Field(description="Opaque joke identifier")
    name: str = Field(description="Short joke title")
    content: str = Field(description="The joke text")
    jokester_id: str = Field(description="Identifier of the user who submitted the joke")


class JokeView(CamelModel):
    """
    Read-side view model for a single joke.

    is_owner is computed per request (caller identity == jokester_id) and is
    False for anonymous callers. Never persisted.
    """

    joke: JokeOut
    is_owner: bool


class JokeListItem(CamelModel):
    id: str
    name: str


class UserOut(CamelModel):
    id: str
    username: str


class JokeListResponse(CamelModel):
    """Listing page payload: the newest jokes plus the logged-in user, if any."""

    joke_list_items: List[JokeListItem]
    user: Optional[UserOut] = None


class RandomJokeResponse(CamelModel):
    random_joke: JokeOut


class JokePreview(CamelModel):
    """
    Optimistic preview of an in-flight submission.

    Built client-side from the submitted values while the create request is
    pending; the submitter always owns it and there is nothing to delete yet.
    """

    name: str
    content: str
    is_owner: bool = True
    can_delete: bool = False


class FormErrorResponse(CamelModel):
    """
    Body of a 400 response for a rejected form submission.

    field_errors has one slot per field (None where valid); fields echoes the
    submitted values for the retry form. Both are None when the body was
    malformed, in which case form_error explains why.
    """

    field_errors: Optional[Dict[str, Optional[str]]] = None
    fields: Optional[Dict[str, str]] = None
    form_error: Optional[str] = None
