"""
Jokebox Backend: Joke SQLAlchemy Model
=======================================

What:  ORM model representing the `jokes` table.
Who:   Used by JokeStore for create/read/delete and by Alembic.

Table Design:
    - Text UUID primary key: opaque identifier used in URLs (/jokes/{id})
    - jokester_id: owner of the joke; FK to users.id. Deleting a user
      cascades to their jokes.
    - name: short title (at least 3 characters, enforced at the form layer)
    - content: the joke itself (at least 10 characters, same)

Query Patterns:
    - Single joke: SELECT ... WHERE id = :id          (primary key)
    - Listing:     SELECT id, name ORDER BY created_at DESC LIMIT 5
                   (idx_jokes_created_at)
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from jokebox.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Joke(Base):
    """
    A short text record submitted by a user.

    Lifecycle:
        1. Created by its jokester through the new-joke form
        2. Read by anyone, logged in or not
        3. Deleted only by its jokester; a second delete is a 404
    """

    __tablename__ = "jokes"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )

    jokester_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    __table_args__ = (
        Index("idx_jokes_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Joke(id={self.id}, name='{self.name}', jokester_id={self.jokester_id})>"
