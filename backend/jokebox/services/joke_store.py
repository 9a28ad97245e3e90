"""
Jokebox Backend: Joke Store
============================

What:  Keyed persistence operations for jokes on top of an AsyncSession.
Who:   Constructed per request by JokeService with the request's session.

The store owns nothing beyond the session it is given; commit/rollback is
handled by the get_db_session dependency.
"""

import logging
import random
from typing import List, Mapping, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import load_only

from jokebox.exceptions import NotFoundError
from jokebox.models.joke import Joke

logger = logging.getLogger(__name__)


class JokeStore:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_id(self, joke_id: str, display_only: bool = False) -> Optional[Joke]:
        """
        Fetch a joke by its identifier, or None when there is no such joke.

        With display_only=True only the columns the reader needs are loaded
        (id, name, content, jokester_id).
        """
        query = select(Joke).where(Joke.id == joke_id)
        if display_only:
            query = query.options(
                load_only(Joke.id, Joke.name, Joke.content, Joke.jokester_id)
            )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def insert(self, fields: Mapping[str, str], jokester_id: str) -> Joke:
        """Add a joke owned by `jokester_id`; flush so the id is assigned."""
        joke = Joke(
            name=fields["name"],
            content=fields["content"],
            jokester_id=jokester_id,
        )
        self.db.add(joke)
        await self.db.flush()
        logger.info("Joke %s created by %s", joke.id, jokester_id)
        return joke

    async def delete_by_id(self, joke_id: str) -> None:
        """
        Delete a joke by identifier.

        Raises:
            NotFoundError: no row was deleted. This also covers a concurrent
                delete that landed between the caller's existence check and
                this statement.
        """
        result = await self.db.execute(delete(Joke).where(Joke.id == joke_id))
        if not result.rowcount:
            raise NotFoundError(
                resource="joke",
                resource_id=joke_id,
                message="Can't delete a joke that doesn't exist.",
            )
        logger.info("Joke %s deleted", joke_id)

    async def list_recent(self, limit: int = 5) -> List[Joke]:
        """Newest jokes first, loading only id and name."""
        result = await self.db.execute(
            select(Joke)
            .options(load_only(Joke.id, Joke.name))
            .order_by(Joke.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count(self) -> int:
        result = await self.db.execute(select(func.count(Joke.id)))
        return result.scalar() or 0

    async def find_random(self) -> Optional[Joke]:
        """Pick one joke uniformly at random, or None when the table is empty."""
        total = await self.count()
        if total == 0:
            return None
        result = await self.db.execute(
            select(Joke).order_by(Joke.created_at).offset(random.randrange(total)).limit(1)
        )
        return result.scalar_one_or_none()
