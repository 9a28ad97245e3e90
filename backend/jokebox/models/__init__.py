"""
Jokebox Backend: ORM Models
============================

Importing this package registers every table with Base.metadata, which
Alembic and the test suite rely on.
"""

from jokebox.models.joke import Joke
from jokebox.models.user import User

__all__ = ["Joke", "User"]
