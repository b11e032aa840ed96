"""
ORM models. Importing this package registers every table on Base.metadata
(Alembic's env.py and the test fixtures rely on that).
"""

from grammable.models.user import User
from grammable.models.gram import Gram

__all__ = ["User", "Gram"]
