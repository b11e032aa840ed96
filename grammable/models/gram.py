"""
Grammable — Gram SQLAlchemy Model
===================================

What:  ORM model representing the `grams` table.
Who:   Used by GramService for CRUD operations and by Alembic for schema management.

Table Design:
    - UUID primary key: non-sequential, generated in Python on insert
    - message: TEXT, NOT NULL; non-emptiness is enforced by validate_gram()
      before any insert or update reaches the database
    - picture: relative path from the storage root (YYYY/MM/DD/<uuid>.<ext>),
      NULL when the gram has no picture; indexed (migration 003)
    - user_id: owner, set once at creation and never reassigned
    - created_at / updated_at: UTC, timezone-aware

Index on created_at:
    The list page shows the newest grams first (backward index scan).
"""

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from grammable.database import Base

if TYPE_CHECKING:
    from grammable.models.user import User


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Gram(Base):
    """
    A user-authored post: a message and an optional picture.

    Lifecycle:
        1. Created by a signed-in user (owner = that user)
        2. Message may be changed by the owner (updated_at refreshed)
        3. Deleted by the owner; the picture file is removed with it
    """

    __tablename__ = "grams"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    message: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    picture: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        default=None,
        comment="Relative path from storage root to the uploaded picture",
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    # selectin: the owner is loaded together with the gram, async sessions
    # cannot lazy-load on attribute access
    user: Mapped["User"] = relationship(
        back_populates="grams",
        lazy="selectin",
    )

    __table_args__ = (
        Index("index_grams_on_picture", "picture"),
        Index("index_grams_on_created_at", "created_at"),
    )

    def is_owned_by(self, user: Optional["User"]) -> bool:
        """True when `user` is the gram's owner. Anonymous users own nothing."""
        return user is not None and self.user_id == user.id

    def __repr__(self) -> str:
        return f"<Gram(id={self.id}, user_id={self.user_id}, created_at='{self.created_at}')>"
