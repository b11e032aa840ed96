"""
Grammable — User SQLAlchemy Model
===================================

What:  ORM model for the `users` table (accounts that can sign in and own grams).
Who:   Created by AuthService.register(); read by get_current_user() and
       compared by identity in GramService ownership checks.

Table Design:
    - UUID primary key, like grams
    - email: unique, stored lower-cased so lookups are case-insensitive
    - hashed_password: passlib bcrypt hash, never the plain password
"""

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, List

from sqlalchemy import DateTime, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from grammable.database import Base

if TYPE_CHECKING:
    from grammable.models.gram import Gram


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
        comment="Sign-in identifier, lower-cased",
    )

    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    # lazy="raise": a user's grams are always queried explicitly, never loaded
    grams: Mapped[List["Gram"]] = relationship(
        back_populates="user",
        lazy="raise",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"
