"""
Grammable — Gram Service (Business Logic)
===========================================

What:  Lookup, ownership checks, validation and persistence for grams.
How:   Composes validate_gram(), FileService and database operations.
Who:   Called by the /grams route handlers; calls the storage and database layers.

Access control order for edit / update / destroy:
    1. Signed in?        → handled by the require_user dependency (redirect)
    2. Gram exists?      → get_gram() raises NotFoundError (404)
    3. Owned by caller?  → get_owned_gram() raises ForbiddenError (403)

    Existence is always established before ownership, so a signed-in user
    asking for an unknown id gets 404, not 403.

Design:
    GramService is stateless; the database session is passed to every call
    and committed/rolled back by get_db_session(). create_gram() and
    destroy_gram() commit themselves before touching picture files.
"""

import logging
from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import and_, desc, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from grammable.exceptions import DatabaseError, ForbiddenError, NotFoundError, ValidationError
from grammable.models.gram import Gram
from grammable.models.user import User
from grammable.services.file_service import file_service
from grammable.services.validation import validate_gram

logger = logging.getLogger(__name__)


def parse_gram_id(gram_id: str) -> Optional[UUID]:
    """UUID for a path identifier, or None when it is not a UUID at all."""
    try:
        return UUID(str(gram_id))
    except ValueError:
        return None


CURSOR_SEPARATOR = "|"


def make_cursor(gram: Gram) -> str:
    """Pagination cursor pointing just past `gram` in list order."""
    return f"{gram.created_at.isoformat()}{CURSOR_SEPARATOR}{gram.id}"


def parse_cursor(cursor: str) -> Optional[Tuple[datetime, UUID]]:
    """(created_at, id) encoded by make_cursor(), or None when malformed."""
    created_at, _, gram_id = cursor.rpartition(CURSOR_SEPARATOR)
    try:
        return datetime.fromisoformat(created_at), UUID(gram_id)
    except ValueError:
        return None


class GramService:
    """
    Business logic layer for gram operations.

    Error Handling Strategy:
        Expected outcomes (not found, forbidden, invalid) raise the matching
        GrammableError. Unexpected SQLAlchemy errors are wrapped in
        DatabaseError so internal details never reach the client.
    """

    async def list_grams(
        self,
        db: AsyncSession,
        limit: int = 20,
        cursor: Optional[str] = None,
    ) -> Tuple[List[Gram], int, Optional[str], bool]:
        """
        Newest grams first, with cursor-based pagination.

        How:
            - Order: created_at DESC, id DESC (id breaks timestamp ties)
            - Cursor: "<created_at ISO>|<id>" of the last item of the
              previous page; the next page starts strictly after that pair.
              An unparseable cursor is ignored.
            - One extra row is fetched to know whether more pages exist.

        Returns:
            (grams, total_count, next_cursor, has_more)
        """
        try:
            query = select(Gram)

            position = parse_cursor(cursor) if cursor else None
            if position is not None:
                cursor_dt, cursor_id = position
                query = query.where(
                    or_(
                        Gram.created_at < cursor_dt,
                        and_(Gram.created_at == cursor_dt, Gram.id < cursor_id),
                    )
                )

            query = query.order_by(desc(Gram.created_at), desc(Gram.id)).limit(limit + 1)

            result = await db.execute(query)
            grams = list(result.scalars().all())

            count_result = await db.execute(select(func.count(Gram.id)))
            total_count = count_result.scalar() or 0

        except SQLAlchemyError as e:
            logger.error("Database error listing grams: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve grams. Please try again.",
                context={"error_type": type(e).__name__},
            )

        has_more = len(grams) > limit
        if has_more:
            grams = grams[:limit]

        next_cursor = None
        if has_more and grams:
            next_cursor = make_cursor(grams[-1])

        return grams, total_count, next_cursor, has_more

    async def get_gram(self, db: AsyncSession, gram_id: str) -> Gram:
        """
        Retrieve a single gram by its path identifier.

        A malformed identifier is reported exactly like an unknown one.

        Raises:
            NotFoundError: no gram with that id (→ 404)
            DatabaseError: query execution failed (→ 500)
        """
        uid = parse_gram_id(gram_id)
        if uid is None:
            raise NotFoundError(resource="gram", resource_id=str(gram_id))

        try:
            gram = await db.get(Gram, uid)
        except SQLAlchemyError as e:
            logger.error("Database error fetching gram %s: %s", gram_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the gram. Please try again.",
                context={"gram_id": str(gram_id)},
            )

        if gram is None:
            raise NotFoundError(resource="gram", resource_id=str(gram_id))
        return gram

    async def get_owned_gram(self, db: AsyncSession, gram_id: str, user: User) -> Gram:
        """
        Retrieve a gram the caller is allowed to change.

        Raises:
            NotFoundError: no gram with that id (→ 404), checked first
            ForbiddenError: the gram belongs to someone else (→ 403)
        """
        gram = await self.get_gram(db, gram_id)
        if not gram.is_owned_by(user):
            logger.warning("User %s denied access to gram %s", user.id, gram.id)
            raise ForbiddenError(context={"gram_id": str(gram.id)})
        return gram

    async def create_gram(
        self,
        db: AsyncSession,
        owner: User,
        message: Optional[str],
        picture_filename: Optional[str] = None,
        picture_content: Optional[bytes] = None,
    ) -> Gram:
        """
        Validate → store picture → insert.

        Error Recovery:
            Invalid message or picture → ValidationError (422); nothing is
                written, neither row nor file
            Insert or commit fails → DatabaseError (500); the stored picture
                is removed

        Returns:
            The new gram, committed

        The commit happens here rather than in the session dependency so a
        failed commit can still remove the picture written for it.
        """
        message = message or ""
        has_picture = bool(picture_filename)

        errors = validate_gram(message)
        if has_picture:
            for field, texts in file_service.collect_errors(
                picture_filename, picture_content or b""
            ).items():
                errors.setdefault(field, []).extend(texts)
        if errors:
            raise ValidationError(errors=errors, form={"message": message})

        absolute_path: Optional[str] = None
        relative_path: Optional[str] = None
        if has_picture:
            absolute_path, relative_path = await file_service.validate_and_store(
                filename=picture_filename,
                content=picture_content or b"",
            )

        gram = Gram(message=message, picture=relative_path, user_id=owner.id)
        gram.user = owner
        db.add(gram)
        try:
            await db.flush()
            await db.commit()
        except SQLAlchemyError as e:
            if absolute_path:
                await file_service.cleanup_file(absolute_path)
            logger.error("Database error creating gram: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="An error occurred while saving your gram. Please try again.",
                context={"original_error": type(e).__name__},
            )

        logger.info("Gram %s created by user %s", gram.id, owner.id)
        return gram

    async def update_gram(
        self,
        db: AsyncSession,
        gram_id: str,
        user: User,
        message: Optional[str],
    ) -> Gram:
        """
        Replace the message of a gram owned by `user`.

        The new message is validated before the gram is touched, so a
        rejected update leaves the stored row unchanged.

        Raises:
            NotFoundError, ForbiddenError (see get_owned_gram)
            ValidationError: blank message (→ 422)
        """
        gram = await self.get_owned_gram(db, gram_id, user)

        message = message or ""
        errors = validate_gram(message)
        if errors:
            raise ValidationError(errors=errors, form={"message": message})

        gram.message = message
        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error updating gram %s: %s", gram.id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not update the gram. Please try again.",
                context={"gram_id": str(gram.id)},
            )

        logger.info("Gram %s updated", gram.id)
        return gram

    async def destroy_gram(self, db: AsyncSession, gram_id: str, user: User) -> None:
        """
        Delete a gram owned by `user`, then remove its picture file.

        The delete is committed before the file goes, so a failed commit
        leaves both the row and its picture in place.

        Raises:
            NotFoundError, ForbiddenError (see get_owned_gram)
        """
        gram = await self.get_owned_gram(db, gram_id, user)
        picture = gram.picture

        try:
            await db.delete(gram)
            await db.flush()
            await db.commit()
        except SQLAlchemyError as e:
            logger.error("Database error deleting gram %s: %s", gram.id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not delete the gram. Please try again.",
                context={"gram_id": str(gram.id)},
            )

        await file_service.remove_picture(picture)
        logger.info("Gram %s destroyed", gram.id)


# ── Singleton Instance ────────────────────────────────────────────────────
gram_service = GramService()
