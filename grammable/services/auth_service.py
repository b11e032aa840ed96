"""
Grammable — Account & Session Service
=======================================

What:  Password hashing, session token issuing/decoding, sign-up and sign-in.
How:   passlib's bcrypt CryptContext for passwords; python-jose HS256 JWTs
       (sub = user id) as the value of the session cookie.
Who:   Called by the /users routes and by the get_current_user dependency.

Session token:
    {"sub": "<user uuid>", "exp": <unix time>}
    A token that fails signature or expiry checks, or whose user no longer
    exists, is treated as "not signed in".
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from grammable.config import settings
from grammable.exceptions import AuthenticationError, DatabaseError, ValidationError
from grammable.models.user import User
from grammable.services.validation import validate_registration

logger = logging.getLogger(__name__)

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds,
)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(user_id: UUID, expires_delta: Optional[timedelta] = None) -> str:
    """Signed session token for `user_id`."""
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode = {"sub": str(user_id), "exp": expire}
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Optional[UUID]:
    """User id carried by `token`, or None when the token is invalid or expired."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        logger.debug("Rejected session token: %s", str(e))
        return None

    subject = payload.get("sub")
    if not subject:
        return None
    try:
        return UUID(subject)
    except ValueError:
        return None


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AuthService:
    """
    Account operations. Stateless; the session is passed to every call.
    """

    async def get_user(self, db: AsyncSession, user_id: UUID) -> Optional[User]:
        return await db.get(User, user_id)

    async def find_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(
            select(User).where(func.lower(User.email) == normalize_email(email))
        )
        return result.scalar_one_or_none()

    async def register(
        self,
        db: AsyncSession,
        email: str,
        password: str,
        password_confirmation: Optional[str] = None,
    ) -> User:
        """
        Create an account.

        Raises:
            ValidationError: invalid email/password or email already taken (→ 422)
            DatabaseError: insert failed for another reason (→ 500)
        """
        form = {"email": email or ""}
        errors = validate_registration(email, password, password_confirmation)
        if errors:
            raise ValidationError(errors=errors, form=form)

        if await self.find_by_email(db, email) is not None:
            raise ValidationError(errors={"email": ["has already been taken"]}, form=form)

        user = User(email=normalize_email(email), hashed_password=hash_password(password))
        db.add(user)
        try:
            await db.flush()
        except IntegrityError:
            # Lost a race with a concurrent sign-up for the same email
            raise ValidationError(errors={"email": ["has already been taken"]}, form=form)
        except SQLAlchemyError as e:
            logger.error("Database error creating user: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not create your account. Please try again.",
                context={"error_type": type(e).__name__},
            )

        logger.info("User registered: %s", user.id)
        return user

    async def authenticate(self, db: AsyncSession, email: str, password: str) -> User:
        """
        Raises:
            AuthenticationError: unknown email or wrong password (→ 401).
            The two cases are indistinguishable to the caller.
        """
        user = await self.find_by_email(db, email or "")
        if user is None or not password or not verify_password(password, user.hashed_password):
            logger.info("Failed sign-in attempt for %s", normalize_email(email or ""))
            raise AuthenticationError()
        return user


# ── Singleton Instance ────────────────────────────────────────────────────
auth_service = AuthService()
