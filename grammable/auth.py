"""
Grammable — Current User Dependencies
=======================================

What:  FastAPI dependencies that turn the session cookie into the request's
       current user.
How:   get_current_user() decodes the cookie and loads the user (or returns
       None); require_user() raises NotAuthenticatedError for None.
Who:   Declared in route signatures: Depends(get_current_user) for pages anyone
       may see, Depends(require_user) for actions that need a signed-in user.

Ordering:
    FastAPI resolves Depends() parameters before the handler body runs, so
    require_user() rejects an anonymous request before any gram lookup. An
    anonymous request for an unknown gram is therefore redirected to sign-in,
    never answered with 404.
"""

from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from grammable.config import settings
from grammable.database import get_db_session
from grammable.exceptions import NotAuthenticatedError
from grammable.models.user import User
from grammable.services.auth_service import auth_service, decode_access_token

LOGIN_PATH = "/users/sign_in"


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> Optional[User]:
    """The signed-in user, or None. Also exposed on request.state for access logging."""
    request.state.user_id = None
    token = request.cookies.get(settings.session_cookie_name)
    if not token:
        return None

    user_id = decode_access_token(token)
    if user_id is None:
        return None

    user = await auth_service.get_user(db, user_id)
    if user is not None:
        request.state.user_id = str(user.id)
    return user


async def require_user(user: Optional[User] = Depends(get_current_user)) -> User:
    if user is None:
        raise NotAuthenticatedError()
    return user
