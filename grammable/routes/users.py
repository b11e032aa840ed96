"""
Grammable — Account Route Handlers
====================================

What:  Sign-up, sign-in and sign-out.
How:   Credentials arrive as form fields; on success a signed session token is
       set as an HttpOnly cookie and the browser is redirected to the root.

Route table:
    GET    /users/sign_in    sign-in form context
    POST   /users/sign_in    sign in        → 302 /   (401 on bad credentials)
    GET    /users/sign_up    sign-up form context
    POST   /users            sign up        → 302 /   (422 on invalid input)
    DELETE /users/sign_out   sign out       → 302 /

POST /users/sign_in and POST /users are rate limited per IP
(see middleware/rate_limit.py).
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from grammable.config import settings
from grammable.database import get_db_session
from grammable.models.user import User
from grammable.schemas.gram import ErrorResponse
from grammable.schemas.user import SignInFormResponse, SignUpFormResponse
from grammable.services.auth_service import auth_service, create_access_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


def start_session(user: User) -> RedirectResponse:
    """Redirect to the root with the session cookie for `user` attached."""
    response = RedirectResponse(url="/", status_code=302)
    response.set_cookie(
        key=settings.session_cookie_name,
        value=create_access_token(user.id),
        max_age=settings.access_token_expire_minutes * 60,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )
    return response


@router.get("/sign_in", response_model=SignInFormResponse, summary="Sign-in form context")
async def sign_in_form() -> SignInFormResponse:
    return SignInFormResponse()


@router.post(
    "/sign_in",
    status_code=302,
    responses={401: {"description": "Invalid email or password", "model": ErrorResponse}},
    summary="Sign in",
)
async def sign_in(
    email: str = Form(default=""),
    password: str = Form(default=""),
    db: AsyncSession = Depends(get_db_session),
) -> RedirectResponse:
    user = await auth_service.authenticate(db, email, password)
    logger.info("User %s signed in", user.id)
    return start_session(user)


@router.get("/sign_up", response_model=SignUpFormResponse, summary="Sign-up form context")
async def sign_up_form() -> SignUpFormResponse:
    return SignUpFormResponse()


@router.post(
    "",
    status_code=302,
    responses={422: {"description": "Invalid sign-up attributes", "model": ErrorResponse}},
    summary="Create an account and sign in",
)
async def sign_up(
    email: str = Form(default=""),
    password: str = Form(default=""),
    password_confirmation: Optional[str] = Form(default=None),
    db: AsyncSession = Depends(get_db_session),
) -> RedirectResponse:
    user = await auth_service.register(db, email, password, password_confirmation)
    return start_session(user)


@router.delete("/sign_out", status_code=302, summary="Sign out")
async def sign_out() -> RedirectResponse:
    response = RedirectResponse(url="/", status_code=302)
    response.delete_cookie(key=settings.session_cookie_name)
    return response
