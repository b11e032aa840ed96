"""
Grammable — Gram Route Handlers
=================================

What:  The gram resource: list, new, create, show, edit, update, destroy.
How:   Each handler resolves the current user through a dependency, delegates
       to GramService and either returns a JSON page/form or redirects.
Who:   Called by the web frontend.

Route table:
    GET    /                 list (root)
    GET    /grams            list
    GET    /grams/new        new-form        (signed in)
    POST   /grams            create          (signed in)        → 302 /
    GET    /grams/{id}       show
    GET    /grams/{id}/edit  edit-form       (owner)
    PATCH  /grams/{id}       update          (owner)            → 302 /
    DELETE /grams/{id}       destroy         (owner)            → 302 /

    /grams/new is declared before /grams/{gram_id} so "new" is never taken
    for an identifier. gram_id is a plain string: a malformed id must give
    404 from the service, not a 422 from request validation.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from grammable.auth import require_user
from grammable.database import get_db_session
from grammable.models.user import User
from grammable.schemas.gram import (
    ErrorResponse,
    GramFormResponse,
    GramFormValues,
    GramListResponse,
    GramResponse,
    picture_url,
)
from grammable.services.gram_service import gram_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Grams"])

ROOT_PATH = "/"


def redirect_to_root() -> RedirectResponse:
    return RedirectResponse(url=ROOT_PATH, status_code=302)


@router.get(
    "/",
    response_model=GramListResponse,
    summary="List grams (root page)",
)
@router.get(
    "/grams",
    response_model=GramListResponse,
    summary="List grams, newest first",
)
async def list_grams(
    response: Response,
    limit: int = Query(default=20, ge=1, le=100, description="Items per page (max 100)"),
    cursor: Optional[str] = Query(
        default=None,
        description="next_cursor of the previous page (created_at and id of its last gram)",
    ),
    db: AsyncSession = Depends(get_db_session),
) -> GramListResponse:
    grams, total_count, next_cursor, has_more = await gram_service.list_grams(
        db=db, limit=limit, cursor=cursor,
    )
    response.headers["X-Total-Count"] = str(total_count)
    return GramListResponse(
        grams=[GramResponse.from_gram(gram) for gram in grams],
        total_count=total_count,
        next_cursor=next_cursor,
        has_more=has_more,
    )


@router.get(
    "/grams/new",
    response_model=GramFormResponse,
    responses={302: {"description": "Not signed in: redirect to sign-in"}},
    summary="Form context for a new gram",
)
async def new_gram(user: User = Depends(require_user)) -> GramFormResponse:
    return GramFormResponse(action="/grams", method="POST")


@router.post(
    "/grams",
    status_code=302,
    responses={
        302: {"description": "Created (redirect to root) or not signed in (redirect to sign-in)"},
        422: {"description": "Blank message or invalid picture", "model": ErrorResponse},
    },
    summary="Create a gram",
)
async def create_gram(
    message: str = Form(default="", description="Text of the gram"),
    picture: Optional[UploadFile] = File(
        default=None,
        description="Optional picture (PNG, JPEG or GIF, max 10MB)",
    ),
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> RedirectResponse:
    picture_filename: Optional[str] = None
    picture_content: Optional[bytes] = None
    try:
        # Browsers send an empty file part when no picture was chosen
        if picture is not None and picture.filename:
            picture_filename = picture.filename
            picture_content = await picture.read()

        await gram_service.create_gram(
            db=db,
            owner=user,
            message=message,
            picture_filename=picture_filename,
            picture_content=picture_content,
        )
    finally:
        if picture is not None:
            await picture.close()

    return redirect_to_root()


@router.get(
    "/grams/{gram_id}",
    response_model=GramResponse,
    responses={404: {"description": "Gram not found", "model": ErrorResponse}},
    summary="Show a gram",
)
async def show_gram(
    gram_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> GramResponse:
    gram = await gram_service.get_gram(db, gram_id)
    return GramResponse.from_gram(gram)


@router.get(
    "/grams/{gram_id}/edit",
    response_model=GramFormResponse,
    responses={
        302: {"description": "Not signed in: redirect to sign-in"},
        403: {"description": "Signed in but not the owner", "model": ErrorResponse},
        404: {"description": "Gram not found", "model": ErrorResponse},
    },
    summary="Form context for editing a gram",
)
async def edit_gram(
    gram_id: str,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> GramFormResponse:
    gram = await gram_service.get_owned_gram(db, gram_id, user)
    return GramFormResponse(
        action=f"/grams/{gram.id}",
        method="PATCH",
        gram_id=gram.id,
        values=GramFormValues(message=gram.message, picture_url=picture_url(gram.picture)),
    )


@router.patch(
    "/grams/{gram_id}",
    status_code=302,
    responses={
        302: {"description": "Updated (redirect to root) or not signed in (redirect to sign-in)"},
        403: {"description": "Signed in but not the owner", "model": ErrorResponse},
        404: {"description": "Gram not found", "model": ErrorResponse},
        422: {"description": "Blank message", "model": ErrorResponse},
    },
    summary="Update a gram's message",
)
async def update_gram(
    gram_id: str,
    message: str = Form(default="", description="New text of the gram"),
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> RedirectResponse:
    await gram_service.update_gram(db, gram_id, user, message)
    return redirect_to_root()


@router.delete(
    "/grams/{gram_id}",
    status_code=302,
    responses={
        302: {"description": "Deleted (redirect to root) or not signed in (redirect to sign-in)"},
        403: {"description": "Signed in but not the owner", "model": ErrorResponse},
        404: {"description": "Gram not found", "model": ErrorResponse},
    },
    summary="Delete a gram",
)
async def destroy_gram(
    gram_id: str,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> RedirectResponse:
    await gram_service.destroy_gram(db, gram_id, user)
    return redirect_to_root()
