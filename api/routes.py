"""
REST API routes for the book catalog.

Reads are public; creating, editing and deleting a book require a valid
bearer token.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import AuthContext, db_session, get_settings, require_user
from api.uploads import discard_image, save_image
from config.settings import Settings
from database.helpers import create_book, delete_book, get_book, list_books, update_book

logger = logging.getLogger(__name__)

router = APIRouter(tags=["books"])


class BookOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    author: str
    publisher: Optional[str] = None
    year: Optional[int] = None
    pages: Optional[int] = None
    image: Optional[str] = None


class BookUpdate(BaseModel):
    """Partial update; ``year`` and ``pages`` are parsed as integers."""

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    author: Optional[str] = Field(None, min_length=1, max_length=255)
    publisher: Optional[str] = Field(None, max_length=255)
    year: Optional[int] = None
    pages: Optional[int] = Field(None, ge=0)


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Book not found")


@router.post("/books")
async def add_book(
    title: str = Form(..., min_length=1, max_length=255),
    author: str = Form(..., min_length=1, max_length=255),
    publisher: Optional[str] = Form(None, max_length=255),
    year: Optional[int] = Form(None),
    pages: Optional[int] = Form(None, ge=0),
    image: Optional[UploadFile] = File(None),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(get_settings),
    auth: AuthContext = Depends(require_user),
) -> Dict[str, Any]:
    """Create a book, optionally with a cover image."""
    image_path = None
    if image is not None and image.filename:
        image_path = await save_image(image, settings.upload_dir, settings.max_upload_bytes)

    try:
        book = await create_book(
            session,
            title=title,
            author=author,
            publisher=publisher,
            year=year,
            pages=pages,
            image=image_path,
        )
        await session.commit()
    except SQLAlchemyError:
        if image_path is not None:
            discard_image(image_path, settings.upload_dir)
        raise
    logger.debug("User %s added book %s", auth.user_id, book.id)
    return {"book": BookOut.model_validate(book)}


@router.get("/books")
async def all_books(
    session: AsyncSession = Depends(db_session),
) -> Dict[str, List[BookOut]]:
    books = await list_books(session)
    return {"books": [BookOut.model_validate(b) for b in books]}


@router.get("/books/{book_id}")
async def book_detail(
    book_id: int,
    session: AsyncSession = Depends(db_session),
) -> Dict[str, Any]:
    book = await get_book(session, book_id)
    if book is None:
        raise _not_found()
    return {"book": BookOut.model_validate(book)}


@router.put("/books/{book_id}")
async def edit_book(
    book_id: int,
    payload: BookUpdate,
    session: AsyncSession = Depends(db_session),
    auth: AuthContext = Depends(require_user),
) -> Dict[str, Any]:
    """Update the non-null fields present in the body."""
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    book = await update_book(session, book_id, changes)
    if book is None:
        raise _not_found()
    await session.commit()
    logger.debug("User %s edited book %s", auth.user_id, book_id)
    return {"book": BookOut.model_validate(book)}


@router.delete("/books/{book_id}")
async def remove_book(
    book_id: int,
    session: AsyncSession = Depends(db_session),
    auth: AuthContext = Depends(require_user),
) -> Dict[str, Any]:
    book = await delete_book(session, book_id)
    if book is None:
        raise _not_found()
    await session.commit()
    logger.debug("User %s deleted book %s", auth.user_id, book_id)
    return {"book": BookOut.model_validate(book)}


@router.get("/health")
async def health_check() -> Dict[str, str]:
    return {"status": "ok"}
