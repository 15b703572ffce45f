"""
Database helper functions for the book catalog.

"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from database.models import Book

logger = logging.getLogger(__name__)


async def create_book(session: AsyncSession, **fields: Any) -> Book:
    """Insert a ``Book`` row and return it with its id assigned."""
    book = Book(**fields)
    session.add(book)
    await session.flush()
    logger.info("Created book %s (%r)", book.id, book.title)
    return book


async def list_books(session: AsyncSession) -> List[Book]:
    result = await session.execute(select(Book).order_by(Book.id.asc()))
    return list(result.scalars().all())


async def get_book(session: AsyncSession, book_id: int) -> Optional[Book]:
    return await session.get(Book, book_id)


async def update_book(
    session: AsyncSession,
    book_id: int,
    changes: Dict[str, Any],
) -> Optional[Book]:
    """
    Apply ``changes`` to an existing book.

    Returns ``None`` when no book has ``book_id``.
    """
    book = await session.get(Book, book_id)
    if book is None:
        return None
    for name, value in changes.items():
        setattr(book, name, value)
    await session.flush()
    return book


async def delete_book(session: AsyncSession, book_id: int) -> Optional[Book]:
    """Delete a book, returning the removed row (or ``None`` if absent)."""
    book = await session.get(Book, book_id)
    if book is None:
        return None
    await session.delete(book)
    await session.flush()
    logger.info("Deleted book %s", book_id)
    return book
