"""
Auth API routes: register, login.

Mounted at the application root: ``POST /register``, ``POST /login``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from auth.dependencies import db_session, get_credential_store, get_token_service
from auth.models import UserOut
from auth.password import MAX_PASSWORD_BYTES, PasswordTooLongError
from auth.store import CredentialStore, DuplicateEmailError
from auth.tokens import TokenService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


# ── Request / response schemas ─────────────────────────────────────────


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1, max_length=MAX_PASSWORD_BYTES)


class LoginRequest(BaseModel):
    email: str
    password: str


class RegisterResponse(BaseModel):
    user: UserOut


class LoginResponse(BaseModel):
    token: str


# ── Endpoints ──────────────────────────────────────────────────────────


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    req: RegisterRequest,
    store: CredentialStore = Depends(get_credential_store),
    session: AsyncSession = Depends(db_session),
) -> Dict[str, Any]:
    """Register a new user."""
    try:
        user = await store.create(req.name, req.email, req.password)
    except DuplicateEmailError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Account could not be created",
        )
    except PasswordTooLongError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        )

    await session.commit()
    logger.info("Registered user %s", user.id)
    return {"user": UserOut.model_validate(user)}


@router.post("/login", response_model=LoginResponse)
async def login(
    req: LoginRequest,
    store: CredentialStore = Depends(get_credential_store),
    tokens: TokenService = Depends(get_token_service),
) -> Dict[str, Any]:
    """Login with email + password."""
    user = await store.authenticate(req.email, req.password)
    if user is None:
        logger.info("Failed login attempt")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )

    logger.info("Login: user %s", user.id)
    return {"token": tokens.issue(str(user.id))}
