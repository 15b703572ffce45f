"""
Bookshelf API: application entry point.
"""

from __future__ import annotations

import logging
import pathlib
import sys
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from api.middleware import register_exception_handlers, register_middleware
from api.routes import router as books_router
from auth.password import PasswordHasher
from auth.routes import router as auth_router
from auth.tokens import TokenService
from config.settings import Settings, config
from database.session import build_engine, build_session_factory, init_db

logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s: %(message)s",
    stream=sys.stdout,
)
for _noisy in ("sqlalchemy.engine", "aiosqlite", "asyncio"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application.

    Raises ``MissingSigningSecretError`` when no JWT secret is configured,
    so a misconfigured process never starts serving.
    """
    settings = settings or config
    token_service = TokenService.from_settings(settings)

    app = FastAPI(
        title="Bookshelf API",
        version="1.0.0",
        description="Book catalog with registration, login and bearer-token access.",
    )

    app.state.settings = settings
    app.state.token_service = token_service
    app.state.password_hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
    # Warm the unknown-email digest.
    app.state.password_hasher.dummy_hash
    app.state.engine = build_engine(settings.database_url)
    app.state.session_factory = build_session_factory(app.state.engine)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
        allow_headers=["Origin", "X-Requested-With", "Content-Type", "Accept", "Authorization"],
    )

    register_middleware(app)
    register_exception_handlers(app)

    # Routes
    app.include_router(auth_router)
    app.include_router(books_router)

    upload_dir = pathlib.Path(settings.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=str(upload_dir)), name="uploads")

    @app.on_event("startup")
    async def on_startup():
        logger.info("Creating database tables…")
        await init_db(app.state.engine)
        logger.info("Application ready to accept requests.")

    @app.on_event("shutdown")
    async def on_shutdown():
        await app.state.engine.dispose()

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level="debug" if config.debug else "info",
    )
