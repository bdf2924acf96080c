"""
Printshop back office — application entry point.

This is the **only** file that assembles the app.  All logic lives in
the `api/`, `core/`, `services/` and `models/` packages.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy import select

from backoffice.api import pages
from backoffice.api.v1.api import api_router
from backoffice.api.v1.endpoints.auth import limiter
from backoffice.core.config import settings
from backoffice.core.exceptions import register_exception_handlers
from backoffice.core.permissions import Role
from backoffice.core.security import get_password_hash
from backoffice.db.base import Base
from backoffice.db.session import async_session_factory, engine

# Ensure all models are imported so metadata.create_all can see them
from backoffice.models.user import User
from backoffice.models.user_preference import UserPreference  # noqa: F401

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(_app: FastAPI):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialised")

    # Seed the owner account on first run
    async with async_session_factory() as session:
        result = await session.execute(
            select(User).where(User.email == settings.FIRST_OWNER_EMAIL)
        )
        if result.scalar_one_or_none() is None:
            session.add(
                User(
                    email=settings.FIRST_OWNER_EMAIL,
                    hashed_password=get_password_hash(settings.FIRST_OWNER_PASSWORD),
                    full_name="Owner",
                    role=Role.OWNER.value,
                )
            )
            await session.commit()
            logger.info(
                "Default owner created: %s (password: <redacted>)",
                settings.FIRST_OWNER_EMAIL,
            )

    logger.info("%s v%s started", settings.PROJECT_NAME, settings.VERSION)
    yield
    await engine.dispose()
    logger.info("Shutdown complete")


# ── App factory ─────────────────────────────────────────────────────
def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.PROJECT_NAME,
        description="Point-of-sale and back office for a printing business",
        version=settings.VERSION,
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.state.limiter = limiter
    register_exception_handlers(application)

    application.include_router(api_router, prefix=settings.API_V1_PREFIX)
    application.include_router(pages.router)

    # Built client bundle (must be last — catch-all mount)
    frontend_dir = Path(__file__).resolve().parent.parent / "frontend"
    if frontend_dir.is_dir():
        application.mount(
            "/",
            StaticFiles(directory=str(frontend_dir), html=True),
            name="frontend",
        )
        logger.info("Frontend mounted from %s", frontend_dir)

    return application


app = create_app()
