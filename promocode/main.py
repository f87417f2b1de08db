from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# IMPORTANT:
# This imports ALL models so SQLAlchemy registers tables correctly
import promocode.models  # noqa: F401
from promocode.core.cache import close_cache
from promocode.core.config import settings
from promocode.core.db import create_all, dispose_engine
from promocode.core.logging_setup import configure_logging
from promocode.middleware.observability import ObservabilityMiddleware

# Routers
from promocode.routers.auth import router as auth_router
from promocode.routers.me import router as me_router
from promocode.routers.object_versioning import router as object_versioning_router
from promocode.routers.promo_codes import router as promo_codes_router
from promocode.routers.tenants import router as tenants_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    if settings.DATABASE_URL.startswith("sqlite"):
        # local runs have no migration step
        await create_all()
    logger.info("promocode service started")
    yield
    await close_cache()
    await dispose_engine()


def create_app() -> FastAPI:
    app = FastAPI(title="Promotional Code API", lifespan=lifespan)

    app.add_middleware(ObservabilityMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(NotImplementedError)
    async def not_implemented_handler(request: Request, exc: NotImplementedError):
        logger.warning("not implemented: %s %s", request.method, request.url.path)
        return JSONResponse(status_code=501, content={"detail": str(exc) or "Not implemented"})

    @app.get("/health", tags=["health"])
    async def health():
        return {"status": "ok"}

    # Auth & users
    app.include_router(auth_router)
    app.include_router(me_router)

    # Tenants
    app.include_router(tenants_router)

    # Promotional codes
    app.include_router(promo_codes_router)

    # Audit trail
    app.include_router(object_versioning_router)

    return app


app = create_app()
