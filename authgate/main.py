# authgate/main.py
from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from authgate.api.routes import auth as auth_routes
from authgate.core.config import settings
from authgate.core.logging import configure_logging
from authgate.db.database import init_models


# =============================================================================
# Startup: logging + schema
# =============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    await init_models()
    yield


# =============================================================================
# App instance
# =============================================================================
app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    docs_url="/docs",
    redoc_url=None,
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.include_router(auth_routes.router, prefix="/auth")


@app.get("/health", include_in_schema=False)
async def health() -> dict:
    return {"status": "ok"}
