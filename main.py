# backend/main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from core.providers import init_providers
from core.settings import get_settings

# Routers
from health.router import router as health_router
from storage_api.router import router as storage_router


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    _configure_logging(get_settings().log_level)
    providers = init_providers(app)
    logging.getLogger(__name__).info("[Startup] storage provider=%s", providers.storage.name)
    yield


# ---------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------

app = FastAPI(
    title="Secure Object Storage Service",
    lifespan=lifespan,
)


# ---------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------

app.include_router(health_router)
app.include_router(storage_router)


# ---------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------

@app.get("/")
async def root():
    return {"status": "ok", "message": "storage backend running"}


# ---------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
