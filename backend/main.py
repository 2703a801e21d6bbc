from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.error_handlers import register_error_handlers
from backend.routes import admin, defi, health, user
from defi_pulse import __version__
from defi_pulse.config import load_config

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load configuration (and logging) before the first request."""
    config = load_config()
    logger.info(f"{config.app_name} API started")
    yield
    logger.info(f"{config.app_name} API shutting down")


app = FastAPI(
    title="DeFi Pulse API",
    description="Cached DeFi market data and liquid-staking insights",
    version=__version__,
    lifespan=lifespan,
)


# CORS (broad for dev; tighten in production)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Routers
app.include_router(defi.router, prefix="/api/defi", tags=["defi"])
app.include_router(user.router, prefix="/api/user", tags=["user"])
app.include_router(admin.router, prefix="/api/admin", tags=["admin"])
app.include_router(health.router, tags=["health"])
