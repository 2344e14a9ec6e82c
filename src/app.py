"""
Usuarios Registry API Server
CRUD over the usuarios table backed by PostgreSQL
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.settings import Settings, get_settings
from database.connection import init_database, close_database
from api.routes import health, usuarios
from utils.error_handling import setup_error_handling

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager: the pool lives on app.state"""
    settings: Settings = app.state.settings
    app.state.db_pool = await init_database(settings)
    yield
    await close_database(app.state.db_pool)
    app.state.db_pool = None


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the FastAPI application"""
    settings = settings or get_settings()

    app = FastAPI(
        title="Usuarios Registry API",
        description="CRUD API over the usuarios table",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.db_pool = None

    setup_error_handling(app, expose_error_detail=settings.expose_error_detail)
    # Added last, so CORS wraps the request-context middleware and every response
    # it produces, error responses included
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Trace-ID"],
    )

    app.include_router(health.router, tags=["Health"])
    app.include_router(usuarios.router, prefix="/api/usuarios", tags=["Usuarios"])

    return app


# FastAPI app instance is exported for use by uvicorn
# Server startup is handled by main.py at the project root
app = create_app()
