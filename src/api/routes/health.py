"""
Liveness and health check API routes
"""

from typing import Optional

import asyncpg
from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from database.connection import check_database, get_db_pool
from models.usuario import HealthResponse

router = APIRouter()


@router.get("/", response_class=PlainTextResponse)
async def root():
    """Plain text liveness message"""
    return "Servidor FastAPI + PostgreSQL funcionando correctamente."


@router.get("/api/health", response_model=HealthResponse)
async def health_check(db_pool: Optional[asyncpg.Pool] = Depends(get_db_pool)):
    """
    Health check - always answers 200 while the process is up

    Database reachability is reported for monitoring but never turns the
    response into a failure.
    """
    database_ok = await check_database(db_pool)

    return {
        "ok": True,
        "message": "API activa y corriendo correctamente.",
        "database": "connected" if database_ok else "unavailable"
    }
