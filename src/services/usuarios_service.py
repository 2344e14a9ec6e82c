"""
Usuarios service - business logic for the usuarios registry

Each operation validates its input, runs exactly one parameterized
statement on a pooled connection and converts storage failures into the
error taxonomy in services.errors.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import asyncpg
from fastapi import Depends

from database.connection import get_db_pool
from models.usuario import blank_to_none
from services.errors import InternalError, NotFound, ValidationError

logger = logging.getLogger(__name__)

USUARIO_COLUMNS = "id_expediente, nombre, area, created_at"

LIST_USUARIOS_SQL = f"SELECT {USUARIO_COLUMNS} FROM usuarios ORDER BY created_at DESC"
GET_USUARIO_SQL = f"SELECT {USUARIO_COLUMNS} FROM usuarios WHERE id_expediente = $1"
INSERT_USUARIO_SQL = "INSERT INTO usuarios (id_expediente, nombre, area) VALUES ($1, $2, $3)"
UPDATE_USUARIO_SQL = (
    "UPDATE usuarios SET nombre = COALESCE($1, nombre), area = COALESCE($2, area) "
    "WHERE id_expediente = $3"
)
DELETE_USUARIO_SQL = "DELETE FROM usuarios WHERE id_expediente = $1"

# Failures of the storage capability itself; anything else is a bug and propagates
STORAGE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError)


def affected_rows(status: Optional[str]) -> int:
    """
    Number of rows affected according to an asyncpg command status tag

    asyncpg returns e.g. "INSERT 0 1", "UPDATE 3" or "DELETE 0"; the last
    token is the row count.
    """
    if not status:
        return 0
    try:
        return int(status.split()[-1])
    except ValueError:
        return 0


class UsuariosService:
    """Service for usuarios CRUD operations"""

    def __init__(self, db_pool: Optional[asyncpg.Pool]):
        self.db_pool = db_pool

    def _require_pool(self, failure_message: str) -> asyncpg.Pool:
        if self.db_pool is None:
            raise InternalError(failure_message, cause=RuntimeError("Database pool not initialized"))
        return self.db_pool

    async def list_usuarios(self) -> List[Dict[str, Any]]:
        """
        Get all usuarios, newest first

        Returns:
            List of records, possibly empty
        """
        failure_message = "Error al listar usuarios"
        db_pool = self._require_pool(failure_message)

        logger.debug(f"Executing: {LIST_USUARIOS_SQL}")
        try:
            async with db_pool.acquire() as conn:
                rows = await conn.fetch(LIST_USUARIOS_SQL)
        except STORAGE_ERRORS as e:
            logger.error(f"List usuarios failed: {e}")
            raise InternalError(failure_message, cause=e) from e

        return [dict(row) for row in rows]

    async def get_usuario(self, id_expediente: str) -> Dict[str, Any]:
        """
        Get a single usuario by its id_expediente

        Raises:
            NotFound: no record has that id_expediente
        """
        failure_message = "Error al buscar el usuario"
        db_pool = self._require_pool(failure_message)

        logger.debug(f"Executing: {GET_USUARIO_SQL} params=[{id_expediente}]")
        try:
            async with db_pool.acquire() as conn:
                row = await conn.fetchrow(GET_USUARIO_SQL, id_expediente)
        except STORAGE_ERRORS as e:
            logger.error(f"Get usuario {id_expediente} failed: {e}")
            raise InternalError(failure_message, cause=e) from e

        if row is None:
            raise NotFound("Usuario no encontrado")

        return dict(row)

    async def create_usuario(
        self,
        id_expediente: Optional[str],
        nombre: Optional[str],
        area: Optional[str]
    ) -> None:
        """
        Register a new usuario; the database assigns created_at

        Raises:
            ValidationError: any of the three fields is missing or blank
            InternalError: storage failure, a duplicate id_expediente included,
                or the insert did not affect one row
        """
        id_expediente = blank_to_none(id_expediente)
        nombre = blank_to_none(nombre)
        area = blank_to_none(area)
        if not id_expediente or not nombre or not area:
            raise ValidationError("Error: Todos los campos son obligatorios.")

        db_pool = self._require_pool("Error al insertar el usuario.")

        logger.info(f"Creating usuario: {id_expediente}")
        logger.debug(f"Executing: {INSERT_USUARIO_SQL} params=[{id_expediente}, {nombre}, {area}]")
        try:
            async with db_pool.acquire() as conn:
                status = await conn.execute(INSERT_USUARIO_SQL, id_expediente, nombre, area)
        except STORAGE_ERRORS as e:
            logger.error(f"Create usuario {id_expediente} failed: {e}")
            raise InternalError("Error al insertar el usuario.", cause=e) from e

        if affected_rows(status) != 1:
            logger.error(f"Insert for usuario {id_expediente} returned unexpected status: {status}")
            raise InternalError("Error: No se pudo registrar el usuario.")

    async def update_usuario(
        self,
        id_expediente: str,
        nombre: Optional[str] = None,
        area: Optional[str] = None
    ) -> None:
        """
        Update nombre and/or area; omitted fields keep their current value

        Raises:
            ValidationError: neither nombre nor area was supplied
            NotFound: no row was affected
        """
        nombre = blank_to_none(nombre)
        area = blank_to_none(area)
        if not nombre and not area:
            raise ValidationError("Error: Debe enviar al menos un campo para actualizar.")

        failure_message = "Error al actualizar el usuario."
        db_pool = self._require_pool(failure_message)

        logger.info(f"Updating usuario: {id_expediente}")
        logger.debug(f"Executing: {UPDATE_USUARIO_SQL} params=[{nombre}, {area}, {id_expediente}]")
        try:
            async with db_pool.acquire() as conn:
                status = await conn.execute(UPDATE_USUARIO_SQL, nombre, area, id_expediente)
        except STORAGE_ERRORS as e:
            logger.error(f"Update usuario {id_expediente} failed: {e}")
            raise InternalError(failure_message, cause=e) from e

        if affected_rows(status) != 1:
            raise NotFound("Usuario no encontrado o no modificado.")

    async def delete_usuario(self, id_expediente: str) -> None:
        """
        Delete a usuario by its id_expediente

        Raises:
            NotFound: no row was affected
        """
        failure_message = "Error al eliminar el usuario."
        db_pool = self._require_pool(failure_message)

        logger.info(f"Deleting usuario: {id_expediente}")
        logger.debug(f"Executing: {DELETE_USUARIO_SQL} params=[{id_expediente}]")
        try:
            async with db_pool.acquire() as conn:
                status = await conn.execute(DELETE_USUARIO_SQL, id_expediente)
        except STORAGE_ERRORS as e:
            logger.error(f"Delete usuario {id_expediente} failed: {e}")
            raise InternalError(failure_message, cause=e) from e

        if affected_rows(status) != 1:
            raise NotFound("Usuario no encontrado.")


def get_usuarios_service(db_pool: Optional[asyncpg.Pool] = Depends(get_db_pool)) -> UsuariosService:
    """FastAPI dependency building the service around the application's pool"""
    return UsuariosService(db_pool)
