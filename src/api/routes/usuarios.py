"""
Usuarios API routes

Handlers only translate HTTP to service calls. Errors raised by the service
(ValidationError, NotFound, InternalError) are turned into
responses by the handlers registered in utils.error_handling.
"""

from typing import List

from fastapi import APIRouter, Depends

from models.usuario import MessageResponse, UsuarioCreateRequest, UsuarioResponse, UsuarioUpdateRequest
from services.usuarios_service import UsuariosService, get_usuarios_service

router = APIRouter()


@router.get("", response_model=List[UsuarioResponse])
async def list_usuarios(service: UsuariosService = Depends(get_usuarios_service)):
    """List all usuarios, newest first"""
    return await service.list_usuarios()


@router.get("/{id_expediente}", response_model=UsuarioResponse)
async def get_usuario(
    id_expediente: str,
    service: UsuariosService = Depends(get_usuarios_service)
):
    """Get a usuario by id_expediente"""
    return await service.get_usuario(id_expediente)


@router.post("", status_code=201, response_model=MessageResponse)
async def create_usuario(
    request: UsuarioCreateRequest,
    service: UsuariosService = Depends(get_usuarios_service)
):
    """Register a new usuario"""
    await service.create_usuario(
        id_expediente=request.id_expediente,
        nombre=request.nombre,
        area=request.area
    )
    return {"message": "Usuario registrado correctamente."}


@router.patch("/{id_expediente}", response_model=MessageResponse)
async def update_usuario(
    id_expediente: str,
    request: UsuarioUpdateRequest,
    service: UsuariosService = Depends(get_usuarios_service)
):
    """Update nombre and/or area of a usuario"""
    await service.update_usuario(
        id_expediente,
        nombre=request.nombre,
        area=request.area
    )
    return {"message": "Usuario actualizado correctamente."}


@router.delete("/{id_expediente}", response_model=MessageResponse)
async def delete_usuario(
    id_expediente: str,
    service: UsuariosService = Depends(get_usuarios_service)
):
    """Delete a usuario"""
    await service.delete_usuario(id_expediente)
    return {"message": "Usuario eliminado correctamente."}
