"""
Usuario-related Pydantic models
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator


def blank_to_none(value: Optional[str]) -> Optional[str]:
    """Strip surrounding whitespace; empty strings count as not supplied"""
    if value is None:
        return None
    value = value.strip()
    return value or None


class UsuarioCreateRequest(BaseModel):
    # Optional here so missing fields reach the service and get the 400 response
    id_expediente: Optional[str] = Field(None, max_length=64)
    nombre: Optional[str] = Field(None, max_length=255)
    area: Optional[str] = Field(None, max_length=255)

    @field_validator("id_expediente", "nombre", "area")
    @classmethod
    def normalize_text(cls, value: Optional[str]) -> Optional[str]:
        return blank_to_none(value)


class UsuarioUpdateRequest(BaseModel):
    nombre: Optional[str] = Field(None, max_length=255)
    area: Optional[str] = Field(None, max_length=255)

    @field_validator("nombre", "area")
    @classmethod
    def normalize_text(cls, value: Optional[str]) -> Optional[str]:
        return blank_to_none(value)


class UsuarioResponse(BaseModel):
    id_expediente: str
    nombre: str
    area: str
    created_at: datetime


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    ok: bool
    message: str
    database: str
