from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict


class OrganizationCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=255, description="Nombre de la concesionaria")
    slug: str = Field(..., min_length=2, max_length=100, pattern=r"^[a-z0-9-]+$", description="Identificador único")
    logo_url: Optional[str] = None
    thumbnail_url: Optional[str] = None


class OrganizationUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    slug: Optional[str] = Field(None, min_length=2, max_length=100, pattern=r"^[a-z0-9-]+$")
    logo_url: Optional[str] = None
    thumbnail_url: Optional[str] = None


class OrganizationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    logo_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    secure_mode_enabled: bool
    created_at: datetime


class OrganizationAdminCreate(BaseModel):
    """Primer administrador de una organización"""
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=2, max_length=255)
