from datetime import datetime
from typing import Optional, List
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict


class ColorType(str, Enum):
    SOLIDO = "SOLIDO"
    BITONO = "BITONO"
    PATRON = "PATRON"


class ReorderRequest(BaseModel):
    """Lista de IDs en el orden deseado"""
    ids: List[int] = Field(..., min_length=1)

# ===== SUCURSALES =====

class BranchCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class BranchUpdate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class BranchResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    order: int

# ===== MARCAS Y MODELOS =====

class BrandAssociate(BaseModel):
    """Asociar una marca global (se crea si no existe)"""
    name: str = Field(..., min_length=1, max_length=255)
    color: Optional[str] = Field(None, max_length=20, description="Color identificatorio en la organización")


class ModelCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    image_url: Optional[str] = None


class ModelResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    brand_id: int
    name: str
    image_url: Optional[str] = None


class OrganizationBrandResponse(BaseModel):
    id: int
    brand_id: int
    name: str
    color: Optional[str] = None
    order: int
    models: List[ModelResponse] = []

# ===== COLORES =====

class ColorCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: ColorType = ColorType.SOLIDO
    color_one: str = Field(..., min_length=1, max_length=20)
    color_two: Optional[str] = Field(None, max_length=20)


class ColorUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    type: Optional[ColorType] = None
    color_one: Optional[str] = Field(None, min_length=1, max_length=20)
    color_two: Optional[str] = Field(None, max_length=20)


class ColorResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    type: str
    color_one: str
    color_two: Optional[str] = None
    order: int

# ===== ARCHIVOS DE MODELOS =====

class ModelFileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    model_id: int
    name: str
    url: Optional[str] = None
    content_type: Optional[str] = None
    size: int
    created_at: datetime

# ===== SEGURIDAD =====

class SecurityStatus(BaseModel):
    secure_mode_enabled: bool
    otp_configured: bool
    otp_verified: bool


class OtpSetupResponse(BaseModel):
    secret: str
    provisioning_uri: str
    digits: int
    period: int


class OtpVerifyRequest(BaseModel):
    token: str = Field(..., min_length=1, max_length=10)


class SecureModeUpdate(BaseModel):
    enabled: bool
