from datetime import datetime
from typing import Optional
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict, field_validator


class UserRole(str, Enum):
    ROOT = "root"
    ADMIN = "admin"
    CASH_MANAGER = "cash-manager"
    USER = "user"


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3, description="Email del usuario")
    password: str = Field(..., min_length=1, description="Contraseña")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower()


class OrganizationSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    logo_url: Optional[str] = None
    secure_mode_enabled: bool = False


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    organization_id: Optional[int] = None
    email: str
    name: str
    role: str
    phone: Optional[str] = None
    address: Optional[str] = None
    is_active: bool
    created_at: datetime


class CurrentUserResponse(UserResponse):
    organization: Optional[OrganizationSummary] = None


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: CurrentUserResponse


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = Field(None, max_length=255)


class PasswordChange(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, description="Nueva contraseña (mínimo 6 caracteres)")


class UserCreate(BaseModel):
    """Crear usuario dentro de la organización del administrador"""
    email: str = Field(..., min_length=3, description="Email único del usuario")
    password: str = Field(..., min_length=6, description="Contraseña (mínimo 6 caracteres)")
    name: str = Field(..., min_length=2, max_length=255)
    role: UserRole = Field(default=UserRole.USER, description="Rol del usuario")
    phone: Optional[str] = None
    address: Optional[str] = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower()


class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None
    phone: Optional[str] = None
    address: Optional[str] = None
