from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.core.auth.dependencies import get_current_user, require_roles, get_organization_id
from app.core.auth.schemas import (
    LoginRequest, TokenResponse, CurrentUserResponse, ProfileUpdate,
    PasswordChange, UserCreate, UserUpdate, UserResponse
)
from app.core.auth.service import AuthService
from app.shared.database.models import User

router = APIRouter()


@router.post("/login", response_model=TokenResponse)
async def login(credentials: LoginRequest, db: Session = Depends(get_db)):
    """Iniciar sesión con email y contraseña"""
    return AuthService(db).login(credentials)


@router.get("/me", response_model=CurrentUserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    """Perfil del usuario autenticado"""
    return current_user


@router.put("/me", response_model=CurrentUserResponse)
async def update_me(
    data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return AuthService(db).update_profile(current_user, data)


@router.post("/change-password")
async def change_password(
    data: PasswordChange,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return AuthService(db).change_password(current_user, data)

# ===== GESTIÓN DE USUARIOS =====

@router.get("/users", response_model=List[UserResponse])
async def list_users(
    current_user: User = Depends(require_roles(["admin", "root"])),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return AuthService(db).list_users(organization_id)


@router.post("/users", response_model=UserResponse, status_code=201)
async def create_user(
    data: UserCreate,
    current_user: User = Depends(require_roles(["admin", "root"])),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    """
    Crear usuario en la organización del administrador

    **Validaciones:**
    - Email único en el sistema
    - Un admin no puede crear usuarios root
    """
    return AuthService(db).create_user(organization_id, data, current_user)


@router.put("/users/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    data: UserUpdate,
    current_user: User = Depends(require_roles(["admin", "root"])),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return AuthService(db).update_user(organization_id, user_id, data, current_user)
