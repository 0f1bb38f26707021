import logging
from typing import Any, Dict, List

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from app.shared.database.models import User
from app.shared.database.updates import drop_required_nulls
from .schemas import (
    LoginRequest, TokenResponse, CurrentUserResponse, ProfileUpdate,
    PasswordChange, UserCreate, UserUpdate, UserResponse, UserRole
)
from .security import hash_password, verify_password, create_access_token

logger = logging.getLogger(__name__)


class AuthService:

    def __init__(self, db: Session):
        self.db = db

    # ===== SESIÓN =====

    def login(self, credentials: LoginRequest) -> TokenResponse:
        user = self.db.query(User).options(joinedload(User.organization)).filter(
            User.email == credentials.email
        ).first()

        if not user or not verify_password(credentials.password, user.password_hash):
            logger.info(f"Login fallido para {credentials.email}")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Email o contraseña incorrectos"
            )

        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Usuario inactivo"
            )

        token = create_access_token(user.id, user.organization_id, user.role)
        logger.info(f"Login exitoso: user_id={user.id} org={user.organization_id}")

        return TokenResponse(
            access_token=token,
            user=CurrentUserResponse.model_validate(user)
        )

    def update_profile(self, user: User, data: ProfileUpdate) -> CurrentUserResponse:
        for field, value in drop_required_nulls(User, data.model_dump(exclude_unset=True)).items():
            setattr(user, field, value)
        self._commit(user)
        return CurrentUserResponse.model_validate(user)

    def change_password(self, user: User, data: PasswordChange) -> Dict[str, Any]:
        if not verify_password(data.current_password, user.password_hash):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="La contraseña actual es incorrecta"
            )
        user.password_hash = hash_password(data.new_password)
        self._commit(user)
        return {"success": True, "message": "Contraseña actualizada"}

    # ===== USUARIOS DE LA ORGANIZACIÓN =====

    def list_users(self, organization_id: int) -> List[UserResponse]:
        users = self.db.query(User).filter(
            User.organization_id == organization_id
        ).order_by(User.name).all()
        return [UserResponse.model_validate(u) for u in users]

    def create_user(self, organization_id: int, data: UserCreate, creator: User) -> UserResponse:
        if data.role == UserRole.ROOT and creator.role != UserRole.ROOT.value:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Solo un usuario root puede crear usuarios root"
            )

        user = self.create_user_record(
            organization_id=organization_id,
            email=data.email,
            password=data.password,
            name=data.name,
            role=data.role.value,
            phone=data.phone,
            address=data.address
        )
        return UserResponse.model_validate(user)

    def update_user(self, organization_id: int, user_id: int, data: UserUpdate, editor: User) -> UserResponse:
        user = self.db.query(User).filter(
            User.id == user_id,
            User.organization_id == organization_id
        ).first()
        if not user:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Usuario no encontrado")

        updates = drop_required_nulls(User, data.model_dump(exclude_unset=True))
        if updates.get("role") == UserRole.ROOT and editor.role != UserRole.ROOT.value:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Solo un usuario root puede asignar el rol root"
            )

        for field, value in updates.items():
            setattr(user, field, value.value if isinstance(value, UserRole) else value)
        self._commit(user)
        return UserResponse.model_validate(user)

    def create_user_record(self, organization_id, email: str, password: str, name: str,
                           role: str, phone=None, address=None) -> User:
        """Alta de usuario compartida con el módulo de organizaciones"""
        email = email.strip().lower()
        if self.db.query(User).filter(User.email == email).first():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Ya existe un usuario con el email {email}"
            )

        user = User(
            organization_id=organization_id,
            email=email,
            name=name,
            password_hash=hash_password(password),
            role=role,
            phone=phone,
            address=address,
            is_active=True
        )
        self.db.add(user)
        self._commit(user)
        logger.info(f"Usuario creado: {email} ({role}) org={organization_id}")
        return user

    def _commit(self, instance) -> None:
        try:
            self.db.commit()
            self.db.refresh(instance)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise e
