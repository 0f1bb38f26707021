from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from passlib.context import CryptContext

from app.config.settings import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    return pwd_context.verify(plain_password, password_hash)


def create_access_token(
    user_id: int,
    organization_id: Optional[int],
    role: str,
    expires_minutes: Optional[int] = None
) -> str:
    """Emitir token de acceso firmado con la clave de la aplicación"""
    now = datetime.now(timezone.utc)
    expiry = now + timedelta(minutes=expires_minutes or settings.access_token_expire_minutes)

    payload = {
        "sub": str(user_id),
        "organization_id": organization_id,
        "role": role,
        "iat": int(now.timestamp()),
        "exp": int(expiry.timestamp()),
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    """Decodificar y validar firma/expiración. Lanza jwt.PyJWTError si es inválido."""
    return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
