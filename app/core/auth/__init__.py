"""
Autenticación y autorización

- Hash de contraseñas (bcrypt)
- Tokens JWT con sub, organization_id y role
- Dependencias FastAPI: get_current_user, require_roles, get_organization_id
"""

from .dependencies import get_current_user, require_roles, get_organization_id
from .security import hash_password, verify_password, create_access_token, decode_access_token

__all__ = [
    "get_current_user",
    "require_roles",
    "get_organization_id",
    "hash_password",
    "verify_password",
    "create_access_token",
    "decode_access_token"
]
