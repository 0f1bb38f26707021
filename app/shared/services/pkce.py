"""
PKCE (RFC 7636) para el flujo OAuth de MercadoPago
"""

import base64
import hashlib
import re
import secrets
from typing import Optional
from urllib.parse import urlencode

from app.config.settings import settings

VERIFIER_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-._~"
VERIFIER_MIN_LENGTH = 43
VERIFIER_MAX_LENGTH = 128

_VERIFIER_PATTERN = re.compile(r"^[A-Za-z0-9\-._~]{43,128}$")


def generate_code_verifier(length: int = VERIFIER_MAX_LENGTH) -> str:
    if length < VERIFIER_MIN_LENGTH or length > VERIFIER_MAX_LENGTH:
        raise ValueError(
            f"La longitud del code_verifier debe estar entre {VERIFIER_MIN_LENGTH} y {VERIFIER_MAX_LENGTH}"
        )
    return "".join(secrets.choice(VERIFIER_ALPHABET) for _ in range(length))


def generate_code_challenge(code_verifier: str) -> str:
    """S256: base64url(sha256(verifier)) sin padding"""
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


def is_valid_code_verifier(code_verifier: Optional[str]) -> bool:
    return bool(code_verifier) and bool(_VERIFIER_PATTERN.match(code_verifier))


def generate_state(organization_id: int) -> str:
    return f"{organization_id}-{secrets.token_urlsafe(16)}"


def build_authorization_url(
    client_id: str,
    redirect_uri: str,
    code_challenge: str,
    state: str,
    scope: str = "offline_access read write",
    auth_url: Optional[str] = None
) -> str:
    params = {
        "response_type": "code",
        "client_id": client_id,
        "redirect_uri": redirect_uri,
        "code_challenge": code_challenge,
        "code_challenge_method": "S256",
        "state": state,
        "scope": scope,
    }
    return f"{auth_url or settings.mercadopago_auth_url}?{urlencode(params)}"
