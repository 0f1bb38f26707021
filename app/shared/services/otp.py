import hashlib

import pyotp

from app.config.settings import settings


def generate_secret() -> str:
    return pyotp.random_base32()


def _totp(secret: str) -> pyotp.TOTP:
    return pyotp.TOTP(
        secret,
        digits=settings.otp_digits,
        interval=settings.otp_period,
        digest=hashlib.sha1
    )


def provisioning_uri(secret: str, account_name: str) -> str:
    return _totp(secret).provisioning_uri(name=account_name, issuer_name=settings.otp_issuer)


def current_token(secret: str) -> str:
    return _totp(secret).now()


def verify_token(secret: str, token: str) -> bool:
    """Token de exactamente otp_digits dígitos ASCII, tolerando ±otp_valid_window pasos"""
    if not secret or not token:
        return False
    token = token.strip()
    if len(token) != settings.otp_digits or not (token.isascii() and token.isdigit()):
        return False
    return _totp(secret).verify(token, valid_window=settings.otp_valid_window)
