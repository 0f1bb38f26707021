from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # App Info
    app_name: str = "Apex Concesionaria API"
    version: str = "1.0.0"
    debug: bool = False

    # Database
    database_url: str = "sqlite:///./apex.db"
    auto_create_tables: bool = False

    # Security
    secret_key: str = "change-me"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 10080  # 1 semana
    allowed_origins: List[str] = ["http://localhost:3000", "http://localhost:3001"]

    # OTP (modo seguro)
    otp_issuer: str = "Apex Software"
    otp_digits: int = 6
    otp_period: int = 120
    otp_valid_window: int = 1

    # MercadoPago
    mercadopago_client_id: Optional[str] = None
    mercadopago_client_secret: Optional[str] = None
    mercadopago_access_token: Optional[str] = Field(
        default=None,
        description="Credencial global usada cuando la organización no conectó su cuenta"
    )
    mercadopago_auth_url: str = "https://auth.mercadopago.com.ar/authorization"
    mercadopago_api_url: str = "https://api.mercadopago.com"
    mercadopago_point_min_amount: float = 15.0
    mercadopago_timeout_seconds: float = 20.0

    # URLs
    base_url: str = Field(default="http://localhost:8000", description="URL base de esta API")
    frontend_url: str = Field(default="http://localhost:3001", description="URL del frontend")

    # Object storage (S3)
    s3_bucket: Optional[str] = None
    s3_region: str = "us-east-1"
    s3_endpoint_url: Optional[str] = None
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None

    # File Upload
    max_ticket_size: int = 10 * 1024 * 1024  # 10MB
    allowed_ticket_formats: set = {"image/jpeg", "image/png", "application/pdf"}

    # Server
    host: str = "0.0.0.0"
    port: int = 8000


settings = Settings()
