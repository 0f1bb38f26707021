from datetime import datetime
from decimal import Decimal
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field, ConfigDict

# ===== OAUTH =====

class OAuthConnectResponse(BaseModel):
    authorization_url: str
    state: str


class OAuthStatus(BaseModel):
    connected: bool
    mercadopago_user_id: Optional[str] = None
    email: Optional[str] = None
    public_key: Optional[str] = None
    scopes: List[str] = []
    expires_at: Optional[datetime] = None
    expired: bool = False
    credential_source: str = Field(..., description="oauth | global | none")

# ===== CHECKOUT =====

class PreferenceItem(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    quantity: int = Field(default=1, gt=0)
    unit_price: Decimal = Field(..., gt=0)
    currency_id: str = Field(default="ARS", min_length=3, max_length=3)
    description: Optional[str] = None


class PreferenceCreate(BaseModel):
    items: List[PreferenceItem] = Field(..., min_length=1)
    external_reference: Optional[str] = Field(None, max_length=255)
    payer_email: Optional[str] = None
    back_urls: Optional[Dict[str, str]] = None


class PreferenceResponse(BaseModel):
    id: str
    init_point: Optional[str] = None
    sandbox_init_point: Optional[str] = None


class CardPaymentCreate(BaseModel):
    """Datos enviados por el Card Payment Brick"""
    token: str = Field(..., min_length=1)
    payment_method_id: str = Field(..., min_length=1)
    issuer_id: Optional[str] = None
    installments: int = Field(default=1, gt=0)
    amount: Decimal = Field(..., gt=0)
    description: str = Field(..., min_length=1, max_length=255)
    payer_email: str = Field(..., min_length=3)
    identification_type: Optional[str] = None
    identification_number: Optional[str] = None
    external_reference: Optional[str] = Field(None, max_length=255)


class MercadoPagoPaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    mp_payment_id: str
    status: str
    status_detail: Optional[str] = None
    amount: Optional[Decimal] = None
    currency: Optional[str] = None
    external_reference: Optional[str] = None
    payment_method_id: Optional[str] = None
    payer_email: Optional[str] = None
    source: str
    created_at: datetime
    updated_at: Optional[datetime] = None

# ===== POINT =====

class PointIntentCreate(BaseModel):
    device_id: str = Field(..., min_length=1, description="terminal_id del dispositivo Point")
    amount: Decimal = Field(..., gt=0)
    description: str = Field(..., min_length=1, max_length=255)
    external_reference: Optional[str] = Field(None, max_length=255)


class PointIntentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    device_id: str
    mp_order_id: Optional[str] = None
    amount: Decimal
    description: Optional[str] = None
    external_reference: Optional[str] = None
    status: str
    payment_status: Optional[str] = None
    created_at: datetime
