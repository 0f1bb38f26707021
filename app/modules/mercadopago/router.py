from typing import Optional
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.core.auth.dependencies import get_current_user, require_roles, get_organization_id
from app.shared.database.models import User
from app.shared.services.mercadopago_client import MercadoPagoClient, get_mercadopago_client
from .service import MercadoPagoService
from .schemas import (
    OAuthConnectResponse, OAuthStatus, PreferenceCreate, PreferenceResponse,
    CardPaymentCreate, MercadoPagoPaymentResponse, PointIntentCreate, PointIntentResponse
)

router = APIRouter()
webhook_router = APIRouter()

ADMIN_ROLES = ["admin", "root"]

# ==================== OAUTH ====================

@router.post("/oauth/connect", response_model=OAuthConnectResponse)
async def connect(
    current_user: User = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_organization_id),
    client: MercadoPagoClient = Depends(get_mercadopago_client),
    db: Session = Depends(get_db)
):
    """Iniciar el flujo OAuth + PKCE; devuelve la URL de autorización de MercadoPago"""
    return MercadoPagoService(db, client).connect(organization_id)


@router.get("/oauth/callback", include_in_schema=False)
async def oauth_callback(
    code: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    error: Optional[str] = Query(None),
    client: MercadoPagoClient = Depends(get_mercadopago_client),
    db: Session = Depends(get_db)
):
    """Retorno de MercadoPago (público); redirige al frontend con mp_success o mp_error"""
    url = MercadoPagoService(db, client).handle_callback(code, state, error)
    return RedirectResponse(url=url, status_code=302)


@router.get("/oauth/status", response_model=OAuthStatus)
async def oauth_status(
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    client: MercadoPagoClient = Depends(get_mercadopago_client),
    db: Session = Depends(get_db)
):
    return MercadoPagoService(db, client).get_status(organization_id)


@router.post("/oauth/refresh", response_model=OAuthStatus)
async def oauth_refresh(
    current_user: User = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_organization_id),
    client: MercadoPagoClient = Depends(get_mercadopago_client),
    db: Session = Depends(get_db)
):
    return MercadoPagoService(db, client).refresh(organization_id)


@router.delete("/oauth")
async def oauth_disconnect(
    current_user: User = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_organization_id),
    client: MercadoPagoClient = Depends(get_mercadopago_client),
    db: Session = Depends(get_db)
):
    return MercadoPagoService(db, client).disconnect(organization_id)

# ==================== CHECKOUT ====================

@router.post("/preferences", response_model=PreferenceResponse, status_code=201)
async def create_preference(
    data: PreferenceCreate,
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    client: MercadoPagoClient = Depends(get_mercadopago_client),
    db: Session = Depends(get_db)
):
    return MercadoPagoService(db, client).create_preference(organization_id, data)


@router.post("/payments", response_model=MercadoPagoPaymentResponse, status_code=201)
async def create_payment(
    data: CardPaymentCreate,
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    client: MercadoPagoClient = Depends(get_mercadopago_client),
    db: Session = Depends(get_db)
):
    """Procesar un pago con tarjeta tokenizada por el Brick"""
    return MercadoPagoService(db, client).create_card_payment(organization_id, data)


@router.get("/payments/{mp_payment_id}", response_model=MercadoPagoPaymentResponse)
async def get_payment(
    mp_payment_id: str,
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    client: MercadoPagoClient = Depends(get_mercadopago_client),
    db: Session = Depends(get_db)
):
    return MercadoPagoService(db, client).refresh_payment(organization_id, mp_payment_id)

# ==================== POINT ====================

@router.post("/point/payment-intents", response_model=PointIntentResponse, status_code=201)
async def create_point_intent(
    data: PointIntentCreate,
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    client: MercadoPagoClient = Depends(get_mercadopago_client),
    db: Session = Depends(get_db)
):
    """Enviar una orden de cobro a una terminal Point"""
    return MercadoPagoService(db, client).create_point_intent(organization_id, data)


@router.get("/point/payment-intents/{intent_id}", response_model=PointIntentResponse)
async def get_point_intent(
    intent_id: int,
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    client: MercadoPagoClient = Depends(get_mercadopago_client),
    db: Session = Depends(get_db)
):
    return MercadoPagoService(db, client).get_point_intent(organization_id, intent_id)


@router.post("/point/payment-intents/{intent_id}/cancel", response_model=PointIntentResponse)
async def cancel_point_intent(
    intent_id: int,
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    client: MercadoPagoClient = Depends(get_mercadopago_client),
    db: Session = Depends(get_db)
):
    return MercadoPagoService(db, client).cancel_point_intent(organization_id, intent_id)

# ==================== WEBHOOKS ====================

@webhook_router.post("/mercadopago/{organization_id}")
async def mercadopago_webhook(
    organization_id: int,
    request: Request,
    client: MercadoPagoClient = Depends(get_mercadopago_client),
    db: Session = Depends(get_db)
):
    """Notificaciones de MercadoPago por organización (público)"""
    try:
        notification = await request.json()
    except ValueError:
        notification = {}
    if not isinstance(notification, dict):
        notification = {}

    # IPN antiguo: type/topic y data.id como query params
    for key in ("type", "topic", "data.id"):
        if key in request.query_params and not notification.get(key):
            notification[key] = request.query_params[key]

    return MercadoPagoService(db, client).process_webhook(organization_id, notification)
