import logging
import uuid
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, Any, Optional, Tuple
from urllib.parse import urlencode
from sqlalchemy.orm import Session
from fastapi import HTTPException, status

from app.config.settings import settings
from app.shared.database.models import (
    MercadoPagoOAuth, MercadoPagoOAuthState, MercadoPagoPayment, PointPaymentIntent
)
from app.shared.services import pkce
from app.shared.services.mercadopago_client import MercadoPagoClient, MercadoPagoError
from .repository import MercadoPagoRepository
from .schemas import (
    OAuthConnectResponse, OAuthStatus, PreferenceCreate, PreferenceResponse,
    CardPaymentCreate, MercadoPagoPaymentResponse, PointIntentCreate, PointIntentResponse
)

logger = logging.getLogger(__name__)

STATE_TTL = timedelta(minutes=15)
CALLBACK_PATH = "/api/v1/mercadopago/oauth/callback"


def redirect_uri() -> str:
    return f"{settings.base_url.rstrip('/')}{CALLBACK_PATH}"


def configuration_url(**params) -> str:
    return f"{settings.frontend_url.rstrip('/')}/configuration?{urlencode(params)}"


def format_amount(amount: Decimal) -> str:
    """Monto con dos decimales como lo espera la API de órdenes ("15.00")"""
    return str(Decimal(amount).quantize(Decimal("0.01")))


class MercadoPagoService:
    """
    Integración con MercadoPago por organización.

    Las credenciales salen del OAuth de la organización y, si no conectó su
    cuenta, del access token global configurado.
    """

    def __init__(self, db: Session, client: MercadoPagoClient):
        self.db = db
        self.client = client
        self.repository = MercadoPagoRepository(db)

    # ===== OAUTH =====

    def connect(self, organization_id: int) -> OAuthConnectResponse:
        if not settings.mercadopago_client_id or not settings.mercadopago_client_secret:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="MercadoPago no está configurado (MERCADOPAGO_CLIENT_ID / MERCADOPAGO_CLIENT_SECRET)"
            )

        code_verifier = pkce.generate_code_verifier()
        state = pkce.generate_state(organization_id)

        self.repository.save(MercadoPagoOAuthState(
            state=state,
            organization_id=organization_id,
            code_verifier=code_verifier
        ))

        url = pkce.build_authorization_url(
            client_id=settings.mercadopago_client_id,
            redirect_uri=redirect_uri(),
            code_challenge=pkce.generate_code_challenge(code_verifier),
            state=state
        )
        logger.info(f"OAuth MercadoPago iniciado para organización {organization_id}")
        return OAuthConnectResponse(authorization_url=url, state=state)

    def handle_callback(self, code: Optional[str], state: Optional[str], error: Optional[str]) -> str:
        """Procesa el retorno de MercadoPago y devuelve la URL del frontend a la que redirigir"""
        if error:
            logger.warning(f"OAuth MercadoPago rechazado: {error}")
            return configuration_url(mp_error=error)

        if not code or not state:
            return configuration_url(mp_error="missing_params")

        pending = self.repository.get_state(state)
        if pending is None or pending.consumed:
            logger.warning(f"OAuth MercadoPago con state desconocido o ya usado: {state}")
            return configuration_url(mp_error="invalid_state")

        pending.consumed = True
        self.repository.save(pending)

        if datetime.utcnow() - pending.created_at > STATE_TTL:
            return configuration_url(mp_error="expired_state")

        if not pkce.is_valid_code_verifier(pending.code_verifier):
            return configuration_url(mp_error="invalid_state")

        try:
            token = self.client.exchange_code(code, pending.code_verifier, redirect_uri())
        except MercadoPagoError as e:
            logger.error(f"Intercambio de código OAuth falló (organización {pending.organization_id}): {e}")
            return configuration_url(mp_error="token_exchange_failed")

        try:
            user_info = self.client.get_user(token["access_token"])
        except MercadoPagoError as e:
            logger.error(f"Consulta /users/me falló (organización {pending.organization_id}): {e}")
            return configuration_url(mp_error="user_info_failed")

        self._store_tokens(pending.organization_id, token, user_info)
        logger.info(f"MercadoPago conectado para organización {pending.organization_id} (user {user_info.get('id')})")
        return configuration_url(mp_success="true")

    def get_status(self, organization_id: int) -> OAuthStatus:
        oauth = self.repository.get_oauth(organization_id)
        if oauth is None:
            return OAuthStatus(
                connected=False,
                credential_source="global" if settings.mercadopago_access_token else "none"
            )

        return OAuthStatus(
            connected=True,
            mercadopago_user_id=oauth.mercadopago_user_id,
            email=oauth.email,
            public_key=oauth.public_key,
            scopes=list(oauth.scopes or []),
            expires_at=oauth.expires_at,
            expired=bool(oauth.expires_at and oauth.expires_at <= datetime.utcnow()),
            credential_source="oauth"
        )

    def refresh(self, organization_id: int) -> OAuthStatus:
        oauth = self.repository.get_oauth(organization_id)
        if oauth is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="MercadoPago no está conectado")
        if not oauth.refresh_token:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="La conexión no tiene refresh token; vuelva a conectar la cuenta"
            )

        try:
            token = self.client.refresh_token(oauth.refresh_token)
        except MercadoPagoError as e:
            raise self._upstream_error("No se pudo renovar el token de MercadoPago", e)

        self._apply_token(oauth, token)
        self.repository.save(oauth)
        logger.info(f"Token MercadoPago renovado para organización {organization_id}")
        return self.get_status(organization_id)

    def disconnect(self, organization_id: int) -> Dict[str, Any]:
        oauth = self.repository.get_oauth(organization_id)
        if oauth is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="MercadoPago no está conectado")

        self.repository.delete(oauth)
        logger.info(f"MercadoPago desconectado de organización {organization_id}")
        return {"success": True, "message": "Cuenta de MercadoPago desconectada"}

    def resolve_access_token(self, organization_id: int) -> Tuple[str, str]:
        """(access_token, origen): OAuth de la organización o credencial global"""
        oauth = self.repository.get_oauth(organization_id)
        if oauth and oauth.access_token:
            return oauth.access_token, "oauth"
        if settings.mercadopago_access_token:
            return settings.mercadopago_access_token, "global"
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="MercadoPago no está configurado para esta organización"
        )

    # ===== CHECKOUT =====

    def create_preference(self, organization_id: int, data: PreferenceCreate) -> PreferenceResponse:
        access_token, _ = self.resolve_access_token(organization_id)

        payload: Dict[str, Any] = {
            "items": [
                {
                    "title": item.title,
                    "quantity": item.quantity,
                    "unit_price": float(item.unit_price),
                    "currency_id": item.currency_id,
                    **({"description": item.description} if item.description else {})
                }
                for item in data.items
            ],
            "external_reference": data.external_reference or f"org-{organization_id}-{uuid.uuid4().hex[:12]}",
            "notification_url": self._notification_url(organization_id),
        }
        if data.payer_email:
            payload["payer"] = {"email": data.payer_email}
        if data.back_urls:
            payload["back_urls"] = data.back_urls
            payload["auto_return"] = "approved"

        try:
            preference = self.client.create_preference(access_token, payload)
        except MercadoPagoError as e:
            raise self._upstream_error("Error creando la preferencia de pago", e)

        return PreferenceResponse(
            id=str(preference["id"]),
            init_point=preference.get("init_point"),
            sandbox_init_point=preference.get("sandbox_init_point")
        )

    def create_card_payment(self, organization_id: int, data: CardPaymentCreate) -> MercadoPagoPaymentResponse:
        access_token, _ = self.resolve_access_token(organization_id)

        payer: Dict[str, Any] = {"email": data.payer_email}
        if data.identification_type and data.identification_number:
            payer["identification"] = {
                "type": data.identification_type,
                "number": data.identification_number
            }

        payload: Dict[str, Any] = {
            "transaction_amount": float(data.amount),
            "token": data.token,
            "description": data.description,
            "installments": data.installments,
            "payment_method_id": data.payment_method_id,
            "payer": payer,
            "external_reference": data.external_reference or f"org-{organization_id}-{uuid.uuid4().hex[:12]}",
            "statement_descriptor": data.description[:22],
            "notification_url": self._notification_url(organization_id),
        }
        if data.issuer_id:
            payload["issuer_id"] = data.issuer_id

        try:
            payment = self.client.create_payment(access_token, payload)
        except MercadoPagoError as e:
            raise self._upstream_error("Error procesando el pago", e)

        record = self.upsert_payment(organization_id, payment, source="checkout")
        logger.info(f"Pago MercadoPago {record.mp_payment_id}: {record.status} ({record.amount})")
        return MercadoPagoPaymentResponse.model_validate(record)

    def refresh_payment(self, organization_id: int, mp_payment_id: str) -> MercadoPagoPaymentResponse:
        record = self.repository.get_payment(mp_payment_id)
        if record is not None and record.organization_id != organization_id:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Pago no encontrado")

        access_token, _ = self.resolve_access_token(organization_id)
        try:
            payment = self.client.get_payment(access_token, mp_payment_id)
        except MercadoPagoError as e:
            if e.status_code == 404:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Pago no encontrado")
            raise self._upstream_error("Error consultando el pago", e)

        record = self.upsert_payment(organization_id, payment, source=record.source if record else "checkout")
        return MercadoPagoPaymentResponse.model_validate(record)

    def upsert_payment(self, organization_id: int, payment: Dict[str, Any], source: str) -> MercadoPagoPayment:
        mp_payment_id = str(payment["id"])
        record = self.repository.get_payment(mp_payment_id)
        if record is None:
            record = MercadoPagoPayment(
                organization_id=organization_id,
                mp_payment_id=mp_payment_id,
                source=source
            )

        amount = payment.get("transaction_amount")
        record.status = payment.get("status") or "unknown"
        record.status_detail = payment.get("status_detail")
        record.amount = Decimal(str(amount)) if amount is not None else None
        record.currency = payment.get("currency_id")
        record.external_reference = payment.get("external_reference")
        record.payment_method_id = payment.get("payment_method_id")
        record.payer_email = (payment.get("payer") or {}).get("email")
        record.raw = payment
        return self.repository.save(record)

    # ===== POINT =====

    def create_point_intent(self, organization_id: int, data: PointIntentCreate) -> PointIntentResponse:
        minimum = Decimal(str(settings.mercadopago_point_min_amount))
        if data.amount < minimum:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"El monto mínimo para Point es ${format_amount(minimum)}. Monto recibido: ${format_amount(data.amount)}"
            )

        access_token, _ = self.resolve_access_token(organization_id)
        external_reference = data.external_reference or f"point-{organization_id}-{uuid.uuid4().hex[:12]}"

        payload = {
            "type": "point",
            "external_reference": external_reference,
            "description": data.description,
            "config": {
                "point": {
                    "terminal_id": data.device_id,
                    "print_on_terminal": "no_ticket",
                }
            },
            "transactions": {
                "payments": [{"amount": format_amount(data.amount)}]
            },
        }

        try:
            order = self.client.create_order(access_token, payload, idempotency_key=f"po-{uuid.uuid4().hex}")
        except MercadoPagoError as e:
            raise self._upstream_error("Error creando la intención de pago", e)

        intent = PointPaymentIntent(
            organization_id=organization_id,
            device_id=data.device_id,
            mp_order_id=str(order.get("id")) if order.get("id") is not None else None,
            amount=data.amount,
            description=data.description,
            external_reference=external_reference,
            status=order.get("status") or "created"
        )
        self.repository.save(intent)

        logger.info(f"Orden Point {intent.mp_order_id} enviada a terminal {intent.device_id} por {intent.amount}")
        return self._intent_response(intent, order)

    def get_point_intent(self, organization_id: int, intent_id: int) -> PointIntentResponse:
        intent = self._get_intent(organization_id, intent_id)
        if not intent.mp_order_id:
            return self._intent_response(intent)

        access_token, _ = self.resolve_access_token(organization_id)
        try:
            order = self.client.get_order(access_token, intent.mp_order_id)
        except MercadoPagoError as e:
            raise self._upstream_error("Error consultando la orden Point", e)

        intent.status = order.get("status") or intent.status
        self.repository.save(intent)
        return self._intent_response(intent, order)

    def cancel_point_intent(self, organization_id: int, intent_id: int) -> PointIntentResponse:
        intent = self._get_intent(organization_id, intent_id)
        if intent.status in ("canceled", "cancelled", "processed"):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"La orden no se puede cancelar (estado: {intent.status})"
            )

        order = None
        if intent.mp_order_id:
            access_token, _ = self.resolve_access_token(organization_id)
            try:
                order = self.client.cancel_order(access_token, intent.mp_order_id)
            except MercadoPagoError as e:
                raise self._upstream_error("Error cancelando la orden Point", e)

        intent.status = (order or {}).get("status") or "canceled"
        self.repository.save(intent)
        logger.info(f"Orden Point {intent.mp_order_id} cancelada")
        return self._intent_response(intent, order)

    # ===== WEBHOOKS =====

    def process_webhook(self, organization_id: int, notification: Dict[str, Any]) -> Dict[str, Any]:
        """Notificación de MercadoPago: solo se procesan las de tipo payment"""
        notification_type = notification.get("type") or notification.get("topic")
        if notification_type != "payment":
            return {"status": "ignored", "type": notification_type}

        payment_id = (notification.get("data") or {}).get("id") or notification.get("data.id")
        if not payment_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Payment ID missing")

        access_token, source = self.resolve_access_token(organization_id)
        try:
            payment = self.client.get_payment(access_token, str(payment_id))
        except MercadoPagoError as e:
            logger.error(f"Webhook: pago {payment_id} no encontrado en MercadoPago (organización {organization_id}): {e}")
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Payment not found")

        record = self.upsert_payment(organization_id, payment, source="webhook")
        logger.info(f"Webhook: pago {record.mp_payment_id} de organización {organization_id} en {record.status}")

        return {
            "status": "processed",
            "organization_id": organization_id,
            "payment_id": record.mp_payment_id,
            "payment_status": record.status,
            "credential_source": source
        }

    # ===== HELPERS =====

    def _store_tokens(self, organization_id: int, token: Dict[str, Any], user_info: Dict[str, Any]) -> MercadoPagoOAuth:
        oauth = self.repository.get_oauth(organization_id)
        if oauth is None:
            oauth = MercadoPagoOAuth(organization_id=organization_id)

        oauth.mercadopago_user_id = str(user_info.get("id") or token.get("user_id"))
        oauth.email = user_info.get("email")
        self._apply_token(oauth, token)
        return self.repository.save(oauth)

    def _apply_token(self, oauth: MercadoPagoOAuth, token: Dict[str, Any]) -> None:
        oauth.access_token = token["access_token"]
        oauth.refresh_token = token.get("refresh_token") or oauth.refresh_token
        oauth.public_key = token.get("public_key") or oauth.public_key
        if token.get("scope"):
            oauth.scopes = token["scope"].split(" ")
        expires_in = token.get("expires_in")
        oauth.expires_at = datetime.utcnow() + timedelta(seconds=int(expires_in)) if expires_in else None

    def _notification_url(self, organization_id: int) -> str:
        return f"{settings.base_url.rstrip('/')}/api/v1/webhooks/mercadopago/{organization_id}"

    def _get_intent(self, organization_id: int, intent_id: int) -> PointPaymentIntent:
        intent = self.repository.get_intent(organization_id, intent_id)
        if not intent:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Intención de pago no encontrada")
        return intent

    def _intent_response(self, intent: PointPaymentIntent, order: Optional[Dict[str, Any]] = None) -> PointIntentResponse:
        payments = ((order or {}).get("transactions") or {}).get("payments") or []
        response = PointIntentResponse.model_validate(intent)
        response.payment_status = payments[0].get("status") if payments else None
        return response

    def _upstream_error(self, message: str, error: MercadoPagoError) -> HTTPException:
        logger.error(f"{message}: {error} (status={error.status_code})")
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"{message}: {error}")
