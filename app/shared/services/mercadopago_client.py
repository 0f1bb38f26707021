import logging
import uuid
from typing import Any, Dict, Optional

import httpx

from app.config.settings import settings

logger = logging.getLogger(__name__)


class MercadoPagoError(Exception):
    """Error devuelto por la API de MercadoPago (o de red)"""

    def __init__(self, message: str, status_code: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class MercadoPagoClient:
    """Cliente HTTP síncrono para OAuth, pagos y órdenes Point"""

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None,
                 transport: Optional[httpx.BaseTransport] = None):
        self.base_url = (base_url or settings.mercadopago_api_url).rstrip("/")
        self.timeout = timeout or settings.mercadopago_timeout_seconds
        self.transport = transport

    # ===== OAUTH =====

    def exchange_code(self, code: str, code_verifier: str, redirect_uri: str) -> Dict[str, Any]:
        data = {
            "grant_type": "authorization_code",
            "client_id": settings.mercadopago_client_id,
            "client_secret": settings.mercadopago_client_secret,
            "code": code,
            "redirect_uri": redirect_uri,
            "code_verifier": code_verifier,
        }
        return self._request("POST", "/oauth/token", data=data)

    def refresh_token(self, refresh_token: str) -> Dict[str, Any]:
        data = {
            "grant_type": "refresh_token",
            "client_id": settings.mercadopago_client_id,
            "client_secret": settings.mercadopago_client_secret,
            "refresh_token": refresh_token,
        }
        return self._request("POST", "/oauth/token", data=data)

    def get_user(self, access_token: str) -> Dict[str, Any]:
        return self._request("GET", "/users/me", access_token=access_token)

    # ===== CHECKOUT =====

    def create_preference(self, access_token: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/checkout/preferences", access_token=access_token, json=payload)

    def create_payment(self, access_token: str, payload: Dict[str, Any],
                       idempotency_key: Optional[str] = None) -> Dict[str, Any]:
        return self._request(
            "POST", "/v1/payments", access_token=access_token, json=payload,
            idempotency_key=idempotency_key or str(uuid.uuid4())
        )

    def get_payment(self, access_token: str, payment_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/v1/payments/{payment_id}", access_token=access_token)

    # ===== POINT =====

    def create_order(self, access_token: str, payload: Dict[str, Any], idempotency_key: str) -> Dict[str, Any]:
        return self._request(
            "POST", "/v1/orders", access_token=access_token, json=payload,
            idempotency_key=idempotency_key
        )

    def get_order(self, access_token: str, order_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/v1/orders/{order_id}", access_token=access_token)

    def cancel_order(self, access_token: str, order_id: str) -> Dict[str, Any]:
        return self._request(
            "POST", f"/v1/orders/{order_id}/cancel", access_token=access_token,
            idempotency_key=str(uuid.uuid4())
        )

    # ===== HTTP =====

    def _request(self, method: str, path: str, access_token: Optional[str] = None,
                 json: Optional[Dict[str, Any]] = None, data: Optional[Dict[str, Any]] = None,
                 idempotency_key: Optional[str] = None) -> Dict[str, Any]:
        headers = {"Accept": "application/json"}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        if idempotency_key:
            headers["X-Idempotency-Key"] = idempotency_key

        try:
            with httpx.Client(base_url=self.base_url, timeout=self.timeout, transport=self.transport) as client:
                response = client.request(method, path, headers=headers, json=json, data=data)
        except httpx.HTTPError as e:
            logger.error(f"MercadoPago {method} {path} falló: {e}")
            raise MercadoPagoError(f"Error de conexión con MercadoPago: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = {"raw": response.text}

        if response.status_code >= 400:
            logger.error(f"MercadoPago {method} {path} -> {response.status_code}: {body}")
            message = body.get("message") if isinstance(body, dict) else None
            raise MercadoPagoError(
                message or f"MercadoPago respondió {response.status_code}",
                status_code=response.status_code,
                payload=body
            )

        return body


def get_mercadopago_client() -> MercadoPagoClient:
    return MercadoPagoClient()
