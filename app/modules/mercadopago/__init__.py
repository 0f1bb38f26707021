"""
Módulo de MercadoPago

- Conexión OAuth con PKCE por organización
- Checkout (preferencias y pagos con tarjeta)
- Órdenes a terminales Point
- Webhooks de pagos por organización
"""

from .router import router, webhook_router
from .service import MercadoPagoService
from .repository import MercadoPagoRepository

__all__ = ["router", "webhook_router", "MercadoPagoService", "MercadoPagoRepository"]
