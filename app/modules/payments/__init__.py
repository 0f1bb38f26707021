"""
Módulo de Medios de Pago

- Catálogo global de medios de pago y habilitación por organización
- Tarjetas bancarias (banco + tipo de tarjeta)
- Promociones bancarias con planes de cuotas, filtro por día y calculadora
"""

from .router import router
from .service import PaymentSettingsService, PromotionService
from .repository import PaymentRepository

__all__ = ["router", "PaymentSettingsService", "PromotionService", "PaymentRepository"]
