"""
Módulo de Logística

- Proveedores de transporte
- Traslados de motos entre sucursales (EN_TRANSITO → STOCK en destino)
"""

from .router import router
from .service import LogisticsService, TRANSFER_TRANSITIONS
from .repository import LogisticsRepository

__all__ = ["router", "LogisticsService", "LogisticsRepository", "TRANSFER_TRANSITIONS"]
