"""
Módulo de Stock - Motos

- Alta por lotes con validación de chasis únicos
- Búsqueda con filtros y paginación
- Transiciones de estado (STOCK, PAUSADO, RESERVADO, PROCESANDO, VENDIDO, ELIMINADO, EN_TRANSITO)
"""

from .router import router
from .service import StockService, STATE_TRANSITIONS
from .repository import StockRepository
from .schemas import MotorcycleState

__all__ = ["router", "StockService", "StockRepository", "MotorcycleState", "STATE_TRANSITIONS"]
