"""
Módulo de Ventas

- Reservas (señas) con paso de la unidad a RESERVADO
- Ventas con promociones bancarias, reserva descontada y alta de cuenta
  corriente en la misma transacción
- Listado con totales por período, sucursal y vendedor
"""

from .router import router
from .service import SalesService
from .repository import SalesRepository

__all__ = ["router", "SalesService", "SalesRepository"]
