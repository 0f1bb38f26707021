"""
Módulo de Caja Chica

- Depósitos por cuenta (sucursal o caja general)
- Retiros a justificar y gastos con comprobante
- Movimientos DEBE/HABER y saldos por cuenta
- Eliminaciones con rol habilitado y OTP en modo seguro
"""

from .router import router
from .service import PettyCashService
from .repository import PettyCashRepository

__all__ = ["router", "PettyCashService", "PettyCashRepository"]
