"""
Módulo de Reportes (JSON)

Ventas, inventario, reservas, cuentas corrientes, proveedores y caja chica.
"""

from .router import router
from .service import ReportsService

__all__ = ["router", "ReportsService"]
