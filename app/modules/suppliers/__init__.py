"""
Módulo de Proveedores
"""

from .router import router
from .service import SupplierService
from .repository import SupplierRepository

__all__ = ["router", "SupplierService", "SupplierRepository"]
