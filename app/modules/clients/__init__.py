"""
Módulo de Clientes
"""

from .router import router
from .service import ClientService
from .repository import ClientRepository

__all__ = ["router", "ClientService", "ClientRepository"]
