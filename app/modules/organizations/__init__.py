"""
Módulo de Organizaciones

Alta y edición de concesionarias (tenants). Reservado al rol root.
"""

from .router import router
from .service import OrganizationService
from .repository import OrganizationRepository

__all__ = ["router", "OrganizationService", "OrganizationRepository"]
