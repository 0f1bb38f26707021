"""
Módulo de Configuración

Datos maestros de cada organización:
- Sucursales (orden configurable)
- Marcas globales asociadas a la organización y sus modelos
- Colores
- Archivos de modelos (fichas, imágenes) en object storage
- Seguridad: OTP (TOTP) y modo seguro para eliminaciones
"""

from .router import router
from .service import ConfigurationService, SecurityService
from .repository import ConfigurationRepository

__all__ = ["router", "ConfigurationService", "SecurityService", "ConfigurationRepository"]
