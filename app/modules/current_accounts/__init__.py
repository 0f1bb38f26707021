"""
Módulo de Cuentas Corrientes

Planes de cuotas con sistema francés:
- Alta con cálculo de cuota fija
- Registro de pagos con interés/amortización y manejo de excedentes
  (recalcular cuota o reducir cantidad de cuotas)
- Anulación contable D/H con cuota pendiente de reposición
- Deshacer pagos cargados por error
"""

from .router import router
from .service import CurrentAccountService
from .repository import CurrentAccountRepository

__all__ = ["router", "CurrentAccountService", "CurrentAccountRepository"]
