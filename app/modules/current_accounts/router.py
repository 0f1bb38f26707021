from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.core.auth.dependencies import get_current_user, require_roles, get_organization_id
from app.shared.database.models import User
from .service import CurrentAccountService
from .schemas import (
    CurrentAccountCreate, CurrentAccountUpdate, CurrentAccountResponse, CurrentAccountDetail,
    PaymentCreate, PaymentResult, ScheduleEntry, AccountStatus
)

router = APIRouter()


@router.get("", response_model=List[CurrentAccountResponse])
async def list_accounts(
    status: Optional[AccountStatus] = Query(None),
    client_id: Optional[int] = Query(None),
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return CurrentAccountService(db).list_accounts(organization_id, status.value if status else None, client_id)


@router.post("", response_model=CurrentAccountDetail, status_code=201)
async def create_account(
    data: CurrentAccountCreate,
    current_user: User = Depends(require_roles(["admin", "root", "cash-manager", "user"])),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    """
    Crear cuenta corriente

    La cuota se calcula con sistema francés sobre (total - anticipo).
    """
    return CurrentAccountService(db).create_account(organization_id, data)


@router.get("/{account_id}", response_model=CurrentAccountDetail)
async def get_account(
    account_id: int,
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    """Detalle con pagos ordenados por cuota y fecha de carga"""
    return CurrentAccountService(db).get_account(organization_id, account_id)


@router.put("/{account_id}", response_model=CurrentAccountDetail)
async def update_account(
    account_id: int,
    data: CurrentAccountUpdate,
    current_user: User = Depends(require_roles(["admin", "root"])),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return CurrentAccountService(db).update_account(organization_id, account_id, data)


@router.get("/{account_id}/schedule", response_model=List[ScheduleEntry])
async def get_schedule(
    account_id: int,
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return CurrentAccountService(db).get_schedule(organization_id, account_id)


@router.post("/{account_id}/payments", response_model=PaymentResult, status_code=201)
async def record_payment(
    account_id: int,
    data: PaymentCreate,
    current_user: User = Depends(require_roles(["admin", "root", "cash-manager", "user"])),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    """
    Registrar pago de cuota

    **Excedente** (monto > cuota + 1):
    - RECALCULATE: recalcula la cuota sobre las cuotas restantes
    - REDUCE_INSTALLMENTS: mantiene la cuota y reduce la cantidad de cuotas
    """
    return CurrentAccountService(db).record_payment(organization_id, account_id, data)


@router.post("/payments/{payment_id}/cancel")
async def cancel_payment(
    payment_id: int,
    current_user: User = Depends(require_roles(["admin", "root", "cash-manager"])),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    """Anulación D/H: marca el pago, genera contrapartida y cuota pendiente"""
    return CurrentAccountService(db).cancel_payment(organization_id, payment_id)


@router.delete("/payments/{payment_id}")
async def undo_payment(
    payment_id: int,
    current_user: User = Depends(require_roles(["admin", "root"])),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    """Deshacer un pago cargado por error"""
    return CurrentAccountService(db).undo_payment(organization_id, payment_id)
