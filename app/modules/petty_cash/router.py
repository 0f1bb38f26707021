from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from fastapi import APIRouter, Depends, File, Form, Header, HTTPException, Query, UploadFile, status
from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.core.auth.dependencies import get_current_user, require_roles, get_organization_id
from app.shared.database.models import User
from app.shared.services.storage import StorageService, get_storage
from .service import PettyCashService
from .schemas import (
    DepositCreate, DepositUpdate, DepositResponse, WithdrawalCreate, WithdrawalResponse,
    SpendCreate, SpendUpdate, SpendResponse, MovementResponse, AccountBalance, AccountSummary
)

router = APIRouter()

CASH_ROLES = ["admin", "root", "cash-manager"]


def get_otp_token(
    x_otp_token: Optional[str] = Header(None),
    otp_token: Optional[str] = Query(None)
) -> Optional[str]:
    """Token OTP para eliminaciones en modo seguro (header X-OTP-Token o query)"""
    return x_otp_token or otp_token

# ==================== CONSULTAS ====================

@router.get("/movements", response_model=List[MovementResponse])
async def get_movements(
    account: str = Query("GENERAL", description="GENERAL o id de sucursal"),
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    """Movimientos de la cuenta: depósitos (DEBE) y gastos (HABER), más recientes primero"""
    return PettyCashService(db).get_movements(organization_id, account)


@router.get("/balance", response_model=AccountBalance)
async def get_balance(
    account: str = Query("GENERAL", description="GENERAL o id de sucursal"),
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return PettyCashService(db).get_balance(organization_id, account)


@router.get("/balances", response_model=List[AccountBalance])
async def get_balances(
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return PettyCashService(db).get_balances(organization_id)


@router.get("/summary", response_model=AccountSummary)
async def get_summary(
    account: str = Query("GENERAL", description="GENERAL o id de sucursal"),
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return PettyCashService(db).get_summary(organization_id, account)

# ==================== DEPÓSITOS ====================

@router.get("/deposits", response_model=List[DepositResponse])
async def list_deposits(
    account: str = Query("GENERAL", description="GENERAL o id de sucursal"),
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return PettyCashService(db).list_deposits(organization_id, account)


@router.post("/deposits", response_model=DepositResponse, status_code=201)
async def create_deposit(
    data: DepositCreate,
    current_user: User = Depends(require_roles(CASH_ROLES)),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return PettyCashService(db).create_deposit(organization_id, data)


@router.put("/deposits/{deposit_id}", response_model=DepositResponse)
async def update_deposit(
    deposit_id: int,
    data: DepositUpdate,
    current_user: User = Depends(require_roles(CASH_ROLES)),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return PettyCashService(db).update_deposit(organization_id, deposit_id, data)


@router.delete("/deposits/{deposit_id}")
async def delete_deposit(
    deposit_id: int,
    otp_token: Optional[str] = Depends(get_otp_token),
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return PettyCashService(db).delete_deposit(current_user, deposit_id, otp_token)

# ==================== RETIROS ====================

@router.post("/withdrawals", response_model=WithdrawalResponse, status_code=201)
async def create_withdrawal(
    data: WithdrawalCreate,
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    """
    Retirar dinero de un depósito

    Sin `deposit_id` se usa el último depósito abierto de la cuenta (`branch_id`, vacío = general).
    """
    return PettyCashService(db).create_withdrawal(organization_id, current_user, data)


@router.delete("/withdrawals/{withdrawal_id}")
async def delete_withdrawal(
    withdrawal_id: int,
    otp_token: Optional[str] = Depends(get_otp_token),
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return PettyCashService(db).delete_withdrawal(current_user, withdrawal_id, otp_token)

# ==================== GASTOS ====================

@router.post("/spends", response_model=SpendResponse, status_code=201)
async def create_spend(
    data: SpendCreate,
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return PettyCashService(db).create_spend(organization_id, data)


@router.post("/spends/upload", response_model=SpendResponse, status_code=201)
async def create_spend_with_ticket(
    withdrawal_id: int = Form(...),
    motive: str = Form(...),
    amount: Decimal = Form(...),
    description: Optional[str] = Form(None),
    date: Optional[datetime] = Form(None),
    ticket: Optional[UploadFile] = File(None, description="Comprobante JPG, PNG o PDF"),
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    storage: StorageService = Depends(get_storage),
    db: Session = Depends(get_db)
):
    """Rendir un gasto con comprobante (multipart/form-data)"""
    try:
        data = SpendCreate(
            withdrawal_id=withdrawal_id,
            motive=motive,
            amount=amount,
            description=description,
            date=date
        )
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="; ".join(err["msg"] for err in e.errors())
        )

    return await PettyCashService(db).create_spend_with_ticket(organization_id, data, ticket, storage)


@router.put("/spends/{spend_id}", response_model=SpendResponse)
async def update_spend(
    spend_id: int,
    data: SpendUpdate,
    current_user: User = Depends(require_roles(CASH_ROLES)),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return PettyCashService(db).update_spend(organization_id, spend_id, data)


@router.delete("/spends/{spend_id}")
async def delete_spend(
    spend_id: int,
    otp_token: Optional[str] = Depends(get_otp_token),
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return PettyCashService(db).delete_spend(current_user, spend_id, otp_token)
