from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict, model_validator

GENERAL_ACCOUNT = "GENERAL"
OTHER_MOTIVE = "otros"


class DepositStatus(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    PENDING_FUNDING = "PENDING_FUNDING"


class WithdrawalStatus(str, Enum):
    PENDING_JUSTIFICATION = "PENDING_JUSTIFICATION"
    PARTIALLY_JUSTIFIED = "PARTIALLY_JUSTIFIED"
    JUSTIFIED = "JUSTIFIED"
    NOT_CLOSED = "NOT_CLOSED"


class MovementType(str, Enum):
    DEBE = "DEBE"
    HABER = "HABER"

# ===== DEPÓSITOS =====

class DepositCreate(BaseModel):
    branch_id: Optional[int] = Field(None, description="Sucursal; vacío = caja general")
    description: str = Field(..., min_length=1, max_length=255)
    amount: Decimal = Field(..., gt=0)
    date: Optional[datetime] = None
    reference: Optional[str] = Field(None, max_length=100)


class DepositUpdate(BaseModel):
    description: Optional[str] = Field(None, min_length=1, max_length=255)
    amount: Optional[Decimal] = Field(None, gt=0)
    reference: Optional[str] = Field(None, max_length=100)
    date: Optional[datetime] = None


class DepositResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    branch_id: Optional[int] = None
    description: str
    amount: Decimal
    date: datetime
    reference: Optional[str] = None
    status: DepositStatus
    withdrawn_amount: Decimal = Decimal(0)
    available_amount: Decimal = Decimal(0)
    created_at: datetime

# ===== RETIROS =====

class WithdrawalCreate(BaseModel):
    deposit_id: Optional[int] = Field(None, description="Depósito; vacío = último depósito abierto de la cuenta")
    branch_id: Optional[int] = Field(None, description="Cuenta usada cuando no se indica depósito")
    user_id: Optional[int] = Field(None, description="Quien recibe el dinero; por defecto el usuario actual")
    amount: Decimal = Field(..., gt=0)
    date: Optional[datetime] = None
    description: Optional[str] = Field(None, max_length=255)


class WithdrawalResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    deposit_id: int
    user_id: int
    user_name: str
    amount_given: Decimal
    amount_justified: Decimal
    date: datetime
    description: Optional[str] = None
    status: WithdrawalStatus
    created_at: datetime

# ===== GASTOS =====

class SpendCreate(BaseModel):
    withdrawal_id: int
    motive: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=255)
    amount: Decimal = Field(..., gt=0)
    date: Optional[datetime] = None
    ticket_url: Optional[str] = Field(None, max_length=500)

    @model_validator(mode="after")
    def check_description(self):
        if self.motive.strip().lower() == OTHER_MOTIVE and not (self.description or "").strip():
            raise ValueError("La descripción es requerida cuando el motivo es 'otros'")
        return self


class SpendUpdate(BaseModel):
    motive: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=255)
    amount: Optional[Decimal] = Field(None, gt=0)
    date: Optional[datetime] = None
    ticket_url: Optional[str] = Field(None, max_length=500)


class SpendResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    withdrawal_id: int
    motive: str
    description: Optional[str] = None
    amount: Decimal
    date: datetime
    ticket_url: Optional[str] = None
    created_at: datetime

# ===== MOVIMIENTOS Y SALDOS =====

class MovementResponse(BaseModel):
    id: int
    type: MovementType
    source: str = Field(..., description="deposit | spend")
    amount: Decimal
    description: Optional[str] = None
    reference: Optional[str] = None
    ticket_url: Optional[str] = None
    user_id: Optional[int] = None
    user_name: Optional[str] = None
    date: datetime
    created_at: datetime


class AccountBalance(BaseModel):
    account: str
    branch_id: Optional[int] = None
    branch_name: Optional[str] = None
    total_debe: Decimal
    total_haber: Decimal
    balance: Decimal


class AccountSummary(BaseModel):
    """Depósitos de una cuenta con sus retiros y gastos"""
    account: str
    balance: AccountBalance
    deposits: List[DepositResponse]
    withdrawals: List[WithdrawalResponse]
    spends: List[SpendResponse]
