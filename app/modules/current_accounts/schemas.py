from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict, model_validator

# ===== ENUMS =====

class PaymentFrequency(str, Enum):
    WEEKLY = "WEEKLY"
    BIWEEKLY = "BIWEEKLY"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    ANNUALLY = "ANNUALLY"


class AccountStatus(str, Enum):
    ACTIVE = "ACTIVE"
    PAID_OFF = "PAID_OFF"
    OVERDUE = "OVERDUE"
    DEFAULTED = "DEFAULTED"
    CANCELLED = "CANCELLED"


class SurplusAction(str, Enum):
    RECALCULATE = "RECALCULATE"
    REDUCE_INSTALLMENTS = "REDUCE_INSTALLMENTS"

# ===== REQUEST SCHEMAS =====

class CurrentAccountPlan(BaseModel):
    """Condiciones de financiación (también usadas al vender en cuenta corriente)"""
    down_payment: Decimal = Field(default=Decimal(0), ge=0, description="Anticipo")
    number_of_installments: int = Field(..., gt=0, le=360)
    payment_frequency: PaymentFrequency = PaymentFrequency.MONTHLY
    interest_rate: Decimal = Field(default=Decimal(0), ge=0, description="Tasa nominal anual (%)")
    start_date: datetime = Field(..., description="Vencimiento de la primera cuota")
    reminder_lead_time_days: Optional[int] = Field(None, ge=0, le=60)
    notes: Optional[str] = None


class CurrentAccountCreate(CurrentAccountPlan):
    client_id: int
    motorcycle_id: int
    total_amount: Decimal = Field(..., gt=0)
    currency: str = Field(default="ARS", min_length=3, max_length=3)

    @model_validator(mode="after")
    def check_down_payment(self):
        if self.down_payment > self.total_amount:
            raise ValueError("El anticipo no puede superar el monto total")
        return self


class CurrentAccountUpdate(BaseModel):
    payment_frequency: Optional[PaymentFrequency] = None
    start_date: Optional[datetime] = None
    reminder_lead_time_days: Optional[int] = Field(None, ge=0, le=60)
    status: Optional[AccountStatus] = None
    notes: Optional[str] = None


class PaymentCreate(BaseModel):
    amount_paid: Decimal = Field(..., gt=0)
    payment_date: Optional[datetime] = None
    payment_method: Optional[str] = Field(None, max_length=50)
    transaction_reference: Optional[str] = Field(None, max_length=255)
    installment_number: Optional[int] = Field(None, gt=0)
    surplus_action: SurplusAction = SurplusAction.RECALCULATE
    notes: Optional[str] = None

# ===== RESPONSE SCHEMAS =====

class PaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    current_account_id: int
    amount_paid: Decimal
    payment_date: Optional[datetime] = None
    payment_method: Optional[str] = None
    transaction_reference: Optional[str] = None
    installment_number: Optional[int] = None
    installment_version: Optional[str] = None
    interest_amount: Optional[Decimal] = None
    amortized_amount: Optional[Decimal] = None
    is_down_payment: bool
    notes: Optional[str] = None
    created_at: datetime


class CurrentAccountResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    client_id: int
    client_name: Optional[str] = None
    motorcycle_id: int
    motorcycle_label: Optional[str] = None
    total_amount: Decimal
    down_payment: Decimal
    remaining_amount: Decimal
    number_of_installments: int
    installment_amount: Decimal
    payment_frequency: PaymentFrequency
    interest_rate: Optional[Decimal] = None
    currency: str
    start_date: datetime
    next_due_date: Optional[datetime] = None
    reminder_lead_time_days: Optional[int] = None
    status: AccountStatus
    notes: Optional[str] = None
    paid_installments: int = 0
    created_at: datetime
    updated_at: datetime


class CurrentAccountDetail(CurrentAccountResponse):
    payments: List[PaymentResponse] = []


class ScheduleEntry(BaseModel):
    installment_number: int
    due_date: Optional[datetime] = None
    opening_balance: Decimal
    interest: Decimal
    amortization: Decimal
    installment_amount: Decimal
    closing_balance: Decimal


class PaymentResult(BaseModel):
    success: bool = True
    message: str
    payment: PaymentResponse
    account: CurrentAccountResponse
    last_installment_amount: Optional[Decimal] = None
