from datetime import datetime, date
from decimal import Decimal
from typing import Optional, List
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict, field_validator

from .promotions import canonical_day


class CardKind(str, Enum):
    CREDIT = "credit"
    DEBIT = "debit"


class ReorderRequest(BaseModel):
    ids: List[int] = Field(..., min_length=1)

# ===== MEDIOS DE PAGO =====

class PaymentMethodResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    type: str
    description: Optional[str] = None
    icon_url: Optional[str] = None


class OrganizationPaymentMethodResponse(BaseModel):
    id: int
    payment_method_id: int
    name: str
    type: str
    icon_url: Optional[str] = None
    is_enabled: bool
    order: int


class PaymentMethodToggle(BaseModel):
    is_enabled: bool

# ===== TARJETAS =====

class CardTypeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: CardKind = CardKind.CREDIT


class CardTypeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    type: str


class BankCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    logo_url: Optional[str] = None


class BankResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    logo_url: Optional[str] = None


class BankCardCreate(BaseModel):
    bank_id: int
    card_type_id: int
    is_enabled: bool = True


class BankCardResponse(BaseModel):
    id: int
    bank_id: int
    bank_name: str
    card_type_id: int
    card_type_name: str
    card_type: str
    is_enabled: bool
    order: int

# ===== PROMOCIONES =====

class InstallmentPlanInput(BaseModel):
    installments: int = Field(..., gt=0, le=72)
    interest_rate: Decimal = Field(default=Decimal(0), ge=0, description="Interés total del plan (%)")
    is_enabled: bool = True


class InstallmentPlanResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    installments: int
    interest_rate: Decimal
    is_enabled: bool


class BankingPromotionBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    payment_method_id: int
    bank_id: Optional[int] = None
    card_type_id: Optional[int] = None
    bank_card_id: Optional[int] = None
    discount_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    surcharge_rate: Optional[Decimal] = Field(None, ge=0)
    min_amount: Optional[Decimal] = Field(None, ge=0)
    max_amount: Optional[Decimal] = Field(None, ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    active_days: List[str] = Field(default_factory=list, description="Días en español; vacío = todos")
    is_enabled: bool = True

    @field_validator("active_days")
    @classmethod
    def validate_days(cls, v):
        days = []
        for day in v:
            canonical = canonical_day(day)
            if canonical is None:
                raise ValueError(f"Día inválido: {day}")
            if canonical not in days:
                days.append(canonical)
        return days


class BankingPromotionCreate(BankingPromotionBase):
    installment_plans: List[InstallmentPlanInput] = Field(default_factory=list)


class BankingPromotionUpdate(BankingPromotionCreate):
    """Actualización completa: los planes enviados reemplazan a los existentes"""
    pass


class BankingPromotionResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    payment_method_id: int
    payment_method_name: Optional[str] = None
    bank_id: Optional[int] = None
    bank_name: Optional[str] = None
    card_type_id: Optional[int] = None
    card_type_name: Optional[str] = None
    bank_card_id: Optional[int] = None
    discount_rate: Optional[Decimal] = None
    surcharge_rate: Optional[Decimal] = None
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    active_days: List[str] = []
    is_enabled: bool
    installment_plans: List[InstallmentPlanResponse] = []
    created_at: datetime


class PromotionCalculationRequest(BaseModel):
    amount: Decimal = Field(..., gt=0)
    promotion_id: int
    installments: Optional[int] = Field(None, gt=0)


class PromotionCalculationResponse(BaseModel):
    original_amount: Decimal
    final_amount: Decimal
    discount_amount: Optional[Decimal] = None
    surcharge_amount: Optional[Decimal] = None
    installments: Optional[int] = None
    installment_amount: Optional[Decimal] = None
    total_interest: Optional[Decimal] = None
