# app/modules/sales/schemas.py
from datetime import datetime
from decimal import Decimal
from typing import Optional, List, Dict
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict, model_validator

from app.modules.current_accounts.schemas import CurrentAccountPlan

CURRENT_ACCOUNT_METHOD = "cuenta_corriente"


class ReservationStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"

# ==================== RESERVAS ====================

class ReservationCreate(BaseModel):
    motorcycle_id: int
    client_id: int
    amount: Decimal = Field(..., gt=0, description="Monto de la seña")
    currency: str = Field(default="ARS", min_length=3, max_length=3)
    payment_method: Optional[str] = Field(None, max_length=50)
    expiration_date: Optional[datetime] = None
    notes: Optional[str] = None


class ReservationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    motorcycle_id: int
    motorcycle_label: Optional[str] = None
    client_id: int
    client_name: Optional[str] = None
    amount: Decimal
    currency: str
    payment_method: Optional[str] = None
    expiration_date: Optional[datetime] = None
    notes: Optional[str] = None
    status: ReservationStatus
    created_at: datetime

# ==================== VENTAS ====================

class SaleCreate(BaseModel):
    """
    Venta de una unidad.

    Con `payment_method = cuenta_corriente` se debe enviar `current_account`
    con las condiciones de financiación.
    """
    motorcycle_id: int
    client_id: int
    sale_price: Decimal = Field(..., gt=0)
    currency: str = Field(default="ARS", min_length=3, max_length=3)
    payment_method: str = Field(..., min_length=1, max_length=50)
    installments: Optional[int] = Field(None, gt=0)
    banking_promotion_id: Optional[int] = None
    trade_in_description: Optional[str] = None
    notes: Optional[str] = None
    sale_date: Optional[datetime] = None
    current_account: Optional[CurrentAccountPlan] = None

    @model_validator(mode="after")
    def check_current_account(self):
        if self.payment_method == CURRENT_ACCOUNT_METHOD and self.current_account is None:
            raise ValueError("La venta en cuenta corriente requiere el plan de cuotas")
        return self


class SaleResponse(BaseModel):
    id: int
    motorcycle_id: int
    motorcycle_label: Optional[str] = None
    chassis_number: Optional[str] = None
    client_id: int
    client_name: Optional[str] = None
    seller_id: int
    seller_name: Optional[str] = None
    branch_id: int
    branch_name: Optional[str] = None
    reservation_id: Optional[int] = None
    banking_promotion_id: Optional[int] = None
    sale_price: Decimal
    currency: str
    payment_method: str
    installments: Optional[int] = None
    discount_amount: Decimal = Decimal(0)
    surcharge_amount: Decimal = Decimal(0)
    reservation_amount: Decimal = Decimal(0)
    final_amount: Decimal
    balance_due: Decimal
    trade_in_description: Optional[str] = None
    notes: Optional[str] = None
    sale_date: datetime
    current_account_id: Optional[int] = None


class SalesTotals(BaseModel):
    count: int
    total_final_amount: Decimal
    total_discounts: Decimal
    total_surcharges: Decimal
    by_currency: Dict[str, Decimal] = {}


class SaleListResponse(BaseModel):
    sales: List[SaleResponse]
    totals: SalesTotals
