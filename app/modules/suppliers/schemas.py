from datetime import datetime
from typing import Optional
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict


class SupplierStatus(str, Enum):
    ACTIVO = "activo"
    INACTIVO = "inactivo"


class SupplierBase(BaseModel):
    legal_name: str = Field(..., min_length=1, max_length=255, description="Razón social")
    commercial_name: Optional[str] = Field(None, max_length=255)
    tax_id: str = Field(..., min_length=1, max_length=50, description="CUIT")
    vat_condition: Optional[str] = None
    contact_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    bank_name: Optional[str] = None
    bank_account: Optional[str] = None
    cbu: Optional[str] = None
    payment_terms: Optional[str] = None
    status: SupplierStatus = SupplierStatus.ACTIVO
    notes: Optional[str] = None


class SupplierCreate(SupplierBase):
    pass


class SupplierUpdate(BaseModel):
    legal_name: Optional[str] = Field(None, min_length=1, max_length=255)
    commercial_name: Optional[str] = None
    tax_id: Optional[str] = Field(None, min_length=1, max_length=50)
    vat_condition: Optional[str] = None
    contact_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    bank_name: Optional[str] = None
    bank_account: Optional[str] = None
    cbu: Optional[str] = None
    payment_terms: Optional[str] = None
    status: Optional[SupplierStatus] = None
    notes: Optional[str] = None


class SupplierResponse(SupplierBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    status: str
    created_at: datetime
    updated_at: datetime


class SupplierOption(BaseModel):
    id: int
    name: str
