from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict, model_validator
from enum import Enum

# ===== ENUMS =====

class TransferStatus(str, Enum):
    REQUESTED = "REQUESTED"
    CONFIRMED = "CONFIRMED"
    IN_TRANSIT = "IN_TRANSIT"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class ProviderStatus(str, Enum):
    ACTIVO = "activo"
    INACTIVO = "inactivo"

# ===== PROVEEDORES =====

class LogisticProviderBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    contact_name: Optional[str] = Field(None, max_length=255)
    contact_phone: Optional[str] = Field(None, max_length=50)
    contact_email: Optional[str] = Field(None, max_length=255)
    address: Optional[str] = Field(None, max_length=255)
    transport_types: List[str] = Field(default_factory=list, description="Ej: camion, trailer, moto")
    vehicle_types: List[str] = Field(default_factory=list)
    coverage_zones: List[str] = Field(default_factory=list)
    price_per_km: Optional[Decimal] = Field(None, ge=0)
    base_fee: Optional[Decimal] = Field(None, ge=0)
    currency: str = Field(default="ARS", min_length=3, max_length=3)
    insurance: bool = False
    max_weight: Optional[Decimal] = Field(None, ge=0)
    max_volume: Optional[Decimal] = Field(None, ge=0)
    special_requirements: Optional[str] = None
    rating: Optional[Decimal] = Field(None, ge=1, le=5)
    notes: Optional[str] = None


class LogisticProviderCreate(LogisticProviderBase):
    status: ProviderStatus = ProviderStatus.ACTIVO


class LogisticProviderUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    contact_name: Optional[str] = Field(None, max_length=255)
    contact_phone: Optional[str] = Field(None, max_length=50)
    contact_email: Optional[str] = Field(None, max_length=255)
    address: Optional[str] = Field(None, max_length=255)
    transport_types: Optional[List[str]] = None
    vehicle_types: Optional[List[str]] = None
    coverage_zones: Optional[List[str]] = None
    price_per_km: Optional[Decimal] = Field(None, ge=0)
    base_fee: Optional[Decimal] = Field(None, ge=0)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    insurance: Optional[bool] = None
    max_weight: Optional[Decimal] = Field(None, ge=0)
    max_volume: Optional[Decimal] = Field(None, ge=0)
    special_requirements: Optional[str] = None
    rating: Optional[Decimal] = Field(None, ge=1, le=5)
    status: Optional[ProviderStatus] = None
    notes: Optional[str] = None


class LogisticProviderResponse(LogisticProviderBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    status: ProviderStatus
    created_at: datetime
    updated_at: Optional[datetime] = None

# ===== TRASLADOS =====

class TransferCreate(BaseModel):
    motorcycle_id: int
    from_branch_id: int
    to_branch_id: int
    logistic_provider_id: Optional[int] = None
    scheduled_pickup_date: Optional[datetime] = None
    estimated_delivery_date: Optional[datetime] = None
    cost: Optional[Decimal] = Field(None, ge=0)
    tracking_number: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=1000)

    @model_validator(mode="after")
    def check_branches(self):
        if self.from_branch_id == self.to_branch_id:
            raise ValueError("La sucursal de origen y destino deben ser distintas")
        return self


class TransferStatusUpdate(BaseModel):
    status: TransferStatus
    notes: Optional[str] = Field(None, max_length=1000)
    tracking_number: Optional[str] = Field(None, max_length=100)


class TransferResponse(BaseModel):
    id: int
    motorcycle_id: int
    motorcycle_label: Optional[str] = None
    chassis_number: Optional[str] = None
    from_branch_id: int
    from_branch_name: Optional[str] = None
    to_branch_id: int
    to_branch_name: Optional[str] = None
    logistic_provider_id: Optional[int] = None
    logistic_provider_name: Optional[str] = None
    status: TransferStatus
    requested_by: int
    requested_by_name: Optional[str] = None
    confirmed_by: Optional[int] = None
    requested_date: datetime
    scheduled_pickup_date: Optional[datetime] = None
    actual_pickup_date: Optional[datetime] = None
    estimated_delivery_date: Optional[datetime] = None
    actual_delivery_date: Optional[datetime] = None
    cost: Optional[Decimal] = None
    tracking_number: Optional[str] = None
    notes: Optional[str] = None


class AvailableMotorcycle(BaseModel):
    id: int
    label: Optional[str] = None
    chassis_number: str
    branch_id: int
    branch_name: Optional[str] = None
    color_name: Optional[str] = None
    year: Optional[int] = None
