from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict

# ===== ENUMS =====

class MotorcycleState(str, Enum):
    STOCK = "STOCK"
    PAUSADO = "PAUSADO"
    RESERVADO = "RESERVADO"
    PROCESANDO = "PROCESANDO"
    VENDIDO = "VENDIDO"
    ELIMINADO = "ELIMINADO"
    EN_TRANSITO = "EN_TRANSITO"


class Currency(str, Enum):
    ARS = "ARS"
    USD = "USD"

# ===== REQUEST SCHEMAS =====

class MotorcycleUnit(BaseModel):
    """Datos propios de cada unidad del lote"""
    chassis_number: str = Field(..., min_length=1, max_length=100, description="Número de chasis")
    engine_number: Optional[str] = Field(None, max_length=100)
    license_plate: Optional[str] = Field(None, max_length=20)
    mileage: int = Field(default=0, ge=0)
    color_id: Optional[int] = None


class MotorcycleBatchCreate(BaseModel):
    """Alta de un lote: datos comunes + unidades"""
    brand_id: int
    model_id: int
    branch_id: int
    color_id: Optional[int] = None
    supplier_id: Optional[int] = None
    year: int = Field(..., ge=1900, le=2100)
    displacement: Optional[int] = Field(None, gt=0, description="Cilindrada (cc)")
    currency: Currency = Currency.ARS
    cost_price: Optional[Decimal] = Field(None, ge=0)
    retail_price: Decimal = Field(..., gt=0)
    wholesale_price: Optional[Decimal] = Field(None, ge=0)
    image_url: Optional[str] = None
    observations: Optional[str] = None
    units: List[MotorcycleUnit] = Field(..., min_length=1)


class MotorcycleUpdate(BaseModel):
    brand_id: Optional[int] = None
    model_id: Optional[int] = None
    branch_id: Optional[int] = None
    color_id: Optional[int] = None
    supplier_id: Optional[int] = None
    year: Optional[int] = Field(None, ge=1900, le=2100)
    displacement: Optional[int] = Field(None, gt=0)
    chassis_number: Optional[str] = Field(None, min_length=1, max_length=100)
    engine_number: Optional[str] = None
    license_plate: Optional[str] = None
    mileage: Optional[int] = Field(None, ge=0)
    currency: Optional[Currency] = None
    cost_price: Optional[Decimal] = Field(None, ge=0)
    retail_price: Optional[Decimal] = Field(None, gt=0)
    wholesale_price: Optional[Decimal] = Field(None, ge=0)
    image_url: Optional[str] = None
    observations: Optional[str] = None


class StateChange(BaseModel):
    state: MotorcycleState
    client_id: Optional[int] = Field(None, description="Cliente asociado (reserva / procesando)")

# ===== RESPONSE SCHEMAS =====

class MotorcycleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    brand_id: int
    brand_name: Optional[str] = None
    model_id: int
    model_name: Optional[str] = None
    color_id: Optional[int] = None
    color_name: Optional[str] = None
    branch_id: int
    branch_name: Optional[str] = None
    supplier_id: Optional[int] = None
    supplier_name: Optional[str] = None
    client_id: Optional[int] = None
    client_name: Optional[str] = None
    year: int
    displacement: Optional[int] = None
    chassis_number: str
    engine_number: Optional[str] = None
    license_plate: Optional[str] = None
    mileage: int
    currency: str
    cost_price: Optional[Decimal] = None
    retail_price: Decimal
    wholesale_price: Optional[Decimal] = None
    image_url: Optional[str] = None
    observations: Optional[str] = None
    state: MotorcycleState
    created_at: datetime
    updated_at: datetime


class MotorcycleListResponse(BaseModel):
    items: List[MotorcycleResponse]
    total: int
    page: int
    page_size: int


class BatchCreateResponse(BaseModel):
    success: bool = True
    created: int
    ids: List[int]


class MotorcycleFilters(BaseModel):
    states: Optional[List[MotorcycleState]] = None
    branch_id: Optional[int] = None
    brand_id: Optional[int] = None
    model_id: Optional[int] = None
    year_from: Optional[int] = None
    year_to: Optional[int] = None
    price_from: Optional[Decimal] = None
    price_to: Optional[Decimal] = None
    search: Optional[str] = None
    page: int = 1
    page_size: int = 20
