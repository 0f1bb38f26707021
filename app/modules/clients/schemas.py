from datetime import datetime
from typing import Optional, List
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict, model_validator


class ClientType(str, Enum):
    INDIVIDUAL = "Individual"
    LEGAL_ENTITY = "LegalEntity"


class ClientStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class ClientCreate(BaseModel):
    type: ClientType = ClientType.INDIVIDUAL
    first_name: str = Field(..., min_length=1, max_length=255)
    last_name: Optional[str] = Field(None, max_length=255)
    company_name: Optional[str] = Field(None, max_length=255)
    tax_id: str = Field(..., min_length=1, max_length=50, description="DNI / CUIT / CUIL")
    email: Optional[str] = None
    phone: Optional[str] = None
    mobile: Optional[str] = None
    address: Optional[str] = None
    vat_status: Optional[str] = None
    status: ClientStatus = ClientStatus.ACTIVE
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_company_name(self):
        if self.type == ClientType.LEGAL_ENTITY and not self.company_name:
            raise ValueError("La razón social es obligatoria para personas jurídicas")
        return self


class ClientUpdate(BaseModel):
    type: Optional[ClientType] = None
    first_name: Optional[str] = Field(None, min_length=1, max_length=255)
    last_name: Optional[str] = None
    company_name: Optional[str] = None
    tax_id: Optional[str] = Field(None, min_length=1, max_length=50)
    email: Optional[str] = None
    phone: Optional[str] = None
    mobile: Optional[str] = None
    address: Optional[str] = None
    vat_status: Optional[str] = None
    status: Optional[ClientStatus] = None
    notes: Optional[str] = None


class ClientResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: str
    first_name: str
    last_name: Optional[str] = None
    company_name: Optional[str] = None
    full_name: str
    tax_id: str
    email: Optional[str] = None
    phone: Optional[str] = None
    mobile: Optional[str] = None
    address: Optional[str] = None
    vat_status: Optional[str] = None
    status: str
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
