from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Body
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.core.auth.dependencies import get_current_user, require_roles, get_organization_id
from app.shared.database.models import User
from .service import LogisticsService
from .schemas import (
    ProviderStatus, TransferStatus, LogisticProviderCreate, LogisticProviderUpdate,
    LogisticProviderResponse, TransferCreate, TransferStatusUpdate, TransferResponse,
    AvailableMotorcycle
)

router = APIRouter()

ADMIN_ROLES = ["admin", "root"]

# ==================== PROVEEDORES ====================

@router.get("/providers", response_model=List[LogisticProviderResponse])
async def list_providers(
    status: Optional[ProviderStatus] = Query(None),
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return LogisticsService(db).list_providers(organization_id, status)


@router.post("/providers", response_model=LogisticProviderResponse, status_code=201)
async def create_provider(
    data: LogisticProviderCreate,
    current_user: User = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return LogisticsService(db).create_provider(organization_id, data)


@router.get("/providers/{provider_id}", response_model=LogisticProviderResponse)
async def get_provider(
    provider_id: int,
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return LogisticsService(db).get_provider(organization_id, provider_id)


@router.put("/providers/{provider_id}", response_model=LogisticProviderResponse)
async def update_provider(
    provider_id: int,
    data: LogisticProviderUpdate,
    current_user: User = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return LogisticsService(db).update_provider(organization_id, provider_id, data)


@router.patch("/providers/{provider_id}/toggle", response_model=LogisticProviderResponse)
async def toggle_provider(
    provider_id: int,
    current_user: User = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return LogisticsService(db).toggle_provider(organization_id, provider_id)


@router.delete("/providers/{provider_id}")
async def delete_provider(
    provider_id: int,
    current_user: User = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return LogisticsService(db).delete_provider(organization_id, provider_id)

# ==================== TRASLADOS ====================

@router.get("/available-motorcycles", response_model=List[AvailableMotorcycle])
async def get_available_motorcycles(
    branch_id: Optional[int] = Query(None),
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    """Motos en STOCK sin traslado activo"""
    return LogisticsService(db).get_available_motorcycles(organization_id, branch_id)


@router.get("/transfers", response_model=List[TransferResponse])
async def list_transfers(
    status: Optional[TransferStatus] = Query(None),
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return LogisticsService(db).list_transfers(organization_id, status)


@router.get("/transfers/in-transit", response_model=List[TransferResponse])
async def list_in_transit(
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return LogisticsService(db).list_transfers(organization_id, TransferStatus.IN_TRANSIT)


@router.post("/transfers", response_model=TransferResponse, status_code=201)
async def create_transfer(
    data: TransferCreate,
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    """
    Trasladar una moto entre sucursales

    La moto debe estar en STOCK en la sucursal de origen; queda EN_TRANSITO.
    """
    return LogisticsService(db).create_transfer(organization_id, current_user, data)


@router.get("/transfers/{transfer_id}", response_model=TransferResponse)
async def get_transfer(
    transfer_id: int,
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return LogisticsService(db).get_transfer(organization_id, transfer_id)


@router.patch("/transfers/{transfer_id}/status", response_model=TransferResponse)
async def update_transfer_status(
    transfer_id: int,
    data: TransferStatusUpdate,
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return LogisticsService(db).update_status(organization_id, transfer_id, current_user, data)


@router.post("/transfers/{transfer_id}/confirm-arrival", response_model=TransferResponse)
async def confirm_arrival(
    transfer_id: int,
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    """Confirmar llegada: la moto queda en STOCK en la sucursal de destino"""
    return LogisticsService(db).confirm_arrival(organization_id, transfer_id, current_user)


@router.post("/transfers/{transfer_id}/cancel", response_model=TransferResponse)
async def cancel_transfer(
    transfer_id: int,
    reason: Optional[str] = Body(None, embed=True),
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return LogisticsService(db).cancel_transfer(organization_id, transfer_id, current_user, reason)
