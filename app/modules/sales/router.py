# app/modules/sales/router.py
from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.core.auth.dependencies import get_current_user, get_organization_id
from app.shared.database.models import User
from .service import SalesService
from .schemas import (
    ReservationCreate, ReservationResponse, ReservationStatus,
    SaleCreate, SaleResponse, SaleListResponse
)

router = APIRouter()

# ==================== RESERVAS ====================

@router.post("/reservations", response_model=ReservationResponse, status_code=201)
async def create_reservation(
    data: ReservationCreate,
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    """
    Reservar una moto (seña)

    La unidad debe estar en STOCK o PAUSADO y pasa a RESERVADO a nombre del cliente.
    """
    return SalesService(db).create_reservation(organization_id, data)


@router.get("/reservations", response_model=List[ReservationResponse])
async def list_reservations(
    status: Optional[ReservationStatus] = Query(None),
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return SalesService(db).list_reservations(organization_id, status)


@router.post("/reservations/{reservation_id}/cancel")
async def cancel_reservation(
    reservation_id: int,
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return SalesService(db).cancel_reservation(organization_id, reservation_id)

# ==================== VENTAS ====================

@router.post("", response_model=SaleResponse, status_code=201)
async def create_sale(
    data: SaleCreate,
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    """
    Registrar una venta

    - Aplica la promoción bancaria indicada
    - Completa la reserva activa de la unidad descontando la seña
    - En cuenta corriente crea el plan de cuotas en la misma transacción
    """
    return SalesService(db).create_sale(organization_id, current_user, data)


@router.get("", response_model=SaleListResponse)
async def list_sales(
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    branch_id: Optional[int] = Query(None),
    seller_id: Optional[int] = Query(None),
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return SalesService(db).list_sales(organization_id, start_date, end_date, branch_id, seller_id)


@router.get("/{sale_id}", response_model=SaleResponse)
async def get_sale(
    sale_id: int,
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return SalesService(db).get_sale(organization_id, sale_id)
