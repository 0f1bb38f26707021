from typing import List, Optional
from decimal import Decimal
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.core.auth.dependencies import get_current_user, require_roles, get_organization_id
from app.shared.database.models import User
from .service import StockService
from .schemas import (
    MotorcycleBatchCreate, MotorcycleUpdate, MotorcycleResponse, MotorcycleListResponse,
    BatchCreateResponse, MotorcycleFilters, MotorcycleState, StateChange
)

router = APIRouter()


@router.post("/batch", response_model=BatchCreateResponse, status_code=201)
async def create_batch(
    data: MotorcycleBatchCreate,
    current_user: User = Depends(require_roles(["admin", "root", "user"])),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    """
    Alta de motos por lote

    **Validaciones:**
    - Chasis repetidos dentro del lote → 400
    - Chasis ya existentes en la organización → 409
    - Todas las unidades se crean en una sola transacción
    """
    return StockService(db).create_batch(organization_id, data)


@router.get("/form-data")
async def get_form_data(
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return StockService(db).get_form_data(organization_id)


@router.get("", response_model=MotorcycleListResponse)
async def list_motorcycles(
    state: Optional[List[MotorcycleState]] = Query(None, description="Filtrar por estados"),
    branch_id: Optional[int] = Query(None),
    brand_id: Optional[int] = Query(None),
    model_id: Optional[int] = Query(None),
    year_from: Optional[int] = Query(None),
    year_to: Optional[int] = Query(None),
    price_from: Optional[Decimal] = Query(None, ge=0),
    price_to: Optional[Decimal] = Query(None, ge=0),
    search: Optional[str] = Query(None, description="Chasis, motor, patente, marca o modelo"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=200),
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    filters = MotorcycleFilters(
        states=state, branch_id=branch_id, brand_id=brand_id, model_id=model_id,
        year_from=year_from, year_to=year_to, price_from=price_from, price_to=price_to,
        search=search, page=page, page_size=page_size
    )
    return StockService(db).list_motorcycles(organization_id, filters)


@router.get("/{motorcycle_id}", response_model=MotorcycleResponse)
async def get_motorcycle(
    motorcycle_id: int,
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return StockService(db).get_motorcycle(organization_id, motorcycle_id)


@router.put("/{motorcycle_id}", response_model=MotorcycleResponse)
async def update_motorcycle(
    motorcycle_id: int,
    data: MotorcycleUpdate,
    current_user: User = Depends(require_roles(["admin", "root", "user"])),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return StockService(db).update_motorcycle(organization_id, motorcycle_id, data)


@router.patch("/{motorcycle_id}/state", response_model=MotorcycleResponse)
async def change_state(
    motorcycle_id: int,
    data: StateChange,
    current_user: User = Depends(require_roles(["admin", "root", "user"])),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    """
    Cambiar estado de una moto

    **Transiciones:**
    - STOCK → PAUSADO, PROCESANDO, RESERVADO
    - PAUSADO → STOCK, ELIMINADO
    - RESERVADO → STOCK, PROCESANDO
    - PROCESANDO → STOCK
    - ELIMINADO → STOCK
    - VENDIDO y EN_TRANSITO no se modifican desde aquí
    """
    return StockService(db).change_state(organization_id, motorcycle_id, data)
