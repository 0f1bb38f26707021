from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.core.auth.dependencies import get_current_user, require_roles, get_organization_id
from app.shared.database.models import User
from .service import SupplierService
from .schemas import SupplierCreate, SupplierUpdate, SupplierResponse, SupplierOption, SupplierStatus

router = APIRouter()


@router.get("", response_model=List[SupplierResponse])
async def list_suppliers(
    status: Optional[SupplierStatus] = Query(None),
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return SupplierService(db).list_suppliers(organization_id, status.value if status else None)


@router.get("/select", response_model=List[SupplierOption])
async def list_suppliers_for_select(
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    """Proveedores activos (id + nombre)"""
    return SupplierService(db).list_for_select(organization_id)


@router.get("/{supplier_id}", response_model=SupplierResponse)
async def get_supplier(
    supplier_id: int,
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return SupplierService(db).get_supplier(organization_id, supplier_id)


@router.post("", response_model=SupplierResponse, status_code=201)
async def create_supplier(
    data: SupplierCreate,
    current_user: User = Depends(require_roles(["admin", "root"])),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return SupplierService(db).create_supplier(organization_id, data)


@router.put("/{supplier_id}", response_model=SupplierResponse)
async def update_supplier(
    supplier_id: int,
    data: SupplierUpdate,
    current_user: User = Depends(require_roles(["admin", "root"])),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return SupplierService(db).update_supplier(organization_id, supplier_id, data)


@router.delete("/{supplier_id}")
async def delete_supplier(
    supplier_id: int,
    current_user: User = Depends(require_roles(["admin", "root"])),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return SupplierService(db).delete_supplier(organization_id, supplier_id)
