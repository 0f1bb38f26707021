from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.core.auth.dependencies import get_current_user, require_roles, get_organization_id
from app.shared.database.models import User
from .service import ClientService
from .schemas import ClientCreate, ClientUpdate, ClientResponse, ClientStatus

router = APIRouter()


@router.get("", response_model=List[ClientResponse])
async def list_clients(
    search: Optional[str] = Query(None, description="Nombre, razón social, documento o email"),
    status: Optional[ClientStatus] = Query(None),
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return ClientService(db).list_clients(organization_id, search, status.value if status else None)


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(
    client_id: int,
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return ClientService(db).get_client(organization_id, client_id)


@router.post("", response_model=ClientResponse, status_code=201)
async def create_client(
    data: ClientCreate,
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return ClientService(db).create_client(organization_id, data)


@router.put("/{client_id}", response_model=ClientResponse)
async def update_client(
    client_id: int,
    data: ClientUpdate,
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return ClientService(db).update_client(organization_id, client_id, data)


@router.delete("/{client_id}")
async def delete_client(
    client_id: int,
    current_user: User = Depends(require_roles(["admin", "root"])),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    """Eliminar cliente sin ventas, reservas ni cuentas corrientes"""
    return ClientService(db).delete_client(organization_id, client_id)
