from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.core.auth.dependencies import require_roles
from app.core.auth.schemas import UserResponse
from app.shared.database.models import User
from .service import OrganizationService
from .schemas import OrganizationCreate, OrganizationUpdate, OrganizationResponse, OrganizationAdminCreate

router = APIRouter()


@router.get("", response_model=List[OrganizationResponse])
async def list_organizations(
    current_user: User = Depends(require_roles(["root"])),
    db: Session = Depends(get_db)
):
    return OrganizationService(db).list_organizations()


@router.post("", response_model=OrganizationResponse, status_code=201)
async def create_organization(
    data: OrganizationCreate,
    current_user: User = Depends(require_roles(["root"])),
    db: Session = Depends(get_db)
):
    """Crear concesionaria. El slug debe ser único."""
    return OrganizationService(db).create_organization(data)


@router.put("/{organization_id}", response_model=OrganizationResponse)
async def update_organization(
    organization_id: int,
    data: OrganizationUpdate,
    current_user: User = Depends(require_roles(["root"])),
    db: Session = Depends(get_db)
):
    return OrganizationService(db).update_organization(organization_id, data)


@router.post("/{organization_id}/admin", response_model=UserResponse, status_code=201)
async def create_organization_admin(
    organization_id: int,
    data: OrganizationAdminCreate,
    current_user: User = Depends(require_roles(["root"])),
    db: Session = Depends(get_db)
):
    """Crear el administrador inicial de una organización"""
    return OrganizationService(db).create_admin(organization_id, data)
