import logging
from typing import List
from sqlalchemy.orm import Session
from fastapi import HTTPException, status

from app.core.auth.service import AuthService
from app.core.auth.schemas import UserResponse
from app.shared.database.models import Organization
from app.shared.database.updates import drop_required_nulls
from .repository import OrganizationRepository
from .schemas import OrganizationCreate, OrganizationUpdate, OrganizationResponse, OrganizationAdminCreate

logger = logging.getLogger(__name__)


class OrganizationService:

    def __init__(self, db: Session):
        self.db = db
        self.repository = OrganizationRepository(db)

    def list_organizations(self) -> List[OrganizationResponse]:
        return [OrganizationResponse.model_validate(o) for o in self.repository.get_all()]

    def create_organization(self, data: OrganizationCreate) -> OrganizationResponse:
        if self.repository.get_by_slug(data.slug):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Ya existe una organización con el slug '{data.slug}'"
            )
        organization = self.repository.create(data.model_dump())
        logger.info(f"Organización creada: {organization.slug} (id={organization.id})")
        return OrganizationResponse.model_validate(organization)

    def update_organization(self, organization_id: int, data: OrganizationUpdate) -> OrganizationResponse:
        organization = self._get_or_404(organization_id)
        updates = drop_required_nulls(Organization, data.model_dump(exclude_unset=True))

        if "slug" in updates and updates["slug"] != organization.slug:
            if self.repository.get_by_slug(updates["slug"]):
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail=f"Ya existe una organización con el slug '{updates['slug']}'"
                )

        organization = self.repository.update(organization, updates)
        return OrganizationResponse.model_validate(organization)

    def create_admin(self, organization_id: int, data: OrganizationAdminCreate) -> UserResponse:
        self._get_or_404(organization_id)
        user = AuthService(self.db).create_user_record(
            organization_id=organization_id,
            email=data.email,
            password=data.password,
            name=data.name,
            role="admin"
        )
        return UserResponse.model_validate(user)

    def _get_or_404(self, organization_id: int):
        organization = self.repository.get_by_id(organization_id)
        if not organization:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Organización no encontrada")
        return organization
