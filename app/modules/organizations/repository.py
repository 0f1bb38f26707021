from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from app.shared.database.models import Organization


class OrganizationRepository:

    def __init__(self, db: Session):
        self.db = db

    def get_all(self) -> List[Organization]:
        return self.db.query(Organization).order_by(Organization.name).all()

    def get_by_id(self, organization_id: int) -> Optional[Organization]:
        return self.db.query(Organization).filter(Organization.id == organization_id).first()

    def get_by_slug(self, slug: str) -> Optional[Organization]:
        return self.db.query(Organization).filter(Organization.slug == slug).first()

    def create(self, data: dict) -> Organization:
        try:
            organization = Organization(**data)
            self.db.add(organization)
            self.db.commit()
            self.db.refresh(organization)
            return organization
        except SQLAlchemyError as e:
            self.db.rollback()
            raise e

    def update(self, organization: Organization, data: dict) -> Organization:
        try:
            for field, value in data.items():
                setattr(organization, field, value)
            self.db.commit()
            self.db.refresh(organization)
            return organization
        except SQLAlchemyError as e:
            self.db.rollback()
            raise e
