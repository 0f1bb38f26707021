from typing import List, Optional
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from app.shared.database.models import (
    Branch, Brand, OrganizationBrand, MotorcycleModel, Color, ModelFile,
    Motorcycle, Organization
)


class ConfigurationRepository:

    def __init__(self, db: Session):
        self.db = db

    def save(self, instance=None):
        try:
            if instance is not None:
                self.db.add(instance)
            self.db.commit()
            if instance is not None:
                self.db.refresh(instance)
            return instance
        except SQLAlchemyError as e:
            self.db.rollback()
            raise e

    def delete(self, instance) -> None:
        try:
            self.db.delete(instance)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise e

    def apply_order(self, items: list, ids: List[int]) -> None:
        """Asignar order según la posición de cada ID en la lista"""
        position = {item_id: index for index, item_id in enumerate(ids)}
        try:
            for item in items:
                if item.id in position:
                    item.order = position[item.id]
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise e

    # ===== SUCURSALES =====

    def get_branches(self, organization_id: int) -> List[Branch]:
        return self.db.query(Branch).filter(
            Branch.organization_id == organization_id
        ).order_by(Branch.order, Branch.name).all()

    def get_branch(self, organization_id: int, branch_id: int) -> Optional[Branch]:
        return self.db.query(Branch).filter(
            Branch.id == branch_id,
            Branch.organization_id == organization_id
        ).first()

    def get_branch_by_name(self, organization_id: int, name: str) -> Optional[Branch]:
        return self.db.query(Branch).filter(
            Branch.organization_id == organization_id,
            func.lower(Branch.name) == name.lower()
        ).first()

    def next_branch_order(self, organization_id: int) -> int:
        current = self.db.query(func.max(Branch.order)).filter(
            Branch.organization_id == organization_id
        ).scalar()
        return (current + 1) if current is not None else 0

    def count_motorcycles_in_branch(self, branch_id: int) -> int:
        return self.db.query(func.count(Motorcycle.id)).filter(Motorcycle.branch_id == branch_id).scalar()

    # ===== MARCAS =====

    def get_organization_brands(self, organization_id: int) -> List[OrganizationBrand]:
        return self.db.query(OrganizationBrand).options(
            joinedload(OrganizationBrand.brand).joinedload(Brand.models)
        ).filter(
            OrganizationBrand.organization_id == organization_id
        ).order_by(OrganizationBrand.order).all()

    def get_organization_brand(self, organization_id: int, brand_id: int) -> Optional[OrganizationBrand]:
        return self.db.query(OrganizationBrand).filter(
            OrganizationBrand.organization_id == organization_id,
            OrganizationBrand.brand_id == brand_id
        ).first()

    def get_brand_by_name(self, name: str) -> Optional[Brand]:
        return self.db.query(Brand).filter(func.lower(Brand.name) == name.lower()).first()

    def next_brand_order(self, organization_id: int) -> int:
        current = self.db.query(func.max(OrganizationBrand.order)).filter(
            OrganizationBrand.organization_id == organization_id
        ).scalar()
        return (current + 1) if current is not None else 0

    def count_motorcycles_with_brand(self, organization_id: int, brand_id: int) -> int:
        return self.db.query(func.count(Motorcycle.id)).filter(
            Motorcycle.organization_id == organization_id,
            Motorcycle.brand_id == brand_id
        ).scalar()

    # ===== MODELOS =====

    def get_model(self, model_id: int) -> Optional[MotorcycleModel]:
        return self.db.query(MotorcycleModel).filter(MotorcycleModel.id == model_id).first()

    def get_model_by_name(self, brand_id: int, name: str) -> Optional[MotorcycleModel]:
        return self.db.query(MotorcycleModel).filter(
            MotorcycleModel.brand_id == brand_id,
            func.lower(MotorcycleModel.name) == name.lower()
        ).first()

    def count_motorcycles_with_model(self, model_id: int) -> int:
        return self.db.query(func.count(Motorcycle.id)).filter(Motorcycle.model_id == model_id).scalar()

    def get_model_files(self, model_id: int) -> List[ModelFile]:
        return self.db.query(ModelFile).filter(
            ModelFile.model_id == model_id
        ).order_by(ModelFile.created_at.desc()).all()

    def get_model_file(self, file_id: int) -> Optional[ModelFile]:
        return self.db.query(ModelFile).options(
            joinedload(ModelFile.model)
        ).filter(ModelFile.id == file_id).first()

    # ===== COLORES =====

    def get_colors(self, organization_id: int) -> List[Color]:
        return self.db.query(Color).filter(
            Color.organization_id == organization_id
        ).order_by(Color.order, Color.name).all()

    def get_color(self, organization_id: int, color_id: int) -> Optional[Color]:
        return self.db.query(Color).filter(
            Color.id == color_id,
            Color.organization_id == organization_id
        ).first()

    def next_color_order(self, organization_id: int) -> int:
        current = self.db.query(func.max(Color.order)).filter(
            Color.organization_id == organization_id
        ).scalar()
        return (current + 1) if current is not None else 0

    def count_motorcycles_with_color(self, color_id: int) -> int:
        return self.db.query(func.count(Motorcycle.id)).filter(Motorcycle.color_id == color_id).scalar()

    # ===== ORGANIZACIÓN =====

    def get_organization(self, organization_id: int) -> Optional[Organization]:
        return self.db.query(Organization).filter(Organization.id == organization_id).first()
