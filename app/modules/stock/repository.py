from typing import List, Optional, Tuple
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import and_, or_, func
from sqlalchemy.exc import SQLAlchemyError

from app.shared.database.models import (
    Motorcycle, Brand, MotorcycleModel, Branch, Color, Supplier, OrganizationBrand
)
from .schemas import MotorcycleFilters


class StockRepository:

    def __init__(self, db: Session):
        self.db = db

    def _base_query(self):
        return self.db.query(Motorcycle).options(
            joinedload(Motorcycle.brand),
            joinedload(Motorcycle.model),
            joinedload(Motorcycle.color),
            joinedload(Motorcycle.branch),
            joinedload(Motorcycle.supplier),
            joinedload(Motorcycle.client)
        )

    # ===== CONSULTAS =====

    def get_by_id(self, organization_id: int, motorcycle_id: int) -> Optional[Motorcycle]:
        return self._base_query().filter(
            and_(
                Motorcycle.id == motorcycle_id,
                Motorcycle.organization_id == organization_id
            )
        ).first()

    def search(self, organization_id: int, filters: MotorcycleFilters) -> Tuple[List[Motorcycle], int]:
        query = self.db.query(Motorcycle).join(
            Brand, Motorcycle.brand_id == Brand.id
        ).join(
            MotorcycleModel, Motorcycle.model_id == MotorcycleModel.id
        ).filter(Motorcycle.organization_id == organization_id)

        if filters.states:
            query = query.filter(Motorcycle.state.in_([s.value for s in filters.states]))
        if filters.branch_id:
            query = query.filter(Motorcycle.branch_id == filters.branch_id)
        if filters.brand_id:
            query = query.filter(Motorcycle.brand_id == filters.brand_id)
        if filters.model_id:
            query = query.filter(Motorcycle.model_id == filters.model_id)
        if filters.year_from is not None:
            query = query.filter(Motorcycle.year >= filters.year_from)
        if filters.year_to is not None:
            query = query.filter(Motorcycle.year <= filters.year_to)
        if filters.price_from is not None:
            query = query.filter(Motorcycle.retail_price >= filters.price_from)
        if filters.price_to is not None:
            query = query.filter(Motorcycle.retail_price <= filters.price_to)
        if filters.search:
            term = f"%{filters.search.strip()}%"
            query = query.filter(
                or_(
                    Motorcycle.chassis_number.ilike(term),
                    Motorcycle.engine_number.ilike(term),
                    Motorcycle.license_plate.ilike(term),
                    Brand.name.ilike(term),
                    MotorcycleModel.name.ilike(term)
                )
            )

        total = query.count()
        items = query.options(
            joinedload(Motorcycle.brand),
            joinedload(Motorcycle.model),
            joinedload(Motorcycle.color),
            joinedload(Motorcycle.branch),
            joinedload(Motorcycle.supplier),
            joinedload(Motorcycle.client)
        ).order_by(
            Motorcycle.created_at.desc(), Motorcycle.id.desc()
        ).offset((filters.page - 1) * filters.page_size).limit(filters.page_size).all()

        return items, total

    def get_existing_chassis(self, organization_id: int, chassis_numbers: List[str]) -> List[str]:
        rows = self.db.query(Motorcycle.chassis_number).filter(
            Motorcycle.organization_id == organization_id,
            func.upper(Motorcycle.chassis_number).in_([c.upper() for c in chassis_numbers])
        ).all()
        return [row[0] for row in rows]

    # ===== VALIDACIONES DE PERTENENCIA =====

    def brand_in_organization(self, organization_id: int, brand_id: int) -> bool:
        return self.db.query(OrganizationBrand.id).filter(
            OrganizationBrand.organization_id == organization_id,
            OrganizationBrand.brand_id == brand_id
        ).first() is not None

    def get_model(self, model_id: int) -> Optional[MotorcycleModel]:
        return self.db.query(MotorcycleModel).filter(MotorcycleModel.id == model_id).first()

    def branch_in_organization(self, organization_id: int, branch_id: int) -> bool:
        return self.db.query(Branch.id).filter(
            Branch.id == branch_id, Branch.organization_id == organization_id
        ).first() is not None

    def color_in_organization(self, organization_id: int, color_id: int) -> bool:
        return self.db.query(Color.id).filter(
            Color.id == color_id, Color.organization_id == organization_id
        ).first() is not None

    def supplier_in_organization(self, organization_id: int, supplier_id: int) -> bool:
        return self.db.query(Supplier.id).filter(
            Supplier.id == supplier_id, Supplier.organization_id == organization_id
        ).first() is not None

    def get_active_suppliers(self, organization_id: int) -> List[Supplier]:
        return self.db.query(Supplier).filter(
            Supplier.organization_id == organization_id,
            Supplier.status == "activo"
        ).order_by(Supplier.legal_name).all()

    # ===== ESCRITURA =====

    def create_batch(self, motorcycles: List[Motorcycle]) -> List[Motorcycle]:
        """Todas las unidades en una sola transacción"""
        try:
            self.db.add_all(motorcycles)
            self.db.commit()
            for motorcycle in motorcycles:
                self.db.refresh(motorcycle)
            return motorcycles
        except SQLAlchemyError as e:
            self.db.rollback()
            raise e

    def save(self, motorcycle: Motorcycle) -> Motorcycle:
        try:
            self.db.commit()
            self.db.refresh(motorcycle)
            return motorcycle
        except SQLAlchemyError as e:
            self.db.rollback()
            raise e
