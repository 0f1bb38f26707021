from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from app.shared.database.models import Supplier, Motorcycle


class SupplierRepository:

    def __init__(self, db: Session):
        self.db = db

    def get_all(self, organization_id: int, status: Optional[str] = None) -> List[Supplier]:
        query = self.db.query(Supplier).filter(Supplier.organization_id == organization_id)
        if status:
            query = query.filter(Supplier.status == status)
        return query.order_by(Supplier.legal_name).all()

    def get_by_id(self, organization_id: int, supplier_id: int) -> Optional[Supplier]:
        return self.db.query(Supplier).filter(
            Supplier.id == supplier_id,
            Supplier.organization_id == organization_id
        ).first()

    def get_by_tax_id(self, organization_id: int, tax_id: str) -> Optional[Supplier]:
        return self.db.query(Supplier).filter(
            Supplier.organization_id == organization_id,
            Supplier.tax_id == tax_id
        ).first()

    def count_motorcycles(self, supplier_id: int) -> int:
        return self.db.query(func.count(Motorcycle.id)).filter(Motorcycle.supplier_id == supplier_id).scalar()

    def create(self, data: dict) -> Supplier:
        try:
            supplier = Supplier(**data)
            self.db.add(supplier)
            self.db.commit()
            self.db.refresh(supplier)
            return supplier
        except SQLAlchemyError as e:
            self.db.rollback()
            raise e

    def update(self, supplier: Supplier, data: dict) -> Supplier:
        try:
            for field, value in data.items():
                setattr(supplier, field, value)
            self.db.commit()
            self.db.refresh(supplier)
            return supplier
        except SQLAlchemyError as e:
            self.db.rollback()
            raise e

    def delete(self, supplier: Supplier) -> None:
        try:
            self.db.delete(supplier)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise e
