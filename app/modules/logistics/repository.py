from typing import List, Optional
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from app.shared.database.models import (
    LogisticProvider, MotorcycleTransfer, Motorcycle, Branch
)

ACTIVE_TRANSFER_STATUSES = ["REQUESTED", "CONFIRMED", "IN_TRANSIT"]


class LogisticsRepository:

    def __init__(self, db: Session):
        self.db = db

    def add(self, instance) -> None:
        self.db.add(instance)

    def commit(self, *instances) -> None:
        try:
            self.db.commit()
            for instance in instances:
                self.db.refresh(instance)
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

    # ===== PROVEEDORES =====

    def get_providers(self, organization_id: int, status: Optional[str] = None) -> List[LogisticProvider]:
        query = self.db.query(LogisticProvider).filter(LogisticProvider.organization_id == organization_id)
        if status:
            query = query.filter(LogisticProvider.status == status)
        return query.order_by(LogisticProvider.name).all()

    def get_provider(self, organization_id: int, provider_id: int) -> Optional[LogisticProvider]:
        return self.db.query(LogisticProvider).filter(
            LogisticProvider.id == provider_id,
            LogisticProvider.organization_id == organization_id
        ).first()

    def count_provider_transfers(self, provider_id: int) -> int:
        return self.db.query(func.count(MotorcycleTransfer.id)).filter(
            MotorcycleTransfer.logistic_provider_id == provider_id
        ).scalar()

    # ===== TRASLADOS =====

    def _transfer_query(self):
        return self.db.query(MotorcycleTransfer).options(
            joinedload(MotorcycleTransfer.motorcycle).joinedload(Motorcycle.brand),
            joinedload(MotorcycleTransfer.motorcycle).joinedload(Motorcycle.model),
            joinedload(MotorcycleTransfer.from_branch),
            joinedload(MotorcycleTransfer.to_branch),
            joinedload(MotorcycleTransfer.logistic_provider),
            joinedload(MotorcycleTransfer.requester)
        )

    def get_transfers(self, organization_id: int, status: Optional[str] = None) -> List[MotorcycleTransfer]:
        query = self._transfer_query().filter(MotorcycleTransfer.organization_id == organization_id)
        if status:
            query = query.filter(MotorcycleTransfer.status == status)
        return query.order_by(MotorcycleTransfer.requested_date.desc(), MotorcycleTransfer.id.desc()).all()

    def get_transfer(self, organization_id: int, transfer_id: int) -> Optional[MotorcycleTransfer]:
        return self._transfer_query().filter(
            MotorcycleTransfer.id == transfer_id,
            MotorcycleTransfer.organization_id == organization_id
        ).first()

    def get_active_transfer(self, motorcycle_id: int) -> Optional[MotorcycleTransfer]:
        return self.db.query(MotorcycleTransfer).filter(
            MotorcycleTransfer.motorcycle_id == motorcycle_id,
            MotorcycleTransfer.status.in_(ACTIVE_TRANSFER_STATUSES)
        ).first()

    # ===== REFERENCIAS =====

    def get_motorcycle(self, organization_id: int, motorcycle_id: int) -> Optional[Motorcycle]:
        return self.db.query(Motorcycle).filter(
            Motorcycle.id == motorcycle_id,
            Motorcycle.organization_id == organization_id
        ).first()

    def get_branch(self, organization_id: int, branch_id: int) -> Optional[Branch]:
        return self.db.query(Branch).filter(
            Branch.id == branch_id,
            Branch.organization_id == organization_id
        ).first()

    def get_available_motorcycles(self, organization_id: int, branch_id: Optional[int] = None) -> List[Motorcycle]:
        """Motos en STOCK sin traslado activo"""
        active = self.db.query(MotorcycleTransfer.motorcycle_id).filter(
            MotorcycleTransfer.organization_id == organization_id,
            MotorcycleTransfer.status.in_(ACTIVE_TRANSFER_STATUSES)
        )

        query = self.db.query(Motorcycle).options(
            joinedload(Motorcycle.brand),
            joinedload(Motorcycle.model),
            joinedload(Motorcycle.color),
            joinedload(Motorcycle.branch)
        ).filter(
            Motorcycle.organization_id == organization_id,
            Motorcycle.state == "STOCK",
            ~Motorcycle.id.in_(active)
        )
        if branch_id:
            query = query.filter(Motorcycle.branch_id == branch_id)

        return query.order_by(Motorcycle.branch_id, Motorcycle.id).all()
