# app/modules/sales/repository.py
from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session, joinedload
from sqlalchemy.exc import SQLAlchemyError

from app.shared.database.models import (
    Sale, Reservation, Motorcycle, Client, CurrentAccount
)


class SalesRepository:
    """
    Repositorio de reservas y ventas
    """

    def __init__(self, db: Session):
        self.db = db

    def add(self, instance) -> None:
        self.db.add(instance)

    def flush(self) -> None:
        self.db.flush()

    def commit(self, *instances) -> None:
        try:
            self.db.commit()
            for instance in instances:
                self.db.refresh(instance)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise e

    def rollback(self) -> None:
        self.db.rollback()

    # ==================== REFERENCIAS ====================

    def get_motorcycle(self, organization_id: int, motorcycle_id: int) -> Optional[Motorcycle]:
        return self.db.query(Motorcycle).filter(
            Motorcycle.id == motorcycle_id,
            Motorcycle.organization_id == organization_id
        ).first()

    def get_client(self, organization_id: int, client_id: int) -> Optional[Client]:
        return self.db.query(Client).filter(
            Client.id == client_id,
            Client.organization_id == organization_id
        ).first()

    # ==================== RESERVAS ====================

    def get_reservations(self, organization_id: int, status: Optional[str] = None) -> List[Reservation]:
        query = self.db.query(Reservation).options(
            joinedload(Reservation.motorcycle).joinedload(Motorcycle.brand),
            joinedload(Reservation.motorcycle).joinedload(Motorcycle.model),
            joinedload(Reservation.client)
        ).filter(Reservation.organization_id == organization_id)

        if status:
            query = query.filter(Reservation.status == status)

        return query.order_by(Reservation.created_at.desc(), Reservation.id.desc()).all()

    def get_reservation(self, organization_id: int, reservation_id: int) -> Optional[Reservation]:
        return self.db.query(Reservation).filter(
            Reservation.id == reservation_id,
            Reservation.organization_id == organization_id
        ).first()

    def get_active_reservation(self, organization_id: int, motorcycle_id: int) -> Optional[Reservation]:
        return self.db.query(Reservation).filter(
            Reservation.organization_id == organization_id,
            Reservation.motorcycle_id == motorcycle_id,
            Reservation.status == "active"
        ).order_by(Reservation.created_at.desc()).first()

    # ==================== VENTAS ====================

    def _sales_query(self):
        return self.db.query(Sale).options(
            joinedload(Sale.motorcycle).joinedload(Motorcycle.brand),
            joinedload(Sale.motorcycle).joinedload(Motorcycle.model),
            joinedload(Sale.client),
            joinedload(Sale.seller),
            joinedload(Sale.branch)
        )

    def get_sales(
        self,
        organization_id: int,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        branch_id: Optional[int] = None,
        seller_id: Optional[int] = None
    ) -> List[Sale]:
        query = self._sales_query().filter(Sale.organization_id == organization_id)

        if start_date:
            query = query.filter(Sale.sale_date >= start_date)
        if end_date:
            query = query.filter(Sale.sale_date <= end_date)
        if branch_id:
            query = query.filter(Sale.branch_id == branch_id)
        if seller_id:
            query = query.filter(Sale.seller_id == seller_id)

        return query.order_by(Sale.sale_date.desc(), Sale.id.desc()).all()

    def get_sale(self, organization_id: int, sale_id: int) -> Optional[Sale]:
        return self._sales_query().filter(
            Sale.id == sale_id,
            Sale.organization_id == organization_id
        ).first()

    def get_account_for_motorcycle(self, organization_id: int, motorcycle_id: int) -> Optional[CurrentAccount]:
        return self.db.query(CurrentAccount).filter(
            CurrentAccount.organization_id == organization_id,
            CurrentAccount.motorcycle_id == motorcycle_id
        ).order_by(CurrentAccount.id.desc()).first()
