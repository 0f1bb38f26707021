from typing import List, Optional
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import and_, func
from sqlalchemy.exc import SQLAlchemyError

from app.shared.database.models import CurrentAccount, Payment, Client, Motorcycle


class CurrentAccountRepository:

    def __init__(self, db: Session):
        self.db = db

    # ===== CUENTAS =====

    def get_all(self, organization_id: int, status: Optional[str] = None,
                client_id: Optional[int] = None) -> List[CurrentAccount]:
        query = self.db.query(CurrentAccount).options(
            joinedload(CurrentAccount.client),
            joinedload(CurrentAccount.motorcycle).joinedload(Motorcycle.brand),
            joinedload(CurrentAccount.motorcycle).joinedload(Motorcycle.model)
        ).filter(CurrentAccount.organization_id == organization_id)

        if status:
            query = query.filter(CurrentAccount.status == status)
        if client_id:
            query = query.filter(CurrentAccount.client_id == client_id)

        return query.order_by(CurrentAccount.created_at.desc()).all()

    def get_by_id(self, organization_id: int, account_id: int) -> Optional[CurrentAccount]:
        return self.db.query(CurrentAccount).options(
            joinedload(CurrentAccount.client),
            joinedload(CurrentAccount.motorcycle).joinedload(Motorcycle.brand),
            joinedload(CurrentAccount.motorcycle).joinedload(Motorcycle.model),
            joinedload(CurrentAccount.payments)
        ).filter(
            and_(
                CurrentAccount.id == account_id,
                CurrentAccount.organization_id == organization_id
            )
        ).first()

    def get_client(self, organization_id: int, client_id: int) -> Optional[Client]:
        return self.db.query(Client).filter(
            Client.id == client_id, Client.organization_id == organization_id
        ).first()

    def get_motorcycle(self, organization_id: int, motorcycle_id: int) -> Optional[Motorcycle]:
        return self.db.query(Motorcycle).filter(
            Motorcycle.id == motorcycle_id, Motorcycle.organization_id == organization_id
        ).first()

    # ===== PAGOS =====

    def get_payment(self, organization_id: int, payment_id: int) -> Optional[Payment]:
        return self.db.query(Payment).options(
            joinedload(Payment.current_account)
        ).filter(
            Payment.id == payment_id,
            Payment.organization_id == organization_id
        ).first()

    def _normal_payments(self, account_id: int):
        return self.db.query(Payment).filter(
            Payment.current_account_id == account_id,
            Payment.installment_version.is_(None),
            Payment.is_down_payment.is_(False)
        )

    def count_paid_installments(self, account_id: int) -> int:
        """Pagos normales efectivamente cobrados (sin D/H, anticipo ni cuotas pendientes)"""
        return self._normal_payments(account_id).filter(Payment.payment_date.isnot(None)).count()

    def get_lowest_pending_installment(self, account_id: int) -> Optional[int]:
        return self.db.query(func.min(Payment.installment_number)).filter(
            Payment.current_account_id == account_id,
            Payment.installment_version.is_(None),
            Payment.is_down_payment.is_(False),
            Payment.payment_date.is_(None)
        ).scalar()

    def get_pending_row(self, account_id: int, installment_number: int) -> Optional[Payment]:
        return self._normal_payments(account_id).filter(
            Payment.installment_number == installment_number,
            Payment.payment_date.is_(None)
        ).order_by(Payment.created_at).first()

    # ===== ESCRITURA =====

    def add(self, *instances) -> None:
        for instance in instances:
            self.db.add(instance)

    def delete(self, instance) -> None:
        self.db.delete(instance)

    def flush(self) -> None:
        self.db.flush()

    def commit(self, *refresh) -> None:
        """Confirmar la transacción completa de la operación"""
        try:
            self.db.commit()
            for instance in refresh:
                self.db.refresh(instance)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise e

    def rollback(self) -> None:
        self.db.rollback()
