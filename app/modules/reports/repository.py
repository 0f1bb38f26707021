from datetime import date, datetime, time
from typing import List, Optional, Tuple, Any
from sqlalchemy.orm import Session
from sqlalchemy import func, desc, case

from app.shared.database.models import (
    Sale, Motorcycle, Brand, Branch, Reservation, CurrentAccount, Payment, Client,
    Supplier, PettyCashDeposit, PettyCashWithdrawal, PettyCashSpend
)


def day_start(value: Optional[date]) -> Optional[datetime]:
    return datetime.combine(value, time.min) if value else None


def day_end(value: Optional[date]) -> Optional[datetime]:
    return datetime.combine(value, time.max) if value else None


class ReportsRepository:
    """Consultas agregadas para reportes"""

    def __init__(self, db: Session):
        self.db = db

    # ==================== VENTAS ====================

    def _sales_filters(self, organization_id: int, start_date: Optional[date],
                       end_date: Optional[date], branch_id: Optional[int]) -> list:
        filters = [Sale.organization_id == organization_id]
        if start_date:
            filters.append(Sale.sale_date >= day_start(start_date))
        if end_date:
            filters.append(Sale.sale_date <= day_end(end_date))
        if branch_id:
            filters.append(Sale.branch_id == branch_id)
        return filters

    def sales_totals(self, organization_id: int, start_date: Optional[date] = None,
                     end_date: Optional[date] = None, branch_id: Optional[int] = None) -> Tuple[Any, ...]:
        return self.db.query(
            func.count(Sale.id),
            func.coalesce(func.sum(Sale.final_amount), 0),
            func.coalesce(func.sum(Sale.discount_amount), 0),
            func.coalesce(func.sum(Sale.surcharge_amount), 0)
        ).filter(*self._sales_filters(organization_id, start_date, end_date, branch_id)).one()

    def sales_by_branch(self, organization_id: int, start_date: Optional[date] = None,
                        end_date: Optional[date] = None, branch_id: Optional[int] = None) -> List[Tuple]:
        return self.db.query(
            Branch.id, Branch.name,
            func.count(Sale.id).label("count"),
            func.sum(Sale.final_amount).label("amount")
        ).join(Sale, Sale.branch_id == Branch.id)\
         .filter(*self._sales_filters(organization_id, start_date, end_date, branch_id))\
         .group_by(Branch.id, Branch.name)\
         .order_by(desc("amount")).all()

    def sales_by_brand(self, organization_id: int, start_date: Optional[date] = None,
                       end_date: Optional[date] = None, branch_id: Optional[int] = None) -> List[Tuple]:
        return self.db.query(
            Brand.id, Brand.name,
            func.count(Sale.id).label("count"),
            func.sum(Sale.final_amount).label("amount")
        ).join(Motorcycle, Motorcycle.brand_id == Brand.id)\
         .join(Sale, Sale.motorcycle_id == Motorcycle.id)\
         .filter(*self._sales_filters(organization_id, start_date, end_date, branch_id))\
         .group_by(Brand.id, Brand.name)\
         .order_by(desc("amount")).all()

    def sales_by_payment_method(self, organization_id: int, start_date: Optional[date] = None,
                                end_date: Optional[date] = None, branch_id: Optional[int] = None) -> List[Tuple]:
        return self.db.query(
            Sale.payment_method,
            func.count(Sale.id).label("count"),
            func.sum(Sale.final_amount).label("amount")
        ).filter(*self._sales_filters(organization_id, start_date, end_date, branch_id))\
         .group_by(Sale.payment_method)\
         .order_by(desc("amount")).all()

    # ==================== INVENTARIO ====================

    def inventory_by_state(self, organization_id: int) -> List[Tuple]:
        return self.db.query(
            Motorcycle.state,
            func.count(Motorcycle.id),
            func.coalesce(func.sum(Motorcycle.cost_price), 0),
            func.coalesce(func.sum(Motorcycle.retail_price), 0)
        ).filter(Motorcycle.organization_id == organization_id)\
         .group_by(Motorcycle.state).all()

    def inventory_by_branch(self, organization_id: int, states: List[str]) -> List[Tuple]:
        return self.db.query(
            Branch.id, Branch.name,
            func.count(Motorcycle.id),
            func.coalesce(func.sum(Motorcycle.cost_price), 0)
        ).join(Motorcycle, Motorcycle.branch_id == Branch.id)\
         .filter(Motorcycle.organization_id == organization_id, Motorcycle.state.in_(states))\
         .group_by(Branch.id, Branch.name)\
         .order_by(Branch.order, Branch.id).all()

    def inventory_by_brand(self, organization_id: int, states: List[str]) -> List[Tuple]:
        return self.db.query(
            Brand.id, Brand.name,
            func.count(Motorcycle.id),
            func.coalesce(func.sum(Motorcycle.cost_price), 0)
        ).join(Motorcycle, Motorcycle.brand_id == Brand.id)\
         .filter(Motorcycle.organization_id == organization_id, Motorcycle.state.in_(states))\
         .group_by(Brand.id, Brand.name)\
         .order_by(Brand.name).all()

    # ==================== RESERVAS ====================

    def reservations_by_status(self, organization_id: int, start_date: Optional[date] = None,
                               end_date: Optional[date] = None) -> List[Tuple]:
        query = self.db.query(
            Reservation.status,
            func.count(Reservation.id),
            func.coalesce(func.sum(Reservation.amount), 0)
        ).filter(Reservation.organization_id == organization_id)

        if start_date:
            query = query.filter(Reservation.created_at >= day_start(start_date))
        if end_date:
            query = query.filter(Reservation.created_at <= day_end(end_date))

        return query.group_by(Reservation.status).all()

    # ==================== CUENTAS CORRIENTES ====================

    def accounts_by_status(self, organization_id: int) -> List[Tuple]:
        return self.db.query(
            CurrentAccount.status,
            func.count(CurrentAccount.id),
            func.coalesce(func.sum(CurrentAccount.total_amount), 0),
            func.coalesce(func.sum(CurrentAccount.remaining_amount), 0)
        ).filter(CurrentAccount.organization_id == organization_id)\
         .group_by(CurrentAccount.status).all()

    def collected_amount(self, organization_id: int):
        """Pagos efectivos: sin anulaciones D/H ni cuotas pendientes de reposición"""
        return self.db.query(func.coalesce(func.sum(Payment.amount_paid), 0)).filter(
            Payment.organization_id == organization_id,
            Payment.installment_version.is_(None),
            Payment.payment_date.isnot(None)
        ).scalar()

    def overdue_accounts(self, organization_id: int, now: datetime) -> List[Tuple]:
        return self.db.query(CurrentAccount, Client).join(
            Client, Client.id == CurrentAccount.client_id
        ).filter(
            CurrentAccount.organization_id == organization_id,
            CurrentAccount.status.in_(["ACTIVE", "OVERDUE"]),
            CurrentAccount.next_due_date.isnot(None),
            CurrentAccount.next_due_date < now
        ).order_by(CurrentAccount.next_due_date).all()

    # ==================== PROVEEDORES ====================

    def motorcycles_by_supplier(self, organization_id: int) -> List[Tuple]:
        return self.db.query(
            Supplier.id,
            Supplier.legal_name,
            Supplier.commercial_name,
            func.count(Motorcycle.id),
            func.coalesce(func.sum(case((Motorcycle.state == "STOCK", 1), else_=0)), 0),
            func.coalesce(func.sum(case((Motorcycle.state == "VENDIDO", 1), else_=0)), 0),
            func.coalesce(func.sum(Motorcycle.cost_price), 0)
        ).outerjoin(Motorcycle, Motorcycle.supplier_id == Supplier.id)\
         .filter(Supplier.organization_id == organization_id)\
         .group_by(Supplier.id, Supplier.legal_name, Supplier.commercial_name)\
         .order_by(Supplier.legal_name).all()

    # ==================== CAJA CHICA ====================

    def petty_cash_deposits_by_account(self, organization_id: int, start: Optional[datetime],
                                       end: Optional[datetime]) -> List[Tuple]:
        query = self.db.query(
            PettyCashDeposit.branch_id,
            func.coalesce(func.sum(PettyCashDeposit.amount), 0)
        ).filter(PettyCashDeposit.organization_id == organization_id)
        if start:
            query = query.filter(PettyCashDeposit.date >= start)
        if end:
            query = query.filter(PettyCashDeposit.date <= end)
        return query.group_by(PettyCashDeposit.branch_id).all()

    def petty_cash_withdrawals_by_account(self, organization_id: int, start: Optional[datetime],
                                          end: Optional[datetime]) -> List[Tuple]:
        query = self.db.query(
            PettyCashDeposit.branch_id,
            func.coalesce(func.sum(PettyCashWithdrawal.amount_given), 0)
        ).join(PettyCashDeposit, PettyCashWithdrawal.deposit_id == PettyCashDeposit.id)\
         .filter(PettyCashWithdrawal.organization_id == organization_id)
        if start:
            query = query.filter(PettyCashWithdrawal.date >= start)
        if end:
            query = query.filter(PettyCashWithdrawal.date <= end)
        return query.group_by(PettyCashDeposit.branch_id).all()

    def petty_cash_spends_by_account(self, organization_id: int, start: Optional[datetime],
                                     end: Optional[datetime]) -> List[Tuple]:
        query = self.db.query(
            PettyCashDeposit.branch_id,
            func.coalesce(func.sum(PettyCashSpend.amount), 0)
        ).join(PettyCashWithdrawal, PettyCashSpend.withdrawal_id == PettyCashWithdrawal.id)\
         .join(PettyCashDeposit, PettyCashWithdrawal.deposit_id == PettyCashDeposit.id)\
         .filter(PettyCashSpend.organization_id == organization_id)
        if start:
            query = query.filter(PettyCashSpend.date >= start)
        if end:
            query = query.filter(PettyCashSpend.date <= end)
        return query.group_by(PettyCashDeposit.branch_id).all()
