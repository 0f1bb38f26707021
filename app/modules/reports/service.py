import logging
from datetime import date, datetime
from typing import Optional, List
from sqlalchemy.orm import Session
from fastapi import HTTPException, status

from app.shared.database.models import Branch
from app.modules.petty_cash.service import account_label
from .repository import ReportsRepository, day_start, day_end
from .schemas import (
    GroupTotal, SalesReport, InventoryReport, ReservationsReport, OverdueAccount,
    CurrentAccountsReport, SupplierReportRow, SuppliersReport, PettyCashAccountActivity,
    PettyCashReport
)

logger = logging.getLogger(__name__)

# Unidades que cuentan como inventario valorizado
INVENTORY_STATES = ["STOCK", "PAUSADO", "RESERVADO", "PROCESANDO", "EN_TRANSITO"]


class ReportsService:
    """Reportes JSON por organización"""

    def __init__(self, db: Session):
        self.db = db
        self.repository = ReportsRepository(db)

    def sales_report(self, organization_id: int, start_date: Optional[date] = None,
                     end_date: Optional[date] = None, branch_id: Optional[int] = None) -> SalesReport:
        self._check_range(start_date, end_date)
        args = (organization_id, start_date, end_date, branch_id)

        count, amount, discounts, surcharges = self.repository.sales_totals(*args)
        total_amount = float(amount or 0)

        return SalesReport(
            period_start=start_date,
            period_end=end_date,
            branch_id=branch_id,
            total_sales=int(count or 0),
            total_amount=total_amount,
            total_discounts=float(discounts or 0),
            total_surcharges=float(surcharges or 0),
            average_ticket=total_amount / count if count else 0.0,
            by_branch=[
                GroupTotal(key=str(row[0]), label=row[1], count=int(row[2]), amount=float(row[3] or 0))
                for row in self.repository.sales_by_branch(*args)
            ],
            by_brand=[
                GroupTotal(key=str(row[0]), label=row[1], count=int(row[2]), amount=float(row[3] or 0))
                for row in self.repository.sales_by_brand(*args)
            ],
            by_payment_method=[
                GroupTotal(key=row[0], label=row[0], count=int(row[1]), amount=float(row[2] or 0))
                for row in self.repository.sales_by_payment_method(*args)
            ]
        )

    def inventory_report(self, organization_id: int) -> InventoryReport:
        by_state = self.repository.inventory_by_state(organization_id)
        in_inventory = [row for row in by_state if row[0] in INVENTORY_STATES]

        return InventoryReport(
            generated_at=datetime.utcnow(),
            total_units=sum(int(row[1]) for row in in_inventory),
            total_cost_value=sum(float(row[2] or 0) for row in in_inventory),
            total_retail_value=sum(float(row[3] or 0) for row in in_inventory),
            by_state=[
                GroupTotal(key=row[0], label=row[0], count=int(row[1]), amount=float(row[2] or 0))
                for row in sorted(by_state, key=lambda r: r[0])
            ],
            by_branch=[
                GroupTotal(key=str(row[0]), label=row[1], count=int(row[2]), amount=float(row[3] or 0))
                for row in self.repository.inventory_by_branch(organization_id, INVENTORY_STATES)
            ],
            by_brand=[
                GroupTotal(key=str(row[0]), label=row[1], count=int(row[2]), amount=float(row[3] or 0))
                for row in self.repository.inventory_by_brand(organization_id, INVENTORY_STATES)
            ]
        )

    def reservations_report(self, organization_id: int, start_date: Optional[date] = None,
                            end_date: Optional[date] = None) -> ReservationsReport:
        self._check_range(start_date, end_date)
        rows = self.repository.reservations_by_status(organization_id, start_date, end_date)

        return ReservationsReport(
            period_start=start_date,
            period_end=end_date,
            total_reservations=sum(int(row[1]) for row in rows),
            total_amount=sum(float(row[2] or 0) for row in rows),
            by_status=[
                GroupTotal(key=row[0], label=row[0], count=int(row[1]), amount=float(row[2] or 0))
                for row in rows
            ]
        )

    def current_accounts_report(self, organization_id: int) -> CurrentAccountsReport:
        """Financiado, cobrado y pendiente; cuentas con cuota vencida"""
        rows = self.repository.accounts_by_status(organization_id)
        now = datetime.utcnow()

        overdue: List[OverdueAccount] = []
        for account, client in self.repository.overdue_accounts(organization_id, now):
            overdue.append(OverdueAccount(
                id=account.id,
                client_id=client.id,
                client_name=client.full_name,
                motorcycle_id=account.motorcycle_id,
                next_due_date=account.next_due_date,
                days_overdue=(now - account.next_due_date).days,
                installment_amount=float(account.installment_amount or 0),
                remaining_amount=float(account.remaining_amount or 0),
                currency=account.currency
            ))

        outstanding = sum(float(row[3] or 0) for row in rows if row[0] in ("ACTIVE", "OVERDUE", "DEFAULTED"))

        return CurrentAccountsReport(
            total_accounts=sum(int(row[1]) for row in rows),
            total_financed=sum(float(row[2] or 0) for row in rows),
            total_collected=float(self.repository.collected_amount(organization_id) or 0),
            total_outstanding=outstanding,
            by_status=[
                GroupTotal(key=row[0], label=row[0], count=int(row[1]), amount=float(row[3] or 0))
                for row in rows
            ],
            overdue_accounts=overdue
        )

    def suppliers_report(self, organization_id: int) -> SuppliersReport:
        suppliers = [
            SupplierReportRow(
                supplier_id=row[0],
                supplier_name=row[2] or row[1],
                motorcycles=int(row[3] or 0),
                in_stock=int(row[4] or 0),
                sold=int(row[5] or 0),
                purchase_value=float(row[6] or 0)
            )
            for row in self.repository.motorcycles_by_supplier(organization_id)
        ]

        return SuppliersReport(
            total_suppliers=len(suppliers),
            total_motorcycles=sum(s.motorcycles for s in suppliers),
            total_purchase_value=sum(s.purchase_value for s in suppliers),
            suppliers=suppliers
        )

    def petty_cash_report(self, organization_id: int, start_date: Optional[date] = None,
                          end_date: Optional[date] = None) -> PettyCashReport:
        """Actividad de caja chica por cuenta en el período"""
        self._check_range(start_date, end_date)
        start, end = day_start(start_date), day_end(end_date)

        deposits = dict(self.repository.petty_cash_deposits_by_account(organization_id, start, end))
        withdrawals = dict(self.repository.petty_cash_withdrawals_by_account(organization_id, start, end))
        spends = dict(self.repository.petty_cash_spends_by_account(organization_id, start, end))

        branches = self.db.query(Branch).filter(
            Branch.organization_id == organization_id
        ).order_by(Branch.order, Branch.id).all()
        accounts = [(None, "Caja general")] + [(b.id, b.name) for b in branches]

        activity = []
        for branch_id, name in accounts:
            deposited = float(deposits.get(branch_id, 0) or 0)
            spent = float(spends.get(branch_id, 0) or 0)
            activity.append(PettyCashAccountActivity(
                account=account_label(branch_id),
                branch_id=branch_id,
                branch_name=name,
                deposits=deposited,
                withdrawals=float(withdrawals.get(branch_id, 0) or 0),
                spends=spent,
                balance=deposited - spent
            ))

        return PettyCashReport(
            period_start=start_date,
            period_end=end_date,
            total_deposits=sum(a.deposits for a in activity),
            total_withdrawals=sum(a.withdrawals for a in activity),
            total_spends=sum(a.spends for a in activity),
            accounts=activity
        )

    def _check_range(self, start_date: Optional[date], end_date: Optional[date]) -> None:
        if start_date and end_date and start_date > end_date:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="La fecha de inicio no puede ser posterior a la de fin"
            )
