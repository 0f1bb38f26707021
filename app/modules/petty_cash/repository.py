from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Dict, Tuple
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import func, literal, select, union_all
from sqlalchemy.exc import SQLAlchemyError

from app.shared.database.models import (
    PettyCashDeposit, PettyCashWithdrawal, PettyCashSpend, Branch, User
)

UNSET = object()


class PettyCashRepository:

    def __init__(self, db: Session):
        self.db = db

    def add(self, instance) -> None:
        self.db.add(instance)

    def delete(self, instance) -> None:
        self.db.delete(instance)

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

    # ===== REFERENCIAS =====

    def get_branch(self, organization_id: int, branch_id: int) -> Optional[Branch]:
        return self.db.query(Branch).filter(
            Branch.id == branch_id,
            Branch.organization_id == organization_id
        ).first()

    def get_branches(self, organization_id: int) -> List[Branch]:
        return self.db.query(Branch).filter(
            Branch.organization_id == organization_id
        ).order_by(Branch.order, Branch.id).all()

    def get_user(self, organization_id: int, user_id: int) -> Optional[User]:
        return self.db.query(User).filter(
            User.id == user_id,
            User.organization_id == organization_id
        ).first()

    # ===== DEPÓSITOS =====

    def get_deposit(self, organization_id: int, deposit_id: int) -> Optional[PettyCashDeposit]:
        return self.db.query(PettyCashDeposit).filter(
            PettyCashDeposit.id == deposit_id,
            PettyCashDeposit.organization_id == organization_id
        ).first()

    def get_deposits(self, organization_id: int, branch_id=UNSET,
                     start: Optional[datetime] = None, end: Optional[datetime] = None) -> List[PettyCashDeposit]:
        query = self.db.query(PettyCashDeposit).filter(PettyCashDeposit.organization_id == organization_id)
        if branch_id is not UNSET:
            query = query.filter(self._branch_filter(PettyCashDeposit.branch_id, branch_id))
        if start:
            query = query.filter(PettyCashDeposit.date >= start)
        if end:
            query = query.filter(PettyCashDeposit.date <= end)
        return query.order_by(PettyCashDeposit.date.desc(), PettyCashDeposit.id.desc()).all()

    def get_latest_open_deposit(self, organization_id: int, branch_id: Optional[int]) -> Optional[PettyCashDeposit]:
        return self.db.query(PettyCashDeposit).filter(
            PettyCashDeposit.organization_id == organization_id,
            self._branch_filter(PettyCashDeposit.branch_id, branch_id),
            PettyCashDeposit.status == "OPEN"
        ).order_by(PettyCashDeposit.date.desc(), PettyCashDeposit.id.desc()).first()

    def withdrawn_amount(self, deposit_id: int) -> Decimal:
        total = self.db.query(func.coalesce(func.sum(PettyCashWithdrawal.amount_given), 0)).filter(
            PettyCashWithdrawal.deposit_id == deposit_id
        ).scalar()
        return Decimal(str(total or 0))

    # ===== RETIROS =====

    def get_withdrawal(self, organization_id: int, withdrawal_id: int) -> Optional[PettyCashWithdrawal]:
        return self.db.query(PettyCashWithdrawal).options(
            joinedload(PettyCashWithdrawal.deposit)
        ).filter(
            PettyCashWithdrawal.id == withdrawal_id,
            PettyCashWithdrawal.organization_id == organization_id
        ).first()

    def get_withdrawals(self, organization_id: int, branch_id=UNSET,
                        start: Optional[datetime] = None, end: Optional[datetime] = None) -> List[PettyCashWithdrawal]:
        query = self.db.query(PettyCashWithdrawal).join(PettyCashDeposit).filter(
            PettyCashWithdrawal.organization_id == organization_id
        )
        if branch_id is not UNSET:
            query = query.filter(self._branch_filter(PettyCashDeposit.branch_id, branch_id))
        if start:
            query = query.filter(PettyCashWithdrawal.date >= start)
        if end:
            query = query.filter(PettyCashWithdrawal.date <= end)
        return query.order_by(PettyCashWithdrawal.date.desc(), PettyCashWithdrawal.id.desc()).all()

    def get_deposit_withdrawals(self, deposit_id: int) -> List[PettyCashWithdrawal]:
        return self.db.query(PettyCashWithdrawal).filter(PettyCashWithdrawal.deposit_id == deposit_id).all()

    def count_spends(self, withdrawal_id: int) -> int:
        return self.db.query(func.count(PettyCashSpend.id)).filter(
            PettyCashSpend.withdrawal_id == withdrawal_id
        ).scalar()

    # ===== GASTOS =====

    def get_spend(self, organization_id: int, spend_id: int) -> Optional[PettyCashSpend]:
        return self.db.query(PettyCashSpend).options(
            joinedload(PettyCashSpend.withdrawal).joinedload(PettyCashWithdrawal.deposit)
        ).filter(
            PettyCashSpend.id == spend_id,
            PettyCashSpend.organization_id == organization_id
        ).first()

    def get_spends(self, organization_id: int, branch_id=UNSET,
                   start: Optional[datetime] = None, end: Optional[datetime] = None) -> List[PettyCashSpend]:
        query = self.db.query(PettyCashSpend).options(
            joinedload(PettyCashSpend.withdrawal)
        ).join(PettyCashWithdrawal).join(PettyCashDeposit).filter(
            PettyCashSpend.organization_id == organization_id
        )
        if branch_id is not UNSET:
            query = query.filter(self._branch_filter(PettyCashDeposit.branch_id, branch_id))
        if start:
            query = query.filter(PettyCashSpend.date >= start)
        if end:
            query = query.filter(PettyCashSpend.date <= end)
        return query.order_by(PettyCashSpend.date.desc(), PettyCashSpend.id.desc()).all()

    # ===== SALDOS =====

    def _movements_subquery(self, organization_id: int):
        deposits = select(
            PettyCashDeposit.branch_id.label("branch_id"),
            literal("DEBE").label("type"),
            PettyCashDeposit.amount.label("amount")
        ).where(PettyCashDeposit.organization_id == organization_id)

        spends = select(
            PettyCashDeposit.branch_id.label("branch_id"),
            literal("HABER").label("type"),
            PettyCashSpend.amount.label("amount")
        ).select_from(PettyCashSpend).join(
            PettyCashWithdrawal, PettyCashSpend.withdrawal_id == PettyCashWithdrawal.id
        ).join(
            PettyCashDeposit, PettyCashWithdrawal.deposit_id == PettyCashDeposit.id
        ).where(PettyCashSpend.organization_id == organization_id)

        return union_all(deposits, spends).subquery()

    def totals_by_type(self, organization_id: int, branch_id: Optional[int]) -> Dict[str, Decimal]:
        """DEBE/HABER de una cuenta en una sola consulta agrupada"""
        movements = self._movements_subquery(organization_id)
        rows = self.db.execute(
            select(movements.c.type, func.sum(movements.c.amount))
            .where(self._branch_filter(movements.c.branch_id, branch_id))
            .group_by(movements.c.type)
        ).all()
        return {row[0]: Decimal(str(row[1] or 0)) for row in rows}

    def totals_by_account(self, organization_id: int) -> Dict[Tuple[Optional[int], str], Decimal]:
        movements = self._movements_subquery(organization_id)
        rows = self.db.execute(
            select(movements.c.branch_id, movements.c.type, func.sum(movements.c.amount))
            .group_by(movements.c.branch_id, movements.c.type)
        ).all()
        return {(row[0], row[1]): Decimal(str(row[2] or 0)) for row in rows}

    @staticmethod
    def _branch_filter(column, branch_id: Optional[int]):
        return column.is_(None) if branch_id is None else column == branch_id
