from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.core.auth.dependencies import require_roles, get_organization_id
from app.shared.database.models import User
from .service import ReportsService
from .schemas import (
    SalesReport, InventoryReport, ReservationsReport, CurrentAccountsReport,
    SuppliersReport, PettyCashReport
)

router = APIRouter()

REPORT_ROLES = ["admin", "root", "cash-manager"]


@router.get("/sales", response_model=SalesReport)
async def sales_report(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    branch_id: Optional[int] = Query(None),
    current_user: User = Depends(require_roles(REPORT_ROLES)),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    """Ventas del período con totales por sucursal, marca y medio de pago"""
    return ReportsService(db).sales_report(organization_id, start_date, end_date, branch_id)


@router.get("/inventory", response_model=InventoryReport)
async def inventory_report(
    current_user: User = Depends(require_roles(REPORT_ROLES)),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return ReportsService(db).inventory_report(organization_id)


@router.get("/reservations", response_model=ReservationsReport)
async def reservations_report(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    current_user: User = Depends(require_roles(REPORT_ROLES)),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return ReportsService(db).reservations_report(organization_id, start_date, end_date)


@router.get("/current-accounts", response_model=CurrentAccountsReport)
async def current_accounts_report(
    current_user: User = Depends(require_roles(REPORT_ROLES)),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return ReportsService(db).current_accounts_report(organization_id)


@router.get("/suppliers", response_model=SuppliersReport)
async def suppliers_report(
    current_user: User = Depends(require_roles(REPORT_ROLES)),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return ReportsService(db).suppliers_report(organization_id)


@router.get("/petty-cash", response_model=PettyCashReport)
async def petty_cash_report(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    current_user: User = Depends(require_roles(REPORT_ROLES)),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    """Depósitos, retiros y gastos por cuenta en el período"""
    return ReportsService(db).petty_cash_report(organization_id, start_date, end_date)
