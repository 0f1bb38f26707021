from datetime import date, datetime
from typing import Optional, List
from pydantic import BaseModel

# ===== COMUNES =====

class GroupTotal(BaseModel):
    key: Optional[str] = None
    label: Optional[str] = None
    count: int
    amount: float = 0.0

# ===== VENTAS =====

class SalesReport(BaseModel):
    period_start: Optional[date] = None
    period_end: Optional[date] = None
    branch_id: Optional[int] = None
    total_sales: int
    total_amount: float
    total_discounts: float
    total_surcharges: float
    average_ticket: float
    by_branch: List[GroupTotal]
    by_brand: List[GroupTotal]
    by_payment_method: List[GroupTotal]

# ===== INVENTARIO =====

class InventoryReport(BaseModel):
    generated_at: datetime
    total_units: int
    total_cost_value: float
    total_retail_value: float
    by_state: List[GroupTotal]
    by_branch: List[GroupTotal]
    by_brand: List[GroupTotal]

# ===== RESERVAS =====

class ReservationsReport(BaseModel):
    period_start: Optional[date] = None
    period_end: Optional[date] = None
    total_reservations: int
    total_amount: float
    by_status: List[GroupTotal]

# ===== CUENTAS CORRIENTES =====

class OverdueAccount(BaseModel):
    id: int
    client_id: int
    client_name: Optional[str] = None
    motorcycle_id: int
    next_due_date: datetime
    days_overdue: int
    installment_amount: float
    remaining_amount: float
    currency: str


class CurrentAccountsReport(BaseModel):
    total_accounts: int
    total_financed: float
    total_collected: float
    total_outstanding: float
    by_status: List[GroupTotal]
    overdue_accounts: List[OverdueAccount]

# ===== PROVEEDORES =====

class SupplierReportRow(BaseModel):
    supplier_id: int
    supplier_name: str
    motorcycles: int
    in_stock: int
    sold: int
    purchase_value: float


class SuppliersReport(BaseModel):
    total_suppliers: int
    total_motorcycles: int
    total_purchase_value: float
    suppliers: List[SupplierReportRow]

# ===== CAJA CHICA =====

class PettyCashAccountActivity(BaseModel):
    account: str
    branch_id: Optional[int] = None
    branch_name: Optional[str] = None
    deposits: float
    withdrawals: float
    spends: float
    balance: float


class PettyCashReport(BaseModel):
    period_start: Optional[date] = None
    period_end: Optional[date] = None
    total_deposits: float
    total_withdrawals: float
    total_spends: float
    accounts: List[PettyCashAccountActivity]
