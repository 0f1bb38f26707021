"""
Sistema francés de amortización

Cuotas redondeadas hacia arriba a enteros; tasa periódica equivalente
compuesta a partir de la tasa anual.
"""

import calendar
import math
from datetime import datetime, timedelta
from decimal import Decimal
from typing import List, Dict, Optional

PERIODS_PER_YEAR = {
    "WEEKLY": 52,
    "BIWEEKLY": 26,
    "MONTHLY": 12,
    "QUARTERLY": 4,
    "ANNUALLY": 1,
}

MAX_SIMULATED_INSTALLMENTS = 600


def periods_per_year(frequency: str) -> int:
    return PERIODS_PER_YEAR.get(frequency, 12)


def periodic_rate(annual_rate_percent, frequency: str) -> float:
    annual = float(annual_rate_percent or 0)
    if annual <= 0:
        return 0.0
    return (1 + annual / 100) ** (1 / periods_per_year(frequency)) - 1


def calculate_installment(principal, annual_rate_percent, installments: int, frequency: str) -> Decimal:
    """Cuota fija: ceil(P·r·(1+r)^n / ((1+r)^n − 1)), o ceil(P/n) sin interés"""
    principal = float(principal or 0)
    if principal <= 0 or installments <= 0:
        return Decimal(0)

    rate = periodic_rate(annual_rate_percent, frequency)
    if rate == 0:
        return Decimal(math.ceil(principal / installments))

    factor = (1 + rate) ** installments
    return Decimal(math.ceil(principal * rate * factor / (factor - 1)))


def interest_for(balance, annual_rate_percent, frequency: str) -> Decimal:
    return Decimal(math.ceil(float(balance or 0) * periodic_rate(annual_rate_percent, frequency)))


def build_schedule(principal, annual_rate_percent, installments: int, frequency: str,
                   start_date: Optional[datetime] = None) -> List[Dict]:
    """Cuadro de marcha completo; la última cuota absorbe el redondeo"""
    balance = Decimal(principal or 0)
    if balance <= 0 or installments <= 0:
        return []

    fixed = calculate_installment(balance, annual_rate_percent, installments, frequency)
    schedule = []

    for number in range(1, installments + 1):
        interest = interest_for(balance, annual_rate_percent, frequency)
        amount = fixed
        amortization = fixed - interest

        if number == installments:
            amortization = balance
            amount = balance + interest

        amortization = max(Decimal(0), min(amortization, balance))
        end_balance = max(Decimal(0), balance - amortization)

        schedule.append({
            "installment_number": number,
            "due_date": add_periods(start_date, frequency, number - 1) if start_date else None,
            "opening_balance": balance,
            "interest": interest,
            "amortization": amortization,
            "installment_amount": amount,
            "closing_balance": end_balance,
        })
        balance = end_balance

    return schedule


def installments_needed(balance, annual_rate_percent, frequency: str, fixed_amount) -> Dict:
    """Cuotas necesarias para cancelar el saldo manteniendo la cuota fija"""
    remaining = Decimal(balance or 0)
    fixed_amount = Decimal(fixed_amount or 0)
    count = 0
    last_amount = Decimal(0)

    while remaining > 0 and count < MAX_SIMULATED_INSTALLMENTS:
        interest = interest_for(remaining, annual_rate_percent, frequency)
        amortization = min(remaining, fixed_amount - interest)
        if amortization <= 0:
            # La cuota no cubre el interés: el saldo nunca se cancela
            break
        count += 1
        if amortization < remaining:
            remaining -= amortization
        else:
            last_amount = amortization + interest
            remaining = Decimal(0)

    return {"count": count, "last_installment_amount": last_amount}


def _add_months(value: datetime, months: int) -> datetime:
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def add_periods(start: datetime, frequency: str, periods: int) -> datetime:
    if frequency == "WEEKLY":
        return start + timedelta(days=7 * periods)
    if frequency == "BIWEEKLY":
        return start + timedelta(days=14 * periods)
    if frequency == "QUARTERLY":
        return _add_months(start, 3 * periods)
    if frequency == "ANNUALLY":
        return _add_months(start, 12 * periods)
    return _add_months(start, periods)


def next_due_date(start: datetime, frequency: str, paid_count: int, total_installments: int) -> Optional[datetime]:
    if paid_count >= total_installments:
        return None
    return add_periods(start, frequency, paid_count)
