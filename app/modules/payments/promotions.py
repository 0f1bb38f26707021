import unicodedata
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional, Dict, Any

WEEKDAYS = ["lunes", "martes", "miércoles", "jueves", "viernes", "sábado", "domingo"]

CENT = Decimal("0.01")


def _normalize(day: str) -> str:
    decomposed = unicodedata.normalize("NFKD", day.strip().lower())
    return "".join(c for c in decomposed if not unicodedata.combining(c))


_NORMALIZED_WEEKDAYS = {_normalize(d): d for d in WEEKDAYS}


def canonical_day(day: str) -> Optional[str]:
    """'miercoles' / 'Miércoles' → 'miércoles'; None si no es un día válido"""
    return _NORMALIZED_WEEKDAYS.get(_normalize(day)) if day else None


def day_name(value: date) -> str:
    return WEEKDAYS[value.weekday()]


def is_active_on(promotion, day: str) -> bool:
    """Sin días configurados la promoción aplica todos los días"""
    active_days = promotion.active_days or []
    if not active_days:
        return True
    target = _normalize(day)
    return any(_normalize(d) == target for d in active_days)


def filter_by_day(promotions: Iterable, day: str) -> List:
    return [p for p in promotions if is_active_on(p, day)]


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def calculate(amount: Decimal, promotion, installments: Optional[int] = None) -> Dict[str, Any]:
    """
    Monto final con la promoción aplicada.

    El descuento tiene prioridad sobre el recargo. El interés de cuotas se aplica
    sobre el monto ya ajustado y solo si existe un plan habilitado para esa
    cantidad de cuotas.
    """
    amount = Decimal(amount)
    final_amount = amount
    discount_amount = None
    surcharge_amount = None

    discount_rate = Decimal(promotion.discount_rate or 0)
    surcharge_rate = Decimal(promotion.surcharge_rate or 0)

    if discount_rate > 0:
        discount_amount = _money(amount * discount_rate / 100)
        final_amount = amount - discount_amount
    elif surcharge_rate > 0:
        surcharge_amount = _money(amount * surcharge_rate / 100)
        final_amount = amount + surcharge_amount

    plan = None
    if installments and installments > 1:
        plan = next(
            (p for p in promotion.installment_plans if p.installments == installments and p.is_enabled),
            None
        )

    total_interest = None
    installment_amount = None
    if plan is not None:
        rate = Decimal(plan.interest_rate or 0)
        if rate > 0:
            total_interest = _money(final_amount * rate / 100)
            final_amount = final_amount + total_interest
        installment_amount = _money(final_amount / installments)

    return {
        "original_amount": _money(amount),
        "final_amount": _money(final_amount),
        "discount_amount": discount_amount,
        "surcharge_amount": surcharge_amount,
        "installments": installments if plan is not None else None,
        "installment_amount": installment_amount,
        "total_interest": total_interest,
    }
