import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Dict, Any
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from fastapi import HTTPException, status

from app.shared.database.models import CurrentAccount, Payment
from app.shared.database.updates import drop_required_nulls
from . import amortization
from .repository import CurrentAccountRepository
from .schemas import (
    CurrentAccountCreate, CurrentAccountPlan, CurrentAccountUpdate, CurrentAccountResponse,
    CurrentAccountDetail, PaymentCreate, PaymentResponse, PaymentResult, ScheduleEntry,
    SurplusAction, AccountStatus
)

logger = logging.getLogger(__name__)

VERSION_DEBE = "D"
VERSION_HABER = "H"


class CurrentAccountService:

    def __init__(self, db: Session):
        self.db = db
        self.repository = CurrentAccountRepository(db)

    # ===== ALTA Y CONSULTA =====

    def build_account(self, organization_id: int, client_id: int, motorcycle_id: int,
                      total_amount: Decimal, currency: str, plan: CurrentAccountPlan) -> CurrentAccount:
        """Arma la cuenta (y el pago de anticipo) sin confirmar la transacción"""
        if plan.down_payment > total_amount:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="El anticipo no puede superar el monto total"
            )

        principal = Decimal(total_amount) - Decimal(plan.down_payment)
        installment = amortization.calculate_installment(
            principal, plan.interest_rate, plan.number_of_installments, plan.payment_frequency.value
        )

        account = CurrentAccount(
            organization_id=organization_id,
            client_id=client_id,
            motorcycle_id=motorcycle_id,
            total_amount=total_amount,
            down_payment=plan.down_payment,
            remaining_amount=principal,
            number_of_installments=plan.number_of_installments,
            installment_amount=installment,
            payment_frequency=plan.payment_frequency.value,
            interest_rate=plan.interest_rate,
            currency=currency,
            start_date=plan.start_date,
            next_due_date=plan.start_date if principal > 0 else None,
            reminder_lead_time_days=plan.reminder_lead_time_days,
            status=AccountStatus.PAID_OFF.value if principal <= 0 else AccountStatus.ACTIVE.value,
            notes=plan.notes
        )
        self.repository.add(account)

        if plan.down_payment > 0:
            self.repository.flush()
            self.repository.add(Payment(
                organization_id=organization_id,
                current_account_id=account.id,
                amount_paid=plan.down_payment,
                payment_date=datetime.utcnow(),
                is_down_payment=True,
                notes="Anticipo"
            ))

        return account

    def create_account(self, organization_id: int, data: CurrentAccountCreate) -> CurrentAccountDetail:
        if not self.repository.get_client(organization_id, data.client_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cliente no encontrado")
        if not self.repository.get_motorcycle(organization_id, data.motorcycle_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Moto no encontrada")

        try:
            account = self.build_account(
                organization_id, data.client_id, data.motorcycle_id,
                data.total_amount, data.currency, data
            )
            self.repository.commit(account)
        except SQLAlchemyError:
            self.repository.rollback()
            raise

        logger.info(
            f"Cuenta corriente {account.id} creada: principal={account.remaining_amount} "
            f"cuota={account.installment_amount} x {account.number_of_installments}"
        )
        return self.get_account(organization_id, account.id)

    def list_accounts(self, organization_id: int, status_filter: Optional[str] = None,
                      client_id: Optional[int] = None) -> List[CurrentAccountResponse]:
        accounts = self.repository.get_all(organization_id, status_filter, client_id)
        return [self._build_response(a) for a in accounts]

    def get_account(self, organization_id: int, account_id: int) -> CurrentAccountDetail:
        account = self._get_or_404(organization_id, account_id)
        base = self._build_response(account)
        return CurrentAccountDetail(
            **base.model_dump(),
            payments=[PaymentResponse.model_validate(p) for p in account.payments]
        )

    def update_account(self, organization_id: int, account_id: int,
                       data: CurrentAccountUpdate) -> CurrentAccountDetail:
        account = self._get_or_404(organization_id, account_id)
        updates = drop_required_nulls(CurrentAccount, data.model_dump(exclude_unset=True))

        for field, value in updates.items():
            setattr(account, field, value.value if hasattr(value, "value") else value)

        if "payment_frequency" in updates or "start_date" in updates:
            paid = self.repository.count_paid_installments(account.id)
            account.next_due_date = amortization.next_due_date(
                account.start_date, account.payment_frequency, paid, account.number_of_installments
            ) if account.remaining_amount > 0 else None

        self.repository.commit(account)
        return self.get_account(organization_id, account_id)

    def get_schedule(self, organization_id: int, account_id: int) -> List[ScheduleEntry]:
        """Cuadro de marcha original del plan"""
        account = self._get_or_404(organization_id, account_id)
        principal = Decimal(account.total_amount) - Decimal(account.down_payment)
        entries = amortization.build_schedule(
            principal, account.interest_rate, account.number_of_installments,
            account.payment_frequency, account.start_date
        )
        return [ScheduleEntry(**entry) for entry in entries]

    # ===== PAGOS =====

    def record_payment(self, organization_id: int, account_id: int, data: PaymentCreate) -> PaymentResult:
        account = self._get_or_404(organization_id, account_id)

        if account.status == AccountStatus.CANCELLED.value:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="La cuenta está cancelada")
        if Decimal(account.remaining_amount) <= 0:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="La cuenta ya está saldada")

        paid_count = self.repository.count_paid_installments(account.id)
        pending_number = self.repository.get_lowest_pending_installment(account.id)
        installment_number = data.installment_number or pending_number or paid_count + 1

        balance = Decimal(account.remaining_amount)
        amount = Decimal(data.amount_paid)
        interest = amortization.interest_for(balance, account.interest_rate, account.payment_frequency)
        amortized = min(balance, max(Decimal(0), amount - interest))
        new_balance = max(Decimal(0), balance - amortized)

        payment = self.repository.get_pending_row(account.id, installment_number)
        if payment is None:
            payment = Payment(
                organization_id=organization_id,
                current_account_id=account.id,
                installment_number=installment_number
            )
            self.repository.add(payment)

        payment.amount_paid = amount
        payment.payment_date = data.payment_date or datetime.utcnow()
        payment.payment_method = data.payment_method
        payment.transaction_reference = data.transaction_reference
        payment.notes = data.notes or payment.notes
        payment.interest_amount = interest
        payment.amortized_amount = amortized

        paid_after = paid_count + 1
        expected = Decimal(account.installment_amount)
        account.remaining_amount = new_balance
        account.status = AccountStatus.PAID_OFF.value if new_balance <= 0 else AccountStatus.ACTIVE.value
        account.next_due_date = amortization.next_due_date(
            account.start_date, account.payment_frequency, paid_after, account.number_of_installments
        ) if new_balance > 0 else None

        last_installment_amount = None
        if new_balance > 0 and amount > expected + 1:
            if data.surplus_action == SurplusAction.REDUCE_INSTALLMENTS:
                simulation = amortization.installments_needed(
                    new_balance, account.interest_rate, account.payment_frequency, expected
                )
                if simulation["count"]:
                    account.number_of_installments = paid_after + simulation["count"]
                    last_installment_amount = simulation["last_installment_amount"] or None
            else:
                remaining_installments = account.number_of_installments - paid_after
                if remaining_installments > 0:
                    account.installment_amount = amortization.calculate_installment(
                        new_balance, account.interest_rate, remaining_installments, account.payment_frequency
                    )

        self.repository.commit(payment, account)
        logger.info(
            f"Pago registrado en cuenta {account.id}: cuota {installment_number} "
            f"monto={amount} interés={interest} saldo={new_balance}"
        )

        return PaymentResult(
            message="Pago registrado exitosamente",
            payment=PaymentResponse.model_validate(payment),
            account=self._build_response(account),
            last_installment_amount=last_installment_amount
        )

    def cancel_payment(self, organization_id: int, payment_id: int) -> Dict[str, Any]:
        """Anulación contable: original D, contrapartida H y cuota pendiente, en una transacción"""
        payment = self._get_payment_or_404(organization_id, payment_id)

        if payment.installment_version in (VERSION_DEBE, VERSION_HABER):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="El pago ya fue procesado para anulación (D/H)"
            )
        if payment.is_down_payment or payment.installment_number is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="El pago no está asociado a una cuota y no puede anularse"
            )
        if payment.payment_date is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="La cuota está pendiente de pago")

        account = payment.current_account
        try:
            payment.installment_version = VERSION_DEBE

            counterpart = Payment(
                organization_id=payment.organization_id,
                current_account_id=account.id,
                amount_paid=payment.amount_paid,
                payment_date=payment.payment_date,
                payment_method=payment.payment_method,
                transaction_reference=payment.transaction_reference,
                installment_number=payment.installment_number,
                installment_version=VERSION_HABER,
                notes=f"Anulación de pago ID: {payment.id}. Contrapartida contable."
            )
            pending = Payment(
                organization_id=payment.organization_id,
                current_account_id=account.id,
                amount_paid=payment.amount_paid,
                payment_date=None,
                payment_method=None,
                installment_number=payment.installment_number,
                notes=f"Cuota pendiente tras anulación de pago ID: {payment.id}."
            )
            self.repository.add(counterpart, pending)
            self.repository.flush()

            self._restore_balance(account, payment)
            self.repository.commit(account)
        except SQLAlchemyError:
            self.repository.rollback()
            raise

        logger.info(f"Pago {payment.id} anulado (D/H) en cuenta {account.id}")
        return {
            "success": True,
            "message": "Pago anulado. Se generaron los asientos D/H y la cuota pendiente.",
            "debit_payment_id": payment.id,
            "credit_payment_id": counterpart.id,
            "pending_payment_id": pending.id,
            "remaining_amount": account.remaining_amount,
            "installment_amount": account.installment_amount
        }

    def undo_payment(self, organization_id: int, payment_id: int) -> Dict[str, Any]:
        """Eliminar un pago cargado por error y devolver lo amortizado al saldo"""
        payment = self._get_payment_or_404(organization_id, payment_id)

        if payment.installment_version in (VERSION_DEBE, VERSION_HABER):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="No se puede deshacer un asiento de anulación (D/H)"
            )
        if payment.is_down_payment:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="El anticipo no se puede deshacer")
        if payment.payment_date is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="La cuota está pendiente de pago")

        account = payment.current_account
        try:
            self.repository.delete(payment)
            self.repository.flush()
            self._restore_balance(account, payment)
            self.repository.commit(account)
        except SQLAlchemyError:
            self.repository.rollback()
            raise

        logger.info(f"Pago {payment_id} deshecho en cuenta {account.id}")
        return {
            "success": True,
            "message": "Pago eliminado y saldo restaurado",
            "remaining_amount": account.remaining_amount
        }

    # ===== HELPERS =====

    def _restore_balance(self, account: CurrentAccount, payment: Payment) -> None:
        """Devuelve lo amortizado por el pago y recalcula la cuota sobre las cuotas restantes"""
        restored = payment.amortized_amount if payment.amortized_amount is not None else payment.amount_paid
        principal = Decimal(account.total_amount) - Decimal(account.down_payment)
        account.remaining_amount = min(principal, Decimal(account.remaining_amount) + Decimal(restored))
        account.status = AccountStatus.ACTIVE.value

        paid = self.repository.count_paid_installments(account.id)
        remaining_installments = max(0, account.number_of_installments - paid)
        if remaining_installments > 0:
            account.installment_amount = amortization.calculate_installment(
                account.remaining_amount, account.interest_rate, remaining_installments, account.payment_frequency
            )
        account.next_due_date = amortization.next_due_date(
            account.start_date, account.payment_frequency, paid, account.number_of_installments
        )

    def _build_response(self, account: CurrentAccount) -> CurrentAccountResponse:
        motorcycle = account.motorcycle
        label = None
        if motorcycle:
            label = " ".join(filter(None, [
                motorcycle.brand.name if motorcycle.brand else None,
                motorcycle.model.name if motorcycle.model else None,
                f"({motorcycle.chassis_number})"
            ]))

        return CurrentAccountResponse(
            id=account.id,
            client_id=account.client_id,
            client_name=account.client.full_name if account.client else None,
            motorcycle_id=account.motorcycle_id,
            motorcycle_label=label,
            total_amount=account.total_amount,
            down_payment=account.down_payment,
            remaining_amount=account.remaining_amount,
            number_of_installments=account.number_of_installments,
            installment_amount=account.installment_amount,
            payment_frequency=account.payment_frequency,
            interest_rate=account.interest_rate,
            currency=account.currency,
            start_date=account.start_date,
            next_due_date=account.next_due_date,
            reminder_lead_time_days=account.reminder_lead_time_days,
            status=account.status,
            notes=account.notes,
            paid_installments=self.repository.count_paid_installments(account.id),
            created_at=account.created_at,
            updated_at=account.updated_at
        )

    def _get_or_404(self, organization_id: int, account_id: int) -> CurrentAccount:
        account = self.repository.get_by_id(organization_id, account_id)
        if not account:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cuenta corriente no encontrada")
        return account

    def _get_payment_or_404(self, organization_id: int, payment_id: int) -> Payment:
        payment = self.repository.get_payment(organization_id, payment_id)
        if not payment:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Pago no encontrado")
        return payment
