import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Dict, Any
from sqlalchemy.orm import Session
from fastapi import HTTPException, UploadFile, status

from app.config.settings import settings
from app.shared.database.models import (
    PettyCashDeposit, PettyCashWithdrawal, PettyCashSpend, User
)
from app.shared.services.storage import StorageService, StorageError
from app.modules.configuration.service import SecurityService
from .repository import PettyCashRepository
from .schemas import (
    GENERAL_ACCOUNT, OTHER_MOTIVE, DepositStatus, WithdrawalStatus, MovementType,
    DepositCreate, DepositUpdate, DepositResponse, WithdrawalCreate, WithdrawalResponse,
    SpendCreate, SpendUpdate, SpendResponse, MovementResponse, AccountBalance, AccountSummary
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def parse_account(account: Optional[str]) -> Optional[int]:
    """'GENERAL' (o vacío) → None; id de sucursal → int"""
    if account is None or account.strip().upper() in (GENERAL_ACCOUNT, "GENERAL_ACCOUNT", ""):
        return None
    try:
        return int(account)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cuenta inválida: {account}. Use GENERAL o el id de la sucursal"
        )


def account_label(branch_id: Optional[int]) -> str:
    return GENERAL_ACCOUNT if branch_id is None else str(branch_id)


def justification_status(amount_justified: Decimal, amount_given: Decimal) -> str:
    if amount_justified >= amount_given:
        return WithdrawalStatus.JUSTIFIED.value
    if amount_justified > 0:
        return WithdrawalStatus.PARTIALLY_JUSTIFIED.value
    return WithdrawalStatus.PENDING_JUSTIFICATION.value


class PettyCashService:
    """
    Caja chica por cuenta (sucursal o caja general).

    Depósitos (DEBE) → retiros entregados a usuarios → gastos rendidos (HABER).
    """

    def __init__(self, db: Session):
        self.db = db
        self.repository = PettyCashRepository(db)

    # ===== DEPÓSITOS =====

    def create_deposit(self, organization_id: int, data: DepositCreate) -> DepositResponse:
        if data.branch_id is not None:
            self._check_branch(organization_id, data.branch_id)

        deposit = PettyCashDeposit(
            organization_id=organization_id,
            branch_id=data.branch_id,
            description=data.description,
            amount=data.amount,
            date=data.date or datetime.utcnow(),
            reference=data.reference,
            status=DepositStatus.OPEN.value
        )
        self.repository.add(deposit)
        self.repository.commit(deposit)

        logger.info(f"Depósito {deposit.id} en caja {account_label(deposit.branch_id)}: {deposit.amount}")
        return self._deposit_response(deposit)

    def list_deposits(self, organization_id: int, account: Optional[str]) -> List[DepositResponse]:
        branch_id = parse_account(account)
        return [self._deposit_response(d) for d in self.repository.get_deposits(organization_id, branch_id)]

    def update_deposit(self, organization_id: int, deposit_id: int, data: DepositUpdate) -> DepositResponse:
        deposit = self._get_deposit(organization_id, deposit_id)
        updates = data.model_dump(exclude_unset=True)

        if updates.get("amount") is not None:
            withdrawn = self.repository.withdrawn_amount(deposit.id)
            if updates["amount"] < withdrawn:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"El monto no puede ser menor a lo ya retirado ({withdrawn})"
                )
            deposit.status = (
                DepositStatus.CLOSED.value if withdrawn >= updates["amount"] else DepositStatus.OPEN.value
            )

        for field, value in updates.items():
            if value is not None:
                setattr(deposit, field, value)

        self.repository.commit(deposit)
        return self._deposit_response(deposit)

    def delete_deposit(self, user: User, deposit_id: int, otp_token: Optional[str]) -> Dict[str, Any]:
        SecurityService(self.db).ensure_can_delete(user, otp_token)
        deposit = self._get_deposit(user.organization_id, deposit_id)

        if self.repository.get_deposit_withdrawals(deposit.id):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No se puede eliminar un depósito con retiros asociados"
            )

        self.repository.delete(deposit)
        self.repository.commit()

        logger.info(f"Depósito {deposit_id} eliminado por usuario {user.id}")
        return {"success": True, "message": "Depósito eliminado"}

    # ===== RETIROS =====

    def create_withdrawal(self, organization_id: int, current_user: User,
                          data: WithdrawalCreate) -> WithdrawalResponse:
        if data.deposit_id is not None:
            deposit = self._get_deposit(organization_id, data.deposit_id)
        else:
            if data.branch_id is not None:
                self._check_branch(organization_id, data.branch_id)
            deposit = self.repository.get_latest_open_deposit(organization_id, data.branch_id)
            if deposit is None:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"No hay depósitos abiertos en la caja {account_label(data.branch_id)}"
                )

        if deposit.status != DepositStatus.OPEN.value:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"El depósito {deposit.id} no está abierto ({deposit.status})"
            )

        withdrawn = self.repository.withdrawn_amount(deposit.id)
        available = Decimal(deposit.amount) - withdrawn
        if data.amount > available:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Monto superior al disponible en el depósito. Disponible: {available}"
            )

        recipient = current_user
        if data.user_id is not None and data.user_id != current_user.id:
            recipient = self.repository.get_user(organization_id, data.user_id)
            if not recipient:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Usuario no encontrado")

        withdrawal = PettyCashWithdrawal(
            organization_id=organization_id,
            deposit_id=deposit.id,
            user_id=recipient.id,
            user_name=recipient.name or recipient.email,
            amount_given=data.amount,
            amount_justified=ZERO,
            date=data.date or datetime.utcnow(),
            description=data.description,
            status=WithdrawalStatus.PENDING_JUSTIFICATION.value
        )
        self.repository.add(withdrawal)

        if withdrawn + data.amount >= Decimal(deposit.amount):
            deposit.status = DepositStatus.CLOSED.value

        self.repository.commit(withdrawal)
        logger.info(
            f"Retiro {withdrawal.id} de {withdrawal.amount_given} (depósito {deposit.id}) "
            f"para {withdrawal.user_name}"
        )
        return WithdrawalResponse.model_validate(withdrawal)

    def delete_withdrawal(self, user: User, withdrawal_id: int, otp_token: Optional[str]) -> Dict[str, Any]:
        SecurityService(self.db).ensure_can_delete(user, otp_token)
        withdrawal = self._get_withdrawal(user.organization_id, withdrawal_id)

        if self.repository.count_spends(withdrawal.id):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No se puede eliminar un retiro con gastos rendidos"
            )

        deposit = withdrawal.deposit
        self.repository.delete(withdrawal)
        if deposit.status == DepositStatus.CLOSED.value:
            deposit.status = DepositStatus.OPEN.value

        self.repository.commit()
        logger.info(f"Retiro {withdrawal_id} eliminado; depósito {deposit.id} en {deposit.status}")
        return {"success": True, "message": "Retiro eliminado", "deposit_status": deposit.status}

    # ===== GASTOS =====

    def create_spend(self, organization_id: int, data: SpendCreate) -> SpendResponse:
        withdrawal = self._get_withdrawal(organization_id, data.withdrawal_id)
        new_justified = self._check_spend(withdrawal, data.amount)

        motive = data.motive.strip()
        spend = PettyCashSpend(
            organization_id=organization_id,
            withdrawal_id=withdrawal.id,
            motive=motive,
            description=data.description or (motive if motive.lower() != OTHER_MOTIVE else "Otros"),
            amount=data.amount,
            date=data.date or datetime.utcnow(),
            ticket_url=data.ticket_url
        )
        self.repository.add(spend)

        self._apply_justified(withdrawal, new_justified)
        self.repository.commit(spend)

        logger.info(f"Gasto {spend.id} ({spend.motive}) por {spend.amount} contra retiro {withdrawal.id}")
        return SpendResponse.model_validate(spend)

    async def create_spend_with_ticket(self, organization_id: int, data: SpendCreate,
                                       ticket: Optional[UploadFile], storage: StorageService) -> SpendResponse:
        """Gasto con comprobante (JPG/PNG/PDF) subido a S3"""
        if ticket is not None and ticket.filename:
            content = await ticket.read()
            if content:
                if ticket.content_type not in settings.allowed_ticket_formats:
                    raise HTTPException(
                        status_code=status.HTTP_400_BAD_REQUEST,
                        detail="Tipo de archivo no soportado. Solo se permiten JPG, PNG o PDF"
                    )
                if len(content) > settings.max_ticket_size:
                    raise HTTPException(
                        status_code=status.HTTP_400_BAD_REQUEST,
                        detail=f"El comprobante supera el tamaño máximo ({settings.max_ticket_size} bytes)"
                    )

                # un gasto rechazado no deja archivos en el bucket
                withdrawal = self._get_withdrawal(organization_id, data.withdrawal_id)
                self._check_spend(withdrawal, data.amount)
                try:
                    stored = storage.upload(
                        f"tickets/petty-cash/{organization_id}/{data.withdrawal_id}",
                        ticket.filename, content, ticket.content_type
                    )
                except StorageError as e:
                    raise HTTPException(
                        status_code=status.HTTP_502_BAD_GATEWAY,
                        detail=f"Error al subir el comprobante: {e}"
                    )
                data = data.model_copy(update={"ticket_url": stored["url"]})
                try:
                    return self.create_spend(organization_id, data)
                except HTTPException:
                    storage.delete(stored["key"])
                    raise

        return self.create_spend(organization_id, data)

    def update_spend(self, organization_id: int, spend_id: int, data: SpendUpdate) -> SpendResponse:
        spend = self._get_spend(organization_id, spend_id)
        withdrawal = spend.withdrawal
        updates = data.model_dump(exclude_unset=True)

        motive = (updates.get("motive") or spend.motive).strip()
        description = updates.get("description", spend.description)
        if motive.lower() == OTHER_MOTIVE and not (description or "").strip():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="La descripción es requerida cuando el motivo es 'otros'"
            )

        if updates.get("amount") is not None:
            new_justified = Decimal(withdrawal.amount_justified or 0) - Decimal(spend.amount) + updates["amount"]
            if new_justified > Decimal(withdrawal.amount_given):
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="El monto justificado excede el monto entregado en el retiro"
                )
            self._apply_justified(withdrawal, new_justified)

        for field, value in updates.items():
            if value is not None or field in ("description", "ticket_url"):
                setattr(spend, field, value)
        spend.motive = motive

        self.repository.commit(spend)
        return SpendResponse.model_validate(spend)

    def delete_spend(self, user: User, spend_id: int, otp_token: Optional[str]) -> Dict[str, Any]:
        SecurityService(self.db).ensure_can_delete(user, otp_token)
        spend = self._get_spend(user.organization_id, spend_id)
        withdrawal = spend.withdrawal

        new_justified = max(ZERO, Decimal(withdrawal.amount_justified or 0) - Decimal(spend.amount))
        withdrawal.amount_justified = new_justified
        withdrawal.status = justification_status(new_justified, Decimal(withdrawal.amount_given))

        self.repository.delete(spend)
        self.repository.commit()

        logger.info(f"Gasto {spend_id} eliminado; retiro {withdrawal.id} en {withdrawal.status}")
        return {"success": True, "message": "Gasto eliminado", "withdrawal_status": withdrawal.status}

    # ===== MOVIMIENTOS Y SALDOS =====

    def get_movements(self, organization_id: int, account: Optional[str]) -> List[MovementResponse]:
        """Depósitos (DEBE) y gastos (HABER) de la cuenta, más recientes primero"""
        branch_id = parse_account(account)
        if branch_id is not None:
            self._check_branch(organization_id, branch_id)

        movements = [
            MovementResponse(
                id=d.id,
                type=MovementType.DEBE,
                source="deposit",
                amount=d.amount,
                description=d.description,
                reference=d.reference,
                date=d.date,
                created_at=d.created_at
            )
            for d in self.repository.get_deposits(organization_id, branch_id)
        ]
        movements.extend(
            MovementResponse(
                id=s.id,
                type=MovementType.HABER,
                source="spend",
                amount=s.amount,
                description=s.description,
                reference=s.motive,
                ticket_url=s.ticket_url,
                user_id=s.withdrawal.user_id,
                user_name=s.withdrawal.user_name,
                date=s.date,
                created_at=s.created_at
            )
            for s in self.repository.get_spends(organization_id, branch_id)
        )

        movements.sort(key=lambda m: (m.created_at, m.date), reverse=True)
        return movements

    def get_balance(self, organization_id: int, account: Optional[str]) -> AccountBalance:
        branch_id = parse_account(account)
        branch = self._check_branch(organization_id, branch_id) if branch_id is not None else None

        totals = self.repository.totals_by_type(organization_id, branch_id)
        return self._balance(branch_id, branch.name if branch else None,
                             totals.get(MovementType.DEBE.value, ZERO),
                             totals.get(MovementType.HABER.value, ZERO))

    def get_balances(self, organization_id: int) -> List[AccountBalance]:
        """Saldo de la caja general y de cada sucursal"""
        totals = self.repository.totals_by_account(organization_id)
        accounts = [(None, None)] + [(b.id, b.name) for b in self.repository.get_branches(organization_id)]

        return [
            self._balance(
                branch_id, name,
                totals.get((branch_id, MovementType.DEBE.value), ZERO),
                totals.get((branch_id, MovementType.HABER.value), ZERO)
            )
            for branch_id, name in accounts
        ]

    def get_summary(self, organization_id: int, account: Optional[str]) -> AccountSummary:
        branch_id = parse_account(account)
        return AccountSummary(
            account=account_label(branch_id),
            balance=self.get_balance(organization_id, account),
            deposits=[self._deposit_response(d) for d in self.repository.get_deposits(organization_id, branch_id)],
            withdrawals=[
                WithdrawalResponse.model_validate(w)
                for w in self.repository.get_withdrawals(organization_id, branch_id)
            ],
            spends=[SpendResponse.model_validate(s) for s in self.repository.get_spends(organization_id, branch_id)]
        )

    # ===== HELPERS =====

    def _check_spend(self, withdrawal: PettyCashWithdrawal, amount: Decimal) -> Decimal:
        """Valida un gasto contra su retiro; devuelve el nuevo total justificado"""
        if withdrawal.status == WithdrawalStatus.JUSTIFIED.value:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Este retiro ya fue completamente justificado"
            )

        new_justified = Decimal(withdrawal.amount_justified or 0) + amount
        if new_justified > Decimal(withdrawal.amount_given):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="El monto justificado excede el monto entregado en el retiro"
            )
        return new_justified

    def _apply_justified(self, withdrawal: PettyCashWithdrawal, new_justified: Decimal) -> None:
        """Actualiza lo justificado y cierra el depósito cuando todo quedó rendido"""
        withdrawal.amount_justified = new_justified
        withdrawal.status = justification_status(new_justified, Decimal(withdrawal.amount_given))

        deposit = withdrawal.deposit
        if withdrawal.status != WithdrawalStatus.JUSTIFIED.value:
            return

        self.repository.flush()
        withdrawals = self.repository.get_deposit_withdrawals(deposit.id)
        all_justified = all(w.status == WithdrawalStatus.JUSTIFIED.value for w in withdrawals)
        total_withdrawn = sum((Decimal(w.amount_given) for w in withdrawals), ZERO)

        if all_justified and total_withdrawn >= Decimal(deposit.amount):
            deposit.status = DepositStatus.CLOSED.value
            logger.info(f"Depósito {deposit.id} cerrado: retiros totalmente justificados")

    def _balance(self, branch_id: Optional[int], branch_name: Optional[str],
                 debe: Decimal, haber: Decimal) -> AccountBalance:
        return AccountBalance(
            account=account_label(branch_id),
            branch_id=branch_id,
            branch_name=branch_name or ("Caja general" if branch_id is None else None),
            total_debe=debe,
            total_haber=haber,
            balance=debe - haber
        )

    def _deposit_response(self, deposit: PettyCashDeposit) -> DepositResponse:
        withdrawn = self.repository.withdrawn_amount(deposit.id)
        response = DepositResponse.model_validate(deposit)
        response.withdrawn_amount = withdrawn
        response.available_amount = max(ZERO, Decimal(deposit.amount) - withdrawn)
        return response

    def _check_branch(self, organization_id: int, branch_id: int):
        branch = self.repository.get_branch(organization_id, branch_id)
        if not branch:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sucursal no encontrada")
        return branch

    def _get_deposit(self, organization_id: int, deposit_id: int) -> PettyCashDeposit:
        deposit = self.repository.get_deposit(organization_id, deposit_id)
        if not deposit:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Depósito no encontrado")
        return deposit

    def _get_withdrawal(self, organization_id: int, withdrawal_id: int) -> PettyCashWithdrawal:
        withdrawal = self.repository.get_withdrawal(organization_id, withdrawal_id)
        if not withdrawal:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Retiro no encontrado")
        return withdrawal

    def _get_spend(self, organization_id: int, spend_id: int) -> PettyCashSpend:
        spend = self.repository.get_spend(organization_id, spend_id)
        if not spend:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Gasto no encontrado")
        return spend
