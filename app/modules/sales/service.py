# app/modules/sales/service.py
import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Dict, Any
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from fastapi import HTTPException, status

from app.shared.database.models import Sale, Reservation, Motorcycle, User
from app.modules.stock.schemas import MotorcycleState
from app.modules.payments import promotions
from app.modules.payments.service import PromotionService
from app.modules.current_accounts.service import CurrentAccountService
from .repository import SalesRepository
from .schemas import (
    ReservationCreate, ReservationResponse, ReservationStatus, SaleCreate, SaleResponse,
    SaleListResponse, SalesTotals, CURRENT_ACCOUNT_METHOD
)

logger = logging.getLogger(__name__)

RESERVABLE_STATES = {MotorcycleState.STOCK.value, MotorcycleState.PAUSADO.value}
SELLABLE_STATES = {
    MotorcycleState.STOCK.value, MotorcycleState.RESERVADO.value, MotorcycleState.PROCESANDO.value
}

ZERO = Decimal("0")


def motorcycle_label(motorcycle: Optional[Motorcycle]) -> Optional[str]:
    if motorcycle is None:
        return None
    parts = [
        motorcycle.brand.name if motorcycle.brand else None,
        motorcycle.model.name if motorcycle.model else None,
        str(motorcycle.year) if motorcycle.year else None
    ]
    return " ".join(p for p in parts if p) or motorcycle.chassis_number


class SalesService:
    """
    Reservas y ventas de unidades
    """

    def __init__(self, db: Session):
        self.db = db
        self.repository = SalesRepository(db)

    # ==================== RESERVAS ====================

    def create_reservation(self, organization_id: int, data: ReservationCreate) -> ReservationResponse:
        """
        Reservar una moto: queda RESERVADO a nombre del cliente.

        Solo se pueden reservar unidades en STOCK o PAUSADO.
        """
        motorcycle = self._get_motorcycle(organization_id, data.motorcycle_id)
        client = self._get_client(organization_id, data.client_id)

        if motorcycle.state not in RESERVABLE_STATES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"La moto no se puede reservar en estado {motorcycle.state}"
            )

        reservation = Reservation(
            organization_id=organization_id,
            motorcycle_id=motorcycle.id,
            client_id=client.id,
            amount=data.amount,
            currency=data.currency,
            payment_method=data.payment_method,
            expiration_date=data.expiration_date,
            notes=data.notes,
            status=ReservationStatus.ACTIVE.value
        )
        self.repository.add(reservation)

        motorcycle.state = MotorcycleState.RESERVADO.value
        motorcycle.client_id = client.id

        self.repository.commit(reservation)
        logger.info(f"Reserva {reservation.id} creada para moto {motorcycle.id} (cliente {client.id})")

        return self._reservation_response(reservation)

    def list_reservations(self, organization_id: int,
                          status_filter: Optional[ReservationStatus] = None) -> List[ReservationResponse]:
        reservations = self.repository.get_reservations(
            organization_id, status_filter.value if status_filter else None
        )
        return [self._reservation_response(r) for r in reservations]

    def cancel_reservation(self, organization_id: int, reservation_id: int) -> Dict[str, Any]:
        reservation = self.repository.get_reservation(organization_id, reservation_id)
        if not reservation:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Reserva no encontrada")

        if reservation.status != ReservationStatus.ACTIVE.value:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Solo se pueden cancelar reservas activas (estado actual: {reservation.status})"
            )

        reservation.status = ReservationStatus.CANCELLED.value

        motorcycle = reservation.motorcycle
        if motorcycle.state == MotorcycleState.RESERVADO.value:
            motorcycle.state = MotorcycleState.STOCK.value
            motorcycle.client_id = None

        self.repository.commit()
        logger.info(f"Reserva {reservation.id} cancelada; moto {motorcycle.id} en {motorcycle.state}")

        return {
            "success": True,
            "message": "Reserva cancelada",
            "reservation_id": reservation.id,
            "motorcycle_state": motorcycle.state
        }

    # ==================== VENTAS ====================

    def create_sale(self, organization_id: int, seller: User, data: SaleCreate) -> SaleResponse:
        """
        Registrar la venta de una moto en una sola transacción:

        1. Valida estado de la unidad (STOCK, RESERVADO o PROCESANDO) y cliente
        2. Aplica la promoción bancaria (descuento/recargo e interés de cuotas)
        3. Completa la reserva activa y descuenta la seña del saldo
        4. Pasa la moto a VENDIDO a nombre del cliente
        5. En cuenta corriente crea el plan de cuotas sobre el saldo
        """
        motorcycle = self._get_motorcycle(organization_id, data.motorcycle_id)
        client = self._get_client(organization_id, data.client_id)

        if motorcycle.state not in SELLABLE_STATES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"La moto no se puede vender en estado {motorcycle.state}"
            )

        pricing = self._price(organization_id, data)

        reservation = self.repository.get_active_reservation(organization_id, motorcycle.id)
        reservation_amount = ZERO
        if reservation is not None:
            if reservation.client_id != client.id:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="La moto está reservada por otro cliente"
                )
            reservation_amount = Decimal(reservation.amount)

        balance_due = max(ZERO, pricing["final_amount"] - reservation_amount)

        try:
            sale = Sale(
                organization_id=organization_id,
                motorcycle_id=motorcycle.id,
                client_id=client.id,
                seller_id=seller.id,
                branch_id=motorcycle.branch_id,
                reservation_id=reservation.id if reservation else None,
                banking_promotion_id=data.banking_promotion_id,
                sale_price=data.sale_price,
                currency=data.currency,
                payment_method=data.payment_method,
                installments=data.installments,
                discount_amount=pricing["discount_amount"] or ZERO,
                surcharge_amount=pricing["surcharge_amount"] or ZERO,
                reservation_amount=reservation_amount,
                final_amount=pricing["final_amount"],
                trade_in_description=data.trade_in_description,
                notes=data.notes,
                sale_date=data.sale_date or datetime.utcnow()
            )
            self.repository.add(sale)

            if reservation is not None:
                reservation.status = ReservationStatus.COMPLETED.value

            motorcycle.state = MotorcycleState.VENDIDO.value
            motorcycle.client_id = client.id

            account = None
            if data.payment_method == CURRENT_ACCOUNT_METHOD:
                account = CurrentAccountService(self.db).build_account(
                    organization_id, client.id, motorcycle.id,
                    balance_due, data.currency, data.current_account
                )

            self.repository.flush()
            self.repository.commit(sale)
        except SQLAlchemyError:
            self.repository.rollback()
            logger.exception(f"Error registrando venta de moto {motorcycle.id}")
            raise

        logger.info(
            f"Venta {sale.id}: moto {motorcycle.id} a cliente {client.id}, "
            f"final={sale.final_amount} {sale.currency} ({sale.payment_method})"
        )
        return self._sale_response(sale, account.id if account else None)

    def list_sales(
        self,
        organization_id: int,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        branch_id: Optional[int] = None,
        seller_id: Optional[int] = None
    ) -> SaleListResponse:
        sales = self.repository.get_sales(organization_id, start_date, end_date, branch_id, seller_id)

        by_currency: Dict[str, Decimal] = {}
        for sale in sales:
            by_currency[sale.currency] = by_currency.get(sale.currency, ZERO) + Decimal(sale.final_amount)

        totals = SalesTotals(
            count=len(sales),
            total_final_amount=sum((Decimal(s.final_amount) for s in sales), ZERO),
            total_discounts=sum((Decimal(s.discount_amount or 0) for s in sales), ZERO),
            total_surcharges=sum((Decimal(s.surcharge_amount or 0) for s in sales), ZERO),
            by_currency=by_currency
        )
        return SaleListResponse(sales=[self._sale_response(s) for s in sales], totals=totals)

    def get_sale(self, organization_id: int, sale_id: int) -> SaleResponse:
        sale = self.repository.get_sale(organization_id, sale_id)
        if not sale:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Venta no encontrada")

        account_id = None
        if sale.payment_method == CURRENT_ACCOUNT_METHOD:
            account = self.repository.get_account_for_motorcycle(organization_id, sale.motorcycle_id)
            account_id = account.id if account else None

        return self._sale_response(sale, account_id)

    # ==================== HELPERS ====================

    def _price(self, organization_id: int, data: SaleCreate) -> Dict[str, Any]:
        if data.banking_promotion_id is None:
            return {
                "final_amount": Decimal(data.sale_price),
                "discount_amount": None,
                "surcharge_amount": None
            }

        promotion = PromotionService(self.db).get_or_404(organization_id, data.banking_promotion_id)
        if not promotion.is_enabled:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"La promoción '{promotion.name}' está deshabilitada"
            )

        return promotions.calculate(data.sale_price, promotion, data.installments)

    def _get_motorcycle(self, organization_id: int, motorcycle_id: int) -> Motorcycle:
        motorcycle = self.repository.get_motorcycle(organization_id, motorcycle_id)
        if not motorcycle:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Moto no encontrada")
        return motorcycle

    def _get_client(self, organization_id: int, client_id: int):
        client = self.repository.get_client(organization_id, client_id)
        if not client:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cliente no encontrado")
        return client

    def _reservation_response(self, reservation: Reservation) -> ReservationResponse:
        return ReservationResponse(
            id=reservation.id,
            motorcycle_id=reservation.motorcycle_id,
            motorcycle_label=motorcycle_label(reservation.motorcycle),
            client_id=reservation.client_id,
            client_name=reservation.client.full_name if reservation.client else None,
            amount=reservation.amount,
            currency=reservation.currency,
            payment_method=reservation.payment_method,
            expiration_date=reservation.expiration_date,
            notes=reservation.notes,
            status=reservation.status,
            created_at=reservation.created_at
        )

    def _sale_response(self, sale: Sale, current_account_id: Optional[int] = None) -> SaleResponse:
        reservation_amount = Decimal(sale.reservation_amount or 0)
        return SaleResponse(
            id=sale.id,
            motorcycle_id=sale.motorcycle_id,
            motorcycle_label=motorcycle_label(sale.motorcycle),
            chassis_number=sale.motorcycle.chassis_number if sale.motorcycle else None,
            client_id=sale.client_id,
            client_name=sale.client.full_name if sale.client else None,
            seller_id=sale.seller_id,
            seller_name=sale.seller.name if sale.seller else None,
            branch_id=sale.branch_id,
            branch_name=sale.branch.name if sale.branch else None,
            reservation_id=sale.reservation_id,
            banking_promotion_id=sale.banking_promotion_id,
            sale_price=sale.sale_price,
            currency=sale.currency,
            payment_method=sale.payment_method,
            installments=sale.installments,
            discount_amount=sale.discount_amount or ZERO,
            surcharge_amount=sale.surcharge_amount or ZERO,
            reservation_amount=reservation_amount,
            final_amount=sale.final_amount,
            balance_due=max(ZERO, Decimal(sale.final_amount) - reservation_amount),
            trade_in_description=sale.trade_in_description,
            notes=sale.notes,
            sale_date=sale.sale_date,
            current_account_id=current_account_id
        )
