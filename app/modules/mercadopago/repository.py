from typing import Optional
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from app.shared.database.models import (
    MercadoPagoOAuth, MercadoPagoOAuthState, MercadoPagoPayment, PointPaymentIntent
)


class MercadoPagoRepository:

    def __init__(self, db: Session):
        self.db = db

    def save(self, instance=None):
        try:
            if instance is not None:
                self.db.add(instance)
            self.db.commit()
            if instance is not None:
                self.db.refresh(instance)
            return instance
        except SQLAlchemyError as e:
            self.db.rollback()
            raise e

    def delete(self, instance) -> None:
        try:
            self.db.delete(instance)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise e

    # ===== OAUTH =====

    def get_oauth(self, organization_id: int) -> Optional[MercadoPagoOAuth]:
        return self.db.query(MercadoPagoOAuth).filter(
            MercadoPagoOAuth.organization_id == organization_id
        ).first()

    def get_state(self, state: str) -> Optional[MercadoPagoOAuthState]:
        return self.db.query(MercadoPagoOAuthState).filter(MercadoPagoOAuthState.state == state).first()

    # ===== PAGOS =====

    def get_payment(self, mp_payment_id: str) -> Optional[MercadoPagoPayment]:
        return self.db.query(MercadoPagoPayment).filter(
            MercadoPagoPayment.mp_payment_id == mp_payment_id
        ).first()

    def get_intent(self, organization_id: int, intent_id: int) -> Optional[PointPaymentIntent]:
        return self.db.query(PointPaymentIntent).filter(
            PointPaymentIntent.id == intent_id,
            PointPaymentIntent.organization_id == organization_id
        ).first()
