from typing import List, Optional
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from app.shared.database.models import (
    PaymentMethod, OrganizationPaymentMethod, CardType, Bank, BankCard,
    BankingPromotion, InstallmentPlan, Sale
)


class PaymentRepository:

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

    # ===== MEDIOS DE PAGO =====

    def get_payment_methods(self) -> List[PaymentMethod]:
        return self.db.query(PaymentMethod).order_by(PaymentMethod.name).all()

    def get_payment_method(self, payment_method_id: int) -> Optional[PaymentMethod]:
        return self.db.query(PaymentMethod).filter(PaymentMethod.id == payment_method_id).first()

    def get_organization_methods(self, organization_id: int) -> List[OrganizationPaymentMethod]:
        return self.db.query(OrganizationPaymentMethod).options(
            joinedload(OrganizationPaymentMethod.payment_method)
        ).filter(
            OrganizationPaymentMethod.organization_id == organization_id
        ).order_by(OrganizationPaymentMethod.order).all()

    def get_organization_method(self, organization_id: int, payment_method_id: int) -> Optional[OrganizationPaymentMethod]:
        return self.db.query(OrganizationPaymentMethod).filter(
            OrganizationPaymentMethod.organization_id == organization_id,
            OrganizationPaymentMethod.payment_method_id == payment_method_id
        ).first()

    def next_method_order(self, organization_id: int) -> int:
        current = self.db.query(func.max(OrganizationPaymentMethod.order)).filter(
            OrganizationPaymentMethod.organization_id == organization_id
        ).scalar()
        return (current + 1) if current is not None else 0

    # ===== BANCOS Y TARJETAS =====

    def get_card_types(self) -> List[CardType]:
        return self.db.query(CardType).order_by(CardType.name, CardType.type).all()

    def get_card_type(self, card_type_id: int) -> Optional[CardType]:
        return self.db.query(CardType).filter(CardType.id == card_type_id).first()

    def find_card_type(self, name: str, kind: str) -> Optional[CardType]:
        return self.db.query(CardType).filter(
            func.lower(CardType.name) == name.lower(), CardType.type == kind
        ).first()

    def get_banks(self) -> List[Bank]:
        return self.db.query(Bank).order_by(Bank.name).all()

    def get_bank(self, bank_id: int) -> Optional[Bank]:
        return self.db.query(Bank).filter(Bank.id == bank_id).first()

    def find_bank(self, name: str) -> Optional[Bank]:
        return self.db.query(Bank).filter(func.lower(Bank.name) == name.lower()).first()

    def get_bank_cards(self, organization_id: int) -> List[BankCard]:
        return self.db.query(BankCard).options(
            joinedload(BankCard.bank),
            joinedload(BankCard.card_type)
        ).filter(
            BankCard.organization_id == organization_id
        ).order_by(BankCard.order, BankCard.id).all()

    def get_bank_card(self, organization_id: int, bank_card_id: int) -> Optional[BankCard]:
        return self.db.query(BankCard).filter(
            BankCard.id == bank_card_id,
            BankCard.organization_id == organization_id
        ).first()

    def find_bank_card(self, organization_id: int, bank_id: int, card_type_id: int) -> Optional[BankCard]:
        return self.db.query(BankCard).filter(
            BankCard.organization_id == organization_id,
            BankCard.bank_id == bank_id,
            BankCard.card_type_id == card_type_id
        ).first()

    def count_promotions_with_bank_card(self, bank_card_id: int) -> int:
        return self.db.query(func.count(BankingPromotion.id)).filter(
            BankingPromotion.bank_card_id == bank_card_id
        ).scalar()

    # ===== PROMOCIONES =====

    def _promotion_query(self):
        return self.db.query(BankingPromotion).options(
            joinedload(BankingPromotion.payment_method),
            joinedload(BankingPromotion.bank),
            joinedload(BankingPromotion.card_type),
            joinedload(BankingPromotion.installment_plans)
        )

    def get_promotions(self, organization_id: int, enabled_only: bool = False) -> List[BankingPromotion]:
        query = self._promotion_query().filter(BankingPromotion.organization_id == organization_id)
        if enabled_only:
            query = query.filter(BankingPromotion.is_enabled.is_(True))
        return query.order_by(BankingPromotion.name).all()

    def get_promotion(self, organization_id: int, promotion_id: int) -> Optional[BankingPromotion]:
        return self._promotion_query().filter(
            BankingPromotion.id == promotion_id,
            BankingPromotion.organization_id == organization_id
        ).first()

    def get_plan(self, promotion_id: int, plan_id: int) -> Optional[InstallmentPlan]:
        return self.db.query(InstallmentPlan).filter(
            InstallmentPlan.id == plan_id,
            InstallmentPlan.banking_promotion_id == promotion_id
        ).first()

    def count_sales_with_promotion(self, promotion_id: int) -> int:
        return self.db.query(func.count(Sale.id)).filter(Sale.banking_promotion_id == promotion_id).scalar()
