import logging
from datetime import date
from typing import List, Dict, Any, Optional
from sqlalchemy.orm import Session
from fastapi import HTTPException, status

from app.shared.database.models import (
    OrganizationPaymentMethod, CardType, Bank, BankCard, BankingPromotion, InstallmentPlan
)
from . import promotions
from .repository import PaymentRepository
from .schemas import (
    PaymentMethodResponse, OrganizationPaymentMethodResponse, PaymentMethodToggle,
    CardTypeCreate, CardTypeResponse, BankCreate, BankResponse, BankCardCreate, BankCardResponse,
    BankingPromotionCreate, BankingPromotionUpdate, BankingPromotionResponse,
    InstallmentPlanResponse, PromotionCalculationRequest, PromotionCalculationResponse,
    ReorderRequest
)

logger = logging.getLogger(__name__)


class PaymentSettingsService:
    """Medios de pago habilitados y tarjetas bancarias de la organización"""

    def __init__(self, db: Session):
        self.db = db
        self.repository = PaymentRepository(db)

    # ===== MEDIOS DE PAGO =====

    def list_catalogue(self) -> List[PaymentMethodResponse]:
        return [PaymentMethodResponse.model_validate(m) for m in self.repository.get_payment_methods()]

    def list_organization_methods(self, organization_id: int) -> List[OrganizationPaymentMethodResponse]:
        return [self._method_response(m) for m in self.repository.get_organization_methods(organization_id)]

    def set_method_enabled(
        self, organization_id: int, payment_method_id: int, data: PaymentMethodToggle
    ) -> OrganizationPaymentMethodResponse:
        """Habilita o deshabilita un medio del catálogo; crea la asociación si no existe"""
        method = self.repository.get_payment_method(payment_method_id)
        if not method:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Medio de pago no encontrado")

        association = self.repository.get_organization_method(organization_id, payment_method_id)
        if association is None:
            association = OrganizationPaymentMethod(
                organization_id=organization_id,
                payment_method_id=payment_method_id,
                order=self.repository.next_method_order(organization_id)
            )
        association.is_enabled = data.is_enabled
        self.repository.save(association)

        logger.info(
            f"Medio de pago {method.name} {'habilitado' if data.is_enabled else 'deshabilitado'} "
            f"en organización {organization_id}"
        )
        return self._method_response(association)

    def reorder_methods(self, organization_id: int, data: ReorderRequest) -> List[OrganizationPaymentMethodResponse]:
        methods = self.repository.get_organization_methods(organization_id)
        by_method = {m.payment_method_id: m for m in methods}

        if set(data.ids) != set(by_method.keys()) or len(data.ids) != len(by_method):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="La lista debe contener exactamente los medios de pago de la organización"
            )

        for position, method_id in enumerate(data.ids):
            by_method[method_id].order = position
        self.repository.save()

        return self.list_organization_methods(organization_id)

    def _method_response(self, association: OrganizationPaymentMethod) -> OrganizationPaymentMethodResponse:
        method = association.payment_method
        return OrganizationPaymentMethodResponse(
            id=association.id,
            payment_method_id=association.payment_method_id,
            name=method.name,
            type=method.type,
            icon_url=method.icon_url,
            is_enabled=association.is_enabled,
            order=association.order
        )

    # ===== CATÁLOGOS =====

    def list_card_types(self) -> List[CardTypeResponse]:
        return [CardTypeResponse.model_validate(c) for c in self.repository.get_card_types()]

    def create_card_type(self, data: CardTypeCreate) -> CardTypeResponse:
        name = data.name.strip()
        if self.repository.find_card_type(name, data.type.value):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Ya existe la tarjeta {name} ({data.type.value})"
            )
        card_type = self.repository.save(CardType(name=name, type=data.type.value))
        return CardTypeResponse.model_validate(card_type)

    def list_banks(self) -> List[BankResponse]:
        return [BankResponse.model_validate(b) for b in self.repository.get_banks()]

    def create_bank(self, data: BankCreate) -> BankResponse:
        name = data.name.strip()
        if self.repository.find_bank(name):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"Ya existe el banco {name}")
        bank = self.repository.save(Bank(name=name, logo_url=data.logo_url))
        return BankResponse.model_validate(bank)

    # ===== TARJETAS BANCARIAS =====

    def list_bank_cards(self, organization_id: int) -> List[BankCardResponse]:
        return [self._bank_card_response(c) for c in self.repository.get_bank_cards(organization_id)]

    def create_bank_card(self, organization_id: int, data: BankCardCreate) -> BankCardResponse:
        if not self.repository.get_bank(data.bank_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Banco no encontrado")
        if not self.repository.get_card_type(data.card_type_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tipo de tarjeta no encontrado")

        if self.repository.find_bank_card(organization_id, data.bank_id, data.card_type_id):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="La tarjeta bancaria ya está registrada para esta organización"
            )

        order = len(self.repository.get_bank_cards(organization_id))
        bank_card = BankCard(
            organization_id=organization_id,
            bank_id=data.bank_id,
            card_type_id=data.card_type_id,
            is_enabled=data.is_enabled,
            order=order
        )
        self.repository.save(bank_card)
        return self._bank_card_response(bank_card)

    def toggle_bank_card(self, organization_id: int, bank_card_id: int) -> BankCardResponse:
        bank_card = self._get_bank_card(organization_id, bank_card_id)
        bank_card.is_enabled = not bank_card.is_enabled
        self.repository.save(bank_card)
        return self._bank_card_response(bank_card)

    def delete_bank_card(self, organization_id: int, bank_card_id: int) -> Dict[str, Any]:
        bank_card = self._get_bank_card(organization_id, bank_card_id)

        in_use = self.repository.count_promotions_with_bank_card(bank_card.id)
        if in_use:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"No se puede eliminar la tarjeta: tiene {in_use} promociones asociadas"
            )

        self.repository.delete(bank_card)
        return {"success": True, "message": "Tarjeta bancaria eliminada"}

    def _get_bank_card(self, organization_id: int, bank_card_id: int) -> BankCard:
        bank_card = self.repository.get_bank_card(organization_id, bank_card_id)
        if not bank_card:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tarjeta bancaria no encontrada")
        return bank_card

    def _bank_card_response(self, bank_card: BankCard) -> BankCardResponse:
        return BankCardResponse(
            id=bank_card.id,
            bank_id=bank_card.bank_id,
            bank_name=bank_card.bank.name,
            card_type_id=bank_card.card_type_id,
            card_type_name=bank_card.card_type.name,
            card_type=bank_card.card_type.type,
            is_enabled=bank_card.is_enabled,
            order=bank_card.order
        )


class PromotionService:
    """Promociones bancarias, planes de cuotas y calculadora"""

    def __init__(self, db: Session):
        self.db = db
        self.repository = PaymentRepository(db)

    def list_promotions(self, organization_id: int) -> List[BankingPromotionResponse]:
        return [self.to_response(p) for p in self.repository.get_promotions(organization_id)]

    def get_promotion(self, organization_id: int, promotion_id: int) -> BankingPromotionResponse:
        return self.to_response(self.get_or_404(organization_id, promotion_id))

    def enabled_for_day(self, organization_id: int, day: Optional[str] = None) -> List[BankingPromotionResponse]:
        """Promociones habilitadas para un día de la semana (por defecto hoy)"""
        if day:
            canonical = promotions.canonical_day(day)
            if canonical is None:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Día inválido: {day}. Valores: {', '.join(promotions.WEEKDAYS)}"
                )
        else:
            canonical = promotions.day_name(date.today())

        enabled = self.repository.get_promotions(organization_id, enabled_only=True)
        return [self.to_response(p) for p in promotions.filter_by_day(enabled, canonical)]

    def create_promotion(self, organization_id: int, data: BankingPromotionCreate) -> BankingPromotionResponse:
        self._validate(data)

        promotion = BankingPromotion(organization_id=organization_id)
        self._apply(promotion, data)
        self.repository.save(promotion)

        logger.info(f"Promoción '{promotion.name}' creada en organización {organization_id}")
        return self.to_response(self.get_or_404(organization_id, promotion.id))

    def update_promotion(
        self, organization_id: int, promotion_id: int, data: BankingPromotionUpdate
    ) -> BankingPromotionResponse:
        promotion = self.get_or_404(organization_id, promotion_id)
        self._validate(data)

        # delete-orphan elimina los planes anteriores
        promotion.installment_plans.clear()
        self._apply(promotion, data)
        self.repository.save(promotion)

        return self.to_response(self.get_or_404(organization_id, promotion.id))

    def toggle_promotion(self, organization_id: int, promotion_id: int) -> BankingPromotionResponse:
        promotion = self.get_or_404(organization_id, promotion_id)
        promotion.is_enabled = not promotion.is_enabled
        self.repository.save(promotion)
        return self.to_response(promotion)

    def toggle_plan(self, organization_id: int, promotion_id: int, plan_id: int) -> InstallmentPlanResponse:
        self.get_or_404(organization_id, promotion_id)
        plan = self.repository.get_plan(promotion_id, plan_id)
        if not plan:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Plan de cuotas no encontrado")

        plan.is_enabled = not plan.is_enabled
        self.repository.save(plan)
        return InstallmentPlanResponse.model_validate(plan)

    def delete_promotion(self, organization_id: int, promotion_id: int) -> Dict[str, Any]:
        promotion = self.get_or_404(organization_id, promotion_id)

        used = self.repository.count_sales_with_promotion(promotion.id)
        if used:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"No se puede eliminar la promoción: fue aplicada en {used} ventas"
            )

        self.repository.delete(promotion)
        return {"success": True, "message": "Promoción eliminada"}

    def calculate(self, organization_id: int, data: PromotionCalculationRequest) -> PromotionCalculationResponse:
        promotion = self.get_or_404(organization_id, data.promotion_id)
        return PromotionCalculationResponse(**promotions.calculate(data.amount, promotion, data.installments))

    def get_or_404(self, organization_id: int, promotion_id: int) -> BankingPromotion:
        promotion = self.repository.get_promotion(organization_id, promotion_id)
        if not promotion:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Promoción no encontrada")
        return promotion

    def _validate(self, data: BankingPromotionCreate) -> None:
        if not self.repository.get_payment_method(data.payment_method_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Medio de pago no encontrado")

        if data.min_amount is not None and data.max_amount is not None and data.min_amount > data.max_amount:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="El monto mínimo no puede superar al máximo"
            )

        if data.start_date and data.end_date and data.start_date > data.end_date:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="La fecha de inicio no puede ser posterior a la de fin"
            )

        counts = [p.installments for p in data.installment_plans]
        if len(counts) != len(set(counts)):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Hay planes de cuotas repetidos"
            )

    def _apply(self, promotion: BankingPromotion, data: BankingPromotionCreate) -> None:
        fields = data.model_dump(exclude={"installment_plans"})
        for field, value in fields.items():
            setattr(promotion, field, value)

        for plan in data.installment_plans:
            promotion.installment_plans.append(InstallmentPlan(
                installments=plan.installments,
                interest_rate=plan.interest_rate,
                is_enabled=plan.is_enabled
            ))

    def to_response(self, promotion: BankingPromotion) -> BankingPromotionResponse:
        return BankingPromotionResponse(
            id=promotion.id,
            name=promotion.name,
            description=promotion.description,
            payment_method_id=promotion.payment_method_id,
            payment_method_name=promotion.payment_method.name if promotion.payment_method else None,
            bank_id=promotion.bank_id,
            bank_name=promotion.bank.name if promotion.bank else None,
            card_type_id=promotion.card_type_id,
            card_type_name=promotion.card_type.name if promotion.card_type else None,
            bank_card_id=promotion.bank_card_id,
            discount_rate=promotion.discount_rate,
            surcharge_rate=promotion.surcharge_rate,
            min_amount=promotion.min_amount,
            max_amount=promotion.max_amount,
            start_date=promotion.start_date,
            end_date=promotion.end_date,
            active_days=list(promotion.active_days or []),
            is_enabled=promotion.is_enabled,
            installment_plans=[
                InstallmentPlanResponse.model_validate(p)
                for p in sorted(promotion.installment_plans, key=lambda p: p.installments)
            ],
            created_at=promotion.created_at
        )
