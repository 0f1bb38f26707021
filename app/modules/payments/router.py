from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.core.auth.dependencies import get_current_user, require_roles, get_organization_id
from app.shared.database.models import User
from .service import PaymentSettingsService, PromotionService
from .schemas import (
    PaymentMethodResponse, OrganizationPaymentMethodResponse, PaymentMethodToggle, ReorderRequest,
    CardTypeCreate, CardTypeResponse, BankCreate, BankResponse, BankCardCreate, BankCardResponse,
    BankingPromotionCreate, BankingPromotionUpdate, BankingPromotionResponse, InstallmentPlanResponse,
    PromotionCalculationRequest, PromotionCalculationResponse
)

router = APIRouter()

ADMIN_ROLES = ["admin", "root"]

# ==================== MEDIOS DE PAGO ====================

@router.get("/methods", response_model=List[PaymentMethodResponse])
async def list_payment_methods(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Catálogo global de medios de pago"""
    return PaymentSettingsService(db).list_catalogue()


@router.get("/methods/organization", response_model=List[OrganizationPaymentMethodResponse])
async def list_organization_methods(
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return PaymentSettingsService(db).list_organization_methods(organization_id)


@router.put("/methods/reorder", response_model=List[OrganizationPaymentMethodResponse])
async def reorder_methods(
    data: ReorderRequest,
    current_user: User = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    """Reordenar medios de pago (ids del catálogo en el orden deseado)"""
    return PaymentSettingsService(db).reorder_methods(organization_id, data)


@router.patch("/methods/{payment_method_id}", response_model=OrganizationPaymentMethodResponse)
async def toggle_payment_method(
    payment_method_id: int,
    data: PaymentMethodToggle,
    current_user: User = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return PaymentSettingsService(db).set_method_enabled(organization_id, payment_method_id, data)

# ==================== BANCOS Y TARJETAS ====================

@router.get("/card-types", response_model=List[CardTypeResponse])
async def list_card_types(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return PaymentSettingsService(db).list_card_types()


@router.post("/card-types", response_model=CardTypeResponse, status_code=201)
async def create_card_type(
    data: CardTypeCreate,
    current_user: User = Depends(require_roles(ADMIN_ROLES)),
    db: Session = Depends(get_db)
):
    return PaymentSettingsService(db).create_card_type(data)


@router.get("/banks", response_model=List[BankResponse])
async def list_banks(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return PaymentSettingsService(db).list_banks()


@router.post("/banks", response_model=BankResponse, status_code=201)
async def create_bank(
    data: BankCreate,
    current_user: User = Depends(require_roles(ADMIN_ROLES)),
    db: Session = Depends(get_db)
):
    return PaymentSettingsService(db).create_bank(data)


@router.get("/bank-cards", response_model=List[BankCardResponse])
async def list_bank_cards(
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return PaymentSettingsService(db).list_bank_cards(organization_id)


@router.post("/bank-cards", response_model=BankCardResponse, status_code=201)
async def create_bank_card(
    data: BankCardCreate,
    current_user: User = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return PaymentSettingsService(db).create_bank_card(organization_id, data)


@router.patch("/bank-cards/{bank_card_id}/toggle", response_model=BankCardResponse)
async def toggle_bank_card(
    bank_card_id: int,
    current_user: User = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return PaymentSettingsService(db).toggle_bank_card(organization_id, bank_card_id)


@router.delete("/bank-cards/{bank_card_id}")
async def delete_bank_card(
    bank_card_id: int,
    current_user: User = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return PaymentSettingsService(db).delete_bank_card(organization_id, bank_card_id)

# ==================== PROMOCIONES ====================

@router.get("/promotions", response_model=List[BankingPromotionResponse])
async def list_promotions(
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return PromotionService(db).list_promotions(organization_id)


@router.get("/promotions/enabled", response_model=List[BankingPromotionResponse])
async def list_enabled_promotions(
    day: Optional[str] = Query(None, description="Día de la semana (lunes..domingo); por defecto hoy"),
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    """
    Promociones habilitadas para el día indicado.

    Una promoción sin días configurados aplica todos los días.
    """
    return PromotionService(db).enabled_for_day(organization_id, day)


@router.post("/promotions/calculate", response_model=PromotionCalculationResponse)
async def calculate_promotion(
    data: PromotionCalculationRequest,
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return PromotionService(db).calculate(organization_id, data)


@router.get("/promotions/{promotion_id}", response_model=BankingPromotionResponse)
async def get_promotion(
    promotion_id: int,
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return PromotionService(db).get_promotion(organization_id, promotion_id)


@router.post("/promotions", response_model=BankingPromotionResponse, status_code=201)
async def create_promotion(
    data: BankingPromotionCreate,
    current_user: User = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return PromotionService(db).create_promotion(organization_id, data)


@router.put("/promotions/{promotion_id}", response_model=BankingPromotionResponse)
async def update_promotion(
    promotion_id: int,
    data: BankingPromotionUpdate,
    current_user: User = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return PromotionService(db).update_promotion(organization_id, promotion_id, data)


@router.patch("/promotions/{promotion_id}/toggle", response_model=BankingPromotionResponse)
async def toggle_promotion(
    promotion_id: int,
    current_user: User = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return PromotionService(db).toggle_promotion(organization_id, promotion_id)


@router.patch("/promotions/{promotion_id}/plans/{plan_id}/toggle", response_model=InstallmentPlanResponse)
async def toggle_installment_plan(
    promotion_id: int,
    plan_id: int,
    current_user: User = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return PromotionService(db).toggle_plan(organization_id, promotion_id, plan_id)


@router.delete("/promotions/{promotion_id}")
async def delete_promotion(
    promotion_id: int,
    current_user: User = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return PromotionService(db).delete_promotion(organization_id, promotion_id)
