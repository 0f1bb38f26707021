# app/api/v1/router.py
from fastapi import APIRouter
from app.api.v1.auth import router as auth_router
from app.config.settings import settings

from app.modules.organizations import router as organizations_router
from app.modules.configuration import router as configuration_router
from app.modules.stock import router as stock_router
from app.modules.clients import router as clients_router
from app.modules.suppliers import router as suppliers_router
from app.modules.sales import router as sales_router
from app.modules.current_accounts import router as current_accounts_router
from app.modules.petty_cash import router as petty_cash_router
from app.modules.payments import router as payments_router
from app.modules.logistics import router as logistics_router
from app.modules.mercadopago import router as mercadopago_router, webhook_router
from app.modules.reports import router as reports_router


# Crear router principal de la API v1
api_router = APIRouter()

# ==================== AUTENTICACIÓN Y TENANTS ====================

api_router.include_router(auth_router, prefix="/auth", tags=["Auth"])
api_router.include_router(organizations_router, prefix="/organizations", tags=["Organizations"])
api_router.include_router(configuration_router, prefix="/configuration", tags=["Configuration"])

# ==================== OPERACIÓN ====================

api_router.include_router(stock_router, prefix="/stock", tags=["Stock"])
api_router.include_router(clients_router, prefix="/clients", tags=["Clients"])
api_router.include_router(suppliers_router, prefix="/suppliers", tags=["Suppliers"])
api_router.include_router(sales_router, prefix="/sales", tags=["Sales"])
api_router.include_router(logistics_router, prefix="/logistics", tags=["Logistics"])

# ==================== FINANZAS ====================

api_router.include_router(current_accounts_router, prefix="/current-accounts", tags=["Current Accounts"])
api_router.include_router(petty_cash_router, prefix="/petty-cash", tags=["Petty Cash"])
api_router.include_router(payments_router, prefix="/payments", tags=["Payments"])
api_router.include_router(mercadopago_router, prefix="/mercadopago", tags=["MercadoPago"])
api_router.include_router(reports_router, prefix="/reports", tags=["Reports"])

# ==================== WEBHOOKS (públicos) ====================

api_router.include_router(webhook_router, prefix="/webhooks", tags=["Webhooks"])


@api_router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.version
    }
