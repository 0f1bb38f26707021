from typing import List
from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.core.auth.dependencies import get_current_user, require_roles, get_organization_id
from app.shared.database.models import User
from app.shared.services.storage import StorageService, get_storage
from .service import ConfigurationService, SecurityService
from .schemas import (
    BranchCreate, BranchUpdate, BranchResponse, BrandAssociate, OrganizationBrandResponse,
    ModelCreate, ModelResponse, ColorCreate, ColorUpdate, ColorResponse, ModelFileResponse,
    SecurityStatus, OtpSetupResponse, OtpVerifyRequest, SecureModeUpdate, ReorderRequest
)

router = APIRouter()

ADMIN_ROLES = ["admin", "root"]

# ==================== SUCURSALES ====================

@router.get("/branches", response_model=List[BranchResponse])
async def list_branches(
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return ConfigurationService(db).list_branches(organization_id)


@router.post("/branches", response_model=BranchResponse, status_code=201)
async def create_branch(
    data: BranchCreate,
    current_user: User = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return ConfigurationService(db).create_branch(organization_id, data)


@router.put("/branches/reorder", response_model=List[BranchResponse])
async def reorder_branches(
    data: ReorderRequest,
    current_user: User = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return ConfigurationService(db).reorder_branches(organization_id, data)


@router.put("/branches/{branch_id}", response_model=BranchResponse)
async def rename_branch(
    branch_id: int,
    data: BranchUpdate,
    current_user: User = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return ConfigurationService(db).rename_branch(organization_id, branch_id, data)


@router.delete("/branches/{branch_id}")
async def delete_branch(
    branch_id: int,
    current_user: User = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return ConfigurationService(db).delete_branch(organization_id, branch_id)

# ==================== MARCAS Y MODELOS ====================

@router.get("/brands", response_model=List[OrganizationBrandResponse])
async def list_brands(
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    """Marcas de la organización con sus modelos"""
    return ConfigurationService(db).list_brands(organization_id)


@router.post("/brands", response_model=OrganizationBrandResponse, status_code=201)
async def associate_brand(
    data: BrandAssociate,
    current_user: User = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    """Asociar una marca global; si no existe se crea en el catálogo"""
    return ConfigurationService(db).associate_brand(organization_id, data)


@router.put("/brands/reorder", response_model=List[OrganizationBrandResponse])
async def reorder_brands(
    data: ReorderRequest,
    current_user: User = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return ConfigurationService(db).reorder_brands(organization_id, data)


@router.delete("/brands/{brand_id}")
async def dissociate_brand(
    brand_id: int,
    current_user: User = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return ConfigurationService(db).dissociate_brand(organization_id, brand_id)


@router.post("/brands/{brand_id}/models", response_model=ModelResponse, status_code=201)
async def create_model(
    brand_id: int,
    data: ModelCreate,
    current_user: User = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return ConfigurationService(db).create_model(organization_id, brand_id, data)


@router.delete("/models/{model_id}")
async def delete_model(
    model_id: int,
    current_user: User = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return ConfigurationService(db).delete_model(organization_id, model_id)


@router.get("/models/{model_id}/files", response_model=List[ModelFileResponse])
async def list_model_files(
    model_id: int,
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return ConfigurationService(db).list_model_files(organization_id, model_id)


@router.post("/models/{model_id}/files", response_model=ModelFileResponse, status_code=201)
async def upload_model_file(
    model_id: int,
    file: UploadFile = File(..., description="Ficha técnica o imagen del modelo"),
    current_user: User = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_organization_id),
    storage: StorageService = Depends(get_storage),
    db: Session = Depends(get_db)
):
    return await ConfigurationService(db).upload_model_file(organization_id, model_id, file, storage)


@router.delete("/model-files/{file_id}")
async def delete_model_file(
    file_id: int,
    current_user: User = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_organization_id),
    storage: StorageService = Depends(get_storage),
    db: Session = Depends(get_db)
):
    return ConfigurationService(db).delete_model_file(organization_id, file_id, storage)

# ==================== COLORES ====================

@router.get("/colors", response_model=List[ColorResponse])
async def list_colors(
    current_user: User = Depends(get_current_user),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return ConfigurationService(db).list_colors(organization_id)


@router.post("/colors", response_model=ColorResponse, status_code=201)
async def create_color(
    data: ColorCreate,
    current_user: User = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return ConfigurationService(db).create_color(organization_id, data)


@router.put("/colors/reorder", response_model=List[ColorResponse])
async def reorder_colors(
    data: ReorderRequest,
    current_user: User = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return ConfigurationService(db).reorder_colors(organization_id, data)


@router.put("/colors/{color_id}", response_model=ColorResponse)
async def update_color(
    color_id: int,
    data: ColorUpdate,
    current_user: User = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return ConfigurationService(db).update_color(organization_id, color_id, data)


@router.delete("/colors/{color_id}")
async def delete_color(
    color_id: int,
    current_user: User = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return ConfigurationService(db).delete_color(organization_id, color_id)

# ==================== SEGURIDAD ====================

@router.get("/security", response_model=SecurityStatus)
async def get_security_status(
    current_user: User = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return SecurityService(db).get_status(organization_id)


@router.post("/security/otp/setup", response_model=OtpSetupResponse)
async def setup_otp(
    current_user: User = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    """
    Generar un nuevo secreto OTP

    El secreto queda sin verificar hasta que se confirme un código
    generado por la app autenticadora.
    """
    return SecurityService(db).setup_otp(organization_id)


@router.post("/security/otp/verify")
async def verify_otp(
    data: OtpVerifyRequest,
    current_user: User = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return SecurityService(db).verify_otp(organization_id, data.token)


@router.put("/security/secure-mode", response_model=SecurityStatus)
async def set_secure_mode(
    data: SecureModeUpdate,
    current_user: User = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db)
):
    return SecurityService(db).set_secure_mode(organization_id, data.enabled)
