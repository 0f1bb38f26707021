import logging
from typing import List, Dict, Any, Optional
from sqlalchemy.orm import Session
from fastapi import HTTPException, UploadFile, status

from app.config.settings import settings
from app.shared.database.models import (
    Branch, Brand, OrganizationBrand, MotorcycleModel, Color, ModelFile, User
)
from app.shared.database.updates import drop_required_nulls
from app.shared.services import otp
from app.shared.services.storage import StorageService, StorageError
from .repository import ConfigurationRepository
from .schemas import (
    BranchCreate, BranchUpdate, BranchResponse, BrandAssociate, OrganizationBrandResponse,
    ModelCreate, ModelResponse, ColorCreate, ColorUpdate, ColorResponse, ModelFileResponse,
    SecurityStatus, OtpSetupResponse, ReorderRequest
)

logger = logging.getLogger(__name__)

DELETION_ROLES = ["admin", "root", "cash-manager"]


class ConfigurationService:

    def __init__(self, db: Session):
        self.db = db
        self.repository = ConfigurationRepository(db)

    # ===== SUCURSALES =====

    def list_branches(self, organization_id: int) -> List[BranchResponse]:
        return [BranchResponse.model_validate(b) for b in self.repository.get_branches(organization_id)]

    def create_branch(self, organization_id: int, data: BranchCreate) -> BranchResponse:
        name = data.name.strip()
        if self.repository.get_branch_by_name(organization_id, name):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Ya existe una sucursal con el nombre '{name}'"
            )

        branch = Branch(
            organization_id=organization_id,
            name=name,
            order=self.repository.next_branch_order(organization_id)
        )
        return BranchResponse.model_validate(self.repository.save(branch))

    def rename_branch(self, organization_id: int, branch_id: int, data: BranchUpdate) -> BranchResponse:
        branch = self._get_branch(organization_id, branch_id)
        name = data.name.strip()

        existing = self.repository.get_branch_by_name(organization_id, name)
        if existing and existing.id != branch.id:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Ya existe una sucursal con el nombre '{name}'"
            )

        branch.name = name
        return BranchResponse.model_validate(self.repository.save(branch))

    def delete_branch(self, organization_id: int, branch_id: int) -> Dict[str, Any]:
        branch = self._get_branch(organization_id, branch_id)

        in_use = self.repository.count_motorcycles_in_branch(branch.id)
        if in_use:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"No se puede eliminar la sucursal: tiene {in_use} motos asociadas"
            )

        self.repository.delete(branch)
        return {"success": True, "message": "Sucursal eliminada"}

    def reorder_branches(self, organization_id: int, data: ReorderRequest) -> List[BranchResponse]:
        branches = self.repository.get_branches(organization_id)
        self._check_ids(branches, data.ids, "sucursales")
        self.repository.apply_order(branches, data.ids)
        return self.list_branches(organization_id)

    # ===== MARCAS Y MODELOS =====

    def list_brands(self, organization_id: int) -> List[OrganizationBrandResponse]:
        return [
            self._build_brand_response(ob)
            for ob in self.repository.get_organization_brands(organization_id)
        ]

    def associate_brand(self, organization_id: int, data: BrandAssociate) -> OrganizationBrandResponse:
        name = data.name.strip()
        brand = self.repository.get_brand_by_name(name)
        if not brand:
            brand = self.repository.save(Brand(name=name, color=data.color))
            logger.info(f"Marca global creada: {name}")

        if self.repository.get_organization_brand(organization_id, brand.id):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"La marca '{brand.name}' ya está asociada a la organización"
            )

        association = OrganizationBrand(
            organization_id=organization_id,
            brand_id=brand.id,
            color=data.color or brand.color,
            order=self.repository.next_brand_order(organization_id)
        )
        association = self.repository.save(association)
        return self._build_brand_response(association)

    def dissociate_brand(self, organization_id: int, brand_id: int) -> Dict[str, Any]:
        association = self._get_organization_brand(organization_id, brand_id)

        in_use = self.repository.count_motorcycles_with_brand(organization_id, brand_id)
        if in_use:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"No se puede quitar la marca: tiene {in_use} motos en stock"
            )

        self.repository.delete(association)
        return {"success": True, "message": "Marca desasociada de la organización"}

    def reorder_brands(self, organization_id: int, data: ReorderRequest) -> List[OrganizationBrandResponse]:
        associations = self.repository.get_organization_brands(organization_id)
        by_brand = {a.brand_id: a for a in associations}
        missing = [i for i in data.ids if i not in by_brand]
        if missing:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Marcas no asociadas a la organización: {missing}"
            )

        # Los IDs recibidos son de marca; el orden vive en la asociación
        position = {brand_id: index for index, brand_id in enumerate(data.ids)}
        for association in associations:
            if association.brand_id in position:
                association.order = position[association.brand_id]
        self.repository.save()
        return self.list_brands(organization_id)

    def create_model(self, organization_id: int, brand_id: int, data: ModelCreate) -> ModelResponse:
        self._get_organization_brand(organization_id, brand_id)
        name = data.name.strip()

        if self.repository.get_model_by_name(brand_id, name):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"El modelo '{name}' ya existe para esta marca"
            )

        model = MotorcycleModel(brand_id=brand_id, name=name, image_url=data.image_url)
        return ModelResponse.model_validate(self.repository.save(model))

    def delete_model(self, organization_id: int, model_id: int) -> Dict[str, Any]:
        model = self._get_model(organization_id, model_id)

        in_use = self.repository.count_motorcycles_with_model(model.id)
        if in_use:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"No se puede eliminar el modelo: tiene {in_use} motos asociadas"
            )

        self.repository.delete(model)
        return {"success": True, "message": "Modelo eliminado"}

    # ===== ARCHIVOS DE MODELOS =====

    def list_model_files(self, organization_id: int, model_id: int) -> List[ModelFileResponse]:
        self._get_model(organization_id, model_id)
        return [ModelFileResponse.model_validate(f) for f in self.repository.get_model_files(model_id)]

    async def upload_model_file(self, organization_id: int, model_id: int, file: UploadFile,
                                storage: StorageService) -> ModelFileResponse:
        model = self._get_model(organization_id, model_id)
        content = await file.read()

        if not content:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Archivo vacío")

        try:
            stored = storage.upload(
                f"models/{model.id}", file.filename, content,
                file.content_type or "application/octet-stream"
            )
        except StorageError as e:
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail=f"Error subiendo archivo: {e}"
            )

        model_file = ModelFile(
            model_id=model.id,
            name=file.filename or "archivo",
            s3_key=stored["key"],
            url=stored["url"],
            content_type=file.content_type,
            size=stored["size"]
        )
        return ModelFileResponse.model_validate(self.repository.save(model_file))

    def delete_model_file(self, organization_id: int, file_id: int, storage: StorageService) -> Dict[str, Any]:
        model_file = self.repository.get_model_file(file_id)
        if not model_file:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Archivo no encontrado")
        self._get_model(organization_id, model_file.model_id)

        try:
            storage.delete(model_file.s3_key)
        except StorageError as e:
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail=f"Error eliminando archivo: {e}"
            )

        self.repository.delete(model_file)
        return {"success": True, "message": "Archivo eliminado"}

    # ===== COLORES =====

    def list_colors(self, organization_id: int) -> List[ColorResponse]:
        return [ColorResponse.model_validate(c) for c in self.repository.get_colors(organization_id)]

    def create_color(self, organization_id: int, data: ColorCreate) -> ColorResponse:
        self._validate_color_type(data.type.value, data.color_two)
        color = Color(
            organization_id=organization_id,
            name=data.name.strip(),
            type=data.type.value,
            color_one=data.color_one,
            color_two=data.color_two,
            order=self.repository.next_color_order(organization_id)
        )
        return ColorResponse.model_validate(self.repository.save(color))

    def update_color(self, organization_id: int, color_id: int, data: ColorUpdate) -> ColorResponse:
        color = self._get_color(organization_id, color_id)
        updates = drop_required_nulls(Color, data.model_dump(exclude_unset=True))
        if "type" in updates and updates["type"] is not None:
            updates["type"] = updates["type"].value

        for field, value in updates.items():
            setattr(color, field, value)
        self._validate_color_type(color.type, color.color_two)
        return ColorResponse.model_validate(self.repository.save(color))

    def delete_color(self, organization_id: int, color_id: int) -> Dict[str, Any]:
        color = self._get_color(organization_id, color_id)

        in_use = self.repository.count_motorcycles_with_color(color.id)
        if in_use:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"No se puede eliminar el color: tiene {in_use} motos asociadas"
            )

        self.repository.delete(color)
        return {"success": True, "message": "Color eliminado"}

    def reorder_colors(self, organization_id: int, data: ReorderRequest) -> List[ColorResponse]:
        colors = self.repository.get_colors(organization_id)
        self._check_ids(colors, data.ids, "colores")
        self.repository.apply_order(colors, data.ids)
        return self.list_colors(organization_id)

    # ===== HELPERS =====

    def _build_brand_response(self, association: OrganizationBrand) -> OrganizationBrandResponse:
        brand = association.brand
        return OrganizationBrandResponse(
            id=association.id,
            brand_id=brand.id,
            name=brand.name,
            color=association.color or brand.color,
            order=association.order,
            models=[ModelResponse.model_validate(m) for m in brand.models]
        )

    def _check_ids(self, items: list, ids: List[int], label: str) -> None:
        known = {item.id for item in items}
        unknown = [i for i in ids if i not in known]
        if unknown:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"IDs de {label} inválidos: {unknown}"
            )

    def _validate_color_type(self, color_type: str, color_two: Optional[str]) -> None:
        if color_type in ("BITONO", "PATRON") and not color_two:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Los colores bitono o patrón requieren un segundo color"
            )

    def _get_branch(self, organization_id: int, branch_id: int) -> Branch:
        branch = self.repository.get_branch(organization_id, branch_id)
        if not branch:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sucursal no encontrada")
        return branch

    def _get_organization_brand(self, organization_id: int, brand_id: int) -> OrganizationBrand:
        association = self.repository.get_organization_brand(organization_id, brand_id)
        if not association:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Marca no asociada a la organización")
        return association

    def _get_model(self, organization_id: int, model_id: int) -> MotorcycleModel:
        model = self.repository.get_model(model_id)
        if not model or not self.repository.get_organization_brand(organization_id, model.brand_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Modelo no encontrado")
        return model

    def _get_color(self, organization_id: int, color_id: int) -> Color:
        color = self.repository.get_color(organization_id, color_id)
        if not color:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Color no encontrado")
        return color


class SecurityService:
    """OTP y modo seguro de la organización"""

    def __init__(self, db: Session):
        self.db = db
        self.repository = ConfigurationRepository(db)

    def get_status(self, organization_id: int) -> SecurityStatus:
        organization = self._get_organization(organization_id)
        return SecurityStatus(
            secure_mode_enabled=organization.secure_mode_enabled,
            otp_configured=bool(organization.otp_secret),
            otp_verified=organization.otp_verified
        )

    def setup_otp(self, organization_id: int) -> OtpSetupResponse:
        organization = self._get_organization(organization_id)

        if organization.secure_mode_enabled:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Desactive el modo seguro antes de regenerar el OTP"
            )

        secret = otp.generate_secret()
        organization.otp_secret = secret
        organization.otp_verified = False
        self.repository.save(organization)
        logger.info(f"OTP regenerado para organización {organization_id}")

        return OtpSetupResponse(
            secret=secret,
            provisioning_uri=otp.provisioning_uri(secret, organization.name),
            digits=settings.otp_digits,
            period=settings.otp_period
        )

    def verify_otp(self, organization_id: int, token: str) -> Dict[str, Any]:
        organization = self._get_organization(organization_id)

        if not organization.otp_secret:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="OTP no configurado")

        if not otp.verify_token(organization.otp_secret, token):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Código OTP inválido")

        organization.otp_verified = True
        self.repository.save(organization)
        return {"success": True, "message": "OTP verificado"}

    def set_secure_mode(self, organization_id: int, enabled: bool) -> SecurityStatus:
        organization = self._get_organization(organization_id)

        if enabled and not (organization.otp_secret and organization.otp_verified):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Para activar el modo seguro primero configure y verifique el OTP"
            )

        organization.secure_mode_enabled = enabled
        self.repository.save(organization)
        logger.info(f"Modo seguro {'activado' if enabled else 'desactivado'} en organización {organization_id}")
        return self.get_status(organization_id)

    def ensure_can_delete(self, user: User, otp_token: Optional[str]) -> None:
        """Eliminaciones: rol habilitado y, con modo seguro, un OTP válido"""
        if user.role not in DELETION_ROLES:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="No tiene permisos para eliminar registros"
            )

        organization = self._get_organization(user.organization_id)
        if not organization.secure_mode_enabled:
            return

        if not otp_token:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Modo seguro activo: se requiere código OTP"
            )
        if not otp.verify_token(organization.otp_secret, otp_token):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Código OTP inválido")

    def _get_organization(self, organization_id: int):
        organization = self.repository.get_organization(organization_id)
        if not organization:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Organización no encontrada")
        return organization
