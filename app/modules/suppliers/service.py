import logging
from typing import List, Optional, Dict, Any
from sqlalchemy.orm import Session
from fastapi import HTTPException, status

from app.shared.database.models import Supplier
from app.shared.database.updates import drop_required_nulls
from .repository import SupplierRepository
from .schemas import SupplierCreate, SupplierUpdate, SupplierResponse, SupplierOption, SupplierStatus

logger = logging.getLogger(__name__)


class SupplierService:

    def __init__(self, db: Session):
        self.db = db
        self.repository = SupplierRepository(db)

    def list_suppliers(self, organization_id: int, status_filter: Optional[str] = None) -> List[SupplierResponse]:
        return [
            SupplierResponse.model_validate(s)
            for s in self.repository.get_all(organization_id, status_filter)
        ]

    def list_for_select(self, organization_id: int) -> List[SupplierOption]:
        suppliers = self.repository.get_all(organization_id, SupplierStatus.ACTIVO.value)
        return [SupplierOption(id=s.id, name=s.commercial_name or s.legal_name) for s in suppliers]

    def get_supplier(self, organization_id: int, supplier_id: int) -> SupplierResponse:
        return SupplierResponse.model_validate(self._get_or_404(organization_id, supplier_id))

    def create_supplier(self, organization_id: int, data: SupplierCreate) -> SupplierResponse:
        tax_id = data.tax_id.strip()
        if self.repository.get_by_tax_id(organization_id, tax_id):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Ya existe un proveedor con el CUIT {tax_id}"
            )

        values = data.model_dump()
        values.update(organization_id=organization_id, tax_id=tax_id, status=data.status.value)
        supplier = self.repository.create(values)
        logger.info(f"Proveedor creado: {supplier.id} org={organization_id}")
        return SupplierResponse.model_validate(supplier)

    def update_supplier(self, organization_id: int, supplier_id: int, data: SupplierUpdate) -> SupplierResponse:
        supplier = self._get_or_404(organization_id, supplier_id)
        updates = drop_required_nulls(Supplier, data.model_dump(exclude_unset=True))

        if updates.get("tax_id"):
            updates["tax_id"] = updates["tax_id"].strip()
            existing = self.repository.get_by_tax_id(organization_id, updates["tax_id"])
            if existing and existing.id != supplier.id:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail=f"Ya existe un proveedor con el CUIT {updates['tax_id']}"
                )
        if updates.get("status") is not None:
            updates["status"] = updates["status"].value

        return SupplierResponse.model_validate(self.repository.update(supplier, updates))

    def delete_supplier(self, organization_id: int, supplier_id: int) -> Dict[str, Any]:
        supplier = self._get_or_404(organization_id, supplier_id)

        in_use = self.repository.count_motorcycles(supplier.id)
        if in_use:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"No se puede eliminar el proveedor: tiene {in_use} motos asociadas"
            )

        self.repository.delete(supplier)
        return {"success": True, "message": "Proveedor eliminado"}

    def _get_or_404(self, organization_id: int, supplier_id: int):
        supplier = self.repository.get_by_id(organization_id, supplier_id)
        if not supplier:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Proveedor no encontrado")
        return supplier
