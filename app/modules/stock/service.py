import logging
from typing import Dict, Any, List, Optional
from collections import Counter
from sqlalchemy.orm import Session
from fastapi import HTTPException, status

from app.shared.database.models import Motorcycle, Client
from app.shared.database.updates import drop_required_nulls
from app.modules.configuration.service import ConfigurationService
from .repository import StockRepository
from .schemas import (
    MotorcycleBatchCreate, MotorcycleUpdate, MotorcycleResponse, MotorcycleListResponse,
    BatchCreateResponse, MotorcycleFilters, MotorcycleState, StateChange
)

logger = logging.getLogger(__name__)

# Transiciones permitidas desde el endpoint de estado. EN_TRANSITO lo maneja logística.
STATE_TRANSITIONS = {
    MotorcycleState.STOCK: {MotorcycleState.PAUSADO, MotorcycleState.PROCESANDO, MotorcycleState.RESERVADO},
    MotorcycleState.PAUSADO: {MotorcycleState.STOCK, MotorcycleState.ELIMINADO},
    MotorcycleState.RESERVADO: {MotorcycleState.STOCK, MotorcycleState.PROCESANDO},
    MotorcycleState.PROCESANDO: {MotorcycleState.STOCK, MotorcycleState.VENDIDO},
    MotorcycleState.VENDIDO: set(),
    MotorcycleState.ELIMINADO: {MotorcycleState.STOCK},
    MotorcycleState.EN_TRANSITO: set(),
}

CLEARS_CLIENT_ON_STOCK = {MotorcycleState.RESERVADO, MotorcycleState.PROCESANDO, MotorcycleState.ELIMINADO}


def can_transition(current: MotorcycleState, target: MotorcycleState) -> bool:
    return target in STATE_TRANSITIONS.get(current, set())


def build_motorcycle_response(motorcycle: Motorcycle) -> MotorcycleResponse:
    return MotorcycleResponse(
        id=motorcycle.id,
        brand_id=motorcycle.brand_id,
        brand_name=motorcycle.brand.name if motorcycle.brand else None,
        model_id=motorcycle.model_id,
        model_name=motorcycle.model.name if motorcycle.model else None,
        color_id=motorcycle.color_id,
        color_name=motorcycle.color.name if motorcycle.color else None,
        branch_id=motorcycle.branch_id,
        branch_name=motorcycle.branch.name if motorcycle.branch else None,
        supplier_id=motorcycle.supplier_id,
        supplier_name=motorcycle.supplier.legal_name if motorcycle.supplier else None,
        client_id=motorcycle.client_id,
        client_name=motorcycle.client.full_name if motorcycle.client else None,
        year=motorcycle.year,
        displacement=motorcycle.displacement,
        chassis_number=motorcycle.chassis_number,
        engine_number=motorcycle.engine_number,
        license_plate=motorcycle.license_plate,
        mileage=motorcycle.mileage,
        currency=motorcycle.currency,
        cost_price=motorcycle.cost_price,
        retail_price=motorcycle.retail_price,
        wholesale_price=motorcycle.wholesale_price,
        image_url=motorcycle.image_url,
        observations=motorcycle.observations,
        state=motorcycle.state,
        created_at=motorcycle.created_at,
        updated_at=motorcycle.updated_at
    )


class StockService:

    def __init__(self, db: Session):
        self.db = db
        self.repository = StockRepository(db)

    def create_batch(self, organization_id: int, data: MotorcycleBatchCreate) -> BatchCreateResponse:
        """Alta de lote: chasis únicos dentro del lote y en la organización"""
        chassis_numbers = [u.chassis_number.strip() for u in data.units]

        repeated = [c for c, n in Counter(c.upper() for c in chassis_numbers).items() if n > 1]
        if repeated:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Números de chasis repetidos en el lote: {', '.join(repeated)}"
            )

        existing = self.repository.get_existing_chassis(organization_id, chassis_numbers)
        if existing:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Ya existen motos con los chasis: {', '.join(existing)}"
            )

        self._validate_references(
            organization_id, data.brand_id, data.model_id, data.branch_id,
            data.color_id, data.supplier_id
        )
        for unit in data.units:
            if unit.color_id and not self.repository.color_in_organization(organization_id, unit.color_id):
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Color no encontrado")

        motorcycles = [
            Motorcycle(
                organization_id=organization_id,
                brand_id=data.brand_id,
                model_id=data.model_id,
                branch_id=data.branch_id,
                color_id=unit.color_id or data.color_id,
                supplier_id=data.supplier_id,
                year=data.year,
                displacement=data.displacement,
                chassis_number=unit.chassis_number.strip(),
                engine_number=unit.engine_number,
                license_plate=unit.license_plate,
                mileage=unit.mileage,
                currency=data.currency.value,
                cost_price=data.cost_price,
                retail_price=data.retail_price,
                wholesale_price=data.wholesale_price,
                image_url=data.image_url,
                observations=data.observations,
                state=MotorcycleState.STOCK.value
            )
            for unit in data.units
        ]

        created = self.repository.create_batch(motorcycles)
        logger.info(f"Lote creado: {len(created)} motos en organización {organization_id}")

        return BatchCreateResponse(created=len(created), ids=[m.id for m in created])

    def list_motorcycles(self, organization_id: int, filters: MotorcycleFilters) -> MotorcycleListResponse:
        items, total = self.repository.search(organization_id, filters)
        return MotorcycleListResponse(
            items=[build_motorcycle_response(m) for m in items],
            total=total,
            page=filters.page,
            page_size=filters.page_size
        )

    def get_motorcycle(self, organization_id: int, motorcycle_id: int) -> MotorcycleResponse:
        return build_motorcycle_response(self.get_or_404(organization_id, motorcycle_id))

    def update_motorcycle(self, organization_id: int, motorcycle_id: int,
                          data: MotorcycleUpdate) -> MotorcycleResponse:
        motorcycle = self.get_or_404(organization_id, motorcycle_id)
        updates = drop_required_nulls(Motorcycle, data.model_dump(exclude_unset=True))

        if "chassis_number" in updates:
            updates["chassis_number"] = updates["chassis_number"].strip()
            if updates["chassis_number"].upper() != motorcycle.chassis_number.upper():
                if self.repository.get_existing_chassis(organization_id, [updates["chassis_number"]]):
                    raise HTTPException(
                        status_code=status.HTTP_409_CONFLICT,
                        detail=f"Ya existe una moto con el chasis {updates['chassis_number']}"
                    )

        if "branch_id" in updates and motorcycle.state == MotorcycleState.EN_TRANSITO.value:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No se puede cambiar la sucursal de una moto en tránsito"
            )

        self._validate_references(
            organization_id,
            updates.get("brand_id", motorcycle.brand_id),
            updates.get("model_id", motorcycle.model_id),
            updates.get("branch_id", motorcycle.branch_id),
            updates.get("color_id"),
            updates.get("supplier_id")
        )

        if updates.get("currency") is not None:
            updates["currency"] = updates["currency"].value

        for field, value in updates.items():
            setattr(motorcycle, field, value)

        return build_motorcycle_response(self.repository.save(motorcycle))

    def change_state(self, organization_id: int, motorcycle_id: int, data: StateChange) -> MotorcycleResponse:
        motorcycle = self.get_or_404(organization_id, motorcycle_id)
        current = MotorcycleState(motorcycle.state)
        target = data.state

        if target == MotorcycleState.VENDIDO:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Las ventas se registran desde el módulo de ventas"
            )

        if not can_transition(current, target):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Transición inválida: {current.value} → {target.value}"
            )

        if data.client_id is not None:
            client = self.db.query(Client).filter(
                Client.id == data.client_id,
                Client.organization_id == organization_id
            ).first()
            if not client:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cliente no encontrado")
            motorcycle.client_id = client.id

        if target == MotorcycleState.STOCK and current in CLEARS_CLIENT_ON_STOCK:
            motorcycle.client_id = None

        motorcycle.state = target.value
        motorcycle = self.repository.save(motorcycle)
        logger.info(f"Moto {motorcycle.id}: {current.value} → {target.value}")

        return build_motorcycle_response(motorcycle)

    def get_form_data(self, organization_id: int) -> Dict[str, Any]:
        """Marcas con modelos, colores, sucursales y proveedores para el formulario"""
        configuration = ConfigurationService(self.db)
        return {
            "brands": configuration.list_brands(organization_id),
            "colors": configuration.list_colors(organization_id),
            "branches": configuration.list_branches(organization_id),
            "suppliers": [
                {"id": s.id, "name": s.commercial_name or s.legal_name}
                for s in self.repository.get_active_suppliers(organization_id)
            ]
        }

    def get_or_404(self, organization_id: int, motorcycle_id: int) -> Motorcycle:
        motorcycle = self.repository.get_by_id(organization_id, motorcycle_id)
        if not motorcycle:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Moto no encontrada")
        return motorcycle

    def _validate_references(self, organization_id: int, brand_id: int, model_id: int, branch_id: int,
                             color_id: Optional[int], supplier_id: Optional[int]) -> None:
        if not self.repository.brand_in_organization(organization_id, brand_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Marca no asociada a la organización")

        model = self.repository.get_model(model_id)
        if not model or model.brand_id != brand_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="El modelo no pertenece a la marca")

        if not self.repository.branch_in_organization(organization_id, branch_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sucursal no encontrada")

        if color_id and not self.repository.color_in_organization(organization_id, color_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Color no encontrado")

        if supplier_id and not self.repository.supplier_in_organization(organization_id, supplier_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Proveedor no encontrado")
