import logging
from datetime import datetime
from typing import List, Optional, Dict, Any
from sqlalchemy.orm import Session
from fastapi import HTTPException, status

from app.shared.database.models import LogisticProvider, MotorcycleTransfer, User
from app.shared.database.updates import drop_required_nulls
from app.modules.stock.schemas import MotorcycleState
from app.modules.sales.service import motorcycle_label
from .repository import LogisticsRepository
from .schemas import (
    TransferStatus, ProviderStatus, LogisticProviderCreate, LogisticProviderUpdate,
    LogisticProviderResponse, TransferCreate, TransferStatusUpdate, TransferResponse,
    AvailableMotorcycle
)

logger = logging.getLogger(__name__)

TRANSFER_TRANSITIONS = {
    TransferStatus.REQUESTED: {TransferStatus.CONFIRMED, TransferStatus.CANCELLED},
    TransferStatus.CONFIRMED: {TransferStatus.IN_TRANSIT, TransferStatus.CANCELLED},
    TransferStatus.IN_TRANSIT: {TransferStatus.DELIVERED, TransferStatus.CANCELLED},
    TransferStatus.DELIVERED: set(),
    TransferStatus.CANCELLED: set(),
}


class LogisticsService:

    def __init__(self, db: Session):
        self.db = db
        self.repository = LogisticsRepository(db)

    # ===== PROVEEDORES =====

    def list_providers(self, organization_id: int,
                       status_filter: Optional[ProviderStatus] = None) -> List[LogisticProviderResponse]:
        providers = self.repository.get_providers(organization_id, status_filter.value if status_filter else None)
        return [LogisticProviderResponse.model_validate(p) for p in providers]

    def get_provider(self, organization_id: int, provider_id: int) -> LogisticProviderResponse:
        return LogisticProviderResponse.model_validate(self._get_provider(organization_id, provider_id))

    def create_provider(self, organization_id: int, data: LogisticProviderCreate) -> LogisticProviderResponse:
        values = data.model_dump()
        values["status"] = data.status.value
        provider = LogisticProvider(organization_id=organization_id, **values)

        self.repository.add(provider)
        self.repository.commit(provider)
        logger.info(f"Proveedor logístico '{provider.name}' creado en organización {organization_id}")
        return LogisticProviderResponse.model_validate(provider)

    def update_provider(self, organization_id: int, provider_id: int,
                        data: LogisticProviderUpdate) -> LogisticProviderResponse:
        provider = self._get_provider(organization_id, provider_id)

        for field, value in drop_required_nulls(LogisticProvider, data.model_dump(exclude_unset=True)).items():
            if field == "status" and value is not None:
                value = value.value
            setattr(provider, field, value)

        self.repository.commit(provider)
        return LogisticProviderResponse.model_validate(provider)

    def toggle_provider(self, organization_id: int, provider_id: int) -> LogisticProviderResponse:
        provider = self._get_provider(organization_id, provider_id)
        provider.status = (
            ProviderStatus.INACTIVO.value if provider.status == ProviderStatus.ACTIVO.value
            else ProviderStatus.ACTIVO.value
        )
        self.repository.commit(provider)
        return LogisticProviderResponse.model_validate(provider)

    def delete_provider(self, organization_id: int, provider_id: int) -> Dict[str, Any]:
        provider = self._get_provider(organization_id, provider_id)

        transfers = self.repository.count_provider_transfers(provider.id)
        if transfers:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"No se puede eliminar el proveedor: tiene {transfers} traslados asociados"
            )

        self.repository.delete(provider)
        return {"success": True, "message": "Proveedor eliminado"}

    # ===== TRASLADOS =====

    def get_available_motorcycles(self, organization_id: int,
                                  branch_id: Optional[int] = None) -> List[AvailableMotorcycle]:
        return [
            AvailableMotorcycle(
                id=m.id,
                label=motorcycle_label(m),
                chassis_number=m.chassis_number,
                branch_id=m.branch_id,
                branch_name=m.branch.name if m.branch else None,
                color_name=m.color.name if m.color else None,
                year=m.year
            )
            for m in self.repository.get_available_motorcycles(organization_id, branch_id)
        ]

    def create_transfer(self, organization_id: int, requester: User, data: TransferCreate) -> TransferResponse:
        """
        Iniciar el traslado de una moto entre sucursales.

        La unidad debe estar en STOCK en la sucursal de origen y sin otro traslado
        activo. El traslado nace EN TRÁNSITO y la moto pasa a EN_TRANSITO.
        """
        motorcycle = self.repository.get_motorcycle(organization_id, data.motorcycle_id)
        if not motorcycle:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Moto no encontrada")

        for branch_id in (data.from_branch_id, data.to_branch_id):
            if not self.repository.get_branch(organization_id, branch_id):
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Sucursal {branch_id} no encontrada")

        if data.logistic_provider_id is not None:
            provider = self._get_provider(organization_id, data.logistic_provider_id)
            if provider.status != ProviderStatus.ACTIVO.value:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="El proveedor logístico está inactivo")

        if motorcycle.state != MotorcycleState.STOCK.value:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Solo se pueden trasladar motos en STOCK (estado actual: {motorcycle.state})"
            )

        if motorcycle.branch_id != data.from_branch_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="La moto no se encuentra en la sucursal de origen"
            )

        if self.repository.get_active_transfer(motorcycle.id):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="La moto ya tiene un traslado activo"
            )

        now = datetime.utcnow()
        transfer = MotorcycleTransfer(
            organization_id=organization_id,
            motorcycle_id=motorcycle.id,
            from_branch_id=data.from_branch_id,
            to_branch_id=data.to_branch_id,
            logistic_provider_id=data.logistic_provider_id,
            status=TransferStatus.IN_TRANSIT.value,
            requested_by=requester.id,
            requested_date=now,
            scheduled_pickup_date=data.scheduled_pickup_date,
            actual_pickup_date=now,
            estimated_delivery_date=data.estimated_delivery_date,
            cost=data.cost,
            tracking_number=data.tracking_number,
            notes=data.notes
        )
        self.repository.add(transfer)
        motorcycle.state = MotorcycleState.EN_TRANSITO.value

        self.repository.commit(transfer)
        logger.info(
            f"Traslado {transfer.id}: moto {motorcycle.id} de sucursal {transfer.from_branch_id} "
            f"a {transfer.to_branch_id}"
        )
        return self._to_response(self._get_transfer(organization_id, transfer.id))

    def update_status(self, organization_id: int, transfer_id: int, user: User,
                      data: TransferStatusUpdate) -> TransferResponse:
        transfer = self._get_transfer(organization_id, transfer_id)
        current = TransferStatus(transfer.status)
        target = data.status

        if target not in TRANSFER_TRANSITIONS[current]:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Transición inválida: {current.value} → {target.value}"
            )

        now = datetime.utcnow()
        motorcycle = transfer.motorcycle

        if target == TransferStatus.CONFIRMED:
            transfer.confirmed_by = user.id
        elif target == TransferStatus.IN_TRANSIT:
            transfer.actual_pickup_date = now
            motorcycle.state = MotorcycleState.EN_TRANSITO.value
        elif target == TransferStatus.DELIVERED:
            transfer.actual_delivery_date = now
            transfer.confirmed_by = transfer.confirmed_by or user.id
            motorcycle.branch_id = transfer.to_branch_id
            motorcycle.state = MotorcycleState.STOCK.value
        elif target == TransferStatus.CANCELLED:
            motorcycle.branch_id = transfer.from_branch_id
            motorcycle.state = MotorcycleState.STOCK.value

        transfer.status = target.value
        if data.tracking_number:
            transfer.tracking_number = data.tracking_number
        if data.notes:
            transfer.notes = f"{transfer.notes}\n{data.notes}" if transfer.notes else data.notes

        self.repository.commit(transfer)
        logger.info(f"Traslado {transfer.id}: {current.value} → {target.value}; moto {motorcycle.id} en {motorcycle.state}")

        return self._to_response(self._get_transfer(organization_id, transfer.id))

    def confirm_arrival(self, organization_id: int, transfer_id: int, user: User) -> TransferResponse:
        return self.update_status(
            organization_id, transfer_id, user, TransferStatusUpdate(status=TransferStatus.DELIVERED)
        )

    def cancel_transfer(self, organization_id: int, transfer_id: int, user: User,
                        reason: Optional[str] = None) -> TransferResponse:
        return self.update_status(
            organization_id, transfer_id, user,
            TransferStatusUpdate(status=TransferStatus.CANCELLED, notes=reason)
        )

    def list_transfers(self, organization_id: int,
                       status_filter: Optional[TransferStatus] = None) -> List[TransferResponse]:
        transfers = self.repository.get_transfers(organization_id, status_filter.value if status_filter else None)
        return [self._to_response(t) for t in transfers]

    def get_transfer(self, organization_id: int, transfer_id: int) -> TransferResponse:
        return self._to_response(self._get_transfer(organization_id, transfer_id))

    # ===== HELPERS =====

    def _get_provider(self, organization_id: int, provider_id: int) -> LogisticProvider:
        provider = self.repository.get_provider(organization_id, provider_id)
        if not provider:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Proveedor logístico no encontrado")
        return provider

    def _get_transfer(self, organization_id: int, transfer_id: int) -> MotorcycleTransfer:
        transfer = self.repository.get_transfer(organization_id, transfer_id)
        if not transfer:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Traslado no encontrado")
        return transfer

    def _to_response(self, transfer: MotorcycleTransfer) -> TransferResponse:
        return TransferResponse(
            id=transfer.id,
            motorcycle_id=transfer.motorcycle_id,
            motorcycle_label=motorcycle_label(transfer.motorcycle),
            chassis_number=transfer.motorcycle.chassis_number if transfer.motorcycle else None,
            from_branch_id=transfer.from_branch_id,
            from_branch_name=transfer.from_branch.name if transfer.from_branch else None,
            to_branch_id=transfer.to_branch_id,
            to_branch_name=transfer.to_branch.name if transfer.to_branch else None,
            logistic_provider_id=transfer.logistic_provider_id,
            logistic_provider_name=transfer.logistic_provider.name if transfer.logistic_provider else None,
            status=transfer.status,
            requested_by=transfer.requested_by,
            requested_by_name=transfer.requester.name if transfer.requester else None,
            confirmed_by=transfer.confirmed_by,
            requested_date=transfer.requested_date,
            scheduled_pickup_date=transfer.scheduled_pickup_date,
            actual_pickup_date=transfer.actual_pickup_date,
            estimated_delivery_date=transfer.estimated_delivery_date,
            actual_delivery_date=transfer.actual_delivery_date,
            cost=transfer.cost,
            tracking_number=transfer.tracking_number,
            notes=transfer.notes
        )
