import logging
from enum import Enum
from typing import List, Optional, Dict, Any
from sqlalchemy.orm import Session
from fastapi import HTTPException, status

from app.shared.database.models import Client
from app.shared.database.updates import drop_required_nulls
from .repository import ClientRepository
from .schemas import ClientCreate, ClientUpdate, ClientResponse

logger = logging.getLogger(__name__)


class ClientService:

    def __init__(self, db: Session):
        self.db = db
        self.repository = ClientRepository(db)

    def list_clients(self, organization_id: int, search: Optional[str] = None,
                     status_filter: Optional[str] = None) -> List[ClientResponse]:
        clients = self.repository.search(organization_id, search, status_filter)
        return [ClientResponse.model_validate(c) for c in clients]

    def get_client(self, organization_id: int, client_id: int) -> ClientResponse:
        return ClientResponse.model_validate(self._get_or_404(organization_id, client_id))

    def create_client(self, organization_id: int, data: ClientCreate) -> ClientResponse:
        tax_id = data.tax_id.strip()
        if self.repository.get_by_tax_id(organization_id, tax_id):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Ya existe un cliente con el documento {tax_id}"
            )

        values = self._plain(data.model_dump())
        values.update(organization_id=organization_id, tax_id=tax_id)
        client = self.repository.create(values)
        logger.info(f"Cliente creado: {client.id} org={organization_id}")
        return ClientResponse.model_validate(client)

    def update_client(self, organization_id: int, client_id: int, data: ClientUpdate) -> ClientResponse:
        client = self._get_or_404(organization_id, client_id)
        updates = self._plain(drop_required_nulls(Client, data.model_dump(exclude_unset=True)))

        if updates.get("tax_id"):
            updates["tax_id"] = updates["tax_id"].strip()
            existing = self.repository.get_by_tax_id(organization_id, updates["tax_id"])
            if existing and existing.id != client.id:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail=f"Ya existe un cliente con el documento {updates['tax_id']}"
                )

        return ClientResponse.model_validate(self.repository.update(client, updates))

    def delete_client(self, organization_id: int, client_id: int) -> Dict[str, Any]:
        client = self._get_or_404(organization_id, client_id)

        dependencies = {k: v for k, v in self.repository.count_dependencies(client.id).items() if v}
        if dependencies:
            detail = ", ".join(f"{count} {name}" for name, count in dependencies.items())
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"No se puede eliminar el cliente: tiene {detail}"
            )

        self.repository.delete(client)
        return {"success": True, "message": "Cliente eliminado"}

    def _get_or_404(self, organization_id: int, client_id: int):
        client = self.repository.get_by_id(organization_id, client_id)
        if not client:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cliente no encontrado")
        return client

    @staticmethod
    def _plain(values: dict) -> dict:
        return {k: (v.value if isinstance(v, Enum) else v) for k, v in values.items()}
