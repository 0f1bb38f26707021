from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import or_, func
from sqlalchemy.exc import SQLAlchemyError

from app.shared.database.models import Client, Sale, Reservation, CurrentAccount


class ClientRepository:

    def __init__(self, db: Session):
        self.db = db

    def search(self, organization_id: int, search: Optional[str] = None,
               status: Optional[str] = None) -> List[Client]:
        query = self.db.query(Client).filter(Client.organization_id == organization_id)

        if status:
            query = query.filter(Client.status == status)
        if search:
            term = f"%{search.strip()}%"
            query = query.filter(
                or_(
                    Client.first_name.ilike(term),
                    Client.last_name.ilike(term),
                    Client.company_name.ilike(term),
                    Client.tax_id.ilike(term),
                    Client.email.ilike(term)
                )
            )

        return query.order_by(Client.last_name, Client.first_name).all()

    def get_by_id(self, organization_id: int, client_id: int) -> Optional[Client]:
        return self.db.query(Client).filter(
            Client.id == client_id,
            Client.organization_id == organization_id
        ).first()

    def get_by_tax_id(self, organization_id: int, tax_id: str) -> Optional[Client]:
        return self.db.query(Client).filter(
            Client.organization_id == organization_id,
            Client.tax_id == tax_id
        ).first()

    def count_dependencies(self, client_id: int) -> dict:
        return {
            "ventas": self.db.query(func.count(Sale.id)).filter(Sale.client_id == client_id).scalar(),
            "reservas": self.db.query(func.count(Reservation.id)).filter(Reservation.client_id == client_id).scalar(),
            "cuentas corrientes": self.db.query(func.count(CurrentAccount.id)).filter(
                CurrentAccount.client_id == client_id
            ).scalar(),
        }

    def create(self, data: dict) -> Client:
        try:
            client = Client(**data)
            self.db.add(client)
            self.db.commit()
            self.db.refresh(client)
            return client
        except SQLAlchemyError as e:
            self.db.rollback()
            raise e

    def update(self, client: Client, data: dict) -> Client:
        try:
            for field, value in data.items():
                setattr(client, field, value)
            self.db.commit()
            self.db.refresh(client)
            return client
        except SQLAlchemyError as e:
            self.db.rollback()
            raise e

    def delete(self, client: Client) -> None:
        try:
            self.db.delete(client)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise e
