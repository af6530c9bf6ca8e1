"""Client repository - Database operations for clients"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Client


class ClientRepository:
    """Repository for client database operations"""

    @staticmethod
    def get_clients(db: Session, status: Optional[str] = None) -> list[Client]:
        """Get all clients, optionally filtered by status"""
        query = db.query(Client)
        if status:
            query = query.filter(Client.status == status)
        return query.order_by(Client.full_name, Client.id).all()

    @staticmethod
    def get_client_by_id(db: Session, client_id: int) -> Optional[Client]:
        return db.query(Client).filter(Client.id == client_id).first()

    @staticmethod
    def create_client(db: Session, **client_data) -> Client:
        client = Client(**client_data)
        db.add(client)
        db.flush()
        return client

    @staticmethod
    def update_client(db: Session, client: Client, **updates) -> Client:
        """Update a client with provided fields (None clears a field)"""
        for key, value in updates.items():
            if hasattr(client, key):
                setattr(client, key, value)
        db.flush()
        return client

    @staticmethod
    def delete_client(db: Session, client: Client) -> None:
        db.delete(client)
        db.flush()
