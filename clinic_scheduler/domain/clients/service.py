"""Client service - Business logic for client operations"""

import logging
from typing import Optional

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ...models import Client, Payment
from ...shared.exceptions import ConcurrencyConflictError, NotFoundError
from ..payments.repository import PaymentRepository
from .repository import ClientRepository
from .schemas import ClientCreate, ClientUpdate

logger = logging.getLogger(__name__)

# Request field -> column for contact details a PATCH may change
UPDATABLE_FIELDS = {
    "name": "name",
    "phoneNumber": "phone_number",
    "email": "email",
    "location": "location",
    "notes": "notes",
}


class ClientService:
    """Service layer for client business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ClientRepository()

    def get_clients(self, location: Optional[str] = None) -> list[Client]:
        """Get all clients, optionally filtered by location"""
        return self.repo.get_clients(self.db, location)

    def get_client(self, client_id: int) -> Client:
        """Get a specific client"""
        client = self.repo.get_client_by_id(self.db, client_id)
        if not client:
            raise NotFoundError("Client not found", details={"clientId": client_id})
        return client

    def create_client(self, data: ClientCreate) -> Client:
        """Create a new client at intake"""
        logger.info(f"📥 Creating client {data.name!r} with {data.remainingSessions} prepaid session(s)")

        client_data = {
            "name": data.name.strip(),
            "phone_number": data.phoneNumber,
            "email": data.email,
            "location": data.location,
            "notes": data.notes,
            "remaining_sessions": data.remainingSessions,
        }

        client = self.repo.create_client(self.db, **client_data)
        logger.info(f"✅ Client created: client_id={client.id}")
        return client

    def update_client(self, client_id: int, data: ClientUpdate) -> Client:
        """
        Update a client's contact details.

        Only fields present in the request change; an explicit null clears an
        optional field. The name cannot be cleared.
        """
        client = self.get_client(client_id)

        updates = {
            UPDATABLE_FIELDS[field]: value
            for field, value in data.model_dump(exclude_unset=True).items()
            if field in UPDATABLE_FIELDS
        }
        if updates.get("name") is None:
            updates.pop("name", None)
        else:
            updates["name"] = updates["name"].strip()

        try:
            return self.repo.update_client(self.db, client, **updates)
        except StaleDataError:
            # A ledger operation committed against this client while we were editing it
            self.db.rollback()
            logger.warning(f"⚠️ Client {client_id} changed during update, rejecting")
            raise ConcurrencyConflictError(
                "Client was modified by another operation, please reload and try again",
                details={"clientId": client_id},
            )

    def get_payment_history(self, client_id: int) -> list[Payment]:
        """All payments recorded for a client, newest first"""
        self.get_client(client_id)
        return PaymentRepository.get_client_payments(self.db, client_id)
