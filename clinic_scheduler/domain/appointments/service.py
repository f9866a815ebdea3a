"""Appointment service - booking and cancellation against the session ledger"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...config import STRICT_REFERENCES
from ...models import Appointment
from ...shared.exceptions import NotFoundError
from ..clients.repository import ClientRepository
from ..ledger import LedgerGateway
from ..ledger.references import report_missing_reference
from ..ledger.rules import (
    UNPAID,
    calculate_package_progress,
    consume_session,
    return_session,
    validate_payment_amount,
)
from .repository import AppointmentRepository
from .schemas import AppointmentCreate

logger = logging.getLogger(__name__)


class AppointmentService:
    """Service layer for appointments; booking and cancellation go through the ledger gateway"""

    def __init__(self, db: Session, gateway: LedgerGateway, strict_references: bool = STRICT_REFERENCES):
        self.db = db
        self.gateway = gateway
        self.strict_references = strict_references
        self.repo = AppointmentRepository()

    def get_appointments(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        client_id: Optional[int] = None,
    ) -> list[Appointment]:
        return self.repo.get_appointments(self.db, start, end, client_id)

    def get_appointment(self, appointment_id: int) -> Appointment:
        appointment = self.repo.get_appointment_by_id(self.db, appointment_id)
        if not appointment:
            raise NotFoundError("Appointment not found", details={"appointmentId": appointment_id})
        return appointment

    def create_appointment(self, data: AppointmentCreate) -> Appointment:
        """
        Create an appointment, consuming one centralized session when it books
        against the client's pool.

        The pool check and the insert share one transaction, so an appointment
        that claims a centralized session is never created while the pool is
        empty. Raises InsufficientSessionsError in that case.
        """

        def body(db: Session) -> Appointment:
            if data.usedCentralRemaining:
                client = ClientRepository.get_client_by_id(db, data.clientId)
                if client is None:
                    raise NotFoundError("Client not found", details={"clientId": data.clientId})
                consume_session(client)

            return self.repo.add_appointment(
                db,
                client_id=data.clientId,
                title=data.title,
                start=data.start,
                end=data.end,
                location=data.location,
                is_package=data.isPackage,
                package_sessions=data.packageSessions,
                sessions_paid=0,
                amount=data.amount,
                amount_paid=0,
                payment_status=UNPAID,
                used_central_remaining=data.usedCentralRemaining,
            )

        appointment = self.gateway.run(
            "create_appointment",
            body,
            message="The client's session balance changed while booking, please try again",
        )
        if data.usedCentralRemaining:
            logger.info(
                f"✅ Appointment {appointment.id} booked for client {data.clientId} using a centralized session"
            )
        else:
            logger.info(f"✅ Appointment {appointment.id} booked for client {data.clientId}")
        return appointment

    def delete_appointment(self, appointment_id: int) -> dict:
        """
        Delete an appointment and, if it consumed a centralized session, return
        that session to the client's pool in the same transaction.
        """

        def body(db: Session) -> dict:
            appointment = self.repo.get_appointment_by_id(db, appointment_id)
            if appointment is None:
                report_missing_reference(
                    "delete_appointment", "appointment", appointment_id, strict=self.strict_references
                )
                return {"success": True, "sessionReturned": False}

            client = None
            if appointment.used_central_remaining:
                if appointment.client_id is not None:
                    client = ClientRepository.get_client_by_id(db, appointment.client_id)
                if client is None:
                    # Lossy: the consumed session has nowhere to go back to
                    report_missing_reference(
                        "delete_appointment", "client", appointment.client_id, strict=self.strict_references
                    )

            self.repo.delete_appointment(db, appointment)
            if client is not None:
                return_session(client)
                db.flush()

            return {"success": True, "sessionReturned": client is not None}

        result = self.gateway.run(
            "delete_appointment",
            body,
            message="The appointment changed while it was being cancelled, please try again",
        )
        logger.info(
            f"🗑️ Appointment {appointment_id} deleted (session returned: {result['sessionReturned']})"
        )
        return result

    def get_package_progress(self, appointment_id: int) -> float:
        return calculate_package_progress(self.get_appointment(appointment_id))

    def validate_payment_amount(self, appointment_id: int, amount) -> tuple[bool, Optional[str]]:
        return validate_payment_amount(amount, self.get_appointment(appointment_id))
