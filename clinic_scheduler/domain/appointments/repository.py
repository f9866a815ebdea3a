"""Appointment repository - Database operations for appointments"""

from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Appointment


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def get_appointments(
        db: Session,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        client_id: Optional[int] = None,
    ) -> list[Appointment]:
        """Get appointments whose start falls in the range, earliest first"""
        query = db.query(Appointment)

        if start:
            query = query.filter(Appointment.start >= start)
        if end:
            query = query.filter(Appointment.start <= end)
        if client_id is not None:
            query = query.filter(Appointment.client_id == client_id)

        return query.order_by(Appointment.start.asc(), Appointment.id.asc()).all()

    @staticmethod
    def get_appointment_by_id(db: Session, appointment_id: int) -> Optional[Appointment]:
        return db.query(Appointment).filter(Appointment.id == appointment_id).first()

    @staticmethod
    def add_appointment(db: Session, **appointment_data) -> Appointment:
        """Add an appointment to the caller's transaction"""
        appointment = Appointment(**appointment_data)
        db.add(appointment)
        db.flush()
        db.refresh(appointment)
        return appointment

    @staticmethod
    def delete_appointment(db: Session, appointment: Appointment) -> None:
        db.delete(appointment)
        db.flush()

    @staticmethod
    def count_pending(db: Session, statuses: tuple[str, ...], locations: Optional[list[str]] = None) -> int:
        """Count appointments still waiting on payment"""
        query = db.query(func.count(Appointment.id)).filter(Appointment.payment_status.in_(statuses))
        if locations:
            query = query.filter(Appointment.location.in_(locations))
        return query.scalar() or 0
