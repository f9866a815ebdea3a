"""Appointment domain schemas - Pydantic models for validation"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class AppointmentCreate(BaseModel):
    """Schema for booking an appointment or recording a package purchase"""

    clientId: int
    title: Optional[str] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    location: Optional[str] = None
    isPackage: bool = False
    packageSessions: Optional[int] = Field(default=None, ge=1)
    amount: Decimal = Field(default=Decimal("0"), ge=0)
    # Book against the client's centralized pool of prepaid sessions
    usedCentralRemaining: bool = False

    @model_validator(mode="after")
    def validate_appointment(self) -> "AppointmentCreate":
        if self.start and self.end and self.end < self.start:
            raise ValueError("end must not be before start")
        if self.isPackage and self.packageSessions is None:
            raise ValueError("packageSessions is required for a package")
        return self


class AppointmentResponse(BaseModel):
    """Schema for appointment response"""

    id: int
    clientId: Optional[int]
    title: Optional[str]
    start: Optional[datetime]
    end: Optional[datetime]
    location: Optional[str]
    status: Optional[str]
    isPackage: bool
    packageSessions: Optional[int]
    sessionsPaid: int
    isPackagePrepaid: bool
    amount: Decimal
    amountPaid: Decimal
    paymentStatus: str
    usedCentralRemaining: bool
    lastPaymentUpdate: Optional[datetime] = None
    createdAt: Optional[datetime] = None

    @classmethod
    def from_model(cls, appointment) -> "AppointmentResponse":
        return cls(
            id=appointment.id,
            clientId=appointment.client_id,
            title=appointment.title,
            start=appointment.start,
            end=appointment.end,
            location=appointment.location,
            status=appointment.status,
            isPackage=appointment.is_package,
            packageSessions=appointment.package_sessions,
            sessionsPaid=appointment.sessions_paid,
            isPackagePrepaid=appointment.is_package_prepaid,
            amount=appointment.amount,
            amountPaid=appointment.amount_paid,
            paymentStatus=appointment.payment_status,
            usedCentralRemaining=appointment.used_central_remaining,
            lastPaymentUpdate=appointment.last_payment_update,
            createdAt=appointment.created_at,
        )


class AppointmentDeleteResult(BaseModel):
    success: bool
    sessionReturned: bool
