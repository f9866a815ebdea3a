"""Appointment router - FastAPI endpoints for bookings and package queries"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ..ledger import LedgerGateway, get_gateway
from ..payments.schemas import (
    AmountValidationRequest,
    AmountValidationResponse,
    PackageProgressResponse,
)
from .schemas import AppointmentCreate, AppointmentDeleteResult, AppointmentResponse
from .service import AppointmentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"])


def get_appointment_service(
    db: Session = Depends(get_db),
    gateway: LedgerGateway = Depends(get_gateway),
) -> AppointmentService:
    """Dependency injection for AppointmentService"""
    return AppointmentService(db, gateway)


@router.get("", response_model=list[AppointmentResponse])
async def get_appointments(
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    clientId: Optional[int] = Query(None),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Get appointments starting inside the calendar range"""
    appointments = service.get_appointments(start, end, clientId)
    return [AppointmentResponse.from_model(a) for a in appointments]


@router.post("", response_model=AppointmentResponse, status_code=201)
def create_appointment(
    data: AppointmentCreate,
    service: AppointmentService = Depends(get_appointment_service),
):
    """Book an appointment, consuming a centralized session when requested"""
    return AppointmentResponse.from_model(service.create_appointment(data))


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: int,
    service: AppointmentService = Depends(get_appointment_service),
):
    return AppointmentResponse.from_model(service.get_appointment(appointment_id))


@router.delete("/{appointment_id}", response_model=AppointmentDeleteResult)
def delete_appointment(
    appointment_id: int,
    service: AppointmentService = Depends(get_appointment_service),
):
    """Cancel an appointment, returning any centralized session it consumed"""
    return service.delete_appointment(appointment_id)


@router.get("/{appointment_id}/progress", response_model=PackageProgressResponse)
async def get_package_progress(
    appointment_id: int,
    service: AppointmentService = Depends(get_appointment_service),
):
    """Percentage of the package paid so far"""
    return PackageProgressResponse(
        appointmentId=appointment_id, progress=service.get_package_progress(appointment_id)
    )


@router.post("/{appointment_id}/validate-payment", response_model=AmountValidationResponse)
async def validate_payment_amount(
    appointment_id: int,
    data: AmountValidationRequest,
    service: AppointmentService = Depends(get_appointment_service),
):
    """Check a payment amount before it is collected"""
    valid, error = service.validate_payment_amount(appointment_id, data.amount)
    return AmountValidationResponse(valid=valid, error=error)
