"""Payment router - FastAPI endpoints for payments and refunds"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ..ledger import LedgerGateway, get_gateway
from .schemas import (
    LegacyPaymentRequest,
    PaymentRequest,
    PaymentResponse,
    PaymentResult,
    RefundRequest,
    RefundResponse,
    RefundResult,
)
from .service import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])
refunds_router = APIRouter(prefix="/refunds", tags=["Refunds"])


def get_payment_service(
    db: Session = Depends(get_db),
    gateway: LedgerGateway = Depends(get_gateway),
) -> PaymentService:
    """Dependency injection for PaymentService"""
    return PaymentService(db, gateway)


@router.get("", response_model=list[PaymentResponse])
async def get_payments(
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    location: Optional[list[str]] = Query(None),
    service: PaymentService = Depends(get_payment_service),
):
    """Get payments by session date, newest first, optionally for some locations"""
    return [PaymentResponse.from_model(p) for p in service.get_payments(start, end, location)]


@router.post("", response_model=PaymentResult)
def record_payment(
    payment: PaymentRequest,
    service: PaymentService = Depends(get_payment_service),
):
    """
    Record a payment.

    The body is tagged by `kind`: full, package_prepayment, package_session
    or partial. Failures come back as {"success": false, "error": ...}.
    """
    return service.record_payment(payment)


@router.post("/legacy", response_model=PaymentResult)
def record_legacy_payment(
    data: LegacyPaymentRequest,
    service: PaymentService = Depends(get_payment_service),
):
    """Record a payment sent as the front end's flat isPackage/isPrepayment/isPartial payload"""
    return service.record_legacy_payment(data)


@refunds_router.get("", response_model=list[RefundResponse])
async def get_refunds(
    originalPaymentId: Optional[int] = Query(None),
    service: PaymentService = Depends(get_payment_service),
):
    return [RefundResponse.from_model(r) for r in service.get_refunds(originalPaymentId)]


@refunds_router.post("", response_model=RefundResult)
def refund_payment(
    data: RefundRequest,
    service: PaymentService = Depends(get_payment_service),
):
    """Record a refund; the original payment and session balances are not reversed"""
    return service.refund_payment(data.originalPaymentId, data.refundAmount, data.reason)
