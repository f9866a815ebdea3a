"""Payment service - records payments against the session ledger"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.orm import Session

from ...config import PAYMENT_MAX_RETRIES, STRICT_REFERENCES
from ...models import Payment, Refund
from ...shared.exceptions import LedgerError, PaymentProcessingError, ValidationError
from ...shared.validators import quantize_money, to_decimal
from ..appointments.repository import AppointmentRepository
from ..clients.repository import ClientRepository
from ..ledger import LedgerGateway
from ..ledger.references import report_missing_reference
from ..ledger.rules import (
    PAID,
    PARTIAL,
    apply_payment_to_appointment,
    apply_payment_to_client,
    resolve_package_sessions,
)
from .repository import PaymentRepository
from .schemas import LegacyPaymentRequest, PaymentBase

logger = logging.getLogger(__name__)


class PaymentService:
    """Service layer for payments and refunds"""

    def __init__(
        self,
        db: Session,
        gateway: LedgerGateway,
        max_retries: int = PAYMENT_MAX_RETRIES,
        strict_references: bool = STRICT_REFERENCES,
    ):
        self.db = db
        self.gateway = gateway
        self.max_retries = max_retries
        self.strict_references = strict_references
        self.repo = PaymentRepository()

    def record_payment(self, payment: PaymentBase) -> dict:
        """
        Record a payment and apply it to the appointment and client ledger.

        The payment record, the appointment update and the client's session
        pool change are committed together or not at all. Transient failures
        are retried with linear backoff. The outcome is always reported as
        {"success": ..., ...}; nothing is raised to the caller.
        """
        try:
            amount = self._validated_amount(payment.amount)

            payment_id = self.gateway.run(
                "record_payment",
                lambda db: self._apply_payment(db, payment, amount),
                retries=self.max_retries,
                error_cls=PaymentProcessingError,
                message="Failed to process payment",
            )
        except LedgerError as e:
            logger.log(e.log_level, f"❌ Payment failed ({e.code}): {e.message}")
            return {"success": False, "error": e.message, "code": e.code}
        except Exception as e:
            logger.exception(f"❌ Payment processing error: {e}")
            return {
                "success": False,
                "error": "Failed to process payment",
                "code": PaymentProcessingError.code,
            }

        logger.info(f"✅ Payment of ${amount:.2f} recorded successfully (payment_id={payment_id})")
        return {"success": True, "paymentId": payment_id}

    def record_legacy_payment(self, data: LegacyPaymentRequest) -> dict:
        """
        Record a payment sent as the front end's flat payload.

        A package prepayment that leaves out packageSessions takes the size
        stored on its appointment.
        """
        package_sessions = data.packageSessions
        if data.is_package_prepayment and package_sessions is None:
            appointment = AppointmentRepository.get_appointment_by_id(self.db, data.appointmentId)
            package_sessions = appointment.package_sessions if appointment is not None else None
            if package_sessions is None:
                logger.warning(f"⚠️ No package size for prepayment on appointment {data.appointmentId}")
                return {
                    "success": False,
                    "error": "packageSessions is required for a package prepayment",
                    "code": ValidationError.code,
                }

        try:
            payment = data.to_variant(package_sessions)
        except SchemaValidationError as e:
            logger.warning(f"⚠️ Legacy payment rejected: {e.errors()[0]['msg']}")
            return {"success": False, "error": e.errors()[0]["msg"], "code": ValidationError.code}

        return self.record_payment(payment)

    def _validated_amount(self, raw_amount) -> Decimal:
        amount = to_decimal(raw_amount)
        if amount is None:
            raise ValidationError("Payment amount must be a number")
        if amount < 0:
            raise ValidationError("Payment amount cannot be negative")
        if amount == 0:
            logger.warning("⚠️ Processing payment with zero amount")
        return quantize_money(amount)

    def _apply_payment(self, db: Session, payment: PaymentBase, amount: Decimal) -> int:
        # Reads first: everything the transaction touches is loaded before any write
        appointment = None
        if payment.appointmentId is not None:
            appointment = AppointmentRepository.get_appointment_by_id(db, payment.appointmentId)
            if appointment is None:
                report_missing_reference(
                    "record_payment", "appointment", payment.appointmentId, strict=self.strict_references
                )

        client = None
        if payment.clientId is not None:
            client = ClientRepository.get_client_by_id(db, payment.clientId)
            if client is None:
                report_missing_reference(
                    "record_payment", "client", payment.clientId, strict=self.strict_references
                )

        now = datetime.utcnow()
        package_sessions = resolve_package_sessions(payment, appointment)

        payment_status = PARTIAL if payment.is_partial else PAID
        if appointment is not None:
            payment_status = apply_payment_to_appointment(
                appointment, payment, amount, package_sessions, now
            )

        if client is not None:
            change = apply_payment_to_client(client, payment, package_sessions)
            if change:
                logger.info(
                    f"🎟️ Client {client.id} remaining sessions {change:+d} -> {client.remaining_sessions}"
                )

        sessions_paid = (
            appointment.sessions_paid if appointment is not None else payment.requested_sessions_paid
        )
        record = self.repo.add_payment(
            db,
            appointment_id=payment.appointmentId,
            client_id=payment.clientId,
            client_name=payment.clientName,
            kind=payment.kind,
            amount=amount,
            payment_method=payment.paymentMethod,
            payment_status=payment_status,
            is_package=payment.is_package,
            is_prepayment=payment.is_prepayment,
            is_partial=payment.is_partial,
            package_sessions=package_sessions if payment.is_package else None,
            sessions_paid=sessions_paid,
            session_date=payment.sessionDate,
            location=payment.location,
            created_at=now,
        )
        return record.id

    def refund_payment(self, payment_id: int, refund_amount, reason: Optional[str] = None) -> dict:
        """
        Record a refund against a payment.

        Refunds are separate records: the original payment, the appointment's
        amountPaid/sessionsPaid and the client's remaining sessions are left
        as they are.
        """
        try:
            amount = to_decimal(refund_amount)
            if amount is None or amount < 0:
                raise ValidationError("Refund amount must be a non-negative number")
            amount = quantize_money(amount)

            def body(db: Session) -> int:
                if PaymentRepository.get_payment_by_id(db, payment_id) is None:
                    raise ValidationError(
                        "Original payment not found", details={"originalPaymentId": payment_id}
                    )
                refund = self.repo.add_refund(
                    db,
                    original_payment_id=payment_id,
                    refund_amount=amount,
                    reason=reason,
                    refund_date=datetime.utcnow(),
                    status="completed",
                )
                return refund.id

            refund_id = self.gateway.run("refund_payment", body, message="Failed to process refund")
        except LedgerError as e:
            logger.log(e.log_level, f"❌ Refund failed ({e.code}): {e.message}")
            return {"success": False, "error": e.message, "code": e.code}
        except Exception as e:
            logger.exception(f"❌ Refund processing error: {e}")
            return {"success": False, "error": "Failed to process refund", "code": "REFUND_FAILED"}

        logger.info(f"✅ Refund of ${amount:.2f} completed for payment {payment_id} (refund_id={refund_id})")
        return {"success": True, "refundId": refund_id}

    def get_payments(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        locations: Optional[list[str]] = None,
    ) -> list[Payment]:
        return self.repo.get_payments(self.db, start, end, locations)

    def get_refunds(self, original_payment_id: Optional[int] = None) -> list[Refund]:
        return self.repo.get_refunds(self.db, original_payment_id)
