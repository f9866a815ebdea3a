"""
Session ledger rules.

Pure functions that decide how a payment or booking event changes an
appointment's `sessions_paid`/`amount_paid`/`payment_status` and a client's
`remaining_sessions`. They mutate the ORM objects they are given and never
touch the session; the services call them inside a gateway transaction after
every read has been made.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ...models import Appointment, Client
from ...shared.exceptions import InsufficientSessionsError, ValidationError
from ...shared.validators import quantize_money, to_decimal
from ..payments.schemas import PackagePrepayment, PaymentBase, SinglePackageSessionPayment

logger = logging.getLogger(__name__)

UNPAID = "unpaid"
PARTIAL = "partial"
PAID = "paid"
PENDING_STATUSES = (UNPAID, PARTIAL)


def resolve_package_sessions(payment: PaymentBase, appointment: Optional[Appointment]) -> Optional[int]:
    """Package size from the payment, falling back to the appointment record"""
    if payment.requested_package_sessions is not None:
        return payment.requested_package_sessions
    if appointment is not None:
        return appointment.package_sessions
    return None


def check_sessions_within_package(
    appointment: Appointment, sessions_paid: int, package_sessions: Optional[int]
) -> None:
    """Refuse a payment that would mark more sessions paid than the package holds"""
    limit = appointment.package_sessions if appointment.package_sessions is not None else package_sessions
    if limit is not None and sessions_paid > limit:
        raise ValidationError(
            f"sessionsPaid ({sessions_paid}) cannot exceed the package's {limit} sessions",
            details={"appointmentId": appointment.id, "sessionsPaid": sessions_paid, "packageSessions": limit},
        )


def apply_payment_to_appointment(
    appointment: Appointment,
    payment: PaymentBase,
    amount: Decimal,
    package_sessions: Optional[int],
    now: datetime,
) -> str:
    """Update the appointment for one payment event and return its new payment status"""
    if payment.is_partial:
        appointment.amount_paid = quantize_money((appointment.amount_paid or Decimal("0")) + amount)
        appointment.payment_status = PARTIAL
    else:
        # A non-partial payment marks the item paid for the amount given
        appointment.amount_paid = quantize_money(amount)

        if isinstance(payment, PackagePrepayment):
            appointment.is_package = True
            if appointment.package_sessions is None:
                appointment.package_sessions = payment.packageSessions
            sessions_paid = payment.sessionsPaid if payment.sessionsPaid is not None else payment.packageSessions
            check_sessions_within_package(appointment, sessions_paid, package_sessions)
            appointment.sessions_paid = sessions_paid
            appointment.is_package_prepaid = True
            appointment.payment_status = PAID
        elif isinstance(payment, SinglePackageSessionPayment):
            sessions_paid = payment.sessionsPaid if payment.sessionsPaid is not None else 1
            check_sessions_within_package(appointment, sessions_paid, package_sessions)
            total = package_sessions or 1
            appointment.sessions_paid = sessions_paid
            appointment.payment_status = PAID if sessions_paid >= total else PARTIAL
        else:
            appointment.sessions_paid = 1
            appointment.payment_status = PAID

    appointment.last_payment_update = now
    return appointment.payment_status


def apply_payment_to_client(client: Client, payment: PaymentBase, package_sessions: Optional[int]) -> int:
    """Move the client's centralized pool for one payment event; returns the change applied"""
    if payment.is_package and payment.is_prepayment:
        # The package purchase itself covers the session being attended now
        credit = max(0, (package_sessions or 0) - 1)
        client.remaining_sessions += credit
        return credit

    if payment.is_package and client.remaining_sessions > 0:
        client.remaining_sessions -= 1
        return -1

    return 0


def consume_session(client: Client) -> None:
    """Take one session from the pool, refusing to overdraw it"""
    if client.remaining_sessions <= 0:
        raise InsufficientSessionsError(
            f"{client.name} has no remaining sessions to book against",
            details={"clientId": client.id, "remainingSessions": client.remaining_sessions},
        )
    client.remaining_sessions -= 1


def return_session(client: Client) -> None:
    client.remaining_sessions += 1


def calculate_package_progress(appointment) -> float:
    """Percentage of a package that has been paid; non-package appointments are always 100"""
    if not appointment.is_package:
        return 100.0

    total_sessions = appointment.package_sessions or 1
    sessions_paid = appointment.sessions_paid or 0

    return min(sessions_paid / total_sessions * 100, 100.0)


def validate_payment_amount(amount, appointment) -> tuple[bool, Optional[str]]:
    """
    Check a single payment amount against an appointment.

    Returns (valid, error_message). A package payment may not exceed one
    session's share of the package price.
    """
    numeric_amount = to_decimal(amount)

    if numeric_amount is None or numeric_amount < 0:
        return False, "Invalid amount"

    if appointment.is_package and appointment.package_sessions:
        session_amount = Decimal(appointment.amount or 0) / appointment.package_sessions
        if numeric_amount > session_amount:
            return False, f"Amount cannot exceed ${session_amount:.2f} per session"

    return True, None
