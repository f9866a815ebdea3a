"""
Tests for transactional retry and optimistic concurrency in the ledger gateway
"""

from decimal import Decimal

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from clinic_scheduler.domain.appointments.schemas import AppointmentCreate
from clinic_scheduler.domain.appointments.service import AppointmentService
from clinic_scheduler.domain.payments.schemas import PackagePrepayment
from clinic_scheduler.domain.payments.service import PaymentService
from clinic_scheduler.models import Appointment, Client
from clinic_scheduler.shared.exceptions import (
    ConcurrencyConflictError,
    InsufficientSessionsError,
    PaymentProcessingError,
)

from .base import (
    SESSION_DATE,
    ConcurrentWriterSessionFactory,
    FlakyCommitSessionFactory,
    LedgerTestCase,
)


class GatewayRunTest(LedgerTestCase):
    """Test LedgerGateway.run directly"""

    def test_commits_body_result(self):
        client = self.create_client(remaining_sessions=1)

        def body(db):
            row = db.get(Client, client.id)
            row.remaining_sessions = 9
            return "done"

        self.assertEqual(self.gateway.run("set_sessions", body), "done")
        self.assertEqual(self.reload(Client, client.id).remaining_sessions, 9)

    def test_domain_error_rolls_back_without_retry(self):
        client = self.create_client(remaining_sessions=1)
        calls = []

        def body(db):
            calls.append(1)
            db.get(Client, client.id).remaining_sessions = 0
            db.flush()
            raise InsufficientSessionsError("nope")

        with self.assertRaises(InsufficientSessionsError):
            self.gateway.run("failing", body, retries=2)

        self.assertEqual(len(calls), 1)
        self.assertEqual(self.sleeps, [])
        self.assertEqual(self.reload(Client, client.id).remaining_sessions, 1)

    def test_transient_failures_retry_with_linear_backoff(self):
        factory = FlakyCommitSessionFactory(self.SessionLocal, failures=2)
        gateway = self.make_gateway(factory)

        self.assertEqual(gateway.run("flaky", lambda db: 42, retries=2), 42)
        self.assertEqual(factory.sessions_opened, 3)
        self.assertEqual(self.sleeps, [0.25, 0.5])

    def test_exhausted_retries_raise_requested_error(self):
        gateway = self.make_gateway(FlakyCommitSessionFactory(self.SessionLocal, failures=5))

        with self.assertRaises(PaymentProcessingError) as ctx:
            gateway.run("flaky", lambda db: 42, retries=1, error_cls=PaymentProcessingError, message="boom")

        self.assertEqual(ctx.exception.message, "boom")
        self.assertEqual(ctx.exception.details, {"operation": "flaky", "attempts": 2})
        self.assertIsInstance(ctx.exception.__cause__, OperationalError)


class RecordPaymentRetryTest(LedgerTestCase):
    """Test that Record Payment replays its whole transaction on transient failure"""

    def prepayment(self, appointment, client) -> PackagePrepayment:
        return PackagePrepayment(
            appointmentId=appointment.id,
            clientId=client.id,
            amount=Decimal("200"),
            sessionDate=SESSION_DATE,
            packageSessions=4,
        )

    def test_succeeds_after_two_transient_failures(self):
        client = self.create_client(remaining_sessions=0)
        appointment = self.create_appointment(client, is_package=True, package_sessions=4)
        gateway = self.make_gateway(FlakyCommitSessionFactory(self.SessionLocal, failures=2))

        result = PaymentService(self.db, gateway, max_retries=2).record_payment(self.prepayment(appointment, client))

        self.assertTrue(result["success"])
        self.assertEqual(self.sleeps, [0.25, 0.5])
        self.assertEqual(self.payment_count(), 1)
        self.assertEqual(self.reload(Client, client.id).remaining_sessions, 3)

    def test_three_transient_failures_leave_no_writes(self):
        client = self.create_client(remaining_sessions=0)
        appointment = self.create_appointment(client, is_package=True, package_sessions=4)
        gateway = self.make_gateway(FlakyCommitSessionFactory(self.SessionLocal, failures=3))

        result = PaymentService(self.db, gateway, max_retries=2).record_payment(self.prepayment(appointment, client))

        self.assertEqual(
            result,
            {"success": False, "error": "Failed to process payment", "code": "PAYMENT_PROCESSING_ERROR"},
        )
        self.assertEqual(self.sleeps, [0.25, 0.5])
        self.assertEqual(self.payment_count(), 0)
        self.assertEqual(self.reload(Client, client.id).remaining_sessions, 0)
        appointment = self.reload(Appointment, appointment.id)
        self.assertEqual(appointment.sessions_paid, 0)
        self.assertEqual(appointment.payment_status, "unpaid")

    def test_concurrent_client_change_is_replayed(self):
        client = self.create_client(remaining_sessions=0)
        appointment = self.create_appointment(client, is_package=True, package_sessions=4)
        gateway = self.make_gateway(
            ConcurrentWriterSessionFactory(self.SessionLocal, self.engine, client.id, sessions_added=5)
        )

        result = PaymentService(self.db, gateway, max_retries=2).record_payment(self.prepayment(appointment, client))

        self.assertTrue(result["success"])
        self.assertEqual(self.sleeps, [0.25])
        # Both the competing +5 and the prepayment's +3 survive
        self.assertEqual(self.reload(Client, client.id).remaining_sessions, 8)
        self.assertEqual(self.payment_count(), 1)


class BookingConflictTest(LedgerTestCase):
    """Test that booking does not retry when it loses a race"""

    def test_concurrent_change_during_booking_fails_without_writes(self):
        client = self.create_client(remaining_sessions=1)
        gateway = self.make_gateway(
            ConcurrentWriterSessionFactory(self.SessionLocal, self.engine, client.id, sessions_added=5)
        )
        service = AppointmentService(self.db, gateway)

        with self.assertRaises(ConcurrencyConflictError):
            service.create_appointment(AppointmentCreate(clientId=client.id, usedCentralRemaining=True))

        self.assertEqual(self.sleeps, [])
        self.assertEqual(self.reload(Client, client.id).remaining_sessions, 6)
        self.db.expire_all()
        self.assertEqual(self.db.query(Appointment).count(), 0)

    def test_stale_client_edit_is_rejected(self):
        client = self.create_client(remaining_sessions=2)
        other = self.SessionLocal()
        try:
            stale = other.get(Client, client.id)
            # A booking commits against the client after it was loaded here
            AppointmentService(self.db, self.gateway).create_appointment(
                AppointmentCreate(clientId=client.id, usedCentralRemaining=True)
            )
            stale.remaining_sessions = 5
            with self.assertRaises(StaleDataError):
                other.commit()
        finally:
            other.rollback()
            other.close()

        self.assertEqual(self.reload(Client, client.id).remaining_sessions, 1)
