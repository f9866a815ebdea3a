from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.sql import func

from .database import Base

# Money columns: two decimal places, returned as Decimal
Money = Numeric(10, 2)


class Client(Base):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    phone_number = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)
    location = Column(String(255), nullable=True, index=True)
    notes = Column(Text, nullable=True)
    # Centralized pool of prepaid sessions usable for any future booking
    remaining_sessions = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
    # Optimistic concurrency counter, bumped on every UPDATE
    version = Column(Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version}


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(
        Integer, ForeignKey("clients.id", ondelete="SET NULL"), nullable=True, index=True
    )
    # Scheduling fields owned by the booking UI
    title = Column(String(255), nullable=True)
    start = Column(DateTime, nullable=True, index=True)
    end = Column(DateTime, nullable=True)
    location = Column(String(255), nullable=True, index=True)
    status = Column(String(50), default="scheduled")  # scheduled, completed, no_show

    # Package fields
    is_package = Column(Boolean, default=False, nullable=False)
    package_sessions = Column(Integer, nullable=True)  # Total sessions in the package
    sessions_paid = Column(Integer, default=0, nullable=False)
    is_package_prepaid = Column(Boolean, default=False, nullable=False)

    # Money
    amount = Column(Money, default=0, nullable=False)
    amount_paid = Column(Money, default=0, nullable=False)
    payment_status = Column(String(20), default="unpaid", nullable=False)  # unpaid, partial, paid
    last_payment_update = Column(DateTime, nullable=True)

    # True when creating this appointment consumed one unit of the client's pool
    used_central_remaining = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, server_default=func.now())
    version = Column(Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version}


class Payment(Base):
    """Immutable payment record, one per payment event"""

    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    # Plain references: payments outlive the appointments they paid for
    appointment_id = Column(Integer, nullable=True, index=True)
    client_id = Column(Integer, nullable=True, index=True)
    client_name = Column(String(255), nullable=True)
    kind = Column(String(30), nullable=False)  # full, package_prepayment, package_session, partial
    amount = Column(Money, nullable=False)
    payment_method = Column(String(50), nullable=True)
    payment_status = Column(String(20), nullable=False)
    is_package = Column(Boolean, default=False, nullable=False)
    is_prepayment = Column(Boolean, default=False, nullable=False)
    is_partial = Column(Boolean, default=False, nullable=False)
    package_sessions = Column(Integer, nullable=True)
    sessions_paid = Column(Integer, nullable=True)
    session_date = Column(DateTime, nullable=False, index=True)
    location = Column(String(255), nullable=True, index=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)


class Refund(Base):
    """Immutable refund record; does not touch the ledger"""

    __tablename__ = "refunds"

    id = Column(Integer, primary_key=True, index=True)
    original_payment_id = Column(Integer, ForeignKey("payments.id"), nullable=False, index=True)
    refund_amount = Column(Money, nullable=False)
    reason = Column(Text, nullable=True)
    refund_date = Column(DateTime, server_default=func.now(), nullable=False)
    status = Column(String(20), default="completed", nullable=False)


class DailyClosure(Base):
    """Closed-day revenue reconciliation"""

    __tablename__ = "daily_closures"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, unique=True, nullable=False, index=True)
    expected_revenue = Column(Money, default=0, nullable=False)
    confirmed_revenue = Column(Money, default=0, nullable=False)
    notes = Column(Text, default="", nullable=False)
    closed_at = Column(DateTime, server_default=func.now(), nullable=False)
