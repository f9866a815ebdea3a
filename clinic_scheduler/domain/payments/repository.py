"""Payment repository - Database operations for payments and refunds"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...models import Payment, Refund


class PaymentRepository:
    """
    Repository for payment database operations.

    Writes only flush: the caller's transaction decides when to commit.
    """

    @staticmethod
    def add_payment(db: Session, **payment_data) -> Payment:
        payment = Payment(**payment_data)
        db.add(payment)
        db.flush()
        db.refresh(payment)
        return payment

    @staticmethod
    def get_payment_by_id(db: Session, payment_id: int) -> Optional[Payment]:
        return db.query(Payment).filter(Payment.id == payment_id).first()

    @staticmethod
    def get_payments(
        db: Session,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        locations: Optional[list[str]] = None,
        limit: Optional[int] = None,
    ) -> list[Payment]:
        """Get payments by session date range, newest first"""
        query = db.query(Payment)

        if start:
            query = query.filter(Payment.session_date >= start)
        if end:
            query = query.filter(Payment.session_date <= end)
        if locations:
            query = query.filter(Payment.location.in_(locations))

        query = query.order_by(Payment.session_date.desc(), Payment.id.desc())
        if limit:
            query = query.limit(limit)
        return query.all()

    @staticmethod
    def get_client_payments(db: Session, client_id: int) -> list[Payment]:
        return (
            db.query(Payment)
            .filter(Payment.client_id == client_id)
            .order_by(Payment.created_at.desc(), Payment.id.desc())
            .all()
        )

    @staticmethod
    def add_refund(db: Session, **refund_data) -> Refund:
        refund = Refund(**refund_data)
        db.add(refund)
        db.flush()
        db.refresh(refund)
        return refund

    @staticmethod
    def get_refunds(db: Session, original_payment_id: Optional[int] = None) -> list[Refund]:
        query = db.query(Refund)
        if original_payment_id is not None:
            query = query.filter(Refund.original_payment_id == original_payment_id)
        return query.order_by(Refund.refund_date.desc(), Refund.id.desc()).all()
