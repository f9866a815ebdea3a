"""Daily closure repository - Database operations for closed days"""

from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import DailyClosure, Payment


class ClosureRepository:
    """Repository for daily closure database operations"""

    @staticmethod
    def create_closure(db: Session, **closure_data) -> DailyClosure:
        closure = DailyClosure(**closure_data)
        db.add(closure)
        db.commit()
        db.refresh(closure)
        return closure

    @staticmethod
    def get_closures(
        db: Session,
        start: Optional[date] = None,
        end: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> list[DailyClosure]:
        """Get closures newest first, optionally within an inclusive date range"""
        query = db.query(DailyClosure)

        if start:
            query = query.filter(DailyClosure.date >= start)
        if end:
            query = query.filter(DailyClosure.date <= end)

        query = query.order_by(DailyClosure.date.desc())
        if limit and limit > 0:
            query = query.limit(limit)
        return query.all()

    @staticmethod
    def get_closure_by_date(db: Session, day: date) -> Optional[DailyClosure]:
        return db.query(DailyClosure).filter(DailyClosure.date == day).first()

    @staticmethod
    def get_latest_closure(db: Session) -> Optional[DailyClosure]:
        return db.query(DailyClosure).order_by(DailyClosure.date.desc()).first()

    @staticmethod
    def sum_payments_for_day(db: Session, day: date) -> Decimal:
        """Total of payments whose session falls on the given day"""
        start = datetime.combine(day, time.min)
        end = start + timedelta(days=1)
        total = (
            db.query(func.sum(Payment.amount))
            .filter(Payment.session_date >= start, Payment.session_date < end)
            .scalar()
        )
        return Decimal(total or 0)
