"""Daily closure service - closing a day's books against recorded payments"""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models import DailyClosure
from ...shared.validators import quantize_money
from .repository import ClosureRepository
from .schemas import DailyClosureCreate

logger = logging.getLogger(__name__)


class ClosureService:
    """Service layer for daily revenue closures"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ClosureRepository()

    def expected_revenue(self, day: date) -> Decimal:
        """Revenue the payment records say was collected on a day"""
        return quantize_money(self.repo.sum_payments_for_day(self.db, day))

    def record_daily_closure(self, data: DailyClosureCreate) -> dict:
        """
        Close a day, storing expected and confirmed revenue.

        A day can only be closed once. Returns {"success": True, "id": ...} or
        {"success": False, "error": ...}.
        """
        if self.check_if_day_closed(data.date):
            logger.warning(f"⚠️ Day {data.date} is already closed")
            return {
                "success": False,
                "error": f"{data.date.isoformat()} has already been closed",
                "code": "DAY_ALREADY_CLOSED",
            }

        expected = data.expectedRevenue
        if expected is None:
            expected = self.expected_revenue(data.date)

        try:
            closure = self.repo.create_closure(
                self.db,
                date=data.date,
                expected_revenue=quantize_money(expected),
                confirmed_revenue=quantize_money(data.confirmedRevenue),
                notes=data.notes or "",
                closed_at=datetime.utcnow(),
            )
        except IntegrityError:
            # Another closure for the same day won the unique constraint
            self.db.rollback()
            logger.warning(f"⚠️ Day {data.date} was closed concurrently")
            return {
                "success": False,
                "error": f"{data.date.isoformat()} has already been closed",
                "code": "DAY_ALREADY_CLOSED",
            }

        difference = closure.confirmed_revenue - closure.expected_revenue
        if difference:
            logger.warning(
                f"⚠️ Day {data.date} closed with a ${difference:.2f} difference "
                f"(expected ${closure.expected_revenue:.2f}, confirmed ${closure.confirmed_revenue:.2f})"
            )
        logger.info(f"✅ Daily closure recorded with ID: {closure.id}")
        return {"success": True, "id": closure.id}

    def get_daily_closures(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> list[DailyClosure]:
        return self.repo.get_closures(self.db, start, end, limit)

    def check_if_day_closed(self, day: date) -> bool:
        return self.repo.get_closure_by_date(self.db, day) is not None

    def get_latest_closure(self) -> Optional[DailyClosure]:
        return self.repo.get_latest_closure(self.db)
