"""Daily closure schemas - Pydantic models for validation"""

import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class DailyClosureCreate(BaseModel):
    """Schema for closing a day"""

    date: dt.date
    # Computed from the day's payments when omitted
    expectedRevenue: Optional[Decimal] = Field(default=None, ge=0)
    confirmedRevenue: Decimal = Field(default=Decimal("0"), ge=0)
    notes: str = ""


class DailyClosureResponse(BaseModel):
    id: int
    date: dt.date
    expectedRevenue: Decimal
    confirmedRevenue: Decimal
    # Confirmed minus expected; negative when cash came up short
    difference: Decimal
    notes: str
    closedAt: Optional[dt.datetime]

    @classmethod
    def from_model(cls, closure) -> "DailyClosureResponse":
        return cls(
            id=closure.id,
            date=closure.date,
            expectedRevenue=closure.expected_revenue,
            confirmedRevenue=closure.confirmed_revenue,
            difference=closure.confirmed_revenue - closure.expected_revenue,
            notes=closure.notes or "",
            closedAt=closure.closed_at,
        )


class ClosureResult(BaseModel):
    success: bool
    id: Optional[int] = None
    error: Optional[str] = None
    code: Optional[str] = None


class DayClosedResponse(BaseModel):
    date: dt.date
    closed: bool


class ExpectedRevenueResponse(BaseModel):
    date: dt.date
    expectedRevenue: Decimal
