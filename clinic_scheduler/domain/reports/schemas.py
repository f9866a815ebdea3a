"""Report schemas"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel

from ..payments.schemas import PaymentResponse


class RevenueSummary(BaseModel):
    start: datetime
    end: datetime
    totalRevenue: Decimal
    clinicRevenue: Decimal
    physicianRevenue: Decimal
    revenueByMethod: dict[str, Decimal]
    revenueByClient: dict[str, Decimal]
    paymentCount: int
    # Appointments still unpaid or partially paid
    pendingPayments: int
    recentPayments: list[PaymentResponse]
