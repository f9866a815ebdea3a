"""Report service - revenue summaries over recorded payments"""

import calendar
import csv
import logging
from datetime import datetime, time
from decimal import Decimal
from io import StringIO
from typing import Optional

from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from ...config import CLINIC_REVENUE_PERCENTAGE, PHYSICIAN_REVENUE_PERCENTAGE
from ...shared.validators import quantize_money
from ..appointments.repository import AppointmentRepository
from ..ledger.rules import PENDING_STATUSES
from ..payments.repository import PaymentRepository
from ..payments.schemas import PaymentResponse
from .schemas import RevenueSummary

logger = logging.getLogger(__name__)

RECENT_PAYMENTS = 5


def current_month_range(now: Optional[datetime] = None) -> tuple[datetime, datetime]:
    now = now or datetime.utcnow()
    last_day = calendar.monthrange(now.year, now.month)[1]
    start = datetime(now.year, now.month, 1)
    end = datetime.combine(now.replace(day=last_day).date(), time.max)
    return start, end


class ReportService:
    """Service layer for revenue reports"""

    def __init__(self, db: Session):
        self.db = db

    def revenue_summary(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        locations: Optional[list[str]] = None,
        clinic_percentage: Optional[float] = None,
        physician_percentage: Optional[float] = None,
    ) -> RevenueSummary:
        """Revenue for payments whose session falls in the range (default: this month)"""
        default_start, default_end = current_month_range()
        start = start or default_start
        end = end or default_end
        clinic_percentage = CLINIC_REVENUE_PERCENTAGE if clinic_percentage is None else clinic_percentage
        physician_percentage = (
            PHYSICIAN_REVENUE_PERCENTAGE if physician_percentage is None else physician_percentage
        )

        payments = PaymentRepository.get_payments(self.db, start, end, locations)

        total = Decimal("0")
        by_method: dict[str, Decimal] = {}
        by_client: dict[str, Decimal] = {}
        for payment in payments:
            amount = Decimal(payment.amount or 0)
            total += amount
            method = payment.payment_method or "unknown"
            by_method[method] = by_method.get(method, Decimal("0")) + amount
            client = payment.client_name or "Unknown Client"
            by_client[client] = by_client.get(client, Decimal("0")) + amount

        pending = AppointmentRepository.count_pending(self.db, PENDING_STATUSES, locations)

        logger.info(
            f"📊 Revenue summary {start:%Y-%m-%d}..{end:%Y-%m-%d}: "
            f"{len(payments)} payment(s), ${total:.2f}, {pending} pending"
        )

        return RevenueSummary(
            start=start,
            end=end,
            totalRevenue=quantize_money(total),
            clinicRevenue=quantize_money(total * Decimal(str(clinic_percentage)) / 100),
            physicianRevenue=quantize_money(total * Decimal(str(physician_percentage)) / 100),
            revenueByMethod={k: quantize_money(v) for k, v in by_method.items()},
            revenueByClient={k: quantize_money(v) for k, v in by_client.items()},
            paymentCount=len(payments),
            pendingPayments=pending,
            recentPayments=[PaymentResponse.from_model(p) for p in payments[:RECENT_PAYMENTS]],
        )

    def export_payments_csv(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        locations: Optional[list[str]] = None,
    ) -> StreamingResponse:
        """Export payments in the range as CSV"""
        payments = PaymentRepository.get_payments(self.db, start, end, locations)
        logger.info(f"📊 CSV export of {len(payments)} payment(s) requested")

        output = StringIO()
        writer = csv.writer(output)

        writer.writerow(
            [
                "ID",
                "Session Date",
                "Client",
                "Amount",
                "Method",
                "Status",
                "Kind",
                "Sessions Paid",
                "Package Sessions",
                "Location",
                "Created At",
            ]
        )

        for payment in payments:
            writer.writerow(
                [
                    payment.id,
                    payment.session_date.strftime("%Y-%m-%d %H:%M") if payment.session_date else "",
                    payment.client_name or "",
                    f"{Decimal(payment.amount or 0):.2f}",
                    payment.payment_method or "",
                    payment.payment_status or "",
                    payment.kind or "",
                    payment.sessions_paid if payment.sessions_paid is not None else "",
                    payment.package_sessions if payment.package_sessions is not None else "",
                    payment.location or "",
                    payment.created_at.strftime("%Y-%m-%d %H:%M:%S") if payment.created_at else "",
                ]
            )

        output.seek(0)
        filename = f"payments_export_{datetime.now().strftime('%Y%m%d_%H%M%S')}.csv"

        logger.info(f"✅ CSV export successful: {filename} ({len(payments)} payments)")

        return StreamingResponse(
            iter([output.getvalue()]),
            media_type="text/csv",
            headers={
                "Content-Disposition": f"attachment; filename={filename}",
                "Cache-Control": "no-cache",
            },
        )
