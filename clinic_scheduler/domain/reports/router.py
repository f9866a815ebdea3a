"""Report router - FastAPI endpoints for revenue reports"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from .schemas import RevenueSummary
from .service import ReportService

router = APIRouter(prefix="/reports", tags=["Reports"])


def get_report_service(db: Session = Depends(get_db)) -> ReportService:
    """Dependency injection for ReportService"""
    return ReportService(db)


@router.get("/revenue", response_model=RevenueSummary)
async def get_revenue_summary(
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    location: Optional[list[str]] = Query(None),
    clinicPercentage: Optional[float] = Query(None, ge=0, le=100),
    physicianPercentage: Optional[float] = Query(None, ge=0, le=100),
    service: ReportService = Depends(get_report_service),
):
    """Revenue totals for the range, defaulting to the current month"""
    return service.revenue_summary(start, end, location, clinicPercentage, physicianPercentage)


@router.get("/payments.csv")
async def export_payments_csv(
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    location: Optional[list[str]] = Query(None),
    service: ReportService = Depends(get_report_service),
):
    """Export payments as CSV"""
    return service.export_payments_csv(start, end, location)
