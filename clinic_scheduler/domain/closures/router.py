"""Daily closure router - FastAPI endpoints for closing days"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ...shared.exceptions import NotFoundError
from .schemas import (
    ClosureResult,
    DailyClosureCreate,
    DailyClosureResponse,
    DayClosedResponse,
    ExpectedRevenueResponse,
)
from .service import ClosureService

router = APIRouter(prefix="/closures", tags=["Daily Closures"])


def get_closure_service(db: Session = Depends(get_db)) -> ClosureService:
    """Dependency injection for ClosureService"""
    return ClosureService(db)


@router.get("", response_model=list[DailyClosureResponse])
async def get_daily_closures(
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    limit: Optional[int] = Query(None, ge=1),
    service: ClosureService = Depends(get_closure_service),
):
    """Closed days, newest first"""
    return [DailyClosureResponse.from_model(c) for c in service.get_daily_closures(start, end, limit)]


@router.post("", response_model=ClosureResult)
async def record_daily_closure(
    data: DailyClosureCreate,
    service: ClosureService = Depends(get_closure_service),
):
    """Close a day with the revenue counted by the front desk"""
    return service.record_daily_closure(data)


@router.get("/latest", response_model=DailyClosureResponse)
async def get_latest_closure(service: ClosureService = Depends(get_closure_service)):
    closure = service.get_latest_closure()
    if closure is None:
        raise NotFoundError("No days have been closed yet")
    return DailyClosureResponse.from_model(closure)


@router.get("/check", response_model=DayClosedResponse)
async def check_if_day_closed(
    day: date = Query(..., alias="date"),
    service: ClosureService = Depends(get_closure_service),
):
    return DayClosedResponse(date=day, closed=service.check_if_day_closed(day))


@router.get("/expected", response_model=ExpectedRevenueResponse)
async def get_expected_revenue(
    day: date = Query(..., alias="date"),
    service: ClosureService = Depends(get_closure_service),
):
    """Revenue recorded in payments for a day, used to pre-fill a closure"""
    return ExpectedRevenueResponse(date=day, expectedRevenue=service.expected_revenue(day))
