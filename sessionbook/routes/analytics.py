"""
API endpoints for payment analytics and status recalculation
"""

import datetime as dt
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..database import get_db
from ..domain.sessions.schemas import SessionResponse
from ..services.analytics_service import AnalyticsService
from ..services.recalculation_service import RecalculationService

router = APIRouter(tags=["Analytics"])


class ClientStats(BaseModel):
    client_id: int
    total_sessions: int
    paid_sessions: int
    unpaid_sessions: int
    partially_paid_sessions: int
    total_paid: float
    total_allocated: float
    total_debt: float
    balance: float
    next_unpaid_session: Optional[SessionResponse] = None


class MonthlyStats(BaseModel):
    month: dt.date
    total_clients: int
    total_sessions: int
    total_payments: float
    total_debt: float


class RecalculationResult(BaseModel):
    clients: int
    sessions: int


@router.get("/analytics/clients/{client_id}", response_model=ClientStats)
async def get_client_stats(client_id: int, db: Session = Depends(get_db)):
    """Session counts, debt and unallocated balance for one client"""
    stats = AnalyticsService(db).get_client_stats(client_id)
    next_unpaid = stats.pop("next_unpaid_session")
    return ClientStats(
        **stats,
        next_unpaid_session=SessionResponse.model_validate(next_unpaid) if next_unpaid else None,
    )


@router.get("/analytics/monthly", response_model=MonthlyStats)
async def get_monthly_stats(
    month: Optional[dt.date] = Query(None, description="Any day of the month, defaults to today"),
    db: Session = Depends(get_db),
):
    return MonthlyStats(**AnalyticsService(db).get_monthly_stats(month))


@router.post("/recalculate", response_model=RecalculationResult)
async def recalculate_all(db: Session = Depends(get_db)):
    """
    Re-derive payment status for every session
    (statuses are computed on read, so this only refreshes derived views)
    """
    results = RecalculationService(db).recalculate_all()
    return RecalculationResult(
        clients=len(results), sessions=sum(len(sessions) for sessions in results.values())
    )
