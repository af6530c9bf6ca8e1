"""Calendar session router - FastAPI endpoints for session operations"""

import datetime as dt
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ...services.analytics_service import AnalyticsService
from .schemas import SessionCreate, SessionMove, SessionPaymentState, SessionResponse, SessionUpdate
from .service import SessionService

router = APIRouter(prefix="/sessions", tags=["Sessions"])


def get_session_service(db: Session = Depends(get_db)) -> SessionService:
    """Dependency injection for SessionService"""
    return SessionService(db)


@router.get("", response_model=list[SessionResponse])
async def get_sessions(
    client_id: Optional[int] = Query(None),
    date_from: Optional[dt.date] = Query(None),
    date_to: Optional[dt.date] = Query(None),
    service: SessionService = Depends(get_session_service),
):
    """Sessions of one client, or of everyone within a date range"""
    if client_id is not None:
        return service.get_by_client(client_id, date_from, date_to)
    if date_from is None or date_to is None:
        raise HTTPException(status_code=400, detail="client_id or date_from and date_to are required")
    return service.get_by_date_range(date_from, date_to)


@router.post("", response_model=SessionResponse, status_code=201)
async def create_session(data: SessionCreate, service: SessionService = Depends(get_session_service)):
    """Create a custom (manually entered) session"""
    return service.create_custom(data)


@router.get("/conflicts", response_model=list[SessionResponse])
async def check_conflicts(
    date: dt.date = Query(...),
    start_time: str = Query(...),
    exclude_session_id: Optional[int] = Query(None),
    service: SessionService = Depends(get_session_service),
):
    return service.check_conflicts(date, start_time, exclude_session_id)


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(session_id: int, service: SessionService = Depends(get_session_service)):
    return service.get_session(session_id)


@router.patch("/{session_id}", response_model=SessionResponse)
async def update_session(
    session_id: int,
    data: SessionUpdate,
    service: SessionService = Depends(get_session_service),
):
    return service.update(session_id, data)


@router.post("/{session_id}/cancel", response_model=SessionResponse)
async def cancel_session(session_id: int, service: SessionService = Depends(get_session_service)):
    return service.cancel(session_id)


@router.post("/{session_id}/complete", response_model=SessionResponse)
async def complete_session(session_id: int, service: SessionService = Depends(get_session_service)):
    return service.complete(session_id)


@router.post("/{session_id}/move", response_model=SessionResponse)
async def move_session(
    session_id: int,
    data: SessionMove,
    service: SessionService = Depends(get_session_service),
):
    return service.move(session_id, data.date, data.start_time)


@router.get("/{session_id}/payment-state", response_model=SessionPaymentState)
async def get_session_payment_state(session_id: int, db: Session = Depends(get_db)):
    """Price, real and effective allocation of a session"""
    return SessionPaymentState(**AnalyticsService(db).get_session_payment_state(session_id))
