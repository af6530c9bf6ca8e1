"""Calendar session repository - Database operations for sessions"""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ...models import CalendarSession


class SessionRepository:
    """Repository for calendar session database operations"""

    @staticmethod
    def get_by_id(db: Session, session_id: int) -> Optional[CalendarSession]:
        return db.query(CalendarSession).filter(CalendarSession.id == session_id).first()

    @staticmethod
    def get_by_client(
        db: Session,
        client_id: int,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        include_canceled: bool = True,
    ) -> list[CalendarSession]:
        """Sessions of a client ordered by (date, start_time, id), optional inclusive range"""
        query = db.query(CalendarSession).filter(CalendarSession.client_id == client_id)
        if date_from:
            query = query.filter(CalendarSession.date >= date_from)
        if date_to:
            query = query.filter(CalendarSession.date <= date_to)
        if not include_canceled:
            query = query.filter(CalendarSession.status != "canceled")
        return query.order_by(
            CalendarSession.date, CalendarSession.start_time, CalendarSession.id
        ).all()

    @staticmethod
    def get_by_date_range(db: Session, date_from: date, date_to: date) -> list[CalendarSession]:
        return (
            db.query(CalendarSession)
            .filter(CalendarSession.date >= date_from, CalendarSession.date <= date_to)
            .order_by(CalendarSession.date, CalendarSession.start_time, CalendarSession.id)
            .all()
        )

    @staticmethod
    def find_slot(
        db: Session, client_id: int, session_date: date, start_time: str
    ) -> list[CalendarSession]:
        """All sessions of a client at one (date, start_time) slot"""
        return (
            db.query(CalendarSession)
            .filter(
                CalendarSession.client_id == client_id,
                CalendarSession.date == session_date,
                CalendarSession.start_time == start_time,
            )
            .order_by(CalendarSession.id)
            .all()
        )

    @staticmethod
    def find_conflicts(
        db: Session, session_date: date, start_time: str, exclude_id: Optional[int] = None
    ) -> list[CalendarSession]:
        query = db.query(CalendarSession).filter(
            CalendarSession.date == session_date,
            CalendarSession.start_time == start_time,
            CalendarSession.status != "canceled",
        )
        if exclude_id is not None:
            query = query.filter(CalendarSession.id != exclude_id)
        return query.all()

    @staticmethod
    def get_cancelable_generated(
        db: Session,
        client_id: int,
        on_or_after: Optional[date] = None,
        before: Optional[date] = None,
    ) -> list[CalendarSession]:
        """Non-custom, non-canceled sessions of a client bounded by the given dates"""
        query = db.query(CalendarSession).filter(
            CalendarSession.client_id == client_id,
            CalendarSession.status != "canceled",
            CalendarSession.is_custom.is_(False),
        )
        if on_or_after:
            query = query.filter(CalendarSession.date >= on_or_after)
        if before:
            query = query.filter(CalendarSession.date < before)
        return query.order_by(CalendarSession.date, CalendarSession.start_time).all()

    @staticmethod
    def create(db: Session, **session_data) -> CalendarSession:
        session = CalendarSession(**session_data)
        db.add(session)
        db.flush()
        return session

    @staticmethod
    def update(db: Session, session: CalendarSession, **updates) -> CalendarSession:
        for key, value in updates.items():
            if hasattr(session, key):
                setattr(session, key, value)
        db.flush()
        return session

    @staticmethod
    def delete_by_client(db: Session, client_id: int) -> int:
        return (
            db.query(CalendarSession)
            .filter(CalendarSession.client_id == client_id)
            .delete(synchronize_session=False)
        )
