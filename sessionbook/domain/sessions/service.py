"""Calendar session service - Business logic for session operations"""

import logging
from datetime import date
from typing import Optional, Union

from sqlalchemy.orm import Session

from ...database import unit_of_work
from ...exceptions import NotFoundError
from ...models import CalendarSession
from ..clients.repository import ClientRepository
from .repository import SessionRepository
from .schemas import SessionCreate, SessionUpdate

logger = logging.getLogger(__name__)

# Editing any of these marks a session as hand-edited
MAIN_PARAMETERS = ("date", "start_time", "price_override", "client_id")


class SessionService:
    """Service layer for calendar session business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SessionRepository()

    def get_session(self, session_id: int) -> CalendarSession:
        session = self.repo.get_by_id(self.db, session_id)
        if not session:
            raise NotFoundError("CalendarSession", session_id)
        return session

    def create_custom(self, data: SessionCreate) -> CalendarSession:
        """Create a manually entered session"""
        with unit_of_work(self.db):
            if not ClientRepository.get_client_by_id(self.db, data.client_id):
                raise NotFoundError("Client", data.client_id)

            session = self.repo.create(
                self.db,
                client_id=data.client_id,
                date=data.date,
                start_time=data.start_time,
                duration_minutes=data.duration_minutes,
                status="planned",
                is_custom=True,
                price_override=data.price_override,
                notes=data.notes,
            )
        logger.info(f"Custom session {session.id} created for client {data.client_id} on {data.date}")
        return session

    def create_from_rule(
        self,
        client_id: int,
        session_date: date,
        start_time: str,
        duration_minutes: int,
        rule_id: str,
        price_override: Optional[float] = None,
    ) -> CalendarSession:
        """Create a session generated from a template rule (caller owns the transaction)"""
        return self.repo.create(
            self.db,
            client_id=client_id,
            date=session_date,
            start_time=start_time,
            duration_minutes=duration_minutes,
            status="planned",
            template_rule_id=rule_id,
            is_custom=False,
            price_override=price_override,
        )

    def update(self, session_id: int, data: Union[SessionUpdate, dict]) -> CalendarSession:
        """Apply the provided fields; editing main parameters sets is_edited"""
        updates = data if isinstance(data, dict) else data.model_dump(exclude_unset=True)

        with unit_of_work(self.db):
            session = self.get_session(session_id)
            if "client_id" in updates and not ClientRepository.get_client_by_id(
                self.db, updates["client_id"]
            ):
                raise NotFoundError("Client", updates["client_id"])

            if any(key in updates for key in MAIN_PARAMETERS):
                updates["is_edited"] = True
            self.repo.update(self.db, session, **updates)
        return session

    def cancel(self, session_id: int) -> CalendarSession:
        """Cancel a session; its allocations stay in place"""
        session = self.update(session_id, {"status": "canceled"})
        logger.info(f"Session {session_id} canceled")
        return session

    def complete(self, session_id: int) -> CalendarSession:
        return self.update(session_id, {"status": "completed"})

    def move(self, session_id: int, new_date: date, new_time: str) -> CalendarSession:
        return self.update(session_id, {"date": new_date, "start_time": new_time})

    def cancel_generated(
        self,
        client_id: int,
        on_or_after: Optional[date] = None,
        before: Optional[date] = None,
    ) -> int:
        """Cancel non-custom, non-canceled sessions of a client within the bounds"""
        with unit_of_work(self.db):
            sessions = self.repo.get_cancelable_generated(
                self.db, client_id, on_or_after=on_or_after, before=before
            )
            for session in sessions:
                self.repo.update(self.db, session, status="canceled")

        if sessions:
            logger.info(f"Canceled {len(sessions)} generated sessions for client {client_id}")
        return len(sessions)

    def get_by_client(
        self, client_id: int, date_from: Optional[date] = None, date_to: Optional[date] = None
    ) -> list[CalendarSession]:
        return self.repo.get_by_client(self.db, client_id, date_from=date_from, date_to=date_to)

    def get_by_date_range(self, date_from: date, date_to: date) -> list[CalendarSession]:
        return self.repo.get_by_date_range(self.db, date_from, date_to)

    def check_conflicts(
        self, session_date: date, start_time: str, exclude_session_id: Optional[int] = None
    ) -> list[CalendarSession]:
        """Non-canceled sessions of any client booked at the same slot"""
        return self.repo.find_conflicts(self.db, session_date, start_time, exclude_session_id)
