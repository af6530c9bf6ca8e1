"""
Recalculation of derived payment status.

Payment status is never stored: it is computed from allocations and the
resolved price every time. The recalculate_* methods are the single place
mutations report to, so a cache can be added here without touching callers.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..domain.clients.repository import ClientRepository
from ..domain.payments.pricing import SessionPricingResolver
from ..domain.payments.repository import PaymentRepository
from ..domain.sessions.repository import SessionRepository
from ..exceptions import NotFoundError

logger = logging.getLogger(__name__)

PAID = "paid"
PARTIALLY_PAID = "partially_paid"
UNPAID = "unpaid"

# Float money: differences below this are rounding noise (e.g. 100 / 3 per session)
MONEY_EPSILON = 1e-6


def classify_payment(allocated: float, price: float) -> str:
    """paid / partially_paid / unpaid; a zero price is always paid"""
    if allocated >= price - MONEY_EPSILON:
        return PAID
    if allocated > MONEY_EPSILON:
        return PARTIALLY_PAID
    return UNPAID


class RecalculationService:
    """Invalidation seam for derived session payment status"""

    def __init__(self, db: Session, resolver: Optional[SessionPricingResolver] = None):
        self.db = db
        self.resolver = resolver or SessionPricingResolver(db)

    def session_status(self, session_id: int) -> str:
        session = SessionRepository.get_by_id(self.db, session_id)
        if not session:
            raise NotFoundError("CalendarSession", session_id)
        allocated = PaymentRepository.sum_by_session(self.db, session_id)
        price = self.resolver.price_for(session)
        return classify_payment(allocated, price)

    def recalculate_session(self, session_id: int) -> str:
        status = self.session_status(session_id)
        logger.debug(f"Session {session_id} recalculated: {status}")
        return status

    def recalculate_sessions(self, session_ids) -> dict[int, str]:
        return {session_id: self.recalculate_session(session_id) for session_id in sorted(session_ids)}

    def recalculate_client(self, client_id: int) -> dict[int, str]:
        sessions = SessionRepository.get_by_client(self.db, client_id)
        return {session.id: self.recalculate_session(session.id) for session in sessions}

    def recalculate_all(self) -> dict[int, dict[int, str]]:
        results = {}
        for client in ClientRepository.get_clients(self.db):
            results[client.id] = self.recalculate_client(client.id)
        logger.info(f"Recalculated payment status for {len(results)} clients")
        return results
