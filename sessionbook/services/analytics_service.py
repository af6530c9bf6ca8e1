"""
Analytics over sessions and payments.

Everything here is read-only and derived on demand through the pricing
resolver and the allocation engine; nothing is cached or written back.
"""

import logging
from datetime import date, datetime, time
from typing import Callable, Optional

from sqlalchemy.orm import Session

from ..domain.clients.repository import ClientRepository
from ..domain.payments.allocation import AllocationEngine
from ..domain.payments.pricing import SessionPricingResolver
from ..domain.payments.repository import PaymentRepository
from ..domain.sessions.repository import SessionRepository
from ..exceptions import NotFoundError
from ..models import CalendarSession
from ..shared.dates import month_bounds
from .recalculation_service import MONEY_EPSILON, PAID, PARTIALLY_PAID, classify_payment

logger = logging.getLogger(__name__)


class AnalyticsService:
    def __init__(self, db: Session, clock: Callable[[], date] = date.today):
        self.db = db
        self.clock = clock
        self.resolver = SessionPricingResolver(db)
        self.allocations = AllocationEngine(db, resolver=self.resolver)

    def get_client_stats(self, client_id: int) -> dict:
        """
        Per-client payment picture over non-canceled sessions.

        `unpaid_sessions` counts every session that is not fully paid, so
        partially paid sessions appear in both counters. Debt is measured
        against real allocations only.
        """
        if not ClientRepository.get_client_by_id(self.db, client_id):
            raise NotFoundError("Client", client_id)

        today = self.clock()
        sessions = SessionRepository.get_by_client(self.db, client_id, include_canceled=False)
        allocated_by_session = PaymentRepository.sums_by_sessions(self.db, [s.id for s in sessions])

        stats = {
            "client_id": client_id,
            "total_sessions": 0,
            "paid_sessions": 0,
            "unpaid_sessions": 0,
            "partially_paid_sessions": 0,
            "total_debt": 0.0,
        }
        next_unpaid: Optional[CalendarSession] = None

        for session in sessions:
            allocated = allocated_by_session.get(session.id, 0.0)
            price = self.resolver.price_for(session, client_id)
            status = classify_payment(allocated, price)

            stats["total_sessions"] += 1
            if status == PAID:
                stats["paid_sessions"] += 1
                continue

            stats["unpaid_sessions"] += 1
            if status == PARTIALLY_PAID:
                stats["partially_paid_sessions"] += 1
            stats["total_debt"] += price - allocated

            # Sessions come ordered by date, so the first hit is the earliest
            if next_unpaid is None and session.date >= today:
                next_unpaid = session

        total_paid = PaymentRepository.total_paid_by_client(self.db, client_id)
        all_sessions = SessionRepository.get_by_client(self.db, client_id)
        total_allocated = sum(
            PaymentRepository.sums_by_sessions(self.db, [s.id for s in all_sessions]).values()
        )

        stats.update(
            total_paid=total_paid,
            total_allocated=total_allocated,
            balance=total_paid - total_allocated,
            next_unpaid_session=next_unpaid,
        )
        return stats

    def get_balance(self, client_id: int) -> float:
        """Money paid but not yet allocated to any session"""
        return self.get_client_stats(client_id)["balance"]

    def get_client_debt(self, client_id: int) -> float:
        return self.get_client_stats(client_id)["total_debt"]

    def get_next_unpaid_session(self, client_id: int) -> Optional[CalendarSession]:
        return self.get_client_stats(client_id)["next_unpaid_session"]

    def get_monthly_stats(self, month: Optional[date] = None) -> dict:
        """Totals for the calendar month containing `month` (default: this month)"""
        first_day, last_day = month_bounds(month or self.clock())

        active_clients = ClientRepository.get_clients(self.db, "active")
        sessions = [
            s
            for s in SessionRepository.get_by_date_range(self.db, first_day, last_day)
            if s.status != "canceled"
        ]
        payments = PaymentRepository.get_payments_between(
            self.db, datetime.combine(first_day, time.min), datetime.combine(last_day, time.max)
        )

        total_debt = sum(self.get_client_debt(client.id) for client in active_clients)
        logger.debug(f"Monthly stats for {first_day:%Y-%m}: {len(sessions)} sessions")

        return {
            "month": first_day,
            "total_clients": len(active_clients),
            "total_sessions": len(sessions),
            "total_payments": sum(p.amount for p in payments),
            "total_debt": total_debt,
        }

    def get_session_payment_state(self, session_id: int) -> dict:
        """Real and effective coverage of one session, as a calendar cell shows it"""
        session = SessionRepository.get_by_id(self.db, session_id)
        if not session:
            raise NotFoundError("CalendarSession", session_id)

        price = self.resolver.price_for(session)
        allocated = self.allocations.get_allocated_amount(session.id)
        effective = self.allocations.get_effective_allocated_amount(session.id, session.client_id)

        return {
            "session_id": session.id,
            "price": price,
            "allocated": allocated,
            "effective_allocated": effective,
            "remaining": price - effective if price - effective > MONEY_EPSILON else 0.0,
            "status": classify_payment(allocated, price),
            "effective_status": classify_payment(effective, price),
        }
