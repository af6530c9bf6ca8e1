"""
Allocation Engine

Records how payments cover sessions. Allocations are rows of
(payment_id, session_id, allocated_amount), at most one per pair.

Besides the persisted allocations the engine offers an "effective" view:
money a client has paid but nobody assigned yet is spread, oldest session
first, over sessions that are not fully covered. That view is computed on
demand and never written back.
"""

import logging
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from ...database import unit_of_work
from ...exceptions import InvalidArgumentError, NotFoundError
from ...models import CalendarSession, Client, PaymentAllocation
from ...services.recalculation_service import (
    MONEY_EPSILON,
    RecalculationService,
    classify_payment,
)
from ...shared.dates import in_pause_window
from ..clients.repository import ClientRepository
from ..sessions.repository import SessionRepository
from .pricing import SessionPricingResolver
from .repository import PaymentRepository

logger = logging.getLogger(__name__)


class AllocationEngine:
    """Manual, bulk, automatic and effective payment allocation"""

    def __init__(
        self,
        db: Session,
        resolver: Optional[SessionPricingResolver] = None,
        recalculation: Optional[RecalculationService] = None,
    ):
        self.db = db
        self.repo = PaymentRepository()
        self.resolver = resolver or SessionPricingResolver(db)
        self.recalculation = recalculation or RecalculationService(db, self.resolver)

    # ------------------------------------------------------------------
    # Persisted allocations
    # ------------------------------------------------------------------

    def allocate(self, payment_id: int, session_id: int, amount: float) -> PaymentAllocation:
        """Add `amount` of a payment to a session, merging into an existing row"""
        if amount is None or amount <= 0:
            raise InvalidArgumentError("Allocation amount must be positive")

        with unit_of_work(self.db):
            allocation = self._allocate(payment_id, session_id, amount)
            self.recalculation.recalculate_session(session_id)
        return allocation

    def deallocate(self, allocation_id: int) -> None:
        with unit_of_work(self.db):
            allocation = self.repo.get_allocation(self.db, allocation_id)
            if not allocation:
                raise NotFoundError("PaymentAllocation", allocation_id)

            session_id = allocation.session_id
            self.repo.delete_allocation(self.db, allocation)
            logger.info(f"Allocation {allocation_id} removed from session {session_id}")
            self.recalculation.recalculate_session(session_id)

    def reallocate(self, payment_id: int, allocations: Iterable) -> list[PaymentAllocation]:
        """
        Replace every allocation of a payment with the given set.

        `allocations` holds (session_id, amount) pairs or objects with
        `session_id` and `amount` attributes. Input is validated before
        anything is removed, and the whole replacement is one transaction.
        """
        items = [self._as_pair(item) for item in allocations]
        for _, amount in items:
            if amount is None or amount <= 0:
                raise InvalidArgumentError("Allocation amount must be positive")

        with unit_of_work(self.db):
            self._get_payment(payment_id)
            for session_id, _ in items:
                self._get_session(session_id)

            touched = {a.session_id for a in self.repo.get_allocations_by_payment(self.db, payment_id)}
            self.repo.delete_allocations_by_payment(self.db, payment_id)

            for session_id, amount in items:
                touched.add(session_id)
                self._allocate(payment_id, session_id, amount)

            self.recalculation.recalculate_sessions(touched)
            result = self.repo.get_allocations_by_payment(self.db, payment_id)

        logger.info(f"Payment {payment_id} reallocated across {len(result)} sessions")
        return result

    def auto_allocate(self, payment_id: int) -> list[PaymentAllocation]:
        """
        Fill the client's unpaid sessions oldest first with the payment's
        unallocated remainder. Each session is topped up to its price
        before moving to the next one.
        """
        created = []
        with unit_of_work(self.db):
            payment = self._get_payment(payment_id)
            client = self._get_client(payment.client_id)

            remaining = payment.amount - self.repo.sum_by_payment(self.db, payment.id)
            if remaining <= MONEY_EPSILON:
                logger.debug(f"Payment {payment_id} has nothing left to allocate")
                return created

            for session in self._chargeable_sessions(client):
                if remaining <= MONEY_EPSILON:
                    break

                allocated = self.repo.sum_by_session(self.db, session.id)
                needed = self.resolver.price_for(session, client.id) - allocated
                if needed <= MONEY_EPSILON:
                    continue

                amount = min(remaining, needed)
                created.append(self._allocate(payment.id, session.id, amount))
                remaining -= amount

            self.recalculation.recalculate_client(client.id)

        logger.info(
            f"Auto-allocated payment {payment_id} to {len(created)} sessions, {max(remaining, 0):.2f} left"
        )
        return created

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_by_session(self, session_id: int) -> list[PaymentAllocation]:
        return self.repo.get_allocations_by_session(self.db, session_id)

    def get_by_payment(self, payment_id: int) -> list[PaymentAllocation]:
        return self.repo.get_allocations_by_payment(self.db, payment_id)

    def get_allocated_amount(self, session_id: int) -> float:
        """Sum of persisted allocations only"""
        return self.repo.sum_by_session(self.db, session_id)

    def get_effective_allocated_amount(self, session_id: int, client_id: int) -> float:
        """
        Persisted allocation plus the share of the client's unallocated
        balance that would land on this session if the balance were spread
        over sessions in date order. Sessions inside the pause window never
        receive any of it.
        """
        session = self._get_session(session_id)
        allocated = self.repo.sum_by_session(self.db, session.id)
        price = self.resolver.price_for(session, client_id)

        if allocated >= price - MONEY_EPSILON:
            return allocated
        if session.status == "canceled":
            return allocated

        client = self._get_client(client_id)
        if in_pause_window(session.date, client.pause_from, client.pause_to):
            return allocated

        sessions = self._chargeable_sessions(client)
        allocated_by_session = self.repo.sums_by_sessions(self.db, [s.id for s in sessions])
        balance = self.repo.total_paid_by_client(self.db, client.id) - sum(
            allocated_by_session.values()
        )
        if balance <= MONEY_EPSILON:
            return allocated

        remaining = balance
        for candidate in sessions:
            if remaining <= MONEY_EPSILON:
                break

            needed = self.resolver.price_for(candidate, client.id) - allocated_by_session.get(
                candidate.id, 0.0
            )
            if candidate.id == session.id:
                return allocated + min(remaining, max(needed, 0.0))
            if needed > 0:
                remaining -= min(remaining, needed)

        return allocated

    def session_status(self, session_id: int) -> str:
        return self.recalculation.session_status(session_id)

    def session_status_with_balance(self, session_id: int, client_id: int) -> str:
        session = self._get_session(session_id)
        effective = self.get_effective_allocated_amount(session_id, client_id)
        return classify_payment(effective, self.resolver.price_for(session, client_id))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _allocate(self, payment_id: int, session_id: int, amount: float) -> PaymentAllocation:
        payment = self._get_payment(payment_id)
        session = self._get_session(session_id)

        existing = self.repo.find_allocation(self.db, payment.id, session.id)
        if existing:
            existing.allocated_amount = existing.allocated_amount + amount
            self.db.flush()
            allocation = existing
        else:
            allocation = self.repo.create_allocation(self.db, payment.id, session.id, amount)

        logger.info(f"Allocated {amount:.2f} of payment {payment.id} to session {session.id}")
        self._warn_on_overrun(payment, session)
        return allocation

    def _warn_on_overrun(self, payment, session: CalendarSession) -> None:
        """Over-allocation is allowed but should not go unnoticed"""
        payment_total = self.repo.sum_by_payment(self.db, payment.id)
        if payment_total > payment.amount + MONEY_EPSILON:
            logger.warning(
                f"Payment {payment.id} over-allocated: {payment_total:.2f} of {payment.amount:.2f}"
            )

        session_total = self.repo.sum_by_session(self.db, session.id)
        price = self.resolver.price_for(session)
        if session_total > price + MONEY_EPSILON:
            logger.warning(
                f"Session {session.id} allocated {session_total:.2f} above its price {price:.2f}"
            )

    def _chargeable_sessions(self, client: Client) -> list[CalendarSession]:
        """Non-canceled sessions outside the pause window, by (date, start_time, id)"""
        return [
            session
            for session in SessionRepository.get_by_client(
                self.db, client.id, include_canceled=False
            )
            if not in_pause_window(session.date, client.pause_from, client.pause_to)
        ]

    @staticmethod
    def _as_pair(item) -> tuple[int, float]:
        if isinstance(item, (tuple, list)):
            session_id, amount = item
            return session_id, amount
        return item.session_id, item.amount

    def _get_payment(self, payment_id: int):
        payment = self.repo.get_payment(self.db, payment_id)
        if not payment:
            raise NotFoundError("Payment", payment_id)
        return payment

    def _get_session(self, session_id: int) -> CalendarSession:
        session = SessionRepository.get_by_id(self.db, session_id)
        if not session:
            raise NotFoundError("CalendarSession", session_id)
        return session

    def _get_client(self, client_id: int) -> Client:
        client = ClientRepository.get_client_by_id(self.db, client_id)
        if not client:
            raise NotFoundError("Client", client_id)
        return client
