"""
Session Pricing Resolver

A session's price is resolved by walking an ordered list of strategies; the
first one that yields a value wins:

1. the session's own price_override (0 counts as a value)
2. base_price of the rule that generated the session, if that rule still exists
3. per-session price of the client's most recently created active package
4. 0, meaning the session needs no payment
"""

import logging
from typing import Callable, Optional, Sequence

from sqlalchemy.orm import Session

from ...exceptions import NotFoundError
from ...models import CalendarSession
from ..packages.repository import PackageRepository
from ..scheduling.repository import TemplateRepository
from ..sessions.repository import SessionRepository

logger = logging.getLogger(__name__)

PriceStrategy = Callable[[Session, CalendarSession, int], Optional[float]]


def price_override_strategy(db: Session, session: CalendarSession, client_id: int) -> Optional[float]:
    return session.price_override


def rule_base_price_strategy(db: Session, session: CalendarSession, client_id: int) -> Optional[float]:
    if not session.template_rule_id:
        return None

    template = TemplateRepository.get_latest_by_client(db, client_id)
    if not template:
        return None

    for rule in template.rules or []:
        if rule.get("rule_id") == session.template_rule_id:
            return rule.get("base_price")

    # Rule deleted or replaced since the session was generated
    logger.debug(f"Rule {session.template_rule_id} of session {session.id} no longer exists")
    return None


def package_price_strategy(db: Session, session: CalendarSession, client_id: int) -> Optional[float]:
    package = PackageRepository.get_latest_active_by_client(db, client_id)
    if not package or not package.sessions_count:
        return None
    return package.total_price / package.sessions_count


DEFAULT_STRATEGIES: tuple[PriceStrategy, ...] = (
    price_override_strategy,
    rule_base_price_strategy,
    package_price_strategy,
)


class SessionPricingResolver:
    """Resolves the price of a session from its override, rule or package"""

    def __init__(self, db: Session, strategies: Optional[Sequence[PriceStrategy]] = None):
        self.db = db
        self.strategies = tuple(strategies) if strategies is not None else DEFAULT_STRATEGIES

    def price(self, client_id: int, session_id: int) -> float:
        """Price of a session by id; raises NotFoundError for an unknown session"""
        session = SessionRepository.get_by_id(self.db, session_id)
        if not session:
            raise NotFoundError("CalendarSession", session_id)
        return self.price_for(session, client_id)

    def price_for(self, session: CalendarSession, client_id: Optional[int] = None) -> float:
        """Price of an already loaded session"""
        owner_id = client_id if client_id is not None else session.client_id
        for strategy in self.strategies:
            value = strategy(self.db, session, owner_id)
            if value is not None:
                return max(0.0, float(value))
        return 0.0
