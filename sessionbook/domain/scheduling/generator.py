"""
Schedule Generator

Expands a template's weekly rules into dated sessions over a rolling
horizon starting today. Generation is idempotent: a slot
(client, date, start_time) that already holds a live session, or a
custom session in any state, is left alone. Callers simply re-run it after
every template edit, pause/resume or archive change.
"""

import logging
from datetime import date
from typing import Callable, Optional

from sqlalchemy.orm import Session

from ...config import DEFAULT_GENERATION_HORIZON_DAYS, DEFAULT_SESSION_DURATION_MINUTES
from ...database import unit_of_work
from ...exceptions import NotFoundError
from ...models import CalendarSession, Client, ScheduleTemplate
from ...shared.dates import (
    dates_in_range,
    end_of_next_month,
    in_pause_window,
    is_date_in_range,
    weekday,
)
from ..clients.repository import ClientRepository
from ..sessions.repository import SessionRepository
from ..sessions.service import SessionService
from .repository import TemplateRepository

logger = logging.getLogger(__name__)


class ScheduleGenerator:
    """Materializes template rules into calendar sessions"""

    def __init__(self, db: Session, clock: Callable[[], date] = date.today):
        self.db = db
        self.clock = clock
        self.templates = TemplateRepository()
        self.sessions = SessionService(db)

    def generate(self, template_id: int, horizon_days: Optional[int] = None) -> list[CalendarSession]:
        """Create the missing sessions of a template; returns only new ones"""
        with unit_of_work(self.db):
            template = self.templates.get_by_id(self.db, template_id)
            if not template:
                raise NotFoundError("ScheduleTemplate", template_id)

            client = ClientRepository.get_client_by_id(self.db, template.client_id)
            if not client:
                raise NotFoundError("Client", template.client_id)

            today = self.clock()

            if client.status == "archived" and client.archive_date and today >= client.archive_date:
                logger.debug(f"Client {client.id} archived as of {client.archive_date}, schedule frozen")
                return []

            self.roll_validity(template, today)

            if template.valid_from and today < template.valid_from:
                logger.debug(f"Template {template.id} not valid until {template.valid_from}")
                return []
            if template.valid_to and today > template.valid_to:
                logger.debug(f"Template {template.id} expired on {template.valid_to}")
                return []

            if client.status != "active":
                logger.debug(f"Client {client.id} is {client.status}, skipping generation")
                return []

            if horizon_days is None:
                horizon_days = template.generation_horizon_days or DEFAULT_GENERATION_HORIZON_DAYS
            days = dates_in_range(today, horizon_days)
            created = []

            for rule in template.rules or []:
                if not rule.get("is_active", True):
                    continue

                for day in days:
                    if weekday(day) != rule["weekday"]:
                        continue
                    if not self._date_allowed(day, template, client):
                        continue
                    if self._slot_taken(client.id, day, rule["start_time"]):
                        continue

                    created.append(
                        self.sessions.create_from_rule(
                            client.id,
                            day,
                            rule["start_time"],
                            rule.get("duration_minutes") or DEFAULT_SESSION_DURATION_MINUTES,
                            rule["rule_id"],
                            price_override=rule.get("base_price"),
                        )
                    )

        if created:
            logger.info(f"Generated {len(created)} sessions from template {template_id}")
        return created

    def roll_validity(self, template: ScheduleTemplate, today: date) -> None:
        """
        A template without valid_to is open-ended: give it a rolling end at the
        end of next month and keep moving that end forward. A valid_to the
        user set is never touched.
        """
        if template.valid_to is not None and not template.auto_extend:
            return

        desired = end_of_next_month(today)
        if template.valid_to is None or desired > template.valid_to:
            self.templates.update(self.db, template, valid_to=desired, auto_extend=True)
            logger.info(f"Template {template.id} valid_to rolled to {desired}")

    @staticmethod
    def _date_allowed(day: date, template: ScheduleTemplate, client: Client) -> bool:
        if not is_date_in_range(day, template.valid_from, template.valid_to):
            return False
        if in_pause_window(day, client.pause_from, client.pause_to):
            return False
        if client.archive_date and day >= client.archive_date:
            return False
        return True

    def _slot_taken(self, client_id: int, day: date, start_time: str) -> bool:
        """A live session or a custom one (even canceled) blocks the slot"""
        return any(
            existing.status != "canceled" or existing.is_custom
            for existing in SessionRepository.find_slot(self.db, client_id, day, start_time)
        )
