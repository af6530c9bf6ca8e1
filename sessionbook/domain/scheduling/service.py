"""Schedule service - Template lifecycle and edit propagation"""

import logging
from datetime import date
from typing import Callable, Iterable, Optional, Union

from pydantic import ValidationError
from sqlalchemy.orm import Session

from ...config import DEFAULT_GENERATION_HORIZON_DAYS, DEFAULT_TIMEZONE
from ...database import unit_of_work
from ...exceptions import InvalidArgumentError, NotFoundError
from ...models import CalendarSession, ScheduleTemplate, generate_rule_id
from ...shared.dates import days_between
from ..clients.repository import ClientRepository
from ..sessions.service import SessionService
from .generator import ScheduleGenerator
from .repository import TemplateRepository
from .schemas import ScheduleRule, TemplateCreate, TemplateUpdate

logger = logging.getLogger(__name__)

# Changing any of these requires a regeneration pass
REGENERATING_FIELDS = ("rules", "generation_horizon_days", "valid_from", "valid_to", "auto_extend")


def normalize_rules(rules: Iterable[Union[ScheduleRule, dict]]) -> list[dict]:
    """Validate rules and give every rule without an id a fresh one"""
    normalized = []
    for rule in rules:
        try:
            parsed = rule if isinstance(rule, ScheduleRule) else ScheduleRule.model_validate(rule)
        except ValidationError as e:
            raise InvalidArgumentError(f"Malformed schedule rule: {e.errors()}") from e

        data = parsed.model_dump()
        data["rule_id"] = data.get("rule_id") or generate_rule_id()
        normalized.append(data)
    return normalized


class ScheduleService:
    """Service layer for schedule templates"""

    def __init__(self, db: Session, clock: Callable[[], date] = date.today):
        self.db = db
        self.clock = clock
        self.repo = TemplateRepository()
        self.sessions = SessionService(db)
        self.generator = ScheduleGenerator(db, clock=clock)

    def get_template(self, template_id: int) -> ScheduleTemplate:
        template = self.repo.get_by_id(self.db, template_id)
        if not template:
            raise NotFoundError("ScheduleTemplate", template_id)
        return template

    def get_template_by_client(self, client_id: int) -> Optional[ScheduleTemplate]:
        """The client's current (most recently created) template"""
        return self.repo.get_latest_by_client(self.db, client_id)

    def get_all_templates_by_client(self, client_id: int) -> list[ScheduleTemplate]:
        return self.repo.get_all_by_client(self.db, client_id)

    def create_template(self, client_id: int, data: TemplateCreate) -> ScheduleTemplate:
        """Create a template (superseding any earlier one) and generate its sessions"""
        with unit_of_work(self.db):
            if not ClientRepository.get_client_by_id(self.db, client_id):
                raise NotFoundError("Client", client_id)

            auto_extend = data.auto_extend if data.auto_extend is not None else data.valid_to is None
            template = self.repo.create(
                self.db,
                client_id=client_id,
                timezone=data.timezone or DEFAULT_TIMEZONE,
                rules=normalize_rules(data.rules),
                generation_horizon_days=data.generation_horizon_days or DEFAULT_GENERATION_HORIZON_DAYS,
                valid_from=data.valid_from or self.clock(),
                valid_to=data.valid_to,
                auto_extend=auto_extend,
            )
            logger.info(f"Template {template.id} created for client {client_id}")
            self.generator.generate(template.id)
        return template

    def update_template(self, template_id: int, data: Union[TemplateUpdate, dict]) -> ScheduleTemplate:
        """
        Apply a template edit. Sessions that fall outside the new validity
        window are canceled first, then the window is regenerated, so a
        regeneration pass can never resurrect what the edit just canceled.
        """
        if isinstance(data, dict):
            try:
                data = TemplateUpdate.model_validate(data)
            except ValidationError as e:
                raise InvalidArgumentError(f"Malformed template update: {e.errors()}") from e
        updates = data.model_dump(exclude_unset=True)

        with unit_of_work(self.db):
            template = self.get_template(template_id)
            old_valid_from = template.valid_from
            old_valid_to = template.valid_to

            if "rules" in updates:
                updates["rules"] = normalize_rules(data.rules or [])
            if updates.get("generation_horizon_days") is None:
                updates.pop("generation_horizon_days", None)
            if "valid_to" in updates and "auto_extend" not in updates:
                # A user-chosen end date stops rolling; clearing it re-opens the schedule
                updates["auto_extend"] = updates["valid_to"] is None

            self.repo.update(self.db, template, **updates)
            if template.auto_extend and template.valid_to is None:
                self.generator.roll_validity(template, self.clock())

            new_valid_to = template.valid_to
            if "valid_to" in updates and new_valid_to is not None:
                if old_valid_to is None or new_valid_to < old_valid_to:
                    self.cancel_sessions_after_date(template.client_id, new_valid_to)

            new_valid_from = template.valid_from
            if "valid_from" in updates and old_valid_from and new_valid_from:
                if new_valid_from > old_valid_from:
                    self.cancel_sessions_before_date(template.client_id, new_valid_from)

            if any(field in updates for field in REGENERATING_FIELDS):
                self.generator.generate(template.id)

        logger.info(f"Template {template_id} updated: {sorted(updates)}")
        return template

    def generate_sessions(self, template_id: int, horizon_days: Optional[int] = None) -> list[CalendarSession]:
        return self.generator.generate(template_id, horizon_days)

    def regenerate_for_client(self, client_id: int) -> list[CalendarSession]:
        template = self.get_template_by_client(client_id)
        if not template:
            return []
        return self.generator.generate(template.id)

    def ensure_sessions_up_to(
        self, date_to: date, client_ids: Optional[Iterable[int]] = None
    ) -> list[CalendarSession]:
        """
        Make sure every current template has sessions through `date_to`,
        rolling auto-extending templates forward to cover it.
        """
        today = self.clock()
        horizon = max(1, days_between(today, date_to) + 1)
        created = []

        with unit_of_work(self.db):
            for template in self.repo.get_latest_for_clients(self.db, client_ids):
                if template.auto_extend:
                    self.generator.roll_validity(template, max(date_to, today))
                created.extend(self.generator.generate(template.id, horizon))
        return created

    def cancel_sessions_after_date(self, client_id: int, cutoff: date) -> int:
        """
        Cancel generated sessions on or after a new valid_to. Regeneration
        recreates the one on valid_to itself while it is still ahead.
        """
        return self.sessions.cancel_generated(client_id, on_or_after=cutoff)

    def cancel_sessions_before_date(self, client_id: int, cutoff: date) -> int:
        """Cancel generated sessions dated strictly before `cutoff` (the first valid day)"""
        return self.sessions.cancel_generated(client_id, before=cutoff)

    def clear_schedule_from_date(self, client_id: int, archive_date: date) -> int:
        """Cancel generated sessions on or after an archive date"""
        return self.sessions.cancel_generated(client_id, on_or_after=archive_date)
