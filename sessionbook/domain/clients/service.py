"""Client service - Business logic for client lifecycle operations"""

import logging
from datetime import date
from typing import Callable, Optional

from sqlalchemy.orm import Session

from ...database import unit_of_work
from ...exceptions import InvalidArgumentError, NotFoundError
from ...models import Client
from ..packages.repository import PackageRepository
from ..payments.repository import PaymentRepository
from ..scheduling.repository import TemplateRepository
from ..scheduling.service import ScheduleService
from ..sessions.repository import SessionRepository
from .repository import ClientRepository
from .schemas import ClientCreate, ClientUpdate

logger = logging.getLogger(__name__)


class ClientService:
    """Service layer for client business logic"""

    def __init__(self, db: Session, clock: Callable[[], date] = date.today):
        self.db = db
        self.clock = clock
        self.repo = ClientRepository()
        self.schedule = ScheduleService(db, clock=clock)

    def get_clients(self, status: Optional[str] = None) -> list[Client]:
        return self.repo.get_clients(self.db, status)

    def get_client(self, client_id: int) -> Client:
        client = self.repo.get_client_by_id(self.db, client_id)
        if not client:
            raise NotFoundError("Client", client_id)
        return client

    def create_client(self, data: ClientCreate) -> Client:
        with unit_of_work(self.db):
            client = self.repo.create_client(
                self.db,
                full_name=data.full_name,
                phone=data.phone,
                telegram=data.telegram,
                notes=data.notes,
                status="active",
                start_date=data.start_date or self.clock(),
            )
        logger.info(f"Client {client.id} created")
        return client

    def update_client(self, client_id: int, data: ClientUpdate) -> Client:
        updates = {key: value for key, value in data.model_dump(exclude_unset=True).items() if value is not None}
        with unit_of_work(self.db):
            client = self.get_client(client_id)
            self.repo.update_client(self.db, client, **updates)
        return client

    def pause(self, client_id: int, pause_from: date, pause_to: date) -> Client:
        """Suspend a client; dates inside the window are neither generated nor charged"""
        if pause_to < pause_from:
            raise InvalidArgumentError("pause_to cannot be earlier than pause_from")

        with unit_of_work(self.db):
            client = self.get_client(client_id)
            if client.status == "archived":
                raise InvalidArgumentError(f"Client {client_id} is archived and cannot be paused")
            self.repo.update_client(
                self.db, client, status="paused", pause_from=pause_from, pause_to=pause_to
            )
        logger.info(f"Client {client_id} paused from {pause_from} to {pause_to}")
        return client

    def resume(self, client_id: int) -> Client:
        """Reactivate a paused client and fill the schedule back in"""
        with unit_of_work(self.db):
            client = self.get_client(client_id)
            if client.status == "archived":
                raise InvalidArgumentError(f"Client {client_id} is archived and cannot be resumed")
            self.repo.update_client(self.db, client, status="active", pause_from=None, pause_to=None)
            created = self.schedule.regenerate_for_client(client_id)
        logger.info(f"Client {client_id} resumed, {len(created)} sessions generated")
        return client

    def archive(self, client_id: int, archive_date: Optional[date] = None) -> Client:
        """Freeze the client's schedule on and after `archive_date`"""
        archive_date = archive_date or self.clock()
        with unit_of_work(self.db):
            client = self.get_client(client_id)
            self.repo.update_client(self.db, client, status="archived", archive_date=archive_date)
            canceled = self.schedule.clear_schedule_from_date(client_id, archive_date)
        logger.info(f"Client {client_id} archived as of {archive_date}, {canceled} sessions canceled")
        return client

    def delete_client(self, client_id: int) -> Client:
        """Soft delete: archive as of today"""
        return self.archive(client_id, self.clock())

    def hard_delete(self, client_id: int) -> dict:
        """Remove a client and everything attached to it in one transaction"""
        with unit_of_work(self.db):
            client = self.get_client(client_id)

            session_ids = [s.id for s in SessionRepository.get_by_client(self.db, client_id)]
            payment_ids = [p.id for p in PaymentRepository.get_payments_by_client(self.db, client_id)]

            allocations = PaymentRepository.delete_allocations_touching(self.db, session_ids, payment_ids)
            sessions = SessionRepository.delete_by_client(self.db, client_id)
            templates = TemplateRepository.delete_by_client(self.db, client_id)
            packages = PackageRepository.delete_by_client(self.db, client_id)
            payments = PaymentRepository.delete_payments_by_client(self.db, client_id)

            # Bulk deletes bypass the identity map; drop stale collections first
            self.db.expire_all()
            self.repo.delete_client(self.db, client)

        summary = {
            "client_id": client_id,
            "allocations": allocations,
            "sessions": sessions,
            "templates": templates,
            "packages": packages,
            "payments": payments,
        }
        logger.info(f"Client {client_id} hard deleted: {summary}")
        return summary
