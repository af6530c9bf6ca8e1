"""Package service - Prepaid bundles that price sessions without an override"""

import logging
from datetime import date
from typing import Callable, Optional, Union

from sqlalchemy.orm import Session

from ...database import unit_of_work
from ...exceptions import NotFoundError
from ...models import Package
from ...services.recalculation_service import RecalculationService
from ..clients.repository import ClientRepository
from .repository import PackageRepository
from .schemas import PackageCreate, PackageUpdate

logger = logging.getLogger(__name__)


class PackageService:
    """Service layer for package business logic"""

    def __init__(self, db: Session, clock: Callable[[], date] = date.today):
        self.db = db
        self.clock = clock
        self.repo = PackageRepository()
        self.recalculation = RecalculationService(db)

    def get_package(self, package_id: int) -> Package:
        package = self.repo.get_by_id(self.db, package_id)
        if not package:
            raise NotFoundError("Package", package_id)
        return package

    def get_all_by_client(self, client_id: int) -> list[Package]:
        return self.repo.get_all_by_client(self.db, client_id)

    def get_active_by_client(self, client_id: int) -> Optional[Package]:
        """The package that currently prices the client's sessions, if any"""
        return self.repo.get_latest_active_by_client(self.db, client_id)

    def create_package(self, data: PackageCreate) -> Package:
        with unit_of_work(self.db):
            if not ClientRepository.get_client_by_id(self.db, data.client_id):
                raise NotFoundError("Client", data.client_id)

            package = self.repo.create(
                self.db,
                client_id=data.client_id,
                title=data.title,
                total_price=data.total_price,
                sessions_count=data.sessions_count,
                status="active",
                valid_from=data.valid_from,
                valid_until=data.valid_until,
            )
            self.recalculation.recalculate_client(data.client_id)

        logger.info(
            f"Package {package.id} created for client {data.client_id}: "
            f"{package.sessions_count} sessions for {package.total_price:.2f}"
        )
        return package

    def update_package(self, package_id: int, data: Union[PackageUpdate, dict]) -> Package:
        updates = data if isinstance(data, dict) else data.model_dump(exclude_unset=True)
        with unit_of_work(self.db):
            package = self.get_package(package_id)
            self.repo.update(self.db, package, **updates)
            self.recalculation.recalculate_client(package.client_id)
        return package

    def mark_exhausted(self, package_id: int) -> Package:
        return self._set_status(package_id, "exhausted")

    def mark_expired(self, package_id: int) -> Package:
        return self._set_status(package_id, "expired")

    def expire_overdue(self, today: Optional[date] = None) -> list[Package]:
        """Expire every active package whose valid_until has passed"""
        today = today or self.clock()
        with unit_of_work(self.db):
            expired = self.repo.get_overdue_active(self.db, today)
            for package in expired:
                self.repo.update(self.db, package, status="expired")
            for client_id in {package.client_id for package in expired}:
                self.recalculation.recalculate_client(client_id)

        if expired:
            logger.info(f"Expired {len(expired)} overdue packages as of {today}")
        return expired

    def _set_status(self, package_id: int, status: str) -> Package:
        with unit_of_work(self.db):
            package = self.get_package(package_id)
            self.repo.update(self.db, package, status=status)
            self.recalculation.recalculate_client(package.client_id)
        logger.info(f"Package {package_id} marked {status}")
        return package
