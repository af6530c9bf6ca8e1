"""Payment service - Business logic for recording and correcting payments"""

import logging
from datetime import datetime
from typing import Union

from sqlalchemy.orm import Session

from ...database import unit_of_work
from ...exceptions import NotFoundError
from ...models import Payment
from ...services.recalculation_service import RecalculationService
from ..clients.repository import ClientRepository
from .allocation import AllocationEngine
from .repository import PaymentRepository
from .schemas import PaymentCreate, PaymentUpdate

logger = logging.getLogger(__name__)


class PaymentService:
    """Service layer for payment business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = PaymentRepository()
        self.recalculation = RecalculationService(db)
        self.allocations = AllocationEngine(db, recalculation=self.recalculation)

    def get_payment(self, payment_id: int) -> Payment:
        payment = self.repo.get_payment(self.db, payment_id)
        if not payment:
            raise NotFoundError("Payment", payment_id)
        return payment

    def get_all_by_client(self, client_id: int) -> list[Payment]:
        """Oldest first"""
        return self.repo.get_payments_by_client(self.db, client_id)

    def get_all(self) -> list[Payment]:
        """Newest first"""
        return self.repo.get_all_payments(self.db)

    def create_payment(self, data: PaymentCreate) -> Payment:
        """Record a payment; with auto_allocate it is spread over unpaid sessions right away"""
        with unit_of_work(self.db):
            if not ClientRepository.get_client_by_id(self.db, data.client_id):
                raise NotFoundError("Client", data.client_id)

            payment = self.repo.create_payment(
                self.db,
                client_id=data.client_id,
                amount=data.amount,
                paid_at=data.paid_at or datetime.now(),
                method=data.method,
                comment=data.comment,
            )
            logger.info(f"Payment {payment.id} of {payment.amount:.2f} recorded for client {data.client_id}")

            if data.auto_allocate:
                self.allocations.auto_allocate(payment.id)
        return payment

    def update_payment(self, payment_id: int, data: Union[PaymentUpdate, dict]) -> Payment:
        updates = data if isinstance(data, dict) else data.model_dump(exclude_unset=True)
        updates = {key: value for key, value in updates.items() if value is not None or key == "comment"}

        with unit_of_work(self.db):
            payment = self.get_payment(payment_id)
            self.repo.update_payment(self.db, payment, **updates)
            if "amount" in updates:
                # The unallocated balance moved, so effective statuses did too
                self.recalculation.recalculate_client(payment.client_id)
        return payment

    def delete_payment(self, payment_id: int) -> None:
        """Delete a payment together with its allocations"""
        with unit_of_work(self.db):
            payment = self.get_payment(payment_id)
            client_id = payment.client_id
            freed = {a.session_id for a in self.repo.get_allocations_by_payment(self.db, payment_id)}

            removed = self.repo.delete_allocations_by_payment(self.db, payment_id)
            self.db.expire(payment, ["allocations"])
            self.repo.delete_payment(self.db, payment)

            self.recalculation.recalculate_sessions(freed)
            self.recalculation.recalculate_client(client_id)

        logger.info(f"Payment {payment_id} deleted with {removed} allocations")
