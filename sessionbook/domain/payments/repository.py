"""Payment repository - Database operations for payments and allocations"""

from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Payment, PaymentAllocation


class PaymentRepository:
    """Repository for payment and allocation database operations"""

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    @staticmethod
    def get_payment(db: Session, payment_id: int) -> Optional[Payment]:
        return db.query(Payment).filter(Payment.id == payment_id).first()

    @staticmethod
    def get_payments_by_client(db: Session, client_id: int) -> list[Payment]:
        return (
            db.query(Payment)
            .filter(Payment.client_id == client_id)
            .order_by(Payment.paid_at, Payment.id)
            .all()
        )

    @staticmethod
    def get_all_payments(db: Session) -> list[Payment]:
        return db.query(Payment).order_by(Payment.paid_at.desc(), Payment.id.desc()).all()

    @staticmethod
    def get_payments_between(db: Session, start: datetime, end: datetime) -> list[Payment]:
        return (
            db.query(Payment)
            .filter(Payment.paid_at >= start, Payment.paid_at <= end)
            .order_by(Payment.paid_at)
            .all()
        )

    @staticmethod
    def total_paid_by_client(db: Session, client_id: int) -> float:
        total = (
            db.query(func.coalesce(func.sum(Payment.amount), 0.0))
            .filter(Payment.client_id == client_id)
            .scalar()
        )
        return float(total or 0.0)

    @staticmethod
    def create_payment(db: Session, **payment_data) -> Payment:
        payment = Payment(**payment_data)
        db.add(payment)
        db.flush()
        return payment

    @staticmethod
    def update_payment(db: Session, payment: Payment, **updates) -> Payment:
        for key, value in updates.items():
            if hasattr(payment, key):
                setattr(payment, key, value)
        db.flush()
        return payment

    @staticmethod
    def delete_payment(db: Session, payment: Payment) -> None:
        db.delete(payment)
        db.flush()

    @staticmethod
    def delete_payments_by_client(db: Session, client_id: int) -> int:
        return (
            db.query(Payment)
            .filter(Payment.client_id == client_id)
            .delete(synchronize_session=False)
        )

    # ------------------------------------------------------------------
    # Allocations
    # ------------------------------------------------------------------

    @staticmethod
    def get_allocation(db: Session, allocation_id: int) -> Optional[PaymentAllocation]:
        return db.query(PaymentAllocation).filter(PaymentAllocation.id == allocation_id).first()

    @staticmethod
    def find_allocation(db: Session, payment_id: int, session_id: int) -> Optional[PaymentAllocation]:
        return (
            db.query(PaymentAllocation)
            .filter(
                PaymentAllocation.payment_id == payment_id,
                PaymentAllocation.session_id == session_id,
            )
            .first()
        )

    @staticmethod
    def get_allocations_by_session(db: Session, session_id: int) -> list[PaymentAllocation]:
        return (
            db.query(PaymentAllocation)
            .filter(PaymentAllocation.session_id == session_id)
            .order_by(PaymentAllocation.id)
            .all()
        )

    @staticmethod
    def get_allocations_by_payment(db: Session, payment_id: int) -> list[PaymentAllocation]:
        return (
            db.query(PaymentAllocation)
            .filter(PaymentAllocation.payment_id == payment_id)
            .order_by(PaymentAllocation.id)
            .all()
        )

    @staticmethod
    def sum_by_session(db: Session, session_id: int) -> float:
        total = (
            db.query(func.coalesce(func.sum(PaymentAllocation.allocated_amount), 0.0))
            .filter(PaymentAllocation.session_id == session_id)
            .scalar()
        )
        return float(total or 0.0)

    @staticmethod
    def sum_by_payment(db: Session, payment_id: int) -> float:
        total = (
            db.query(func.coalesce(func.sum(PaymentAllocation.allocated_amount), 0.0))
            .filter(PaymentAllocation.payment_id == payment_id)
            .scalar()
        )
        return float(total or 0.0)

    @staticmethod
    def sums_by_sessions(db: Session, session_ids: Iterable[int]) -> dict[int, float]:
        """Allocated total per session id; sessions without allocations are absent"""
        ids = list(session_ids)
        if not ids:
            return {}
        rows = (
            db.query(PaymentAllocation.session_id, func.sum(PaymentAllocation.allocated_amount))
            .filter(PaymentAllocation.session_id.in_(ids))
            .group_by(PaymentAllocation.session_id)
            .all()
        )
        return {session_id: float(total or 0.0) for session_id, total in rows}

    @staticmethod
    def create_allocation(
        db: Session, payment_id: int, session_id: int, allocated_amount: float
    ) -> PaymentAllocation:
        allocation = PaymentAllocation(
            payment_id=payment_id, session_id=session_id, allocated_amount=allocated_amount
        )
        db.add(allocation)
        db.flush()
        return allocation

    @staticmethod
    def delete_allocation(db: Session, allocation: PaymentAllocation) -> None:
        db.delete(allocation)
        db.flush()

    @staticmethod
    def delete_allocations_by_payment(db: Session, payment_id: int) -> int:
        """Row by row so the identity map forgets them before new rows reuse their ids"""
        allocations = (
            db.query(PaymentAllocation).filter(PaymentAllocation.payment_id == payment_id).all()
        )
        for allocation in allocations:
            db.delete(allocation)
        db.flush()
        return len(allocations)

    @staticmethod
    def delete_allocations_touching(
        db: Session, session_ids: Iterable[int], payment_ids: Iterable[int]
    ) -> int:
        """Remove allocations pointing at any of the sessions or payments"""
        session_ids = list(session_ids)
        payment_ids = list(payment_ids)
        count = 0
        if session_ids:
            count += (
                db.query(PaymentAllocation)
                .filter(PaymentAllocation.session_id.in_(session_ids))
                .delete(synchronize_session=False)
            )
        if payment_ids:
            count += (
                db.query(PaymentAllocation)
                .filter(PaymentAllocation.payment_id.in_(payment_ids))
                .delete(synchronize_session=False)
            )
        return count
