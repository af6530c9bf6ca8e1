import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base
from .shared.dates import add_minutes


def generate_rule_id():
    """Generate a stable identifier for a schedule rule"""
    return str(uuid.uuid4())


class Client(Base):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    telegram = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)

    # Lifecycle: active -> paused -> active, any -> archived
    status = Column(String(20), default="active", nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    pause_from = Column(Date, nullable=True)  # Inclusive
    pause_to = Column(Date, nullable=True)  # Inclusive
    archive_date = Column(Date, nullable=True)  # Schedule frozen on/after this date

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    templates = relationship("ScheduleTemplate", back_populates="client")
    sessions = relationship("CalendarSession", back_populates="client")
    packages = relationship("Package", back_populates="client")
    payments = relationship("Payment", back_populates="client")


class ScheduleTemplate(Base):
    """Weekly rule set for one client. The most recently created one wins."""

    __tablename__ = "schedule_templates"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    timezone = Column(String(64), nullable=False, default="UTC")

    # List of {rule_id, weekday, start_time, duration_minutes, base_price, is_active}
    rules = Column(JSON, nullable=False, default=list)

    generation_horizon_days = Column(Integer, nullable=False, default=90)
    valid_from = Column(Date, nullable=True)
    valid_to = Column(Date, nullable=True)
    auto_extend = Column(Boolean, nullable=False, default=False)  # valid_to derived, not user-set

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    client = relationship("Client", back_populates="templates")


class CalendarSession(Base):
    __tablename__ = "calendar_sessions"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    start_time = Column(String(5), nullable=False)  # HH:MM
    duration_minutes = Column(Integer, nullable=False, default=60)

    status = Column(String(20), default="planned", nullable=False)  # planned, completed, canceled

    # Origin: custom sessions have no rule; generated ones keep the rule id even if the rule goes away
    template_rule_id = Column(String(36), nullable=True)
    is_custom = Column(Boolean, default=False, nullable=False)
    is_edited = Column(Boolean, default=False, nullable=False)

    price_override = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    client = relationship("Client", back_populates="sessions")

    __table_args__ = (Index("idx_session_client_date", "client_id", "date"),)

    @property
    def end_time(self) -> str:
        return add_minutes(self.start_time, self.duration_minutes or 0)


class Package(Base):
    __tablename__ = "packages"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    total_price = Column(Float, nullable=False)
    sessions_count = Column(Integer, nullable=False)
    status = Column(String(20), default="active", nullable=False)  # active, exhausted, expired
    valid_from = Column(Date, nullable=True)
    valid_until = Column(Date, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    client = relationship("Client", back_populates="packages")

    @property
    def price_per_session(self) -> float:
        if not self.sessions_count:
            return 0.0
        return self.total_price / self.sessions_count


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    paid_at = Column(DateTime, nullable=False)
    amount = Column(Float, nullable=False)
    method = Column(String(20), nullable=False, default="cash")  # cash, card, transfer, other
    comment = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    client = relationship("Client", back_populates="payments")
    allocations = relationship("PaymentAllocation", back_populates="payment")


class PaymentAllocation(Base):
    __tablename__ = "payment_allocations"

    id = Column(Integer, primary_key=True, index=True)
    payment_id = Column(Integer, ForeignKey("payments.id"), nullable=False, index=True)
    session_id = Column(Integer, ForeignKey("calendar_sessions.id"), nullable=False, index=True)
    allocated_amount = Column(Float, nullable=False)

    created_at = Column(DateTime, server_default=func.now())

    payment = relationship("Payment", back_populates="allocations")

    __table_args__ = (
        UniqueConstraint("payment_id", "session_id", name="uq_allocation_payment_session"),
    )
