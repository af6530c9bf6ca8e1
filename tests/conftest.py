from datetime import date, datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from sessionbook.database import Base
from sessionbook.models import CalendarSession, Client, Package, Payment

TODAY = date(2024, 5, 1)  # a Wednesday


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock():
    return lambda: TODAY


@pytest.fixture
def make_client(db):
    def _make(full_name="Anna", status="active", **fields):
        client = Client(full_name=full_name, status=status, start_date=fields.pop("start_date", TODAY), **fields)
        db.add(client)
        db.commit()
        return client

    return _make


@pytest.fixture
def make_session(db):
    def _make(client, day, start_time="10:00", price=None, **fields):
        fields.setdefault("is_custom", True)
        session = CalendarSession(
            client_id=client.id,
            date=day,
            start_time=start_time,
            duration_minutes=60,
            status=fields.pop("status", "planned"),
            price_override=price,
            **fields,
        )
        db.add(session)
        db.commit()
        return session

    return _make


@pytest.fixture
def make_payment(db):
    def _make(client, amount, paid_at=None, method="cash"):
        payment = Payment(
            client_id=client.id,
            amount=amount,
            paid_at=paid_at or datetime(2024, 5, 1, 12, 0),
            method=method,
        )
        db.add(payment)
        db.commit()
        return payment

    return _make


@pytest.fixture
def make_package(db):
    def _make(client, total_price, sessions_count, status="active", title="Package"):
        package = Package(
            client_id=client.id,
            title=title,
            total_price=total_price,
            sessions_count=sessions_count,
            status=status,
        )
        db.add(package)
        db.commit()
        return package

    return _make
