from datetime import date

import pytest

from sessionbook.domain.payments.pricing import (
    SessionPricingResolver,
    package_price_strategy,
    price_override_strategy,
)
from sessionbook.domain.scheduling.schemas import TemplateCreate
from sessionbook.domain.scheduling.service import ScheduleService
from sessionbook.domain.sessions.repository import SessionRepository
from sessionbook.exceptions import NotFoundError


def test_price_precedence_override_then_rule_then_package(db, clock, make_client, make_package):
    client = make_client()
    ScheduleService(db, clock=clock).create_template(
        client.id,
        TemplateCreate(rules=[{"weekday": 1, "start_time": "10:00", "base_price": 30}], valid_to=date(2024, 5, 6)),
    )
    make_package(client, total_price=400, sessions_count=10)
    session = SessionRepository.get_by_client(db, client.id)[0]
    session.price_override = 50
    db.commit()

    resolver = SessionPricingResolver(db)
    assert resolver.price(client.id, session.id) == 50

    session.price_override = None
    db.commit()
    assert resolver.price(client.id, session.id) == 30

    session.template_rule_id = None
    db.commit()
    assert resolver.price(client.id, session.id) == 40


def test_rule_that_no_longer_exists_falls_through(db, make_client, make_session, make_package):
    client = make_client()
    session = make_session(client, date(2024, 5, 6), template_rule_id="gone", is_custom=False)
    make_package(client, total_price=100, sessions_count=4)

    assert SessionPricingResolver(db).price(client.id, session.id) == 25


def test_zero_override_is_a_price(db, make_client, make_session, make_package):
    client = make_client()
    session = make_session(client, date(2024, 5, 6), price=0)
    make_package(client, total_price=100, sessions_count=4)

    assert SessionPricingResolver(db).price(client.id, session.id) == 0


def test_latest_active_package_wins(db, make_client, make_session, make_package):
    client = make_client()
    session = make_session(client, date(2024, 5, 6))
    make_package(client, total_price=100, sessions_count=5)
    make_package(client, total_price=90, sessions_count=3)
    make_package(client, total_price=1000, sessions_count=1, status="expired")

    assert SessionPricingResolver(db).price(client.id, session.id) == 30


def test_no_source_means_free(db, make_client, make_session):
    client = make_client()
    session = make_session(client, date(2024, 5, 6))

    assert SessionPricingResolver(db).price(client.id, session.id) == 0


def test_custom_strategy_order(db, make_client, make_session, make_package):
    client = make_client()
    session = make_session(client, date(2024, 5, 6), price=50)
    make_package(client, total_price=100, sessions_count=4)

    resolver = SessionPricingResolver(db, strategies=[package_price_strategy, price_override_strategy])

    assert resolver.price(client.id, session.id) == 25


def test_unknown_session_raises(db, make_client):
    client = make_client()
    with pytest.raises(NotFoundError):
        SessionPricingResolver(db).price(client.id, 404)
