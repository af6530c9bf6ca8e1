from datetime import date

import pytest

from sessionbook.domain.clients.schemas import ClientCreate, ClientUpdate
from sessionbook.domain.clients.service import ClientService
from sessionbook.domain.payments.allocation import AllocationEngine
from sessionbook.domain.scheduling.schemas import TemplateCreate
from sessionbook.domain.scheduling.service import ScheduleService
from sessionbook.domain.sessions.repository import SessionRepository
from sessionbook.exceptions import InvalidArgumentError, NotFoundError
from sessionbook.models import CalendarSession, Client, Package, Payment, PaymentAllocation, ScheduleTemplate

MONDAY_10 = {"weekday": 1, "start_time": "10:00", "base_price": 30}


@pytest.fixture
def service(db, clock):
    return ClientService(db, clock=clock)


@pytest.fixture
def scheduled_client(db, clock, service):
    client = service.create_client(ClientCreate(full_name="Boris"))
    ScheduleService(db, clock=clock).create_template(
        client.id, TemplateCreate(rules=[MONDAY_10], valid_to=date(2024, 6, 30))
    )
    return client


def _live(db, client):
    return [s.date for s in SessionRepository.get_by_client(db, client.id, include_canceled=False)]


def test_create_client_defaults(service):
    client = service.create_client(ClientCreate(full_name="  Vera  ", phone="+100"))

    assert client.full_name == "Vera"
    assert client.status == "active"
    assert client.start_date == date(2024, 5, 1)


def test_update_and_list_clients(service):
    first = service.create_client(ClientCreate(full_name="A"))
    service.create_client(ClientCreate(full_name="B"))
    service.update_client(first.id, ClientUpdate(telegram="@a"))
    service.pause(first.id, date(2024, 5, 10), date(2024, 5, 20))

    assert service.get_client(first.id).telegram == "@a"
    assert len(service.get_clients()) == 2
    assert [c.full_name for c in service.get_clients("paused")] == ["A"]


def test_get_unknown_client_raises(service):
    with pytest.raises(NotFoundError):
        service.get_client(42)


def test_pause_keeps_existing_sessions(db, service, scheduled_client):
    before = _live(db, scheduled_client)

    client = service.pause(scheduled_client.id, date(2024, 5, 10), date(2024, 5, 25))

    assert client.status == "paused"
    assert (client.pause_from, client.pause_to) == (date(2024, 5, 10), date(2024, 5, 25))
    assert _live(db, scheduled_client) == before


def test_pause_with_inverted_window_is_rejected(service, scheduled_client):
    with pytest.raises(InvalidArgumentError):
        service.pause(scheduled_client.id, date(2024, 5, 25), date(2024, 5, 10))


def test_resume_clears_window_and_regenerates(db, service, scheduled_client):
    monday = SessionRepository.find_slot(db, scheduled_client.id, date(2024, 5, 13), "10:00")[0]
    monday.status = "canceled"
    db.commit()
    service.pause(scheduled_client.id, date(2024, 5, 10), date(2024, 5, 25))

    client = service.resume(scheduled_client.id)

    assert client.status == "active"
    assert client.pause_from is None and client.pause_to is None
    assert date(2024, 5, 13) in _live(db, scheduled_client)


def test_archive_cancels_generated_sessions_from_cutoff(db, service, scheduled_client, make_session):
    custom = make_session(scheduled_client, date(2024, 6, 5), price=10)

    client = service.archive(scheduled_client.id, date(2024, 6, 1))

    assert client.status == "archived"
    assert client.archive_date == date(2024, 6, 1)
    assert _live(db, scheduled_client) == [
        date(2024, 5, 6),
        date(2024, 5, 13),
        date(2024, 5, 20),
        date(2024, 5, 27),
        date(2024, 6, 5),
    ]
    db.refresh(custom)
    assert custom.status == "planned"


def test_archived_client_cannot_be_resumed(service, scheduled_client):
    service.archive(scheduled_client.id, date(2024, 6, 1))

    with pytest.raises(InvalidArgumentError):
        service.resume(scheduled_client.id)


def test_delete_is_an_archive_as_of_today(db, service, scheduled_client):
    client = service.delete_client(scheduled_client.id)

    assert client.status == "archived"
    assert client.archive_date == date(2024, 5, 1)
    assert _live(db, scheduled_client) == []
    assert db.query(Client).count() == 1


def test_hard_delete_removes_everything(db, service, scheduled_client, make_client, make_package, make_payment):
    other = make_client(full_name="Other")
    make_package(scheduled_client, 100, 4)
    payment = make_payment(scheduled_client, 50)
    AllocationEngine(db).auto_allocate(payment.id)
    other_payment = make_payment(other, 10)

    summary = service.hard_delete(scheduled_client.id)

    assert summary["sessions"] == 8
    assert summary["allocations"] == 2
    assert summary["templates"] == 1
    assert summary["packages"] == 1
    assert summary["payments"] == 1
    assert db.query(Client).filter(Client.id == summary["client_id"]).count() == 0
    assert db.query(CalendarSession).count() == 0
    assert db.query(ScheduleTemplate).count() == 0
    assert db.query(Package).count() == 0
    assert db.query(PaymentAllocation).count() == 0
    assert [p.id for p in db.query(Payment).all()] == [other_payment.id]
