import logging
from datetime import date

import pytest

from sessionbook.domain.payments.allocation import AllocationEngine
from sessionbook.domain.payments.repository import PaymentRepository
from sessionbook.exceptions import InvalidArgumentError, NotFoundError


@pytest.fixture
def allocations(db):
    return AllocationEngine(db)


@pytest.fixture
def three_sessions(make_client, make_session):
    client = make_client()
    sessions = [
        make_session(client, date(2024, 1, 1), price=20),
        make_session(client, date(2024, 1, 3), price=20),
        make_session(client, date(2024, 1, 10), price=20),
    ]
    return client, sessions


def test_allocate_merges_into_existing_row(db, allocations, three_sessions, make_payment):
    client, sessions = three_sessions
    payment = make_payment(client, 50)

    first = allocations.allocate(payment.id, sessions[0].id, 5)
    second = allocations.allocate(payment.id, sessions[0].id, 7.5)

    assert first.id == second.id
    assert allocations.get_allocated_amount(sessions[0].id) == pytest.approx(12.5)
    assert len(allocations.get_by_payment(payment.id)) == 1


@pytest.mark.parametrize("amount", [0, -5])
def test_non_positive_amount_is_rejected(allocations, three_sessions, make_payment, amount):
    client, sessions = three_sessions
    payment = make_payment(client, 50)

    with pytest.raises(InvalidArgumentError):
        allocations.allocate(payment.id, sessions[0].id, amount)


def test_unknown_ids_raise_not_found(allocations, three_sessions, make_payment):
    client, sessions = three_sessions
    payment = make_payment(client, 50)

    with pytest.raises(NotFoundError):
        allocations.allocate(999, sessions[0].id, 10)
    with pytest.raises(NotFoundError):
        allocations.allocate(payment.id, 999, 10)
    with pytest.raises(NotFoundError):
        allocations.deallocate(999)
    with pytest.raises(NotFoundError):
        allocations.auto_allocate(999)


def test_allocating_above_session_price_is_logged(allocations, three_sessions, make_payment, caplog):
    client, sessions = three_sessions
    payment = make_payment(client, 50)

    with caplog.at_level(logging.WARNING, logger="sessionbook.domain.payments.allocation"):
        allocations.allocate(payment.id, sessions[0].id, 35)

    assert allocations.get_allocated_amount(sessions[0].id) == 35
    assert sum(allocations.get_allocated_amount(s.id) for s in sessions) <= payment.amount
    assert allocations.session_status(sessions[0].id) == "paid"
    assert "above its price" in caplog.text
    assert "over-allocated" not in caplog.text


def test_deallocate_restores_unpaid(allocations, three_sessions, make_payment):
    client, sessions = three_sessions
    payment = make_payment(client, 20)
    allocation = allocations.allocate(payment.id, sessions[1].id, 20)
    assert allocations.session_status(sessions[1].id) == "paid"

    allocations.deallocate(allocation.id)

    assert allocations.get_by_session(sessions[1].id) == []
    assert allocations.session_status(sessions[1].id) == "unpaid"


def test_reallocate_replaces_the_whole_set(allocations, three_sessions, make_payment):
    client, sessions = three_sessions
    payment = make_payment(client, 40)
    allocations.allocate(payment.id, sessions[0].id, 20)
    allocations.allocate(payment.id, sessions[1].id, 20)

    result = allocations.reallocate(payment.id, [(sessions[2].id, 15), (sessions[1].id, 5)])

    assert sorted((a.session_id, a.allocated_amount) for a in result) == sorted(
        [(sessions[2].id, 15), (sessions[1].id, 5)]
    )
    assert allocations.session_status(sessions[0].id) == "unpaid"
    assert allocations.session_status(sessions[1].id) == "partially_paid"


def test_reallocate_validates_before_touching_anything(allocations, three_sessions, make_payment):
    client, sessions = three_sessions
    payment = make_payment(client, 40)
    allocations.allocate(payment.id, sessions[0].id, 20)

    with pytest.raises(InvalidArgumentError):
        allocations.reallocate(payment.id, [(sessions[1].id, 10), (sessions[2].id, 0)])
    with pytest.raises(NotFoundError):
        allocations.reallocate(payment.id, [(sessions[1].id, 10), (999, 10)])

    remaining = allocations.get_by_payment(payment.id)
    assert [(a.session_id, a.allocated_amount) for a in remaining] == [(sessions[0].id, 20)]


def test_auto_allocate_fills_oldest_first(allocations, three_sessions, make_payment):
    client, sessions = three_sessions
    payment = make_payment(client, 30)

    allocations.auto_allocate(payment.id)

    assert [allocations.get_allocated_amount(s.id) for s in sessions] == [20, 10, 0]
    assert [allocations.session_status(s.id) for s in sessions] == ["paid", "partially_paid", "unpaid"]


def test_auto_allocate_twice_keeps_conservation(db, allocations, three_sessions, make_payment):
    client, sessions = three_sessions
    payment = make_payment(client, 30)

    allocations.auto_allocate(payment.id)
    assert allocations.auto_allocate(payment.id) == []

    assert PaymentRepository.sum_by_payment(db, payment.id) == pytest.approx(30)


def test_auto_allocate_skips_canceled_and_paused_sessions(db, allocations, make_client, make_session, make_payment):
    client = make_client(pause_from=date(2024, 1, 2), pause_to=date(2024, 1, 5))
    canceled = make_session(client, date(2024, 1, 1), price=20, status="canceled")
    paused = make_session(client, date(2024, 1, 3), price=20)
    open_ = make_session(client, date(2024, 1, 10), price=20)
    payment = make_payment(client, 30)

    allocations.auto_allocate(payment.id)

    assert allocations.get_allocated_amount(canceled.id) == 0
    assert allocations.get_allocated_amount(paused.id) == 0
    assert allocations.get_allocated_amount(open_.id) == 20


def test_effective_allocation_spreads_unallocated_balance(allocations, three_sessions, make_payment):
    client, sessions = three_sessions
    make_payment(client, 30)

    effective = [allocations.get_effective_allocated_amount(s.id, client.id) for s in sessions]

    assert effective == [20, 10, 0]
    assert [allocations.get_allocated_amount(s.id) for s in sessions] == [0, 0, 0]
    assert [allocations.session_status_with_balance(s.id, client.id) for s in sessions] == [
        "paid",
        "partially_paid",
        "unpaid",
    ]


def test_effective_allocation_counts_real_allocations_first(allocations, three_sessions, make_payment):
    client, sessions = three_sessions
    payment = make_payment(client, 30)
    allocations.allocate(payment.id, sessions[1].id, 20)

    effective = [allocations.get_effective_allocated_amount(s.id, client.id) for s in sessions]

    # 10 left over goes to the oldest uncovered session
    assert effective == [10, 20, 0]


def test_effective_allocation_skips_pause_window(allocations, make_client, make_session, make_payment):
    client = make_client(pause_from=date(2024, 1, 2), pause_to=date(2024, 1, 5))
    first = make_session(client, date(2024, 1, 1), price=20)
    paused = make_session(client, date(2024, 1, 3), price=20)
    last = make_session(client, date(2024, 1, 10), price=20)
    make_payment(client, 30)

    assert allocations.get_effective_allocated_amount(first.id, client.id) == 20
    assert allocations.get_effective_allocated_amount(paused.id, client.id) == 0
    assert allocations.get_effective_allocated_amount(last.id, client.id) == 10


def test_zero_price_session_does_not_absorb_balance(allocations, make_client, make_session, make_payment):
    client = make_client()
    free = make_session(client, date(2024, 1, 1), price=0)
    paid = make_session(client, date(2024, 1, 2), price=20)
    make_payment(client, 15)

    assert allocations.get_effective_allocated_amount(free.id, client.id) == 0
    assert allocations.session_status_with_balance(free.id, client.id) == "paid"
    assert allocations.get_effective_allocated_amount(paid.id, client.id) == 15
