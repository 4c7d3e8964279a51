from datetime import datetime, timedelta

from sqlmodel import Session

from app.jobs.resolve_pending import resolve_stale_payments
from app.models.payment_intent import PaymentIntent
from tests.conftest import get_book


def test_sweep_finishes_stuck_payments(reconciler, pi, make_book):
    make_book("Atlas")
    for payment_id, buyer in (("p1", "u1"), ("p2", "u2"), ("p3", "u3")):
        pi.create_payment(payment_id)
        reconciler.approve(payment_id, "Atlas", buyer)
    pi.pay("p1", "tx-1")
    pi.pay("p2", "tx-2")

    outcomes = resolve_stale_payments(reconciler, now=datetime.utcnow() + timedelta(seconds=1))

    assert outcomes == {"reconciled": 2, "still_pending": 1}
    assert get_book("Atlas").sales_count == 2


def test_sweep_respects_backoff(reconciler, pi, database, make_book):
    make_book("Atlas")
    pi.create_payment("p1")
    reconciler.approve("p1", "Atlas", "u1")

    now = datetime.utcnow() + timedelta(seconds=1)
    assert resolve_stale_payments(reconciler, now=now) == {"still_pending": 1}
    # next check is pushed back, an immediate second sweep skips it
    assert resolve_stale_payments(reconciler, now=now) == {}

    with Session(database) as session:
        intent = session.get(PaymentIntent, "p1")
    later = intent.next_check_at + timedelta(seconds=1)
    assert resolve_stale_payments(reconciler, now=later) == {"still_pending": 1}


def test_sweep_ignores_closed_intents(reconciler, pi, make_book):
    make_book("Atlas")
    pi.create_payment("p1")
    reconciler.approve("p1", "Atlas", "u1")
    reconciler.complete("p1", "tx-1", "Atlas", "u1")

    assert resolve_stale_payments(reconciler, now=datetime.utcnow() + timedelta(seconds=1)) == {}
