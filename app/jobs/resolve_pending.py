import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Dict, Optional

from sqlmodel import Session, select, or_

from app.config import settings
from app.constants.payment_status import OPEN_STATUSES
from app.models.payment_intent import PaymentIntent
from app.services.payment_reconciliation import PaymentReconciler

logger = logging.getLogger(__name__)


def resolve_stale_payments(
    reconciler: PaymentReconciler,
    now: Optional[datetime] = None,
) -> Dict[str, int]:
    """
    Sweep intents stuck between approval and completion.

    Meant to be scheduled (cron, worker beat); each call is one bounded pass.
    Back-off per intent is kept in `next_check_at`.
    """
    now = now or datetime.utcnow()
    cutoff = now - timedelta(seconds=settings.resolve_grace_seconds)

    with Session(reconciler.engine) as session:
        payment_ids = session.exec(
            select(PaymentIntent.payment_id)
            .where(PaymentIntent.status.in_(OPEN_STATUSES))
            .where(PaymentIntent.created_at <= cutoff)
            .where(or_(PaymentIntent.next_check_at.is_(None), PaymentIntent.next_check_at <= now))
            .order_by(PaymentIntent.created_at)
            .limit(settings.resolve_batch_size)
        ).all()

    outcomes = Counter()
    for payment_id in payment_ids:
        outcome = reconciler.resolve_pending(payment_id)
        outcomes[outcome.value] += 1

    logger.info(f"Resolved {len(payment_ids)} stale payments: {dict(outcomes)}")
    return dict(outcomes)


if __name__ == "__main__":
    from app.database import engine
    from app.dependencies.payments import build_pi_client

    logging.basicConfig(level=settings.log_level)
    print(resolve_stale_payments(PaymentReconciler(engine, build_pi_client())))
