import logging
import random
import time
from typing import Callable, Optional, TypeVar

from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlmodel import SQLModel, create_engine, Session
from app.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

TRANSACTION_MAX_ATTEMPTS = 5


def _build_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        # request handlers run in the threadpool
        return create_engine(
            url,
            echo=False,
            connect_args={"check_same_thread": False, "timeout": 30},
        )

    return create_engine(
        url,
        echo=False,
        pool_pre_ping=True,      # ✅ checks dead connections
        pool_recycle=1800        # ✅ refresh every 30 min
    )


engine = _build_engine(settings.database_url)


def create_db_and_tables(bind: Optional[Engine] = None):
    from app.models import (  # noqa: F401
        book, payment_intent, purchase_grant, completion_marker,
        book_vote, payout_request, creator_account,
    )
    SQLModel.metadata.create_all(bind or engine)


def get_session():
    with Session(engine) as session:
        yield session


def run_in_transaction(
    work: Callable[[Session], T],
    *,
    bind: Optional[Engine] = None,
    max_attempts: int = TRANSACTION_MAX_ATTEMPTS,
) -> T:
    """
    Run `work` inside one transaction and commit it.

    A unique-key violation or a lock/serialization failure means another
    writer committed first, so the whole unit is rolled back and replayed
    against fresh state. Any other exception aborts without retry.
    """
    last_error = None

    for attempt in range(1, max_attempts + 1):
        with Session(bind or engine) as session:
            try:
                result = work(session)
                session.commit()
                return result
            except (IntegrityError, OperationalError) as e:
                session.rollback()
                last_error = e
                logger.warning(
                    f"Transaction conflict (attempt {attempt}/{max_attempts}): {e.orig}"
                )

        time.sleep(min(0.05 * (2 ** attempt), 1.0) + random.random() * 0.05)

    raise last_error
