import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import update
from sqlalchemy.engine import Engine
from sqlmodel import Session

from app.constants.payment_status import PaymentStatus
from app.database import run_in_transaction
from app.models.book import Book
from app.models.completion_marker import CompletionMarker
from app.models.payment_intent import PaymentIntent
from app.models.purchase_grant import PurchaseGrant
from app.services.errors import AlreadyGranted, ItemNotFound, NotPurchased

logger = logging.getLogger(__name__)


def grant_purchase(
    *,
    payment_id: str,
    book_id: str,
    buyer_id: str,
    txid: Optional[str] = None,
    bind: Optional[Engine] = None,
) -> str:
    """
    Single place where a paid purchase touches the store.

    Marker check, sales increment, grant and marker are committed together.
    Returns the book's pdf url. Raises AlreadyGranted when the payment was
    credited before, ItemNotFound when the book is gone.
    """

    def work(session: Session) -> str:
        # 1️⃣ idempotency guard, re-read inside the transaction
        if session.get(CompletionMarker, payment_id):
            raise AlreadyGranted(payment_id)

        # 2️⃣ book must exist
        book = session.get(Book, book_id)
        if not book:
            raise ItemNotFound(book_id)
        pdf_url = book.pdf

        # 3️⃣ + 4️⃣ count the sale and grant access, once per (buyer, book)
        if session.get(PurchaseGrant, (buyer_id, book_id)) is None:
            _count_sale(session, book_id)
            _record_grant(session, payment_id, book_id, buyer_id)
        else:
            logger.info(
                f"Buyer {buyer_id} already owns book {book_id}; "
                f"payment {payment_id} recorded without a new sale"
            )

        # 5️⃣ marker, written last in the same unit
        session.add(CompletionMarker(
            payment_id=payment_id,
            book_id=book_id,
            buyer_id=buyer_id,
            txid=txid,
        ))
        _close_intent(session, payment_id, book_id, buyer_id, txid)

        return pdf_url

    pdf_url = run_in_transaction(work, bind=bind)
    logger.info(f"✅ Payment {payment_id} credited: book {book_id} → buyer {buyer_id}")
    return pdf_url


def _count_sale(session: Session, book_id: str):
    # SQL-side increment, safe against concurrent sales of the same book
    session.execute(
        update(Book)
        .where(Book.id == book_id)
        .values(sales_count=Book.sales_count + 1)
    )


def _record_grant(session: Session, payment_id: str, book_id: str, buyer_id: str):
    session.add(PurchaseGrant(
        buyer_id=buyer_id,
        book_id=book_id,
        payment_id=payment_id,
    ))
    # surface a concurrent grant for the same pair as a conflict now
    session.flush()


def _close_intent(
    session: Session,
    payment_id: str,
    book_id: str,
    buyer_id: str,
    txid: Optional[str],
):
    now = datetime.utcnow()
    intent = session.get(PaymentIntent, payment_id)

    if intent is None:
        intent = PaymentIntent(
            payment_id=payment_id,
            book_id=book_id,
            buyer_id=buyer_id,
        )

    intent.status = PaymentStatus.COMPLETED
    intent.txid = txid
    intent.completed_at = now
    intent.next_check_at = None
    intent.last_error = None
    session.add(intent)


# ---------------------------------------------------------
# PURCHASE GATE (read only)
# ---------------------------------------------------------

def has_purchased(session: Session, buyer_id: str, book_id: str) -> bool:
    return session.get(PurchaseGrant, (buyer_id, book_id)) is not None


def get_pdf_for_buyer(session: Session, buyer_id: str, book_id: str) -> str:
    book = session.get(Book, book_id)
    if not book:
        raise ItemNotFound(book_id)

    if not has_purchased(session, buyer_id, book_id):
        raise NotPurchased(buyer_id, book_id)

    return book.pdf
