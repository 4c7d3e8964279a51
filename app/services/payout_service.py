import logging
from datetime import datetime

from sqlmodel import Session, select

from app.config import settings
from app.database import run_in_transaction
from app.models.book import Book
from app.models.creator_account import CreatorAccount
from app.models.payout_request import PayoutRequest
from app.services.errors import PayoutRejected

logger = logging.getLogger(__name__)


def calculate_earnings(books) -> float:
    """Creator's share of every sale not yet paid out."""
    total = 0.0
    for book in books:
        total += round(book.unpaid_sales * (book.price or 0) * settings.creator_share, 2)
    return round(total, 2)


def request_payout(username: str, wallet_address: str) -> PayoutRequest:
    """
    Turn unpaid sales into a pending payout request.

    Sales counters are left alone; each book's paid_out_count catches up
    to its sales_count in the same transaction as the request.
    """

    def work(session: Session) -> PayoutRequest:
        books = session.exec(select(Book).where(Book.owner == username)).all()
        if not books:
            raise PayoutRejected("No books found")

        amount = calculate_earnings(books)
        if amount < settings.min_payout_amount:
            raise PayoutRejected(
                f"Minimum payout is {settings.min_payout_amount:g} {settings.payout_currency}"
            )

        account = session.get(CreatorAccount, username)
        if account and account.last_payout_amount == amount:
            raise PayoutRejected("Duplicate payout attempt")

        now = datetime.utcnow()
        payout = PayoutRequest(
            username=username,
            wallet_address=wallet_address,
            amount=amount,
            currency=settings.payout_currency,
            status="pending",
            requested_at=now,
        )
        session.add(payout)

        account = account or CreatorAccount(username=username)
        account.last_payout_amount = amount
        account.last_payout_at = now
        session.add(account)

        for book in books:
            book.paid_out_count = book.sales_count
            session.add(book)

        session.flush()
        session.refresh(payout)
        session.expunge(payout)
        return payout

    payout = run_in_transaction(work)
    logger.info(f"Payout request {payout.id} created: {payout.amount} {payout.currency} for {username}")
    return payout
