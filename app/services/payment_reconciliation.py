import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from app.config import settings
from app.constants.payment_status import PaymentStatus, can_transition
from app.models.book import Book
from app.models.completion_marker import CompletionMarker
from app.models.payment_intent import PaymentIntent
from app.services.errors import (
    AlreadyGranted,
    ItemNotFound,
    PaymentConflict,
    ProviderError,
)
from app.services.pi_client import PiClient, PiPayment
from app.services.purchase_service import grant_purchase

logger = logging.getLogger(__name__)

# metadata keys the client app has used for the book / buyer
BOOK_METADATA_KEYS = ("itemId", "bookId")
BUYER_METADATA_KEYS = ("buyerId", "userUid")


class ResolveOutcome(str, Enum):
    RECONCILED = "reconciled"
    ALREADY_RECONCILED = "already_reconciled"
    STILL_PENDING = "still_pending"
    CANCELLED = "cancelled"
    ABANDONED = "abandoned"
    ITEM_NOT_FOUND = "item_not_found"
    PROVIDER_ERROR = "provider_error"


@dataclass
class CompletionResult:
    pdf_url: str
    already_completed: bool = False


class PaymentReconciler:
    """
    Drives a Pi payment from approval to a credited purchase.

    pending --approve--> approved --complete(txid)--> completed
    A completion marker short-circuits every path to success.
    """

    def __init__(self, engine: Engine, pi_client: PiClient):
        self.engine = engine
        self.pi = pi_client

    # ---------------------------------------------------------
    # 1️⃣ APPROVE
    # ---------------------------------------------------------

    def approve(self, payment_id: str, book_id: str, buyer_id: str) -> PaymentIntent:
        intent = self._record_intent(payment_id, book_id, buyer_id)

        if intent.status in (PaymentStatus.APPROVED, PaymentStatus.COMPLETED):
            logger.info(f"Payment {payment_id} already {intent.status}, approve is a no-op")
            return intent

        try:
            self.pi.approve(payment_id)
        except ProviderError as e:
            # intent stays behind for resolve-pending
            self._note_check(payment_id, error=str(e))
            raise

        with Session(self.engine) as session:
            intent = session.get(PaymentIntent, payment_id)
            if can_transition(intent.status, PaymentStatus.APPROVED):
                intent.status = PaymentStatus.APPROVED
                intent.approved_at = datetime.utcnow()
                intent.last_error = None
                session.add(intent)
                session.commit()
                session.refresh(intent)

        logger.info(f"Payment {payment_id} approved for book {book_id} / buyer {buyer_id}")
        return intent

    def _record_intent(self, payment_id: str, book_id: str, buyer_id: str) -> PaymentIntent:
        """Persist the intent before the provider ever hears about it."""
        with Session(self.engine) as session:
            intent = session.get(PaymentIntent, payment_id)

            if intent is None:
                if not session.get(Book, book_id):
                    logger.warning(f"Approve for unknown book {book_id} (payment {payment_id})")
                    raise ItemNotFound(book_id)

                intent = PaymentIntent(
                    payment_id=payment_id,
                    book_id=book_id,
                    buyer_id=buyer_id,
                    status=PaymentStatus.PENDING,
                )
                session.add(intent)
                try:
                    session.commit()
                except IntegrityError:
                    # a concurrent approve for the same payment got there first
                    session.rollback()
                    intent = session.get(PaymentIntent, payment_id)
                else:
                    session.refresh(intent)

            if (intent.book_id, intent.buyer_id) != (book_id, buyer_id):
                raise PaymentConflict(
                    f"Payment {payment_id} is already registered for another book or buyer"
                )

            return intent

    # ---------------------------------------------------------
    # 2️⃣ COMPLETE (client driven)
    # ---------------------------------------------------------

    def complete(self, payment_id: str, txid: str, book_id: str, buyer_id: str) -> CompletionResult:
        replay = self._replay(payment_id, book_id, buyer_id)
        if replay:
            return replay

        with Session(self.engine) as session:
            intent = session.get(PaymentIntent, payment_id)

        if intent is not None:
            if (intent.book_id, intent.buyer_id) != (book_id, buyer_id):
                logger.warning(
                    f"Complete for payment {payment_id} names book {book_id} / buyer {buyer_id}, "
                    f"intent says {intent.book_id} / {intent.buyer_id}"
                )
                raise PaymentConflict(
                    f"Payment {payment_id} was approved for another book or buyer"
                )
        else:
            logger.warning(f"Complete for payment {payment_id} without a recorded intent")

        try:
            record = self._complete_with_provider(payment_id, txid)
        except ProviderError as e:
            self._note_check(payment_id, error=str(e))
            raise

        if intent is None:
            self._check_metadata(record, book_id, buyer_id)

        return self._credit(payment_id, book_id, buyer_id, record.txid or txid)

    def _complete_with_provider(self, payment_id: str, txid: str) -> PiPayment:
        try:
            return self.pi.complete(payment_id, txid)
        except ProviderError as e:
            if e.is_transient:
                raise

            # completed at the provider by an earlier attempt that never got credited?
            try:
                record = self.pi.get_payment(payment_id)
            except ProviderError:
                raise e

            if record.status.developer_completed and record.txid == txid:
                logger.info(f"Payment {payment_id} was already completed at the provider")
                return record

            raise

    # ---------------------------------------------------------
    # 3️⃣ RESOLVE PENDING (out of band recovery)
    # ---------------------------------------------------------

    def resolve_pending(self, payment_id: str) -> ResolveOutcome:
        with Session(self.engine) as session:
            if session.get(CompletionMarker, payment_id):
                return ResolveOutcome.ALREADY_RECONCILED

        try:
            record = self.pi.get_payment(payment_id)
        except ProviderError as e:
            logger.warning(f"⚠️ Could not fetch payment {payment_id}: {e}")
            self._note_check(payment_id, error=str(e))
            return ResolveOutcome.PROVIDER_ERROR

        if record.is_cancelled:
            self._cancel(payment_id)
            return ResolveOutcome.CANCELLED

        if not record.txid:
            logger.info(f"⏳ Payment still pending: {payment_id}")
            self._note_check(payment_id)
            return ResolveOutcome.STILL_PENDING

        identity = self._identity_for(payment_id, record)
        if identity is None:
            logger.warning(
                f"⚠️ Cannot establish book/buyer for payment {payment_id}; "
                f"leaving it for manual review"
            )
            self._note_check(payment_id, error="missing book/buyer identity")
            return ResolveOutcome.ABANDONED
        book_id, buyer_id = identity
        txid = record.txid

        if not record.status.developer_completed:
            try:
                record = self._complete_with_provider(payment_id, txid)
            except ProviderError as e:
                logger.warning(f"⚠️ Failed to complete pending payment {payment_id}: {e}")
                self._note_check(payment_id, error=str(e))
                return ResolveOutcome.PROVIDER_ERROR

        try:
            result = self._credit(payment_id, book_id, buyer_id, record.txid or txid)
        except ItemNotFound:
            self._note_check(payment_id, error=f"book {book_id} not found")
            return ResolveOutcome.ITEM_NOT_FOUND
        except PaymentConflict:
            # credited meanwhile under the identity the client completed with
            return ResolveOutcome.ALREADY_RECONCILED

        if result.already_completed:
            return ResolveOutcome.ALREADY_RECONCILED

        logger.info(f"✅ Pending payment resolved: {payment_id}")
        return ResolveOutcome.RECONCILED

    def _identity_for(self, payment_id: str, record: PiPayment) -> Optional[Tuple[str, str]]:
        with Session(self.engine) as session:
            intent = session.get(PaymentIntent, payment_id)

        if intent is not None:
            self._check_metadata(record, intent.book_id, intent.buyer_id, strict=False)
            return intent.book_id, intent.buyer_id

        # no local trail; fall back to what the client attached to the payment
        metadata = record.metadata or {}
        book_id = _first(metadata, BOOK_METADATA_KEYS)
        buyer_id = _first(metadata, BUYER_METADATA_KEYS)
        if not book_id or not buyer_id:
            return None

        if record.user_uid and record.user_uid != buyer_id:
            logger.warning(
                f"Payment {payment_id} metadata buyer {buyer_id} differs from payer {record.user_uid}"
            )
            return None

        return book_id, buyer_id

    # ---------------------------------------------------------
    # helpers
    # ---------------------------------------------------------

    def _credit(self, payment_id: str, book_id: str, buyer_id: str, txid: Optional[str]) -> CompletionResult:
        try:
            pdf_url = grant_purchase(
                payment_id=payment_id,
                book_id=book_id,
                buyer_id=buyer_id,
                txid=txid,
                bind=self.engine,
            )
        except AlreadyGranted:
            # lost a race with another completion of the same payment
            return self._replay(payment_id, book_id, buyer_id)
        except ItemNotFound:
            logger.error(
                f"❌ Paid payment {payment_id} references missing book {book_id} (buyer {buyer_id})"
            )
            raise

        return CompletionResult(pdf_url=pdf_url)

    def _replay(self, payment_id: str, book_id: str, buyer_id: str) -> Optional[CompletionResult]:
        """The pdf goes only to the buyer the marker credited, for the book it credited."""
        with Session(self.engine) as session:
            marker = session.get(CompletionMarker, payment_id)
            if marker is None:
                return None

            if (marker.book_id, marker.buyer_id) != (book_id, buyer_id):
                logger.warning(
                    f"Replay of payment {payment_id} names book {book_id} / buyer {buyer_id}, "
                    f"it was credited to {marker.book_id} / {marker.buyer_id}"
                )
                raise PaymentConflict(
                    f"Payment {payment_id} was completed for another book or buyer"
                )

            book = session.get(Book, marker.book_id)
            if book is None:
                logger.error(f"❌ Completed payment {payment_id} references missing book {marker.book_id}")
                raise ItemNotFound(marker.book_id)

            logger.info(f"Payment {payment_id} already completed")
            return CompletionResult(pdf_url=book.pdf, already_completed=True)

    def _check_metadata(self, record: PiPayment, book_id: str, buyer_id: str, strict: bool = True):
        metadata = record.metadata or {}
        echoed_book = _first(metadata, BOOK_METADATA_KEYS)
        echoed_buyer = _first(metadata, BUYER_METADATA_KEYS)

        mismatched = (
            (echoed_book and echoed_book != book_id)
            or (echoed_buyer and echoed_buyer != buyer_id)
        )
        if not mismatched:
            return

        logger.warning(
            f"Payment {record.identifier} metadata ({echoed_book}, {echoed_buyer}) "
            f"disagrees with ({book_id}, {buyer_id})"
        )
        if strict:
            raise PaymentConflict(
                f"Payment {record.identifier} metadata does not match the requested book or buyer"
            )

    def _note_check(self, payment_id: str, error: Optional[str] = None):
        """Record a recovery attempt and push the next one back."""
        with Session(self.engine) as session:
            intent = session.get(PaymentIntent, payment_id)
            if intent is None or intent.status not in (PaymentStatus.PENDING, PaymentStatus.APPROVED):
                return

            now = datetime.utcnow()
            intent.attempts += 1
            intent.last_checked_at = now
            intent.next_check_at = now + backoff_delay(intent.attempts)
            if error:
                intent.last_error = error[:500]
            session.add(intent)
            session.commit()

    def _cancel(self, payment_id: str):
        with Session(self.engine) as session:
            intent = session.get(PaymentIntent, payment_id)
            if intent is None or not can_transition(intent.status, PaymentStatus.CANCELLED):
                return

            intent.status = PaymentStatus.CANCELLED
            intent.next_check_at = None
            intent.last_checked_at = datetime.utcnow()
            session.add(intent)
            session.commit()

        logger.info(f"Payment {payment_id} was cancelled at the provider")


def backoff_delay(attempts: int) -> timedelta:
    seconds = settings.resolve_backoff_seconds * (2 ** max(attempts - 1, 0))
    return timedelta(seconds=min(seconds, settings.resolve_backoff_max_seconds))


def _first(metadata: Dict[str, Any], keys) -> Optional[str]:
    for key in keys:
        value = metadata.get(key)
        if value:
            return str(value)
    return None
