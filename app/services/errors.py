from typing import Optional


class ProviderError(Exception):
    """
    The payment provider could not be reached or answered non-2xx.

    This is an infrastructure failure, not a rejected payment: the local
    payment intent is kept so recovery can retry later.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    @property
    def is_transient(self) -> bool:
        # timeouts, connection failures and provider-side 5xx
        return self.status_code is None or self.status_code >= 500


class ItemNotFound(Exception):
    def __init__(self, book_id: str):
        super().__init__(f"Book {book_id} not found")
        self.book_id = book_id


class AlreadyGranted(Exception):
    """The completion marker for this payment already exists."""

    def __init__(self, payment_id: str):
        super().__init__(f"Payment {payment_id} already completed")
        self.payment_id = payment_id


class NotPurchased(Exception):
    def __init__(self, buyer_id: str, book_id: str):
        super().__init__("Not purchased")
        self.buyer_id = buyer_id
        self.book_id = book_id


class PaymentConflict(Exception):
    """Request identifiers disagree with what was recorded for the payment."""


class PayoutRejected(Exception):
    pass
