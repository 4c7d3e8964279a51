class PaymentStatus:
    PENDING = "pending"
    APPROVED = "approved"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


ALLOWED_TRANSITIONS = {
    PaymentStatus.PENDING: [PaymentStatus.APPROVED, PaymentStatus.COMPLETED, PaymentStatus.CANCELLED],
    PaymentStatus.APPROVED: [PaymentStatus.COMPLETED, PaymentStatus.CANCELLED],
    PaymentStatus.COMPLETED: [],
    PaymentStatus.CANCELLED: [],
}

# intents the recovery sweep still has to look at
OPEN_STATUSES = (PaymentStatus.PENDING, PaymentStatus.APPROVED)


def can_transition(current: str, new: str) -> bool:
    return new in ALLOWED_TRANSITIONS.get(current, [])
