from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

from app.constants.payment_status import PaymentStatus


class PaymentIntent(SQLModel, table=True):
    # provider-issued identifier
    payment_id: str = Field(primary_key=True)

    book_id: str = Field(foreign_key="book.id", index=True)
    buyer_id: str = Field(index=True)

    status: str = Field(default=PaymentStatus.PENDING, index=True)
    txid: Optional[str] = None

    # recovery bookkeeping
    attempts: int = 0
    last_error: Optional[str] = None
    last_checked_at: Optional[datetime] = None
    next_check_at: Optional[datetime] = Field(default=None, index=True)

    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    approved_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
