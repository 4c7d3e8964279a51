from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class CompletionMarker(SQLModel, table=True):
    """Presence means the payment's store-side effects are already applied."""

    payment_id: str = Field(primary_key=True)

    book_id: str
    buyer_id: str
    txid: Optional[str] = None

    completed_at: datetime = Field(default_factory=datetime.utcnow)
