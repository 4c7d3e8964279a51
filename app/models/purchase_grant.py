from sqlmodel import SQLModel, Field
from datetime import datetime


class PurchaseGrant(SQLModel, table=True):
    buyer_id: str = Field(primary_key=True)
    book_id: str = Field(primary_key=True, foreign_key="book.id")

    payment_id: str
    purchased_at: datetime = Field(default_factory=datetime.utcnow)
