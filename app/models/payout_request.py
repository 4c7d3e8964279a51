from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class PayoutRequest(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    username: str = Field(index=True)
    wallet_address: str

    amount: float
    currency: str = "PI"
    status: str = Field(default="pending")  # pending | approved | rejected

    requested_at: datetime = Field(default_factory=datetime.utcnow)
    approved_at: Optional[datetime] = None
