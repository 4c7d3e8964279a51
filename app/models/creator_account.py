from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class CreatorAccount(SQLModel, table=True):
    username: str = Field(primary_key=True)

    last_payout_amount: Optional[float] = None
    last_payout_at: Optional[datetime] = None
