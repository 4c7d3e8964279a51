from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime
from uuid import uuid4


class Book(SQLModel, table=True):
    #main info
    id: str = Field(default_factory=lambda: uuid4().hex, primary_key=True)
    title: str
    description: str = ""
    language: str = ""
    page_count: str = "Unknown"

    #files (urls only, bytes live in object storage)
    cover: str
    pdf: str

    #creator
    owner: str = Field(index=True)
    owner_uid: str

    #Shop Details
    price: float

    # only ever incremented by the grant transaction
    sales_count: int = Field(default=0, ge=0)
    # sales already settled through a payout request
    paid_out_count: int = Field(default=0, ge=0)

    #timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)

    @property
    def unpaid_sales(self) -> int:
        return max(self.sales_count - self.paid_out_count, 0)
