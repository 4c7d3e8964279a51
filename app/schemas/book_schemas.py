from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from typing import Optional
from datetime import datetime


class BookCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    price: float = Field(..., gt=0)
    description: Optional[str] = None
    language: Optional[str] = None
    page_count: Optional[str] = None

    cover: str = Field(..., min_length=1)
    pdf: str = Field(..., min_length=1)

    owner: str = Field(..., min_length=1)
    owner_uid: str = Field(..., min_length=1)

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class BookListing(BaseModel):
    """Public catalogue entry. The pdf stays behind /get-pdf."""
    id: str
    title: str
    price: float
    description: str
    language: str
    page_count: str

    cover: str

    owner: str
    owner_uid: str

    sales_count: int
    created_at: datetime

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class BookResponse(BookListing):
    pdf: str


class OwnerRequest(BaseModel):
    username: str = Field(..., min_length=1)


class PayoutCreate(BaseModel):
    username: str = Field(..., min_length=1)
    wallet_address: str = Field(..., min_length=1, alias="walletAddress")
