from typing import Literal, Optional
from pydantic import BaseModel, Field


class RateBookRequest(BaseModel):
    book_id: str = Field(..., min_length=1, alias="bookId")
    vote_type: Literal["like", "dislike"] = Field(..., alias="voteType")
    user_uid: str = Field(..., min_length=1, alias="userUid")


class BookRatingsRequest(BaseModel):
    book_id: str = Field(..., min_length=1, alias="bookId")
    user_uid: Optional[str] = Field(None, alias="userUid")
