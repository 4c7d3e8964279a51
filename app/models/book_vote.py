from sqlmodel import SQLModel, Field
from datetime import datetime


class BookVote(SQLModel, table=True):
    book_id: str = Field(primary_key=True, foreign_key="book.id")
    user_uid: str = Field(primary_key=True)

    vote: str  # like | dislike
    voted_at: datetime = Field(default_factory=datetime.utcnow)
