from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from app.database import get_session
from app.models.book import Book
from app.models.book_vote import BookVote
from app.schemas.rating_schemas import BookRatingsRequest, RateBookRequest

router = APIRouter()


@router.post("/rate-book")
def rate_book(
    data: RateBookRequest,
    session: Session = Depends(get_session),
):
    if not session.get(Book, data.book_id):
        raise HTTPException(404, "Book not found")

    # one vote per user per book, last one wins
    vote = session.get(BookVote, (data.book_id, data.user_uid))
    if vote is None:
        vote = BookVote(book_id=data.book_id, user_uid=data.user_uid, vote=data.vote_type)

    vote.vote = data.vote_type
    vote.voted_at = datetime.utcnow()

    session.add(vote)
    session.commit()

    return {"success": True}


@router.post("/book-ratings")
def book_ratings(
    data: BookRatingsRequest,
    session: Session = Depends(get_session),
):
    votes = session.exec(
        select(BookVote).where(BookVote.book_id == data.book_id)
    ).all()

    likes = sum(1 for v in votes if v.vote == "like")
    dislikes = sum(1 for v in votes if v.vote == "dislike")
    user_vote = next((v.vote for v in votes if v.user_uid == data.user_uid), None)

    return {
        "success": True,
        "likes": likes,
        "dislikes": dislikes,
        "userVote": user_vote,
    }
