from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from app.database import get_session
from app.models.book import Book
from app.schemas.book_schemas import BookResponse, OwnerRequest, PayoutCreate
from app.services.errors import PayoutRejected
from app.services.payout_service import request_payout

router = APIRouter()


@router.post("/my-sales")
def my_sales(
    data: OwnerRequest,
    session: Session = Depends(get_session),
):
    books = session.exec(select(Book).where(Book.owner == data.username)).all()

    return {
        "success": True,
        "books": [
            {
                **BookResponse.model_validate(b).model_dump(by_alias=True),
                "unpaidSales": b.unpaid_sales,
            }
            for b in books
        ],
    }


@router.post("/request-payout")
def create_payout_request(data: PayoutCreate):
    try:
        payout = request_payout(data.username, data.wallet_address)
    except PayoutRejected as e:
        raise HTTPException(400, str(e))

    return {
        "success": True,
        "payoutId": payout.id,
        "amount": payout.amount,
        "currency": payout.currency,
    }
