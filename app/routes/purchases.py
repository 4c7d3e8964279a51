import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from app.database import get_session
from app.models.book import Book
from app.models.purchase_grant import PurchaseGrant
from app.schemas.book_schemas import BookResponse
from app.schemas.purchase_schemas import GetPdfRequest, MyPurchasesRequest
from app.services.errors import ItemNotFound, NotPurchased
from app.services.purchase_service import get_pdf_for_buyer

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/get-pdf")
def get_pdf(
    payload: GetPdfRequest,
    session: Session = Depends(get_session),
):
    try:
        pdf_url = get_pdf_for_buyer(session, payload.buyer_id, payload.item_id)
    except ItemNotFound:
        raise HTTPException(404, "Book not found")
    except NotPurchased:
        logger.info(f"PDF denied: {payload.buyer_id} has not bought {payload.item_id}")
        raise HTTPException(403, "Not purchased")

    return {"success": True, "pdfUrl": pdf_url}


@router.post("/my-purchases")
def my_purchases(
    payload: MyPurchasesRequest,
    session: Session = Depends(get_session),
):
    books = session.exec(
        select(Book)
        .join(PurchaseGrant, PurchaseGrant.book_id == Book.id)
        .where(PurchaseGrant.buyer_id == payload.buyer_id)
        .order_by(PurchaseGrant.purchased_at.desc())
    ).all()

    return {
        "success": True,
        "books": [
            BookResponse.model_validate(b).model_dump(by_alias=True)
            for b in books
        ],
    }
