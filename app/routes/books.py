from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from app.database import get_session
from app.models.book import Book
from app.schemas.book_schemas import BookCreate, BookListing

router = APIRouter()


def _serialize(book: Book) -> dict:
    return BookListing.model_validate(book).model_dump(by_alias=True)


# ---------- LIST BOOKS ----------
@router.get("/books", summary="All books, newest first")
def list_books(session: Session = Depends(get_session)):
    books = session.exec(select(Book).order_by(Book.created_at.desc())).all()
    return {"success": True, "books": [_serialize(b) for b in books]}


# ---------- SAVE BOOK ----------
@router.post("/save-book")
def save_book(
    data: BookCreate,
    session: Session = Depends(get_session),
):
    book = Book(
        title=data.title,
        price=data.price,
        description=data.description or "",
        language=data.language or "",
        page_count=data.page_count or "Unknown",
        cover=data.cover,
        pdf=data.pdf,
        owner=data.owner,
        owner_uid=data.owner_uid,
        sales_count=0,
    )

    session.add(book)
    session.commit()
    session.refresh(book)

    return {"success": True, "bookId": book.id}
