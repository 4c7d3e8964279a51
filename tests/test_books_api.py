from tests.conftest import get_book
from app.services.purchase_service import grant_purchase


BOOK = {
    "title": "Atlas",
    "price": 10,
    "cover": "https://cdn.example/atlas.jpg",
    "pdf": "https://cdn.example/atlas.pdf",
    "owner": "alice",
    "ownerUid": "uid-alice",
}


def test_root(client):
    assert client.get("/").text == "Backend running"


def test_save_and_list_books(client):
    created = client.post("/save-book", json=BOOK)
    assert created.status_code == 200
    book_id = created.json()["bookId"]

    books = client.get("/books").json()["books"]

    assert len(books) == 1
    assert books[0]["id"] == book_id
    assert books[0]["salesCount"] == 0
    assert books[0]["pageCount"] == "Unknown"
    assert books[0]["ownerUid"] == "uid-alice"
    assert "pdf" not in books[0]


def test_save_book_requires_fields(client):
    response = client.post("/save-book", json={**BOOK, "pdf": ""})
    assert response.status_code == 400

    response = client.post("/save-book", json={**BOOK, "price": 0})
    assert response.status_code == 400


def test_votes_last_one_wins(client, make_book):
    make_book("Atlas")

    client.post("/rate-book", json={"bookId": "Atlas", "voteType": "like", "userUid": "u1"})
    client.post("/rate-book", json={"bookId": "Atlas", "voteType": "like", "userUid": "u2"})
    client.post("/rate-book", json={"bookId": "Atlas", "voteType": "dislike", "userUid": "u1"})

    tally = client.post("/book-ratings", json={"bookId": "Atlas", "userUid": "u1"}).json()

    assert tally == {"success": True, "likes": 1, "dislikes": 1, "userVote": "dislike"}


def test_rate_book_rejects_unknown_vote(client, make_book):
    make_book("Atlas")

    response = client.post("/rate-book", json={"bookId": "Atlas", "voteType": "meh", "userUid": "u1"})

    assert response.status_code == 400


def test_payout_uses_unpaid_sales_and_keeps_counters(client, make_book):
    make_book("Atlas", price=10, owner="alice")
    for n in range(1, 4):
        grant_purchase(payment_id=f"p{n}", book_id="Atlas", buyer_id=f"u{n}")

    response = client.post("/request-payout", json={"username": "alice", "walletAddress": "GABC"})

    assert response.status_code == 200
    assert response.json()["amount"] == 21.0
    assert response.json()["currency"] == "PI"
    book = get_book("Atlas")
    assert book.sales_count == 3
    assert book.paid_out_count == 3

    sales = client.post("/my-sales", json={"username": "alice"}).json()["books"]
    assert sales[0]["salesCount"] == 3
    assert sales[0]["unpaidSales"] == 0


def test_payout_below_minimum(client, make_book):
    make_book("Atlas", price=1, owner="alice")
    grant_purchase(payment_id="p1", book_id="Atlas", buyer_id="u1")

    response = client.post("/request-payout", json={"username": "alice", "walletAddress": "GABC"})

    assert response.status_code == 400
    assert "Minimum payout" in response.json()["detail"]


def test_payout_duplicate_amount_rejected(client, make_book):
    make_book("Atlas", price=10, owner="alice")
    grant_purchase(payment_id="p1", book_id="Atlas", buyer_id="u1")
    assert client.post("/request-payout", json={"username": "alice", "walletAddress": "G"}).status_code == 200

    grant_purchase(payment_id="p2", book_id="Atlas", buyer_id="u2")
    response = client.post("/request-payout", json={"username": "alice", "walletAddress": "G"})

    assert response.status_code == 400
    assert response.json()["detail"] == "Duplicate payout attempt"


def test_payout_without_books(client):
    response = client.post("/request-payout", json={"username": "nobody", "walletAddress": "G"})

    assert response.status_code == 400


def test_health_check(client):
    assert client.get("/health/check").json()["database"] == "ok"
