"""
Shared fixtures: a throwaway SQLite database, an in-memory Pi platform and a
TestClient wired to both.
"""

import os
import tempfile
import threading

# settings are read at import time, point them at test values first
_DB_DIR = tempfile.mkdtemp(prefix="bookshelf-tests-")
os.environ.setdefault("PI_API_KEY", "test-pi-key")
os.environ["SQLALCHEMY_DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["ENV"] = "test"
os.environ["RESOLVE_GRACE_SECONDS"] = "0"

import pytest
from fastapi.testclient import TestClient
from sqlmodel import SQLModel, Session

from app.database import create_db_and_tables, engine
from app.dependencies.payments import get_pi_client
from app.main import app
from app.models.book import Book
from app.services.errors import ProviderError
from app.services.payment_reconciliation import PaymentReconciler
from app.services.pi_client import PiPayment


class FakePiPlatform:
    """Pi platform double keeping payments in memory, thread safe."""

    def __init__(self):
        self.payments = {}
        self.calls = []
        self.unreachable = False
        self._lock = threading.Lock()

    def create_payment(self, payment_id, metadata=None, user_uid=None, amount=10.0):
        self.payments[payment_id] = {
            "identifier": payment_id,
            "user_uid": user_uid,
            "amount": amount,
            "memo": "book purchase",
            "metadata": metadata or {},
            "status": {
                "developer_approved": False,
                "transaction_verified": False,
                "developer_completed": False,
                "cancelled": False,
                "user_cancelled": False,
            },
            "transaction": None,
        }

    def pay(self, payment_id, txid):
        """Buyer signs the blockchain transaction."""
        payment = self.payments[payment_id]
        payment["transaction"] = {"txid": txid, "verified": True, "_link": f"https://explorer/{txid}"}
        payment["status"]["transaction_verified"] = True

    def cancel(self, payment_id):
        self.payments[payment_id]["status"]["user_cancelled"] = True

    def _get(self, payment_id):
        if self.unreachable:
            raise ProviderError("Pi API unreachable: timed out")
        if payment_id not in self.payments:
            raise ProviderError("Pi API returned 404", status_code=404, body='{"error":"payment_not_found"}')
        return self.payments[payment_id]

    def approve(self, payment_id):
        with self._lock:
            self.calls.append(("approve", payment_id))
            payment = self._get(payment_id)
            payment["status"]["developer_approved"] = True
            return PiPayment.model_validate(payment)

    def complete(self, payment_id, txid):
        with self._lock:
            self.calls.append(("complete", payment_id))
            payment = self._get(payment_id)
            if not payment["status"]["developer_approved"]:
                raise ProviderError("Pi API returned 400", status_code=400, body='{"error":"payment_not_approved"}')
            if payment["status"]["developer_completed"]:
                raise ProviderError("Pi API returned 400", status_code=400, body='{"error":"already_completed"}')
            payment["transaction"] = payment["transaction"] or {"txid": txid, "verified": True}
            payment["status"]["developer_completed"] = True
            return PiPayment.model_validate(payment)

    def get_payment(self, payment_id):
        with self._lock:
            self.calls.append(("get_payment", payment_id))
            return PiPayment.model_validate(self._get(payment_id))

    def count(self, name):
        return sum(1 for call, _ in self.calls if call == name)


@pytest.fixture(autouse=True)
def database():
    SQLModel.metadata.drop_all(engine)
    create_db_and_tables()
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def pi():
    return FakePiPlatform()


@pytest.fixture
def reconciler(database, pi):
    return PaymentReconciler(database, pi)


@pytest.fixture
def client(pi):
    app.dependency_overrides[get_pi_client] = lambda: pi
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_book(database):
    def _make(book_id="Atlas", price=10.0, owner="alice", **fields):
        book = Book(
            id=book_id,
            title=fields.pop("title", book_id),
            price=price,
            cover=fields.pop("cover", f"https://cdn.example/{book_id}.jpg"),
            pdf=fields.pop("pdf", f"https://cdn.example/{book_id}.pdf"),
            owner=owner,
            owner_uid=fields.pop("owner_uid", f"uid-{owner}"),
            **fields,
        )
        with Session(database) as session:
            session.add(book)
            session.commit()
            session.refresh(book)
        return book

    return _make


def get_book(book_id):
    with Session(engine) as session:
        return session.get(Book, book_id)
