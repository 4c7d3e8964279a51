from unittest.mock import Mock

import pytest
import requests

from app.services.errors import ProviderError
from app.services.pi_client import PiClient


def _response(status_code=200, payload=None, text=""):
    response = Mock()
    response.status_code = status_code
    response.content = b"{}" if payload is not None else b""
    response.json.return_value = payload
    response.text = text
    return response


@pytest.fixture
def http():
    session = Mock(spec=requests.Session)
    session.headers = {}
    return session


def test_sends_server_key_and_timeout(http):
    http.request.return_value = _response(payload={"identifier": "p1"})
    client = PiClient("secret", base_url="https://pi.test/v2/", timeout=3, http=http)

    client.approve("p1")

    assert http.headers["Authorization"] == "Key secret"
    http.request.assert_called_once_with(
        "POST", "https://pi.test/v2/payments/p1/approve", json=None, timeout=3
    )


def test_complete_posts_txid(http):
    http.request.return_value = _response(payload={
        "identifier": "p1",
        "status": {"developer_approved": True, "developer_completed": True},
        "transaction": {"txid": "tx-9", "verified": True, "_link": "https://x"},
    })
    client = PiClient("secret", base_url="https://pi.test/v2", http=http)

    payment = client.complete("p1", "tx-9")

    http.request.assert_called_once_with(
        "POST", "https://pi.test/v2/payments/p1/complete", json={"txid": "tx-9"}, timeout=8.0
    )
    assert payment.txid == "tx-9"
    assert payment.status.developer_completed


def test_get_payment_without_transaction_has_no_txid(http):
    http.request.return_value = _response(payload={
        "identifier": "p2",
        "metadata": None,
        "status": {"developer_approved": True},
        "transaction": None,
    })
    payment = PiClient("secret", http=http).get_payment("p2")

    assert payment.txid is None
    assert payment.metadata is None
    assert not payment.is_cancelled


def test_non_2xx_becomes_provider_error(http):
    http.request.return_value = _response(404, text='{"error":"payment_not_found"}')

    with pytest.raises(ProviderError) as exc:
        PiClient("secret", http=http).get_payment("missing")

    assert exc.value.status_code == 404
    assert "payment_not_found" in exc.value.body
    assert not exc.value.is_transient


def test_timeout_is_transient_provider_error(http):
    http.request.side_effect = requests.Timeout("read timed out")

    with pytest.raises(ProviderError) as exc:
        PiClient("secret", http=http).approve("p1")

    assert exc.value.status_code is None
    assert exc.value.is_transient


def test_empty_body_still_yields_payment(http):
    http.request.return_value = _response(payload=None)

    payment = PiClient("secret", http=http).approve("p3")

    assert payment.identifier == "p3"


def test_garbage_body_is_provider_error(http):
    response = _response(payload={})
    response.json.side_effect = ValueError("not json")
    http.request.return_value = response

    with pytest.raises(ProviderError):
        PiClient("secret", http=http).get_payment("p1")


def test_missing_key_is_rejected():
    with pytest.raises(ValueError):
        PiClient("")
