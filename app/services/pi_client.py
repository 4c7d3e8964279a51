import logging
from typing import Any, Dict, Optional

import requests
from pydantic import BaseModel, Field, ValidationError

from app.services.errors import ProviderError

logger = logging.getLogger(__name__)


class PiPaymentStatus(BaseModel):
    developer_approved: bool = False
    transaction_verified: bool = False
    developer_completed: bool = False
    cancelled: bool = False
    user_cancelled: bool = False


class PiTransaction(BaseModel):
    txid: Optional[str] = None
    verified: bool = False
    link: Optional[str] = Field(default=None, alias="_link")


class PiPayment(BaseModel):
    """Payment record as returned by the Pi platform API."""

    identifier: str
    user_uid: Optional[str] = None
    amount: Optional[float] = None
    memo: Optional[str] = None
    # echoed from the client at creation time, never trusted for crediting
    metadata: Optional[Dict[str, Any]] = None
    status: PiPaymentStatus = Field(default_factory=PiPaymentStatus)
    transaction: Optional[PiTransaction] = None

    @property
    def txid(self) -> Optional[str]:
        return self.transaction.txid if self.transaction else None

    @property
    def is_cancelled(self) -> bool:
        return self.status.cancelled or self.status.user_cancelled


class PiClient:
    """
    Thin wrapper over the three server-side payment calls.

    Every call is a single round trip with a bounded timeout. Retries are
    the caller's business.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.minepi.com/v2",
        timeout: float = 8.0,
        http: Optional[requests.Session] = None,
    ):
        if not api_key:
            raise ValueError("Pi API key is required")

        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.http = http or requests.Session()
        self.http.headers.update({"Authorization": f"Key {api_key}"})

    def approve(self, payment_id: str) -> PiPayment:
        return self._request("POST", payment_id, "/approve")

    def complete(self, payment_id: str, txid: str) -> PiPayment:
        return self._request("POST", payment_id, "/complete", json={"txid": txid})

    def get_payment(self, payment_id: str) -> PiPayment:
        return self._request("GET", payment_id)

    def _request(
        self,
        method: str,
        payment_id: str,
        action: str = "",
        json: Optional[Dict[str, Any]] = None,
    ) -> PiPayment:
        url = f"{self.base_url}/payments/{payment_id}{action}"

        try:
            response = self.http.request(method, url, json=json, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f"Pi API unreachable: {method} {url}: {e}")
            raise ProviderError(f"Pi API unreachable: {e}") from e

        if response.status_code >= 400:
            logger.warning(
                f"Pi API {method} {url} failed ({response.status_code}): {response.text}"
            )
            raise ProviderError(
                f"Pi API returned {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            data = response.json() if response.content else {}
            data.setdefault("identifier", payment_id)
            return PiPayment.model_validate(data)
        except (ValueError, AttributeError, ValidationError) as e:
            raise ProviderError(
                f"Unexpected Pi API response: {e}",
                status_code=response.status_code,
                body=response.text,
            ) from e
