from functools import lru_cache

from fastapi import Depends

from app.config import settings
from app.database import engine
from app.services.payment_reconciliation import PaymentReconciler
from app.services.pi_client import PiClient


def build_pi_client() -> PiClient:
    return PiClient(
        api_key=settings.pi_api_key,
        base_url=settings.pi_api_url,
        timeout=settings.pi_api_timeout_seconds,
    )


@lru_cache(maxsize=1)
def get_pi_client() -> PiClient:
    return build_pi_client()


def get_reconciler(pi_client: PiClient = Depends(get_pi_client)) -> PaymentReconciler:
    return PaymentReconciler(engine, pi_client)
