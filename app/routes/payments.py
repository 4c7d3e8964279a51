import logging

from fastapi import APIRouter, Depends, HTTPException

from app.dependencies.payments import get_reconciler
from app.schemas.payment_schemas import (
    ApprovePaymentRequest,
    CompletePaymentRequest,
    ResolvePendingRequest,
)
from app.services.errors import ItemNotFound, PaymentConflict, ProviderError
from app.services.payment_reconciliation import PaymentReconciler

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------
# 1️⃣ APPROVE PAYMENT
# ---------------------------------------------------------

@router.post("/approve-payment")
def approve_payment(
    payload: ApprovePaymentRequest,
    reconciler: PaymentReconciler = Depends(get_reconciler),
):
    try:
        reconciler.approve(payload.payment_id, payload.item_id, payload.buyer_id)
    except ItemNotFound:
        raise HTTPException(404, "Book not found")
    except PaymentConflict as e:
        raise HTTPException(409, str(e))
    except ProviderError as e:
        raise HTTPException(502, f"Payment provider error: {e}")

    return {"success": True}


# ---------------------------------------------------------
# 2️⃣ COMPLETE PAYMENT (NORMAL FLOW)
# ---------------------------------------------------------

@router.post("/complete-payment")
def complete_payment(
    payload: CompletePaymentRequest,
    reconciler: PaymentReconciler = Depends(get_reconciler),
):
    try:
        result = reconciler.complete(
            payload.payment_id,
            payload.txid,
            payload.item_id,
            payload.buyer_id,
        )
    except ItemNotFound:
        raise HTTPException(404, "Book not found")
    except PaymentConflict as e:
        raise HTTPException(409, str(e))
    except ProviderError as e:
        raise HTTPException(502, f"Payment provider error: {e}")

    response = {"success": True, "pdfUrl": result.pdf_url}
    if result.already_completed:
        response["message"] = "Payment already completed"
    return response


# ---------------------------------------------------------
# 3️⃣ RESOLVE PENDING (AUTO RECOVERY)
# ---------------------------------------------------------

@router.post("/resolve-pending")
def resolve_pending(
    payload: ResolvePendingRequest,
    reconciler: PaymentReconciler = Depends(get_reconciler),
):
    outcome = reconciler.resolve_pending(payload.payment_id)
    return {"success": True, "status": outcome.value}
