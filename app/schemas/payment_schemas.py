from pydantic import AliasChoices, BaseModel, Field


class ApprovePaymentRequest(BaseModel):
    payment_id: str = Field(..., min_length=1, alias="paymentId")
    item_id: str = Field(..., min_length=1, validation_alias=AliasChoices("itemId", "bookId"))
    buyer_id: str = Field(..., min_length=1, validation_alias=AliasChoices("buyerId", "userUid"))


class CompletePaymentRequest(ApprovePaymentRequest):
    txid: str = Field(..., min_length=1)


class ResolvePendingRequest(BaseModel):
    payment_id: str = Field(..., min_length=1, alias="paymentId")
