from pydantic import AliasChoices, BaseModel, Field


class GetPdfRequest(BaseModel):
    item_id: str = Field(..., min_length=1, validation_alias=AliasChoices("itemId", "bookId"))
    buyer_id: str = Field(..., min_length=1, validation_alias=AliasChoices("buyerId", "userUid"))


class MyPurchasesRequest(BaseModel):
    buyer_id: str = Field(..., min_length=1, validation_alias=AliasChoices("buyerId", "userUid"))
