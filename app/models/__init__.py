from app.models.book import Book
from app.models.payment_intent import PaymentIntent
from app.models.purchase_grant import PurchaseGrant
from app.models.completion_marker import CompletionMarker
from app.models.book_vote import BookVote
from app.models.payout_request import PayoutRequest
from app.models.creator_account import CreatorAccount

# add ALL models here
