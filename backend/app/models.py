"""Pydantic models shared across API routes."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel

from .marketplace import Award, Bid, BidStatus, AwardStatus

# =============================================================================
# Pagination
# =============================================================================


class Pagination(BaseModel):
    """Page metadata for list endpoints (1-based pages)."""

    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


def page_offset(page: int, limit: int) -> int:
    return (page - 1) * limit


def paginate(page: int, limit: int, total: int) -> Pagination:
    total_pages = -(-total // limit) if limit else 0
    return Pagination(
        page=page,
        limit=limit,
        total=total,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_prev=page > 1,
    )


# =============================================================================
# Bids & Awards
# =============================================================================


class BidResponse(BaseModel):
    """Bid details response."""

    id: str
    job_id: str
    bidder_id: str
    ask_price: float
    status: BidStatus
    note: str | None = None
    withdrawn_at: datetime | None = None
    withdrawal_reason: str | None = None
    created_at: datetime | None = None


class AwardResponse(BaseModel):
    """Award record response."""

    id: str
    job_id: str
    bid_id: str
    awarded_user_id: str
    awarded_by: str
    award_amount: float
    status: AwardStatus
    notes: str | None = None
    created_at: datetime | None = None


def _money(value: Decimal) -> float:
    return float(value)


def to_bid_response(bid: Bid) -> BidResponse:
    """Convert a domain bid to its response model."""
    return BidResponse(
        id=bid.id,
        job_id=bid.job_id,
        bidder_id=bid.bidder_id,
        ask_price=_money(bid.ask_price),
        status=bid.status,
        note=bid.note,
        withdrawn_at=bid.withdrawn_at,
        withdrawal_reason=bid.withdrawal_reason,
        created_at=bid.created_at,
    )


def to_award_response(award: Award) -> AwardResponse:
    """Convert a domain award to its response model."""
    return AwardResponse(
        id=award.id,
        job_id=award.job_id,
        bid_id=award.bid_id,
        awarded_user_id=award.awarded_user_id,
        awarded_by=award.awarded_by,
        award_amount=_money(award.award_amount),
        status=award.status,
        notes=award.notes,
        created_at=award.created_at,
    )
