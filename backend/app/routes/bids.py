"""Bid routes for approved technicians and trainers."""

from decimal import Decimal
from typing import Literal

from fastapi import APIRouter, Query, Request, status
from pydantic import BaseModel, Field

from ..dependencies import ApprovedProfile, BidServiceDep, CurrentProfile
from ..logging_config import get_logger
from ..marketplace import BidStatus
from ..models import BidResponse, Pagination, page_offset, paginate, to_bid_response
from ..rate_limit import limiter

logger = get_logger("medequip.routes.bids")
router = APIRouter(prefix="/api/bids", tags=["bids"])

BidStatusFilter = Literal["submitted", "accepted", "rejected", "withdrawn", "all"]


# =============================================================================
# Request/Response Models
# =============================================================================


class BidCreate(BaseModel):
    """Request to bid on a job."""

    job_id: str = Field(..., min_length=1)
    ask_price: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    note: str | None = Field(None, max_length=2000)


class BidWithdraw(BaseModel):
    reason: str | None = Field(None, max_length=1000)


class BidCreatedResponse(BaseModel):
    message: str
    bid: BidResponse


class BidWithdrawnResponse(BaseModel):
    message: str
    bid: BidResponse


class BidListResponse(BaseModel):
    """Paginated list of the caller's bids."""

    bids: list[BidResponse]
    pagination: Pagination


# =============================================================================
# Endpoints
# =============================================================================


@router.post("", response_model=BidCreatedResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
async def submit_bid(
    request: Request,
    bid: BidCreate,
    profile: CurrentProfile,
    bids: BidServiceDep,
):
    """
    Bid on a job.

    The caller must be approved and hold the role the job needs. One
    active bid per job; the first bid moves an OPEN job to BIDDING.
    """
    bidder_id = profile.user_id if profile else "unknown"
    logger.info(f"POST /api/bids | bidder={bidder_id} | job={bid.job_id} | price={bid.ask_price}")

    created = await bids.submit(profile, bid.job_id, bid.ask_price, bid.note)
    return BidCreatedResponse(message="Bid submitted successfully", bid=to_bid_response(created))


@router.patch("/{bid_id}/withdraw", response_model=BidWithdrawnResponse)
@limiter.limit("30/minute")
async def withdraw_bid(
    request: Request,
    bid_id: str,
    profile: ApprovedProfile,
    bids: BidServiceDep,
    body: BidWithdraw | None = None,
):
    """Withdraw one of the caller's submitted bids."""
    logger.info(f"PATCH /api/bids/{bid_id}/withdraw | bidder={profile.user_id}")

    withdrawn = await bids.withdraw(profile, bid_id, body.reason if body else None)
    return BidWithdrawnResponse(message="Bid withdrawn successfully", bid=to_bid_response(withdrawn))


@router.get("/my-bids", response_model=BidListResponse)
@limiter.limit("60/minute")
async def list_my_bids(
    request: Request,
    profile: ApprovedProfile,
    bids: BidServiceDep,
    status_filter: BidStatusFilter | None = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    """List the caller's bids, newest first."""
    logger.info(f"GET /api/bids/my-bids | bidder={profile.user_id} | status={status_filter}")

    bid_status = None if status_filter in (None, "all") else BidStatus(status_filter)
    results, total = await bids.list_for_bidder(
        profile, status=bid_status, limit=limit, offset=page_offset(page, limit)
    )
    return BidListResponse(
        bids=[to_bid_response(b) for b in results],
        pagination=paginate(page, limit, total),
    )
