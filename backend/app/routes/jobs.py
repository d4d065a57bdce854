"""Job routes for the MedEquip marketplace.

Public job board, admin job management and the award endpoint.
"""

from datetime import datetime
from typing import Literal

from fastapi import APIRouter, Query, Request, status
from pydantic import BaseModel, Field

from ..auth import CurrentUser
from ..dependencies import (
    AdminProfile,
    AwardWorkflowDep,
    CurrentProfile,
    JobServiceDep,
    OptionalProfile,
    Storage,
)
from ..logging_config import get_logger
from ..marketplace import (
    BIDDABLE_STATUSES,
    AwardRequest,
    BidStatus,
    Job,
    JobFilters,
    JobStatus,
    JobType,
    JobView,
    NotFoundError,
    Priority,
    project_job,
    project_jobs,
)
from ..models import (
    AwardResponse,
    BidResponse,
    Pagination,
    page_offset,
    paginate,
    to_award_response,
    to_bid_response,
)
from ..rate_limit import limiter

logger = get_logger("medequip.routes.jobs")
router = APIRouter(prefix="/api/jobs", tags=["jobs"])


# =============================================================================
# Request/Response Models
# =============================================================================

PublicStatusFilter = Literal["OPEN", "BIDDING", "all"]


class JobCreate(BaseModel):
    """Request to create a job listing or service request."""

    job_type: JobType
    title: str = Field(..., min_length=1, max_length=200)
    priority: Priority = Priority.P2
    company_name: str | None = Field(None, max_length=200)
    customer_name: str | None = Field(None, max_length=200)
    model: str | None = Field(None, max_length=200)
    met_date: datetime | None = None
    shipping_city: str | None = None
    shipping_state: str | None = Field(None, max_length=2)
    address_line1: str | None = None
    address_line2: str | None = None
    zip: str | None = Field(None, max_length=10)
    contact_name: str | None = None
    contact_phone: str | None = None
    contact_email: str | None = Field(None, max_length=320)
    instructions_public: str | None = None
    instructions_private: str | None = None
    external_id: str | None = None


class JobStatusUpdate(BaseModel):
    """Request to move a job to another status."""

    status: JobStatus
    notes: str | None = Field(None, max_length=1000)


class JobStatusResponse(BaseModel):
    message: str
    job: Job
    old_status: JobStatus
    new_status: JobStatus


class JobListResponse(BaseModel):
    """Paginated list of jobs (admin view)."""

    jobs: list[Job]
    pagination: Pagination


class PublicJobFilters(BaseModel):
    status: PublicStatusFilter
    job_type: JobType | None = None
    state: str | None = None
    city: str | None = None
    priority: Priority | None = None


class PublicJobListResponse(BaseModel):
    """Paginated public job board."""

    jobs: list[JobView]
    pagination: Pagination
    filters: PublicJobFilters


class BidderSummary(BaseModel):
    user_id: str
    full_name: str | None = None
    email: str | None = None
    base_city: str | None = None
    base_state: str | None = None
    role_tech: bool = False
    role_trainer: bool = False


class JobBidResponse(BidResponse):
    """Bid on a job with who placed it."""

    bidder: BidderSummary | None = None


class JobBidListResponse(BaseModel):
    bids: list[JobBidResponse]
    total: int


class AwardListResponse(BaseModel):
    awards: list[AwardResponse]
    total: int


class AwardCreate(BaseModel):
    """Request to award a job to one of its bids."""

    bid_id: str = Field(..., min_length=1)
    awarded_user_id: str = Field(..., min_length=1)
    notes: str | None = Field(None, max_length=1000)


class AwardCreatedResponse(BaseModel):
    message: str
    award_id: str
    job_id: str
    bid_id: str
    awarded_user_id: str
    award_amount: float


def _public_statuses(status_filter: PublicStatusFilter) -> list[JobStatus]:
    if status_filter == "all":
        return list(BIDDABLE_STATUSES)
    return [JobStatus(status_filter)]


# =============================================================================
# Public Endpoints
# =============================================================================


@router.get("/public", response_model=PublicJobListResponse)
@limiter.limit("60/minute")
async def list_public_jobs(
    request: Request,
    profile: OptionalProfile,
    storage: Storage,
    status_filter: PublicStatusFilter = Query("OPEN", alias="status"),
    job_type: JobType | None = None,
    state: str | None = None,
    city: str | None = None,
    priority: Priority | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    """
    List jobs open for bidding.

    Anonymous and unapproved callers see a redacted board; approved
    providers see full details for jobs matching their role.
    """
    viewer = profile.user_id if profile else "anonymous"
    logger.info(f"GET /api/jobs/public | viewer={viewer} | status={status_filter} | page={page}")

    filters = JobFilters(
        statuses=_public_statuses(status_filter),
        job_type=job_type,
        state=state,
        city=city,
        priority=priority,
    )
    jobs, total = await storage.list_jobs(
        filters, limit=limit, offset=page_offset(page, limit), order="priority"
    )

    return PublicJobListResponse(
        jobs=project_jobs(jobs, profile),
        pagination=paginate(page, limit, total),
        filters=PublicJobFilters(
            status=status_filter, job_type=job_type, state=state, city=city, priority=priority
        ),
    )


@router.get("/{job_id}/public", response_model=JobView)
@limiter.limit("60/minute")
async def get_public_job(
    request: Request,
    job_id: str,
    profile: OptionalProfile,
    storage: Storage,
):
    """Get one job from the public board, with its submitted bid count."""
    logger.info(f"GET /api/jobs/{job_id}/public | viewer={profile.user_id if profile else 'anonymous'}")

    job = await storage.get_job(job_id)
    if not job or job.status not in BIDDABLE_STATUSES:
        raise NotFoundError("Job not found")

    bid_count = await storage.count_bids(job_id, BidStatus.submitted)
    return project_job(job, profile, bid_count=bid_count)


# =============================================================================
# Authenticated Endpoints
# =============================================================================


@router.post("", response_model=Job, status_code=status.HTTP_201_CREATED)
@limiter.limit("20/minute")
async def create_job(
    request: Request,
    job: JobCreate,
    auth: CurrentUser,
    profile: CurrentProfile,
    jobs: JobServiceDep,
):
    """
    Create a job.

    Admins post marketplace listings. Any other signed-in user files a
    service request, which is tagged for admin review.
    """
    logger.info(f"POST /api/jobs | user={auth.user_id} | title={job.title[:50]}")
    return await jobs.create(profile, auth.user_id, job.model_dump())


# =============================================================================
# Admin Endpoints
# =============================================================================


@router.get("", response_model=JobListResponse)
@limiter.limit("60/minute")
async def list_jobs(
    request: Request,
    admin: AdminProfile,
    storage: Storage,
    status_filter: JobStatus | None = Query(None, alias="status"),
    job_type: JobType | None = None,
    state: str | None = None,
    city: str | None = None,
    priority: Priority | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    """List all jobs, newest first, in any status."""
    logger.info(f"GET /api/jobs | admin={admin.user_id} | status={status_filter} | page={page}")

    filters = JobFilters(
        statuses=[status_filter] if status_filter else None,
        job_type=job_type,
        state=state,
        city=city,
        priority=priority,
    )
    jobs, total = await storage.list_jobs(filters, limit=limit, offset=page_offset(page, limit))
    return JobListResponse(jobs=jobs, pagination=paginate(page, limit, total))


@router.get("/{job_id}", response_model=Job)
@limiter.limit("60/minute")
async def get_job(
    request: Request,
    job_id: str,
    admin: AdminProfile,
    storage: Storage,
):
    """Get a job with its private details."""
    logger.info(f"GET /api/jobs/{job_id} | admin={admin.user_id}")
    job = await storage.get_job(job_id)
    if not job:
        raise NotFoundError("Job not found")
    return job


@router.patch("/{job_id}/status", response_model=JobStatusResponse)
@limiter.limit("30/minute")
async def update_job_status(
    request: Request,
    job_id: str,
    update: JobStatusUpdate,
    admin: AdminProfile,
    jobs: JobServiceDep,
):
    """
    Change a job's status.

    AWARDED is only reachable through the award endpoint. Uses a
    conditional update, so a concurrent change returns 409.
    """
    logger.info(f"PATCH /api/jobs/{job_id}/status | admin={admin.user_id} | status={update.status.value}")

    updated, old_status = await jobs.change_status(job_id, update.status, update.notes)
    return JobStatusResponse(
        message="Job status updated successfully",
        job=updated,
        old_status=old_status,
        new_status=updated.status,
    )


@router.get("/{job_id}/bids", response_model=JobBidListResponse)
@limiter.limit("30/minute")
async def list_job_bids(
    request: Request,
    job_id: str,
    admin: AdminProfile,
    storage: Storage,
):
    """List every bid on a job with bidder details."""
    logger.info(f"GET /api/jobs/{job_id}/bids | admin={admin.user_id}")

    if not await storage.get_job(job_id):
        raise NotFoundError("Job not found")

    bids, total = await storage.list_bids(job_id=job_id)
    bidders = {}
    for bidder_id in {b.bidder_id for b in bids}:
        profile = await storage.get_profile(bidder_id)
        if profile:
            bidders[bidder_id] = BidderSummary(**profile.model_dump())

    return JobBidListResponse(
        bids=[
            JobBidResponse(**to_bid_response(b).model_dump(), bidder=bidders.get(b.bidder_id))
            for b in bids
        ],
        total=total,
    )


@router.get("/{job_id}/awards", response_model=AwardListResponse)
@limiter.limit("30/minute")
async def list_job_awards(
    request: Request,
    job_id: str,
    admin: AdminProfile,
    storage: Storage,
):
    """List award records for a job, newest first."""
    logger.info(f"GET /api/jobs/{job_id}/awards | admin={admin.user_id}")

    if not await storage.get_job(job_id):
        raise NotFoundError("Job not found")

    awards = await storage.list_awards(job_id=job_id)
    return AwardListResponse(awards=[to_award_response(a) for a in awards], total=len(awards))


@router.post("/{job_id}/award", response_model=AwardCreatedResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("10/minute")
async def award_job(
    request: Request,
    job_id: str,
    award_request: AwardCreate,
    admin: AdminProfile,
    workflow: AwardWorkflowDep,
):
    """
    Award a job to one of its submitted bids.

    The job moves BIDDING -> AWARDED, the bid is accepted, an award record
    is written and the remaining bids are rejected. If two admins award
    the same job at once, only one succeeds; the other gets 409.
    """
    logger.info(
        f"POST /api/jobs/{job_id}/award | admin={admin.user_id} | bid={award_request.bid_id}"
        f" | user={award_request.awarded_user_id}"
    )

    result = await workflow.award(
        job_id,
        AwardRequest(
            bid_id=award_request.bid_id,
            awarded_user_id=award_request.awarded_user_id,
            notes=award_request.notes,
        ),
        awarded_by=admin.user_id,
    )

    return AwardCreatedResponse(
        message="Job awarded successfully",
        award_id=result.award.id,
        job_id=job_id,
        bid_id=result.bid.id,
        awarded_user_id=result.award.awarded_user_id,
        award_amount=float(result.award.award_amount),
    )
