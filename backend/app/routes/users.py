"""User routes: awarded jobs and account approval."""

from datetime import datetime
from typing import Literal

from fastapi import APIRouter, Query, Request
from pydantic import BaseModel, Field

from ..dependencies import AdminProfile, ApprovedProfile, ProfileServiceDep, Storage
from ..logging_config import get_logger
from ..marketplace import Job, Profile
from ..models import Pagination, page_offset, paginate
from ..rate_limit import limiter

logger = get_logger("medequip.routes.users")
router = APIRouter(prefix="/api/users", tags=["users"])


# =============================================================================
# Request/Response Models
# =============================================================================


class AwardedJob(Job):
    """A job the caller won, with the award terms."""

    award_id: str
    award_amount: float
    award_notes: str | None = None
    awarded_on: datetime | None = None


class MyJobsResponse(BaseModel):
    jobs: list[AwardedJob]
    total: int


PAST_TENSE = {"approve": "approved", "deny": "denied"}


class ApprovalRequest(BaseModel):
    """Admin decision on a pending account."""

    user_id: str = Field(..., min_length=1)
    action: Literal["approve", "deny"]
    reason: str | None = Field(None, max_length=1000)


class ApprovalResponse(BaseModel):
    message: str
    profile: Profile


class PendingUsersResponse(BaseModel):
    """Paginated list of accounts awaiting approval."""

    users: list[Profile]
    pagination: Pagination


# =============================================================================
# Endpoints
# =============================================================================


@router.get("/my-jobs", response_model=MyJobsResponse)
@limiter.limit("60/minute")
async def list_my_jobs(
    request: Request,
    profile: ApprovedProfile,
    storage: Storage,
):
    """
    List jobs awarded to the caller.

    Includes the private job details (address, contact, instructions)
    that are withheld from the public board.
    """
    logger.info(f"GET /api/users/my-jobs | user={profile.user_id}")

    awards = await storage.list_awards(awarded_user_id=profile.user_id)
    jobs = {j.id: j for j in await storage.get_jobs([a.job_id for a in awards])}

    results = []
    for award in awards:
        job = jobs.get(award.job_id)
        if not job:
            logger.warning(f"Award {award.id} references missing job {award.job_id}")
            continue
        results.append(
            AwardedJob(
                **job.model_dump(),
                award_id=award.id,
                award_amount=float(award.award_amount),
                award_notes=award.notes,
                awarded_on=award.created_at,
            )
        )

    return MyJobsResponse(jobs=results, total=len(results))


@router.post("/approve", response_model=ApprovalResponse)
@limiter.limit("30/minute")
async def approve_user(
    request: Request,
    approval: ApprovalRequest,
    admin: AdminProfile,
    profiles: ProfileServiceDep,
):
    """Approve or deny a user account. Approval sends a welcome email."""
    logger.info(f"POST /api/users/approve | admin={admin.user_id} | user={approval.user_id} | action={approval.action}")

    updated = await profiles.set_approval(admin, approval.user_id, approval.action, approval.reason)
    return ApprovalResponse(message=f"User {PAST_TENSE[approval.action]} successfully", profile=updated)


@router.get("/approve", response_model=PendingUsersResponse)
@limiter.limit("60/minute")
async def list_pending_users(
    request: Request,
    admin: AdminProfile,
    storage: Storage,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    """List accounts awaiting approval, newest first."""
    logger.info(f"GET /api/users/approve | admin={admin.user_id} | page={page}")

    users, total = await storage.list_profiles(
        is_approved=False, limit=limit, offset=page_offset(page, limit)
    )
    return PendingUsersResponse(users=users, pagination=paginate(page, limit, total))
