"""Read-side projection of jobs for the public board.

Pure functions: given a job and the caller's profile (or None), produce
the view that caller may see. No storage access here.
"""

from datetime import datetime

from pydantic import BaseModel

from .models import Job, JobStatus, JobType, Priority, Profile
from .policy import AccessLevel, access_level, can_bid

FULL_VIEW_LEVELS = {AccessLevel.ELIGIBLE, AccessLevel.ADMIN}


class JobView(BaseModel):
    """A job as shown on the public board."""

    id: str
    job_type: JobType
    title: str
    model: str | None = None
    priority: Priority
    status: JobStatus
    met_date: datetime | None = None
    shipping_state: str | None = None
    shipping_city: str | None = None
    company_name: str | None = None
    customer_name: str | None = None
    instructions_public: str | None = None
    redacted: bool
    can_bid: bool
    bid_count: int | None = None


def project_job(job: Job, profile: Profile | None, bid_count: int | None = None) -> JobView:
    """Project one job for a caller.

    Anonymous, unapproved and wrong-role callers get the redacted view:
    location generalized to state, company and customer hidden, no bidding.
    """
    level = access_level(profile, job)
    full = level in FULL_VIEW_LEVELS
    return JobView(
        id=job.id,
        job_type=job.job_type,
        title=job.title,
        model=job.model,
        priority=job.priority,
        status=job.status,
        met_date=job.met_date,
        shipping_state=job.shipping_state,
        shipping_city=job.shipping_city if full else None,
        company_name=job.company_name if full else None,
        customer_name=job.customer_name if full else None,
        instructions_public=job.instructions_public if full else None,
        redacted=not full,
        can_bid=full and can_bid(profile, job),
        bid_count=bid_count,
    )


def project_jobs(jobs: list[Job], profile: Profile | None) -> list[JobView]:
    return [project_job(job, profile) for job in jobs]
