"""Authorization policy for marketplace operations.

Every endpoint that reads or mutates jobs, bids or awards asks this module
whether a profile may act, rather than checking role flags inline.
"""

from enum import Enum

from .errors import IneligibleError, RoleMismatchError, UnauthorizedError
from .models import BIDDABLE_STATUSES, Job, JobType, Profile


class AccessLevel(str, Enum):
    """How much of a job a caller may see."""

    ANONYMOUS = "anonymous"
    UNAPPROVED = "unapproved"
    APPROVED = "approved"  # approved, but wrong role for this job
    ELIGIBLE = "eligible"  # approved with matching role
    ADMIN = "admin"


ROLE_LABELS = {JobType.tech: "technician", JobType.trainer: "trainer"}


def role_matches(profile: Profile, job_type: JobType) -> bool:
    """Check the profile holds the role flag for this job type."""
    job_type = JobType(job_type)
    if job_type == JobType.tech:
        return profile.role_tech
    if job_type == JobType.trainer:
        return profile.role_trainer
    return False


def require_admin(profile: Profile | None) -> Profile:
    if profile is None or not profile.role_admin:
        raise UnauthorizedError("Admin access required")
    return profile


def require_approved(profile: Profile | None) -> Profile:
    if profile is None:
        raise UnauthorizedError("User profile not found")
    if not profile.is_approved:
        raise UnauthorizedError("Account must be approved first")
    return profile


def require_can_bid(profile: Profile | None, job: Job) -> Profile:
    """Caller must be approved and hold the role the job needs."""
    profile = require_approved(profile)
    if not role_matches(profile, job.job_type):
        label = ROLE_LABELS[job.job_type]
        raise UnauthorizedError(f"Only {label}s can bid on {label} jobs")
    return profile


def check_award_eligibility(profile: Profile | None, job: Job) -> Profile:
    """Validate that a user can be the subject of an award for ``job``.

    Raises:
        IneligibleError: profile missing or not approved.
        RoleMismatchError: role flags don't match the job type.
    """
    if profile is None:
        raise IneligibleError("Awarded user profile not found")
    if not profile.is_approved:
        raise IneligibleError("Cannot award job to unapproved user")
    if not role_matches(profile, job.job_type):
        label = ROLE_LABELS[job.job_type]
        raise RoleMismatchError(f"Cannot award {label} job to non-{label} user")
    return profile


def access_level(profile: Profile | None, job: Job) -> AccessLevel:
    """Classify a caller relative to one job."""
    if profile is None:
        return AccessLevel.ANONYMOUS
    if profile.role_admin:
        return AccessLevel.ADMIN
    if not profile.is_approved:
        return AccessLevel.UNAPPROVED
    if role_matches(profile, job.job_type):
        return AccessLevel.ELIGIBLE
    return AccessLevel.APPROVED


def can_bid(profile: Profile | None, job: Job) -> bool:
    """True when the caller could place a bid on this job right now."""
    if profile is None or not profile.is_approved:
        return False
    return role_matches(profile, job.job_type) and job.status in BIDDABLE_STATUSES
