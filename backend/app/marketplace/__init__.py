"""Job bidding marketplace: jobs, bids, awards and the rules between them.

Models:
- Job, Bid, Award, Profile and their status enums
- VALID_JOB_TRANSITIONS: the job state machine

Services:
- AwardWorkflow: BIDDING -> AWARDED with compensation on failure
- BidService: submit / withdraw bids
- JobService: create jobs, manual status changes
- ProfileService: account approval

Storage:
- MarketplaceStorage protocol, Supabase and in-memory implementations
"""

from .awards import AwardRequest, AwardResult, AwardWorkflow
from .bids import BidService
from .errors import (
    ConflictError,
    IneligibleError,
    InvalidStateError,
    MarketplaceError,
    NotFoundError,
    PersistenceError,
    RoleMismatchError,
    UnauthenticatedError,
    UnauthorizedError,
    ValidationFailedError,
)
from .jobs import JobService
from .listing import JobView, project_job, project_jobs
from .models import (
    BIDDABLE_STATUSES,
    VALID_JOB_TRANSITIONS,
    Award,
    AwardStatus,
    Bid,
    BidStatus,
    Job,
    JobFilters,
    JobStatus,
    JobType,
    Priority,
    Profile,
    can_transition,
)
from .profiles import ProfileService
from .storage import InMemoryMarketplaceStorage, MarketplaceStorage, SupabaseMarketplaceStorage

__all__ = [
    # Models
    "Job",
    "Bid",
    "Award",
    "Profile",
    "JobFilters",
    "JobType",
    "JobStatus",
    "Priority",
    "BidStatus",
    "AwardStatus",
    "VALID_JOB_TRANSITIONS",
    "BIDDABLE_STATUSES",
    "can_transition",
    # Services
    "AwardWorkflow",
    "AwardRequest",
    "AwardResult",
    "BidService",
    "JobService",
    "ProfileService",
    # Listing
    "JobView",
    "project_job",
    "project_jobs",
    # Storage
    "MarketplaceStorage",
    "SupabaseMarketplaceStorage",
    "InMemoryMarketplaceStorage",
    # Errors
    "MarketplaceError",
    "UnauthenticatedError",
    "UnauthorizedError",
    "NotFoundError",
    "InvalidStateError",
    "IneligibleError",
    "RoleMismatchError",
    "ConflictError",
    "ValidationFailedError",
    "PersistenceError",
]
