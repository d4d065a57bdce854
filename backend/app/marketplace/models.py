"""Domain models for the job bidding marketplace.

Monetary values (ask_price, award_amount) use Decimal in the domain layer.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Enums
# =============================================================================


class JobType(str, Enum):
    """Kind of provider a job needs."""

    tech = "tech"
    trainer = "trainer"


class JobStatus(str, Enum):
    """Job lifecycle states."""

    OPEN = "OPEN"
    BIDDING = "BIDDING"
    AWARDED = "AWARDED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class Priority(str, Enum):
    """Job urgency, P0 most urgent."""

    P0 = "P0"
    P1 = "P1"
    P2 = "P2"
    SCOTT = "SCOTT"


class BidStatus(str, Enum):
    """Bid lifecycle states."""

    submitted = "submitted"
    accepted = "accepted"
    rejected = "rejected"
    withdrawn = "withdrawn"


class AwardStatus(str, Enum):
    """Award record states. ``superseded`` is reserved; nothing writes it yet."""

    active = "active"
    superseded = "superseded"


# =============================================================================
# State machine
# =============================================================================

# BIDDING -> AWARDED is only performed by the award workflow.
VALID_JOB_TRANSITIONS: dict[JobStatus, set[JobStatus]] = {
    JobStatus.OPEN: {JobStatus.BIDDING, JobStatus.CANCELLED},
    JobStatus.BIDDING: {JobStatus.OPEN, JobStatus.AWARDED, JobStatus.CANCELLED},
    JobStatus.AWARDED: {JobStatus.IN_PROGRESS, JobStatus.CANCELLED},
    JobStatus.IN_PROGRESS: {JobStatus.COMPLETED, JobStatus.CANCELLED},
    JobStatus.COMPLETED: set(),
    JobStatus.CANCELLED: set(),
}

# Statuses a job may be listed publicly and bid on in.
BIDDABLE_STATUSES = (JobStatus.OPEN, JobStatus.BIDDING)


def can_transition(from_status: JobStatus, to_status: JobStatus) -> bool:
    """Check if a job status transition is valid."""
    return to_status in VALID_JOB_TRANSITIONS.get(JobStatus(from_status), set())


# =============================================================================
# Records
# =============================================================================


class Profile(BaseModel):
    """A user's profile row. Owned by the auth/sign-up flow, read here."""

    model_config = ConfigDict(extra="ignore")

    user_id: str
    email: str | None = None
    full_name: str | None = None
    role_tech: bool = False
    role_trainer: bool = False
    role_admin: bool = False
    is_approved: bool = False
    base_city: str | None = None
    base_state: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class Job(BaseModel):
    """A unit of requested work open to bidding."""

    model_config = ConfigDict(extra="ignore")

    id: str
    job_type: JobType
    title: str
    status: JobStatus = JobStatus.OPEN
    priority: Priority = Priority.P2
    company_name: str | None = None
    customer_name: str | None = None
    model: str | None = None
    met_date: datetime | None = None
    shipping_city: str | None = None
    shipping_state: str | None = None
    address_line1: str | None = None
    address_line2: str | None = None
    zip: str | None = None
    contact_name: str | None = None
    contact_phone: str | None = None
    contact_email: str | None = None
    instructions_public: str | None = None
    instructions_private: str | None = None
    external_id: str | None = None
    source_tag: str | None = None
    status_notes: str | None = None
    created_by: str | None = None
    awarded_to: str | None = None
    awarded_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class Bid(BaseModel):
    """An offer by a provider to perform a job at a stated price."""

    model_config = ConfigDict(extra="ignore")

    id: str
    job_id: str
    bidder_id: str
    ask_price: Decimal = Field(..., gt=0)
    status: BidStatus = BidStatus.submitted
    note: str | None = None
    withdrawn_at: datetime | None = None
    withdrawal_reason: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class Award(BaseModel):
    """The record of a bid being selected to perform a job."""

    model_config = ConfigDict(extra="ignore")

    id: str
    job_id: str
    bid_id: str
    awarded_user_id: str
    awarded_by: str
    award_amount: Decimal
    status: AwardStatus = AwardStatus.active
    notes: str | None = None
    created_at: datetime | None = None


class JobFilters(BaseModel):
    """Listing filters shared by the public and admin job lists."""

    statuses: list[JobStatus] | None = None
    job_type: JobType | None = None
    state: str | None = None
    city: str | None = None
    priority: Priority | None = None
