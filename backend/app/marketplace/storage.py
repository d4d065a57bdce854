"""
Marketplace storage layer.

Provides persistence for jobs, bids, awards and profiles. Every status
change goes through a conditional update (``WHERE id = ? AND status = ?``)
so concurrent writers can detect that someone else got there first.
"""

import asyncio
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Literal, Protocol

from supabase import Client

from ..database import AWARDS_TABLE, BIDS_TABLE, JOBS_TABLE, PROFILES_TABLE
from .models import (
    Award,
    AwardStatus,
    Bid,
    BidStatus,
    Job,
    JobFilters,
    JobStatus,
    Priority,
    Profile,
)

JobOrder = Literal["recent", "priority"]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _serialize(value: Any) -> Any:
    """Convert a Python value to something PostgREST accepts in JSON."""
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if hasattr(value, "value"):  # Enum
        return value.value
    return value


def _serialize_row(data: dict) -> dict:
    return {k: _serialize(v) for k, v in data.items()}


class MarketplaceStorage(Protocol):
    """Protocol for marketplace persistence backends."""

    # Profiles
    async def get_profile(self, user_id: str) -> Profile | None: ...

    async def list_profiles(
        self, is_approved: bool | None = None, limit: int = 20, offset: int = 0
    ) -> tuple[list[Profile], int]: ...

    async def set_profile_approval(self, user_id: str, is_approved: bool) -> Profile | None: ...

    # Jobs
    async def create_job(self, data: dict) -> Job: ...

    async def get_job(self, job_id: str) -> Job | None: ...

    async def get_jobs(self, job_ids: list[str]) -> list[Job]: ...

    async def list_jobs(
        self,
        filters: JobFilters,
        limit: int = 20,
        offset: int = 0,
        order: JobOrder = "recent",
    ) -> tuple[list[Job], int]: ...

    async def transition_job(
        self, job_id: str, expected_status: JobStatus, new_status: JobStatus, **updates
    ) -> Job | None:
        """Conditionally move a job between statuses. None if no row matched."""
        ...

    # Bids
    async def create_bid(
        self, job_id: str, bidder_id: str, ask_price: Decimal, note: str | None = None
    ) -> Bid: ...

    async def get_bid(self, bid_id: str) -> Bid | None: ...

    async def find_active_bid(self, job_id: str, bidder_id: str) -> Bid | None: ...

    async def list_bids(
        self,
        job_id: str | None = None,
        bidder_id: str | None = None,
        status: BidStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> tuple[list[Bid], int]: ...

    async def count_bids(self, job_id: str, status: BidStatus) -> int: ...

    async def transition_bid(
        self, bid_id: str, expected_status: BidStatus, new_status: BidStatus, **updates
    ) -> Bid | None:
        """Conditionally move a bid between statuses. None if no row matched."""
        ...

    async def reject_other_bids(self, job_id: str, winning_bid_id: str) -> int:
        """Reject every other submitted bid on a job. Returns how many changed."""
        ...

    # Awards
    async def create_award(
        self,
        job_id: str,
        bid_id: str,
        awarded_user_id: str,
        awarded_by: str,
        award_amount: Decimal,
        notes: str | None = None,
    ) -> Award: ...

    async def list_awards(
        self, job_id: str | None = None, awarded_user_id: str | None = None
    ) -> list[Award]: ...


# =============================================================================
# Supabase
# =============================================================================


class SupabaseMarketplaceStorage:
    """Supabase (PostgREST) backed storage. Client calls run in a worker thread."""

    def __init__(self, db: Client):
        self.db = db

    async def _execute(self, query):
        return await asyncio.to_thread(query.execute)

    # === Profiles ===

    async def get_profile(self, user_id: str) -> Profile | None:
        result = await self._execute(
            self.db.table(PROFILES_TABLE).select("*").eq("user_id", user_id).limit(1)
        )
        return Profile(**result.data[0]) if result.data else None

    async def list_profiles(
        self, is_approved: bool | None = None, limit: int = 20, offset: int = 0
    ) -> tuple[list[Profile], int]:
        query = self.db.table(PROFILES_TABLE).select("*", count="exact")
        if is_approved is not None:
            query = query.eq("is_approved", is_approved)
        query = query.order("created_at", desc=True).range(offset, offset + limit - 1)
        result = await self._execute(query)
        return [Profile(**row) for row in result.data or []], result.count or 0

    async def set_profile_approval(self, user_id: str, is_approved: bool) -> Profile | None:
        result = await self._execute(
            self.db.table(PROFILES_TABLE)
            .update({"is_approved": is_approved, "updated_at": _utc_now().isoformat()})
            .eq("user_id", user_id)
        )
        return Profile(**result.data[0]) if result.data else None

    # === Jobs ===

    async def create_job(self, data: dict) -> Job:
        result = await self._execute(self.db.table(JOBS_TABLE).insert(_serialize_row(data)))
        if not result.data:
            raise RuntimeError("Job insert returned no rows")
        return Job(**result.data[0])

    async def get_job(self, job_id: str) -> Job | None:
        result = await self._execute(self.db.table(JOBS_TABLE).select("*").eq("id", job_id))
        return Job(**result.data[0]) if result.data else None

    async def get_jobs(self, job_ids: list[str]) -> list[Job]:
        if not job_ids:
            return []
        result = await self._execute(self.db.table(JOBS_TABLE).select("*").in_("id", job_ids))
        return [Job(**row) for row in result.data or []]

    async def list_jobs(
        self,
        filters: JobFilters,
        limit: int = 20,
        offset: int = 0,
        order: JobOrder = "recent",
    ) -> tuple[list[Job], int]:
        query = self.db.table(JOBS_TABLE).select("*", count="exact")

        if filters.statuses:
            query = query.in_("status", [s.value for s in filters.statuses])
        if filters.job_type:
            query = query.eq("job_type", filters.job_type.value)
        if filters.state:
            query = query.eq("shipping_state", filters.state)
        if filters.city:
            query = query.eq("shipping_city", filters.city)
        if filters.priority:
            query = query.eq("priority", filters.priority.value)

        if order == "priority":
            query = query.order("priority").order("met_date")
        else:
            query = query.order("created_at", desc=True)

        result = await self._execute(query.range(offset, offset + limit - 1))
        return [Job(**row) for row in result.data or []], result.count or 0

    async def transition_job(
        self, job_id: str, expected_status: JobStatus, new_status: JobStatus, **updates
    ) -> Job | None:
        data = _serialize_row(
            {"status": new_status, "updated_at": _utc_now(), **updates}
        )
        result = await self._execute(
            self.db.table(JOBS_TABLE)
            .update(data)
            .eq("id", job_id)
            .eq("status", JobStatus(expected_status).value)
        )
        return Job(**result.data[0]) if result.data else None

    # === Bids ===

    async def create_bid(
        self, job_id: str, bidder_id: str, ask_price: Decimal, note: str | None = None
    ) -> Bid:
        data = {
            "job_id": job_id,
            "bidder_id": bidder_id,
            "ask_price": float(ask_price),
            "note": note,
            "status": BidStatus.submitted.value,
        }
        result = await self._execute(self.db.table(BIDS_TABLE).insert(data))
        if not result.data:
            raise RuntimeError("Bid insert returned no rows")
        return Bid(**result.data[0])

    async def get_bid(self, bid_id: str) -> Bid | None:
        result = await self._execute(self.db.table(BIDS_TABLE).select("*").eq("id", bid_id))
        return Bid(**result.data[0]) if result.data else None

    async def find_active_bid(self, job_id: str, bidder_id: str) -> Bid | None:
        result = await self._execute(
            self.db.table(BIDS_TABLE)
            .select("*")
            .eq("job_id", job_id)
            .eq("bidder_id", bidder_id)
            .eq("status", BidStatus.submitted.value)
            .limit(1)
        )
        return Bid(**result.data[0]) if result.data else None

    async def list_bids(
        self,
        job_id: str | None = None,
        bidder_id: str | None = None,
        status: BidStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> tuple[list[Bid], int]:
        query = self.db.table(BIDS_TABLE).select("*", count="exact")
        if job_id:
            query = query.eq("job_id", job_id)
        if bidder_id:
            query = query.eq("bidder_id", bidder_id)
        if status:
            query = query.eq("status", BidStatus(status).value)
        query = query.order("created_at", desc=True).range(offset, offset + limit - 1)
        result = await self._execute(query)
        return [Bid(**row) for row in result.data or []], result.count or 0

    async def count_bids(self, job_id: str, status: BidStatus) -> int:
        result = await self._execute(
            self.db.table(BIDS_TABLE)
            .select("id", count="exact")
            .eq("job_id", job_id)
            .eq("status", BidStatus(status).value)
        )
        return result.count or 0

    async def transition_bid(
        self, bid_id: str, expected_status: BidStatus, new_status: BidStatus, **updates
    ) -> Bid | None:
        data = _serialize_row({"status": new_status, "updated_at": _utc_now(), **updates})
        result = await self._execute(
            self.db.table(BIDS_TABLE)
            .update(data)
            .eq("id", bid_id)
            .eq("status", BidStatus(expected_status).value)
        )
        return Bid(**result.data[0]) if result.data else None

    async def reject_other_bids(self, job_id: str, winning_bid_id: str) -> int:
        result = await self._execute(
            self.db.table(BIDS_TABLE)
            .update({"status": BidStatus.rejected.value, "updated_at": _utc_now().isoformat()})
            .eq("job_id", job_id)
            .eq("status", BidStatus.submitted.value)
            .neq("id", winning_bid_id)
        )
        return len(result.data or [])

    # === Awards ===

    async def create_award(
        self,
        job_id: str,
        bid_id: str,
        awarded_user_id: str,
        awarded_by: str,
        award_amount: Decimal,
        notes: str | None = None,
    ) -> Award:
        data = {
            "job_id": job_id,
            "bid_id": bid_id,
            "awarded_user_id": awarded_user_id,
            "awarded_by": awarded_by,
            "award_amount": float(award_amount),
            "status": AwardStatus.active.value,
            "notes": notes,
        }
        result = await self._execute(self.db.table(AWARDS_TABLE).insert(data))
        if not result.data:
            raise RuntimeError("Award insert returned no rows")
        return Award(**result.data[0])

    async def list_awards(
        self, job_id: str | None = None, awarded_user_id: str | None = None
    ) -> list[Award]:
        query = self.db.table(AWARDS_TABLE).select("*")
        if job_id:
            query = query.eq("job_id", job_id)
        if awarded_user_id:
            query = query.eq("awarded_user_id", awarded_user_id)
        result = await self._execute(query.order("created_at", desc=True))
        return [Award(**row) for row in result.data or []]


# =============================================================================
# In-memory
# =============================================================================

_PRIORITY_ORDER = {p: i for i, p in enumerate(Priority)}


class InMemoryMarketplaceStorage:
    """In-memory storage for testing and local development.

    No awaits happen between the status check and the write of a
    conditional update, so each transition is atomic under asyncio.
    """

    def __init__(self):
        self._profiles: dict[str, Profile] = {}
        self._jobs: dict[str, Job] = {}
        self._bids: dict[str, Bid] = {}
        self._awards: dict[str, Award] = {}

    def _new_id(self) -> str:
        return str(uuid.uuid4())

    # === Seeding (tests / local dev) ===

    def add_profile(self, profile: Profile) -> Profile:
        self._profiles[profile.user_id] = profile
        return profile

    def add_job(self, job: Job) -> Job:
        self._jobs[job.id] = job
        return job

    def add_bid(self, bid: Bid) -> Bid:
        self._bids[bid.id] = bid
        return bid

    def add_award(self, award: Award) -> Award:
        self._awards[award.id] = award
        return award

    # === Profiles ===

    async def get_profile(self, user_id: str) -> Profile | None:
        return self._profiles.get(user_id)

    async def list_profiles(
        self, is_approved: bool | None = None, limit: int = 20, offset: int = 0
    ) -> tuple[list[Profile], int]:
        profiles = list(reversed(self._profiles.values()))
        if is_approved is not None:
            profiles = [p for p in profiles if p.is_approved == is_approved]
        return profiles[offset : offset + limit], len(profiles)

    async def set_profile_approval(self, user_id: str, is_approved: bool) -> Profile | None:
        profile = self._profiles.get(user_id)
        if not profile:
            return None
        updated = profile.model_copy(update={"is_approved": is_approved, "updated_at": _utc_now()})
        self._profiles[user_id] = updated
        return updated

    # === Jobs ===

    async def create_job(self, data: dict) -> Job:
        now = _utc_now()
        job = Job(**{"id": self._new_id(), "created_at": now, "updated_at": now, **data})
        self._jobs[job.id] = job
        return job

    async def get_job(self, job_id: str) -> Job | None:
        return self._jobs.get(job_id)

    async def get_jobs(self, job_ids: list[str]) -> list[Job]:
        return [self._jobs[j] for j in job_ids if j in self._jobs]

    async def list_jobs(
        self,
        filters: JobFilters,
        limit: int = 20,
        offset: int = 0,
        order: JobOrder = "recent",
    ) -> tuple[list[Job], int]:
        jobs = list(self._jobs.values())

        if filters.statuses:
            jobs = [j for j in jobs if j.status in filters.statuses]
        if filters.job_type:
            jobs = [j for j in jobs if j.job_type == filters.job_type]
        if filters.state:
            jobs = [j for j in jobs if j.shipping_state == filters.state]
        if filters.city:
            jobs = [j for j in jobs if j.shipping_city == filters.city]
        if filters.priority:
            jobs = [j for j in jobs if j.priority == filters.priority]

        if order == "priority":
            far_future = datetime.max.replace(tzinfo=timezone.utc)
            jobs.sort(key=lambda j: (_PRIORITY_ORDER[j.priority], j.met_date or far_future))
        else:
            jobs.reverse()

        return jobs[offset : offset + limit], len(jobs)

    async def transition_job(
        self, job_id: str, expected_status: JobStatus, new_status: JobStatus, **updates
    ) -> Job | None:
        job = self._jobs.get(job_id)
        if not job or job.status != expected_status:
            return None
        updated = job.model_copy(
            update={"status": JobStatus(new_status), "updated_at": _utc_now(), **updates}
        )
        self._jobs[job_id] = updated
        return updated

    # === Bids ===

    async def create_bid(
        self, job_id: str, bidder_id: str, ask_price: Decimal, note: str | None = None
    ) -> Bid:
        now = _utc_now()
        bid = Bid(
            id=self._new_id(),
            job_id=job_id,
            bidder_id=bidder_id,
            ask_price=ask_price,
            note=note,
            created_at=now,
            updated_at=now,
        )
        self._bids[bid.id] = bid
        return bid

    async def get_bid(self, bid_id: str) -> Bid | None:
        return self._bids.get(bid_id)

    async def find_active_bid(self, job_id: str, bidder_id: str) -> Bid | None:
        for bid in self._bids.values():
            if (
                bid.job_id == job_id
                and bid.bidder_id == bidder_id
                and bid.status == BidStatus.submitted
            ):
                return bid
        return None

    async def list_bids(
        self,
        job_id: str | None = None,
        bidder_id: str | None = None,
        status: BidStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> tuple[list[Bid], int]:
        bids = list(reversed(self._bids.values()))
        if job_id is not None:
            bids = [b for b in bids if b.job_id == job_id]
        if bidder_id is not None:
            bids = [b for b in bids if b.bidder_id == bidder_id]
        if status is not None:
            bids = [b for b in bids if b.status == status]
        return bids[offset : offset + limit], len(bids)

    async def count_bids(self, job_id: str, status: BidStatus) -> int:
        return sum(1 for b in self._bids.values() if b.job_id == job_id and b.status == status)

    async def transition_bid(
        self, bid_id: str, expected_status: BidStatus, new_status: BidStatus, **updates
    ) -> Bid | None:
        bid = self._bids.get(bid_id)
        if not bid or bid.status != expected_status:
            return None
        updated = bid.model_copy(
            update={"status": BidStatus(new_status), "updated_at": _utc_now(), **updates}
        )
        self._bids[bid_id] = updated
        return updated

    async def reject_other_bids(self, job_id: str, winning_bid_id: str) -> int:
        changed = 0
        for bid in list(self._bids.values()):
            if bid.job_id == job_id and bid.id != winning_bid_id and bid.status == BidStatus.submitted:
                self._bids[bid.id] = bid.model_copy(
                    update={"status": BidStatus.rejected, "updated_at": _utc_now()}
                )
                changed += 1
        return changed

    # === Awards ===

    async def create_award(
        self,
        job_id: str,
        bid_id: str,
        awarded_user_id: str,
        awarded_by: str,
        award_amount: Decimal,
        notes: str | None = None,
    ) -> Award:
        award = Award(
            id=self._new_id(),
            job_id=job_id,
            bid_id=bid_id,
            awarded_user_id=awarded_user_id,
            awarded_by=awarded_by,
            award_amount=award_amount,
            notes=notes,
            created_at=_utc_now(),
        )
        self._awards[award.id] = award
        return award

    async def list_awards(
        self, job_id: str | None = None, awarded_user_id: str | None = None
    ) -> list[Award]:
        awards = list(reversed(self._awards.values()))
        if job_id is not None:
            awards = [a for a in awards if a.job_id == job_id]
        if awarded_user_id is not None:
            awards = [a for a in awards if a.awarded_user_id == awarded_user_id]
        return awards
