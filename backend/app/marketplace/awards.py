"""Award workflow: move a job from BIDDING to AWARDED.

The mutation runs as a saga. Each step that can fail after an earlier
write undoes the earlier writes before raising, so callers observe either
the full award or none of it:

1. claim the job (conditional BIDDING -> AWARDED, sets awarded_to/awarded_at)
2. accept the winning bid (conditional submitted -> accepted)
3. insert the award row (award_amount copied from the bid)
4. reject sibling bids (best-effort)
5. notify the winner (best-effort, after commit)

Step 1 is the concurrency guard: of two racing attempts on the same job
only one conditional update matches a row.
"""

from dataclasses import dataclass
from datetime import datetime, timezone

from ..logging_config import get_logger, log_award_event
from ..notifications.notifier import Notifier
from .errors import ConflictError, InvalidStateError, NotFoundError, PersistenceError
from .models import Award, Bid, BidStatus, Job, JobStatus, Profile
from .policy import check_award_eligibility
from .storage import MarketplaceStorage

logger = get_logger("medequip.awards")


@dataclass
class AwardRequest:
    """Admin's selection of the winning bid."""

    bid_id: str
    awarded_user_id: str
    notes: str | None = None


@dataclass
class AwardResult:
    """Committed award plus the records it changed."""

    award: Award
    job: Job
    bid: Bid
    rejected_bids: int = 0
    notified: bool = False


class AwardWorkflow:
    """Validates and commits job awards.

    Storage and notifier are injected so tests can substitute either.
    """

    def __init__(self, storage: MarketplaceStorage, notifier: Notifier):
        self.storage = storage
        self.notifier = notifier

    async def _load(self, job_id: str, request: AwardRequest) -> tuple[Job, Bid, Profile]:
        """Run preconditions 2-5 in order. Admin check happens at the route."""
        job = await self.storage.get_job(job_id)
        if not job:
            raise NotFoundError("Job not found or not available for award")
        if job.status != JobStatus.BIDDING:
            raise InvalidStateError(
                f"Job not available for award (status: {JobStatus(job.status).value})"
            )

        bid = await self.storage.get_bid(request.bid_id)
        if not bid or bid.job_id != job_id:
            raise NotFoundError("Bid not found for this job")
        if bid.status != BidStatus.submitted:
            raise InvalidStateError(f"Bid is already {BidStatus(bid.status).value}")
        if bid.bidder_id != request.awarded_user_id:
            raise NotFoundError("User does not have an active bid on this job")

        profile = await self.storage.get_profile(request.awarded_user_id)
        check_award_eligibility(profile, job)
        return job, bid, profile

    async def _release_job(self, job_id: str) -> None:
        try:
            reverted = await self.storage.transition_job(
                job_id,
                JobStatus.AWARDED,
                JobStatus.BIDDING,
                awarded_to=None,
                awarded_at=None,
            )
            if not reverted:
                logger.error(f"Compensation found job {job_id} no longer AWARDED")
        except Exception:
            logger.exception(f"Compensation failed: could not release job {job_id}")

    async def _release_bid(self, bid_id: str) -> None:
        try:
            reverted = await self.storage.transition_bid(
                bid_id, BidStatus.accepted, BidStatus.submitted
            )
            if not reverted:
                logger.error(f"Compensation found bid {bid_id} no longer accepted")
        except Exception:
            logger.exception(f"Compensation failed: could not release bid {bid_id}")

    async def award(self, job_id: str, request: AwardRequest, awarded_by: str) -> AwardResult:
        """Award ``job_id`` to the bid in ``request``.

        Raises:
            NotFoundError / InvalidStateError: job or bid missing or in the wrong state.
            IneligibleError / RoleMismatchError: target user can't receive the award.
            ConflictError: another request changed the job or bid first.
            PersistenceError: a write failed; earlier writes were undone.
        """
        job, bid, profile = await self._load(job_id, request)
        awarded_at = datetime.now(timezone.utc)

        # 1. Claim the job
        try:
            claimed = await self.storage.transition_job(
                job_id,
                JobStatus.BIDDING,
                JobStatus.AWARDED,
                awarded_to=request.awarded_user_id,
                awarded_at=awarded_at,
            )
        except Exception as e:
            log_award_event("claim_job", job_id, False, reason=str(e))
            raise PersistenceError("Failed to update job status") from e

        if not claimed:
            logger.warning(f"Race condition detected on job {job_id}: no longer BIDDING at claim")
            log_award_event("claim_job", job_id, False, reason="conflict")
            raise ConflictError("Job status was modified by another request. Please refresh and try again.")

        # 2. Accept the winning bid
        try:
            accepted = await self.storage.transition_bid(
                bid.id, BidStatus.submitted, BidStatus.accepted
            )
        except Exception as e:
            await self._release_job(job_id)
            log_award_event("accept_bid", job_id, False, reason=str(e), bid=bid.id)
            raise PersistenceError("Failed to accept bid") from e

        if not accepted:
            await self._release_job(job_id)
            log_award_event("accept_bid", job_id, False, reason="conflict", bid=bid.id)
            raise ConflictError("Bid was modified by another request. Please refresh and try again.")

        # 3. Record the award
        try:
            award = await self.storage.create_award(
                job_id=job_id,
                bid_id=bid.id,
                awarded_user_id=request.awarded_user_id,
                awarded_by=awarded_by,
                award_amount=bid.ask_price,
                notes=request.notes,
            )
        except Exception as e:
            await self._release_bid(bid.id)
            await self._release_job(job_id)
            log_award_event("create_award", job_id, False, reason=str(e), bid=bid.id)
            raise PersistenceError("Failed to create award") from e

        log_award_event(
            "award_committed",
            job_id,
            True,
            award=award.id,
            bid=bid.id,
            user=request.awarded_user_id,
            amount=award.award_amount,
        )
        result = AwardResult(award=award, job=claimed, bid=accepted)

        # 4. Reject the other bids
        try:
            result.rejected_bids = await self.storage.reject_other_bids(job_id, bid.id)
        except Exception as e:
            logger.warning(f"Failed to reject other bids for job {job_id}: {e}")

        # 5. Notify the winner
        try:
            await self.notifier.send_award_notice(profile, claimed, award)
            result.notified = True
        except Exception as e:
            logger.warning(f"Failed to send award notice for job {job_id}: {e}")

        return result
