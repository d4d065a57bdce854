"""Bid submission and withdrawal."""

from datetime import datetime, timezone
from decimal import Decimal

from ..logging_config import get_logger, log_bid_event
from ..notifications.notifier import Notifier
from .errors import ConflictError, InvalidStateError, NotFoundError, PersistenceError, ValidationFailedError
from .models import BIDDABLE_STATUSES, Bid, BidStatus, JobStatus, Profile
from .policy import require_approved, require_can_bid
from .storage import MarketplaceStorage

logger = get_logger("medequip.bids")


class BidService:
    """Bid lifecycle operations for approved providers."""

    def __init__(self, storage: MarketplaceStorage, notifier: Notifier):
        self.storage = storage
        self.notifier = notifier

    async def submit(
        self,
        bidder: Profile,
        job_id: str,
        ask_price: Decimal,
        note: str | None = None,
    ) -> Bid:
        """Place a bid. The first bid on an OPEN job moves it to BIDDING."""
        if ask_price <= 0:
            raise ValidationFailedError("ask_price must be a positive number")

        job = await self.storage.get_job(job_id)
        if not job:
            raise NotFoundError("Job not found or not open for bidding")
        require_can_bid(bidder, job)
        if job.status not in BIDDABLE_STATUSES:
            raise InvalidStateError("Job not found or not open for bidding")

        if await self.storage.find_active_bid(job_id, bidder.user_id):
            raise ConflictError("You already have an active bid on this job")

        try:
            bid = await self.storage.create_bid(job_id, bidder.user_id, ask_price, note or None)
        except Exception as e:
            if "duplicate" in str(e).lower() or "unique" in str(e).lower():
                raise ConflictError("You already have an active bid on this job") from e
            log_bid_event("submit", None, job_id, False, reason=str(e), bidder=bidder.user_id)
            raise PersistenceError("Failed to create bid") from e

        if job.status == JobStatus.OPEN:
            # Another bid may have moved it already; either way it ends up BIDDING.
            try:
                await self.storage.transition_job(job_id, JobStatus.OPEN, JobStatus.BIDDING)
            except Exception as e:
                logger.warning(f"Failed to move job {job_id} to BIDDING: {e}")

        # An award or status change may have committed while the bid was inserted.
        current = await self.storage.get_job(job_id)
        if not current or current.status not in BIDDABLE_STATUSES:
            await self._reject_late_bid(bid)
            raise InvalidStateError("Job not found or not open for bidding")
        job = current

        log_bid_event("submit", bid.id, job_id, True, bidder=bidder.user_id, price=ask_price)

        try:
            await self.notifier.send_bid_alert(job, bid, bidder)
        except Exception as e:
            logger.warning(f"Failed to send admin bid alert for job {job_id}: {e}")

        return bid

    async def _reject_late_bid(self, bid: Bid) -> None:
        try:
            rejected = await self.storage.transition_bid(
                bid.id, BidStatus.submitted, BidStatus.rejected
            )
        except Exception:
            logger.exception(f"Failed to reject bid {bid.id} placed after job {bid.job_id} closed")
            return
        log_bid_event(
            "submit", bid.id, bid.job_id, False, reason="job closed", rejected=rejected is not None
        )

    async def withdraw(self, bidder: Profile, bid_id: str, reason: str | None = None) -> Bid:
        """Withdraw a submitted bid; reopen the job if no submitted bids remain."""
        require_approved(bidder)

        bid = await self.storage.get_bid(bid_id)
        if not bid or bid.bidder_id != bidder.user_id:
            raise NotFoundError("Bid not found or access denied")
        if bid.status != BidStatus.submitted:
            raise InvalidStateError("Only submitted bids can be withdrawn", status_code=400)

        try:
            withdrawn = await self.storage.transition_bid(
                bid_id,
                BidStatus.submitted,
                BidStatus.withdrawn,
                withdrawn_at=datetime.now(timezone.utc),
                withdrawal_reason=reason or None,
            )
        except Exception as e:
            log_bid_event("withdraw", bid_id, bid.job_id, False, reason=str(e))
            raise PersistenceError("Failed to withdraw bid") from e

        if not withdrawn:
            # Accepted or rejected by a concurrent award
            raise InvalidStateError("Only submitted bids can be withdrawn", status_code=400)

        log_bid_event("withdraw", bid_id, bid.job_id, True, bidder=bidder.user_id)

        job = None
        try:
            remaining = await self.storage.count_bids(bid.job_id, BidStatus.submitted)
            if remaining == 0:
                job = await self.storage.transition_job(bid.job_id, JobStatus.BIDDING, JobStatus.OPEN)
            if job and await self.storage.count_bids(bid.job_id, BidStatus.submitted):
                # A bid landed between the count and the reopen
                job = await self.storage.transition_job(bid.job_id, JobStatus.OPEN, JobStatus.BIDDING)
        except Exception as e:
            logger.warning(f"Failed to reopen job {bid.job_id} after withdrawal: {e}")

        try:
            job = job or await self.storage.get_job(bid.job_id)
            if job:
                await self.notifier.send_bid_withdrawn(job, withdrawn, bidder)
        except Exception as e:
            logger.warning(f"Failed to send bid withdrawal alert for job {bid.job_id}: {e}")

        return withdrawn

    async def list_for_bidder(
        self,
        bidder: Profile,
        status: BidStatus | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Bid], int]:
        require_approved(bidder)
        return await self.storage.list_bids(
            bidder_id=bidder.user_id, status=status, limit=limit, offset=offset
        )
