"""Account approval, which gates who may bid and be awarded."""

from typing import Literal

from ..logging_config import get_logger
from ..notifications.notifier import Notifier
from .errors import NotFoundError, PersistenceError, ValidationFailedError
from .models import Profile
from .storage import MarketplaceStorage

logger = get_logger("medequip.profiles")

ApprovalAction = Literal["approve", "deny"]


class ProfileService:
    def __init__(self, storage: MarketplaceStorage, notifier: Notifier):
        self.storage = storage
        self.notifier = notifier

    async def set_approval(
        self,
        admin: Profile,
        user_id: str,
        action: ApprovalAction,
        reason: str | None = None,
    ) -> Profile:
        target = await self.storage.get_profile(user_id)
        if not target:
            raise NotFoundError("User profile not found")

        approve = action == "approve"
        if approve and target.is_approved:
            raise ValidationFailedError("User is already approved")
        if not approve and not target.is_approved:
            raise ValidationFailedError("User is already not approved")

        try:
            updated = await self.storage.set_profile_approval(user_id, approve)
        except Exception as e:
            raise PersistenceError("Failed to update user approval status") from e
        if not updated:
            raise PersistenceError("Failed to update user approval status")

        outcome = "approved" if approve else "denied"
        logger.info(
            f"User {outcome} | user={user_id} | admin={admin.user_id}"
            + (f" | reason={reason}" if reason else "")
        )

        if approve:
            try:
                await self.notifier.send_welcome(updated)
            except Exception as e:
                logger.warning(f"Failed to send welcome email to {user_id}: {e}")

        return updated
