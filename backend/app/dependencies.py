"""FastAPI dependencies wiring storage, notifier and caller profile.

Tests replace ``get_storage`` and ``get_notifier`` through
``app.dependency_overrides``; everything else builds on those two.
"""

from typing import Annotated

from fastapi import Depends

from .auth import CurrentUser, OptionalUser
from .config import Settings, get_settings
from .database import Database
from .marketplace import (
    AwardWorkflow,
    BidService,
    JobService,
    MarketplaceStorage,
    Profile,
    ProfileService,
    SupabaseMarketplaceStorage,
)
from .marketplace.policy import require_admin, require_approved
from .notifications import Notifier, build_notifier


def get_storage(db: Database) -> MarketplaceStorage:
    return SupabaseMarketplaceStorage(db)


def get_notifier(settings: Annotated[Settings, Depends(get_settings)]) -> Notifier:
    return build_notifier(settings)


Storage = Annotated[MarketplaceStorage, Depends(get_storage)]
NotifierDep = Annotated[Notifier, Depends(get_notifier)]


# =============================================================================
# Services
# =============================================================================


def get_award_workflow(storage: Storage, notifier: NotifierDep) -> AwardWorkflow:
    return AwardWorkflow(storage, notifier)


def get_bid_service(storage: Storage, notifier: NotifierDep) -> BidService:
    return BidService(storage, notifier)


def get_job_service(storage: Storage, notifier: NotifierDep) -> JobService:
    return JobService(storage, notifier)


def get_profile_service(storage: Storage, notifier: NotifierDep) -> ProfileService:
    return ProfileService(storage, notifier)


AwardWorkflowDep = Annotated[AwardWorkflow, Depends(get_award_workflow)]
BidServiceDep = Annotated[BidService, Depends(get_bid_service)]
JobServiceDep = Annotated[JobService, Depends(get_job_service)]
ProfileServiceDep = Annotated[ProfileService, Depends(get_profile_service)]


# =============================================================================
# Caller profile
# =============================================================================


async def get_current_profile(auth: CurrentUser, storage: Storage) -> Profile | None:
    """Profile of the authenticated caller, None if they have none yet."""
    return await storage.get_profile(auth.user_id)


async def get_optional_profile(auth: OptionalUser, storage: Storage) -> Profile | None:
    if auth is None:
        return None
    return await storage.get_profile(auth.user_id)


async def get_approved_profile(
    profile: Annotated[Profile | None, Depends(get_current_profile)],
) -> Profile:
    return require_approved(profile)


async def get_admin_profile(
    profile: Annotated[Profile | None, Depends(get_current_profile)],
) -> Profile:
    return require_admin(profile)


CurrentProfile = Annotated[Profile | None, Depends(get_current_profile)]
OptionalProfile = Annotated[Profile | None, Depends(get_optional_profile)]
ApprovedProfile = Annotated[Profile, Depends(get_approved_profile)]
AdminProfile = Annotated[Profile, Depends(get_admin_profile)]
