"""API routes."""

from .bids import router as bids_router
from .jobs import router as jobs_router
from .users import router as users_router

__all__ = [
    "jobs_router",
    "bids_router",
    "users_router",
]
