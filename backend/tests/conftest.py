"""Pytest configuration and fixtures."""

import os
import secrets
import sys
from decimal import Decimal

import pytest

# Generate a unique test secret for this test run to prevent token forgery
_TEST_JWT_SECRET = f"test-only-{secrets.token_urlsafe(32)}"

# For unit tests, set mock values ONLY if not running integration tests
if not os.environ.get("RUN_INTEGRATION"):
    os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
    os.environ.setdefault("SUPABASE_SECRET_KEY", "test-secret-key")
    os.environ.setdefault("SUPABASE_JWT_SECRET", _TEST_JWT_SECRET)
    os.environ.pop("RESEND_API_KEY", None)
else:
    # For integration tests, load from .env
    from pathlib import Path

    from dotenv import load_dotenv

    env_path = Path(__file__).parent.parent / ".env"

    if not os.environ.get("CONFIRM_INTEGRATION_CREDENTIALS"):
        print("\n" + "=" * 70, file=sys.stderr)
        print("WARNING: Integration tests will use REAL credentials from .env", file=sys.stderr)
        print("   This may write to production tables and send real email.", file=sys.stderr)
        print("   Set CONFIRM_INTEGRATION_CREDENTIALS=yes to proceed.", file=sys.stderr)
        print("=" * 70 + "\n", file=sys.stderr)
        pytest.exit(
            "Integration tests require CONFIRM_INTEGRATION_CREDENTIALS=yes",
            returncode=1,
        )

    load_dotenv(env_path, override=True)

from app.dependencies import get_notifier, get_storage  # noqa: E402
from app.main import app  # noqa: E402
from app.marketplace import (  # noqa: E402
    Award,
    Bid,
    InMemoryMarketplaceStorage,
    Job,
    JobStatus,
    JobType,
    Priority,
    Profile,
)
from app.rate_limit import limiter  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

ADMIN_ID = "usr_TEST_ADMIN_0000"
TECH_ID = "usr_TEST_TECH_00000"
TECH2_ID = "usr_TEST_TECH_00002"
TRAINER_ID = "usr_TEST_TRAINER_00"
PENDING_ID = "usr_TEST_PENDING_00"


class RecordingNotifier:
    """Notifier double that records every send; ``fail`` makes sends raise."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: list[tuple] = []

    async def _record(self, kind: str, *args):
        self.sent.append((kind, *args))
        if self.fail:
            raise RuntimeError(f"{kind} delivery failed")

    async def send_award_notice(self, profile, job, award):
        await self._record("award", profile, job, award)

    async def send_bid_alert(self, job, bid, bidder):
        await self._record("bid", job, bid, bidder)

    async def send_bid_withdrawn(self, job, bid, bidder):
        await self._record("withdrawn", job, bid, bidder)

    async def send_status_changed(self, job, old_status, new_status, notes=None):
        await self._record("status", job, old_status, new_status, notes)

    async def send_welcome(self, profile):
        await self._record("welcome", profile)

    def kinds(self) -> list[str]:
        return [entry[0] for entry in self.sent]


def make_profile(user_id: str, **overrides) -> Profile:
    data = {
        "user_id": user_id,
        "email": f"{user_id.lower()}@example.com",
        "full_name": f"Test {user_id[-5:]}",
        "is_approved": True,
        "base_city": "Austin",
        "base_state": "TX",
    }
    data.update(overrides)
    return Profile(**data)


def make_job(job_id: str = "job-1", **overrides) -> Job:
    data = {
        "id": job_id,
        "job_type": JobType.tech,
        "title": "Laser service visit",
        "status": JobStatus.BIDDING,
        "priority": Priority.P1,
        "company_name": "Glow MedSpa",
        "customer_name": "Dr. Rivera",
        "model": "GentleMax Pro",
        "shipping_city": "Dallas",
        "shipping_state": "TX",
        "address_line1": "100 Main St",
        "instructions_public": "Bring calibration kit",
        "instructions_private": "Gate code 4411",
    }
    data.update(overrides)
    return Job(**data)


def make_award(award_id: str, job_id: str, bid_id: str, user_id: str, amount: str = "450.00") -> Award:
    return Award(
        id=award_id,
        job_id=job_id,
        bid_id=bid_id,
        awarded_user_id=user_id,
        awarded_by=ADMIN_ID,
        award_amount=Decimal(amount),
    )


def make_bid(bid_id: str, job_id: str, bidder_id: str, price: str = "450.00", **overrides) -> Bid:
    data = {"id": bid_id, "job_id": job_id, "bidder_id": bidder_id, "ask_price": Decimal(price)}
    data.update(overrides)
    return Bid(**data)


@pytest.fixture
def storage():
    """In-memory storage seeded with one user per role."""
    store = InMemoryMarketplaceStorage()
    store.add_profile(make_profile(ADMIN_ID, role_admin=True))
    store.add_profile(make_profile(TECH_ID, role_tech=True))
    store.add_profile(make_profile(TECH2_ID, role_tech=True))
    store.add_profile(make_profile(TRAINER_ID, role_trainer=True))
    store.add_profile(make_profile(PENDING_ID, role_tech=True, is_approved=False))
    return store


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture(autouse=True)
def reset_rate_limits():
    """Limits are per client IP and every TestClient request shares one."""
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture
def client(storage, notifier):
    """Create a test client backed by in-memory storage."""
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_notifier] = lambda: notifier
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def headers_for():
    """Build auth headers for a user id."""
    from app.auth import create_access_token
    from app.config import get_settings

    def _headers(user_id: str) -> dict:
        token = create_access_token(user_id, get_settings())
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def admin_headers(headers_for):
    return headers_for(ADMIN_ID)


@pytest.fixture
def tech_headers(headers_for):
    return headers_for(TECH_ID)
