"""Tests for marketplace authorization policy and the job state machine."""

import pytest

from app.marketplace import JobStatus, JobType, can_transition
from app.marketplace.errors import IneligibleError, RoleMismatchError, UnauthorizedError
from app.marketplace.policy import (
    AccessLevel,
    access_level,
    can_bid,
    check_award_eligibility,
    require_admin,
    require_approved,
    require_can_bid,
    role_matches,
)
from conftest import ADMIN_ID, PENDING_ID, TECH_ID, TRAINER_ID, make_job, make_profile

tech = make_profile(TECH_ID, role_tech=True)
trainer = make_profile(TRAINER_ID, role_trainer=True)
both = make_profile("usr_TEST_BOTH_00000", role_tech=True, role_trainer=True)
pending = make_profile(PENDING_ID, role_tech=True, is_approved=False)
admin = make_profile(ADMIN_ID, role_admin=True, is_approved=False)


class TestRoleChecks:
    def test_role_matches(self):
        assert role_matches(tech, JobType.tech)
        assert not role_matches(tech, JobType.trainer)
        assert role_matches(both, JobType.trainer)

    def test_require_admin(self):
        assert require_admin(admin) is admin
        with pytest.raises(UnauthorizedError):
            require_admin(tech)
        with pytest.raises(UnauthorizedError):
            require_admin(None)

    def test_require_approved(self):
        with pytest.raises(UnauthorizedError, match="approved"):
            require_approved(pending)
        with pytest.raises(UnauthorizedError, match="profile not found"):
            require_approved(None)

    def test_require_can_bid_wrong_role(self):
        with pytest.raises(UnauthorizedError, match="Only trainers can bid on trainer jobs"):
            require_can_bid(tech, make_job(job_type=JobType.trainer))


class TestAwardEligibility:
    def test_missing_profile(self):
        with pytest.raises(IneligibleError):
            check_award_eligibility(None, make_job())

    def test_unapproved(self):
        with pytest.raises(IneligibleError):
            check_award_eligibility(pending, make_job())

    def test_role_mismatch(self):
        with pytest.raises(RoleMismatchError, match="Cannot award trainer job to non-trainer user"):
            check_award_eligibility(tech, make_job(job_type=JobType.trainer))

    def test_eligible(self):
        assert check_award_eligibility(trainer, make_job(job_type=JobType.trainer)) is trainer


class TestAccessLevel:
    @pytest.mark.parametrize(
        "profile,expected",
        [
            (None, AccessLevel.ANONYMOUS),
            (pending, AccessLevel.UNAPPROVED),
            (trainer, AccessLevel.APPROVED),
            (tech, AccessLevel.ELIGIBLE),
            (admin, AccessLevel.ADMIN),
        ],
    )
    def test_levels_for_tech_job(self, profile, expected):
        assert access_level(profile, make_job(job_type=JobType.tech)) == expected

    def test_can_bid_requires_biddable_status(self):
        assert can_bid(tech, make_job(status=JobStatus.OPEN))
        assert can_bid(tech, make_job(status=JobStatus.BIDDING))
        assert not can_bid(tech, make_job(status=JobStatus.AWARDED))
        assert not can_bid(pending, make_job(status=JobStatus.OPEN))


class TestTransitions:
    @pytest.mark.parametrize(
        "start,target",
        [
            (JobStatus.OPEN, JobStatus.BIDDING),
            (JobStatus.BIDDING, JobStatus.AWARDED),
            (JobStatus.BIDDING, JobStatus.OPEN),
            (JobStatus.AWARDED, JobStatus.IN_PROGRESS),
            (JobStatus.IN_PROGRESS, JobStatus.COMPLETED),
            (JobStatus.AWARDED, JobStatus.CANCELLED),
        ],
    )
    def test_allowed(self, start, target):
        assert can_transition(start, target)

    @pytest.mark.parametrize(
        "start,target",
        [
            (JobStatus.OPEN, JobStatus.AWARDED),
            (JobStatus.AWARDED, JobStatus.BIDDING),
            (JobStatus.COMPLETED, JobStatus.CANCELLED),
            (JobStatus.CANCELLED, JobStatus.OPEN),
        ],
    )
    def test_forbidden(self, start, target):
        assert not can_transition(start, target)
