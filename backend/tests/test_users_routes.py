"""Tests for user routes: awarded jobs and account approval."""

from app.marketplace import JobStatus
from conftest import PENDING_ID, TECH2_ID, TECH_ID, make_award, make_job


class TestMyJobs:
    """Tests for GET /api/users/my-jobs."""

    def test_lists_awarded_jobs_with_private_details(self, client, tech_headers, storage):
        storage.add_job(make_job("job-1", status=JobStatus.AWARDED, awarded_to=TECH_ID))
        storage.add_job(make_job("job-2", status=JobStatus.AWARDED, awarded_to=TECH2_ID))
        storage.add_award(make_award("award-1", "job-1", "bid-1", TECH_ID, "450.00"))
        storage.add_award(make_award("award-2", "job-2", "bid-2", TECH2_ID, "300.00"))

        response = client.get("/api/users/my-jobs", headers=tech_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        job = data["jobs"][0]
        assert job["id"] == "job-1"
        assert job["award_amount"] == 450.0
        assert job["instructions_private"] == "Gate code 4411"
        assert job["address_line1"] == "100 Main St"

    def test_empty_when_nothing_awarded(self, client, tech_headers):
        response = client.get("/api/users/my-jobs", headers=tech_headers)
        assert response.json() == {"jobs": [], "total": 0}

    def test_unapproved_caller(self, client, headers_for):
        response = client.get("/api/users/my-jobs", headers=headers_for(PENDING_ID))
        assert response.status_code == 403

    def test_caller_without_profile(self, client, headers_for):
        response = client.get("/api/users/my-jobs", headers=headers_for("usr_NO_PROFILE_0000"))
        assert response.status_code == 403
        assert response.json()["detail"] == "User profile not found"


class TestApproval:
    """Tests for POST and GET /api/users/approve."""

    def test_approve_sends_welcome(self, client, admin_headers, storage, notifier):
        response = client.post(
            "/api/users/approve",
            json={"user_id": PENDING_ID, "action": "approve"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["message"] == "User approved successfully"
        assert response.json()["profile"]["is_approved"] is True
        assert storage._profiles[PENDING_ID].is_approved is True
        assert notifier.kinds() == ["welcome"]

    def test_deny_approved_user(self, client, admin_headers, storage, notifier):
        response = client.post(
            "/api/users/approve",
            json={"user_id": TECH_ID, "action": "deny", "reason": "License expired"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["message"] == "User denied successfully"
        assert storage._profiles[TECH_ID].is_approved is False
        assert notifier.sent == []

    def test_already_approved(self, client, admin_headers):
        response = client.post(
            "/api/users/approve", json={"user_id": TECH_ID, "action": "approve"}, headers=admin_headers
        )
        assert response.status_code == 400

    def test_unknown_user(self, client, admin_headers):
        response = client.post(
            "/api/users/approve", json={"user_id": "usr_GHOST", "action": "approve"}, headers=admin_headers
        )
        assert response.status_code == 404

    def test_invalid_action(self, client, admin_headers):
        response = client.post(
            "/api/users/approve", json={"user_id": PENDING_ID, "action": "ban"}, headers=admin_headers
        )
        assert response.status_code == 400

    def test_requires_admin(self, client, tech_headers):
        response = client.post(
            "/api/users/approve", json={"user_id": PENDING_ID, "action": "approve"}, headers=tech_headers
        )
        assert response.status_code == 403

    def test_welcome_failure_keeps_approval(self, client, admin_headers, storage, notifier):
        notifier.fail = True

        response = client.post(
            "/api/users/approve", json={"user_id": PENDING_ID, "action": "approve"}, headers=admin_headers
        )

        assert response.status_code == 200
        assert storage._profiles[PENDING_ID].is_approved is True

    def test_list_pending(self, client, admin_headers):
        response = client.get("/api/users/approve", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()
        assert [u["user_id"] for u in data["users"]] == [PENDING_ID]
        assert data["pagination"]["total"] == 1
