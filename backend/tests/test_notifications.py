"""Tests for email templates and notifiers."""

import json
from datetime import datetime, timezone
from decimal import Decimal

import httpx
import pytest

from app.config import get_settings
from app.marketplace import JobStatus
from app.notifications import EmailNotifier, LogNotifier, NotificationError, build_notifier
from app.notifications import templates
from conftest import TECH_ID, make_award, make_bid, make_job, make_profile


class TestTemplates:
    """Tests for message rendering."""

    def test_format_money(self):
        assert templates.format_money(Decimal("1234.5")) == "$1,234.50"
        assert templates.format_money(99) == "$99.00"

    def test_format_location(self):
        assert templates.format_location("Dallas", "TX") == "Dallas, TX"
        assert templates.format_location(None, "TX") == "TX"
        assert templates.format_location(None, None) == "Unknown"

    def test_job_awarded(self):
        message = templates.job_awarded(
            title="Laser service",
            company_name="Glow MedSpa",
            location="Dallas, TX",
            met_date=datetime(2026, 3, 4, tzinfo=timezone.utc),
            award_amount=Decimal("450"),
        )

        assert message.subject == "Job Awarded: Laser service"
        assert "$450.00" in message.text
        assert "Mar 04, 2026" in message.text
        assert "Glow MedSpa" in message.html

    def test_html_is_escaped(self):
        message = templates.job_awarded(
            title="<script>x</script>",
            company_name=None,
            location="TX",
            met_date=None,
            award_amount=Decimal("1"),
        )

        assert "<script>" not in message.html
        assert "TBD" in message.text

    def test_bid_alert_subjects(self):
        placed = templates.new_bid_alert("Laser", "job-1", "Sam", "Austin, TX", Decimal("10"))
        withdrawn = templates.new_bid_alert("Laser", "job-1", "Sam", "Austin, TX", Decimal("10"), withdrawn=True)

        assert placed.subject == "New Bid: Laser"
        assert withdrawn.subject == "Bid Withdrawn: Laser"

    def test_status_change_includes_notes(self):
        message = templates.job_status_changed("Laser", "job-1", "OPEN", "CANCELLED", notes="Customer cancelled")
        assert "OPEN -> CANCELLED" in message.text
        assert "Customer cancelled" in message.text

    def test_welcome_lists_roles(self):
        message = templates.welcome_approved("Sam", role_tech=True, role_trainer=True)
        assert "Technician and Trainer" in message.text


def _settings(**overrides):
    return get_settings().model_copy(update={"resend_api_key": "re_test_key", **overrides})


class TestEmailNotifier:
    """Tests for Resend delivery over httpx."""

    @pytest.mark.asyncio
    async def test_award_notice_posts_to_resend(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["auth"] = request.headers["authorization"]
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={"id": "email-123"})

        notifier = EmailNotifier(_settings(), transport=httpx.MockTransport(handler))
        profile = make_profile(TECH_ID, role_tech=True)
        award = make_award("award-1", "job-1", "bid-1", TECH_ID, "450.00")

        await notifier.send_award_notice(profile, make_job(), award)

        assert captured["url"] == "https://api.resend.com/emails"
        assert captured["auth"] == "Bearer re_test_key"
        assert captured["body"]["to"] == [profile.email]
        assert captured["body"]["subject"] == "Job Awarded: Laser service visit"
        assert "$450.00" in captured["body"]["text"]

    @pytest.mark.asyncio
    async def test_bid_alert_goes_to_admins(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={"id": "email-456"})

        settings = _settings(admin_alert_emails=["ops@example.com"])
        notifier = EmailNotifier(settings, transport=httpx.MockTransport(handler))

        await notifier.send_bid_alert(make_job(), make_bid("bid-1", "job-1", TECH_ID), None)

        assert captured["body"]["to"] == ["ops@example.com"]
        assert "Unknown Bidder" in captured["body"]["text"]

    @pytest.mark.asyncio
    async def test_provider_error_raises(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(500, json={"message": "boom"}))
        notifier = EmailNotifier(_settings(), transport=transport)

        with pytest.raises(NotificationError):
            await notifier.send_welcome(make_profile(TECH_ID, role_tech=True))

    @pytest.mark.asyncio
    async def test_missing_recipient_email(self):
        notifier = EmailNotifier(_settings(), transport=httpx.MockTransport(lambda r: httpx.Response(200)))

        with pytest.raises(NotificationError):
            await notifier.send_welcome(make_profile(TECH_ID, email=None))

    @pytest.mark.asyncio
    async def test_senders_come_from_settings(self):
        senders = []

        def handler(request: httpx.Request) -> httpx.Response:
            senders.append(json.loads(request.content)["from"])
            return httpx.Response(200, json={"id": "email-789"})

        settings = _settings(
            email_from="ops@example.com",
            email_from_awards="awards@example.com",
            email_from_bids="bids@example.com",
            email_from_welcome="hello@example.com",
        )
        notifier = EmailNotifier(settings, transport=httpx.MockTransport(handler))
        profile = make_profile(TECH_ID, role_tech=True)
        job = make_job()
        bid = make_bid("bid-1", "job-1", TECH_ID)

        await notifier.send_award_notice(profile, job, make_award("award-1", "job-1", "bid-1", TECH_ID))
        await notifier.send_bid_alert(job, bid, profile)
        await notifier.send_bid_withdrawn(job, bid, profile)
        await notifier.send_welcome(profile)
        await notifier.send_status_changed(job, JobStatus.BIDDING, JobStatus.CANCELLED)

        assert senders == [
            "awards@example.com",
            "bids@example.com",
            "bids@example.com",
            "hello@example.com",
            "ops@example.com",
        ]

    def test_requires_api_key(self):
        with pytest.raises(ValueError):
            EmailNotifier(get_settings().model_copy(update={"resend_api_key": None}))


class TestBuildNotifier:
    def test_log_notifier_without_key(self):
        settings = get_settings().model_copy(update={"resend_api_key": None})
        assert isinstance(build_notifier(settings), LogNotifier)

    def test_email_notifier_with_key(self):
        assert isinstance(build_notifier(_settings()), EmailNotifier)

    @pytest.mark.asyncio
    async def test_log_notifier_delivers_nothing(self):
        notifier = LogNotifier(get_settings())
        assert await notifier.deliver(["a@example.com"], templates.welcome_approved("Sam", True, False)) is None
