"""Notification dispatch.

Notifiers are constructed explicitly from settings and passed into the
workflows that use them. Callers treat every send as best-effort: a
``NotificationError`` is logged, never surfaced to the API client.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

import httpx

from ..config import Settings
from ..logging_config import get_logger
from . import templates
from .templates import EmailMessage

if TYPE_CHECKING:
    from ..marketplace.models import Award, Bid, Job, JobStatus, Profile

logger = get_logger("medequip.notifications")


class NotificationError(Exception):
    """Raised when a notification cannot be delivered."""


class Notifier(Protocol):
    """Outbound notification channel."""

    async def send_award_notice(self, profile: Profile, job: Job, award: Award) -> None: ...

    async def send_bid_alert(self, job: Job, bid: Bid, bidder: Profile | None) -> None: ...

    async def send_bid_withdrawn(self, job: Job, bid: Bid, bidder: Profile | None) -> None: ...

    async def send_status_changed(
        self, job: Job, old_status: JobStatus, new_status: JobStatus, notes: str | None = None
    ) -> None: ...

    async def send_welcome(self, profile: Profile) -> None: ...


def _bidder_name(bidder: Profile | None) -> str:
    return (bidder.full_name if bidder else None) or "Unknown Bidder"


def _bidder_location(bidder: Profile | None) -> str:
    if not bidder:
        return "Unknown"
    return templates.format_location(bidder.base_city, bidder.base_state)


class TemplateNotifier:
    """Renders messages; subclasses decide how to deliver them."""

    def __init__(self, settings: Settings):
        self.settings = settings

    async def deliver(self, to: list[str], message: EmailMessage, sender: str | None = None) -> str | None:
        raise NotImplementedError

    async def send_award_notice(self, profile: Profile, job: Job, award: Award) -> None:
        if not profile.email:
            raise NotificationError(f"No email on file for user {profile.user_id}")
        message = templates.job_awarded(
            title=job.title,
            company_name=job.company_name,
            location=templates.format_location(job.shipping_city, job.shipping_state),
            met_date=job.met_date,
            award_amount=award.award_amount,
        )
        await self.deliver([profile.email], message, sender=self.settings.email_from_awards)

    async def send_bid_alert(self, job: Job, bid: Bid, bidder: Profile | None) -> None:
        message = templates.new_bid_alert(
            job_title=job.title,
            job_id=job.id,
            bidder_name=_bidder_name(bidder),
            bidder_location=_bidder_location(bidder),
            ask_price=bid.ask_price,
        )
        await self.deliver(self.settings.admin_alert_emails, message, sender=self.settings.email_from_bids)

    async def send_bid_withdrawn(self, job: Job, bid: Bid, bidder: Profile | None) -> None:
        message = templates.new_bid_alert(
            job_title=job.title,
            job_id=job.id,
            bidder_name=_bidder_name(bidder),
            bidder_location=_bidder_location(bidder),
            ask_price=bid.ask_price,
            withdrawn=True,
        )
        await self.deliver(self.settings.admin_alert_emails, message, sender=self.settings.email_from_bids)

    async def send_status_changed(
        self, job: Job, old_status: JobStatus, new_status: JobStatus, notes: str | None = None
    ) -> None:
        message = templates.job_status_changed(
            job_title=job.title,
            job_id=job.id,
            old_status=getattr(old_status, "value", old_status),
            new_status=getattr(new_status, "value", new_status),
            notes=notes,
        )
        await self.deliver(self.settings.admin_alert_emails, message)

    async def send_welcome(self, profile: Profile) -> None:
        if not profile.email:
            raise NotificationError(f"No email on file for user {profile.user_id}")
        message = templates.welcome_approved(
            full_name=profile.full_name or "there",
            role_tech=profile.role_tech,
            role_trainer=profile.role_trainer,
        )
        await self.deliver([profile.email], message, sender=self.settings.email_from_welcome)


class LogNotifier(TemplateNotifier):
    """Logs notifications instead of sending them (no provider configured)."""

    async def deliver(self, to: list[str], message: EmailMessage, sender: str | None = None) -> str | None:
        logger.info(f"Notification (not sent) | to={','.join(to)} | subject={message.subject}")
        return None


class EmailNotifier(TemplateNotifier):
    """Sends notifications through the Resend HTTP API."""

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        super().__init__(settings)
        if not settings.resend_api_key:
            raise ValueError("RESEND_API_KEY must be set to send email")
        self._transport = transport

    async def deliver(self, to: list[str], message: EmailMessage, sender: str | None = None) -> str | None:
        payload = {
            "from": sender or self.settings.email_from,
            "to": to,
            "subject": message.subject,
            "html": message.html,
            "text": message.text,
            "reply_to": self.settings.email_reply_to,
        }
        try:
            async with httpx.AsyncClient(
                timeout=self.settings.notification_timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    self.settings.resend_api_url,
                    json=payload,
                    headers={"Authorization": f"Bearer {self.settings.resend_api_key}"},
                )
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise NotificationError(f"Email delivery failed: {e}") from e

        message_id = response.json().get("id")
        logger.info(f"Email sent | to={','.join(to)} | subject={message.subject} | id={message_id}")
        return message_id


def build_notifier(settings: Settings) -> Notifier:
    """Pick the notifier for the current configuration."""
    if settings.resend_api_key:
        return EmailNotifier(settings)
    return LogNotifier(settings)
