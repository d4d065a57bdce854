"""Outbound notifications (transactional email)."""

from .notifier import (
    EmailNotifier,
    LogNotifier,
    NotificationError,
    Notifier,
    build_notifier,
)
from .templates import EmailMessage

__all__ = [
    "EmailMessage",
    "EmailNotifier",
    "LogNotifier",
    "NotificationError",
    "Notifier",
    "build_notifier",
]
