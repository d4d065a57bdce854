"""Logging setup for the MedEquip marketplace backend.

All loggers live under the ``medequip`` namespace so a single handler
configured at startup covers every module.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
ROOT_LOGGER = "medequip"

_configured = False


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Configure the ``medequip`` logger hierarchy once."""
    global _configured
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(level.upper())
    if not _configured:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
        root.propagate = False
        _configured = True
    return root


def get_logger(name: str) -> logging.Logger:
    """Get a logger, namespaced under ``medequip`` when not already."""
    if name != ROOT_LOGGER and not name.startswith(f"{ROOT_LOGGER}."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


_award_logger = get_logger("medequip.awards.events")
_bid_logger = get_logger("medequip.bids.events")


def _format_event(event: str, fields: dict, success: bool, reason: str | None) -> str:
    parts = [f"event={event}", f"ok={str(success).lower()}"]
    parts.extend(f"{k}={v}" for k, v in fields.items() if v is not None)
    if reason:
        parts.append(f"reason={reason}")
    return " | ".join(parts)


def log_award_event(
    event: str,
    job_id: str,
    success: bool,
    reason: str | None = None,
    **fields,
) -> None:
    """Log an award lifecycle event (attempt, commit, compensation)."""
    line = _format_event(event, {"job": job_id, **fields}, success, reason)
    if success:
        _award_logger.info(line)
    else:
        _award_logger.warning(line)


def log_bid_event(
    event: str,
    bid_id: str | None,
    job_id: str,
    success: bool,
    reason: str | None = None,
    **fields,
) -> None:
    """Log a bid lifecycle event (submit, withdraw, reject)."""
    line = _format_event(event, {"bid": bid_id, "job": job_id, **fields}, success, reason)
    if success:
        _bid_logger.info(line)
    else:
        _bid_logger.warning(line)
