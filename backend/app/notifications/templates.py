"""Email templates for marketplace notifications."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from html import escape

FOOTER_TEXT = "This is an automated notification from MedEquipTech."


@dataclass(frozen=True)
class EmailMessage:
    """A rendered email."""

    subject: str
    html: str
    text: str


def _wrap_html(heading: str, color: str, body: str) -> str:
    return (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
        f'<h2 style="color: {color};">{escape(heading)}</h2>'
        f"{body}"
        '<div style="margin-top: 30px; padding-top: 20px; border-top: 1px solid #e2e8f0;">'
        f'<p style="color: #64748b; font-size: 14px;">{FOOTER_TEXT}</p>'
        "</div></div>"
    )


def _details_html(title: str, rows: list[tuple[str, str]]) -> str:
    items = "".join(f"<p><strong>{escape(k)}:</strong> {escape(v)}</p>" for k, v in rows)
    return (
        '<div style="background: #f8fafc; padding: 20px; border-radius: 8px; margin: 20px 0;">'
        f'<h3 style="margin-top: 0;">{escape(title)}</h3>{items}</div>'
    )


def _details_text(title: str, rows: list[tuple[str, str]]) -> str:
    return f"{title}:\n" + "\n".join(f"- {k}: {v}" for k, v in rows)


def format_money(amount: Decimal | float) -> str:
    return f"${Decimal(str(amount)):,.2f}"


def format_location(city: str | None, state: str | None) -> str:
    return ", ".join(p for p in (city, state) if p) or "Unknown"


def format_date(value: datetime | None) -> str:
    return value.strftime("%b %d, %Y") if value else "TBD"


def job_awarded(
    title: str,
    company_name: str | None,
    location: str,
    met_date: datetime | None,
    award_amount: Decimal,
) -> EmailMessage:
    """Notice to the winning bidder."""
    rows = [
        ("Title", title),
        ("Company", company_name or "N/A"),
        ("Location", location),
        ("MET Date", format_date(met_date)),
        ("Award Amount", format_money(award_amount)),
    ]
    closing = "Please contact the company to coordinate the work schedule and any additional details."
    html = _wrap_html(
        "Congratulations! Job Awarded",
        "#10b981",
        "<p>Your bid has been accepted for the following job:</p>"
        + _details_html("Job Details", rows)
        + f"<p>{closing}</p>",
    )
    text = (
        "Congratulations! Job Awarded\n\n"
        "Your bid has been accepted for the following job:\n\n"
        f"{_details_text('Job Details', rows)}\n\n{closing}\n\n---\n{FOOTER_TEXT}"
    )
    return EmailMessage(subject=f"Job Awarded: {title}", html=html, text=text)


def new_bid_alert(
    job_title: str,
    job_id: str,
    bidder_name: str,
    bidder_location: str,
    ask_price: Decimal,
    withdrawn: bool = False,
) -> EmailMessage:
    """Admin alert for a bid being placed or withdrawn."""
    heading = "Bid Withdrawn" if withdrawn else "New Bid Received"
    verb = "withdrawn from" if withdrawn else "submitted for"
    job_rows = [("Job Title", job_title), ("Job ID", job_id)]
    bid_rows = [
        ("Bidder", bidder_name),
        ("Location", bidder_location),
        ("Bid Amount", format_money(ask_price)),
    ]
    html = _wrap_html(
        heading,
        "#2563eb",
        f"<p>A bid has been {verb} a job:</p>"
        + _details_html("Job Details", job_rows)
        + _details_html("Bid Details", bid_rows)
        + "<p>Review this bid in the admin dashboard.</p>",
    )
    text = (
        f"{heading}\n\nA bid has been {verb} a job:\n\n"
        f"{_details_text('Job Details', job_rows)}\n\n"
        f"{_details_text('Bid Details', bid_rows)}\n\n"
        f"Review this bid in the admin dashboard.\n\n---\n{FOOTER_TEXT}"
    )
    prefix = "Bid Withdrawn" if withdrawn else "New Bid"
    return EmailMessage(subject=f"{prefix}: {job_title}", html=html, text=text)


def job_status_changed(
    job_title: str,
    job_id: str,
    old_status: str,
    new_status: str,
    notes: str | None = None,
) -> EmailMessage:
    """Admin alert for a manual job status change."""
    rows = [("Title", job_title), ("Job ID", job_id), ("Status Change", f"{old_status} -> {new_status}")]
    if notes:
        rows.append(("Notes", notes))
    html = _wrap_html(
        "Job Status Updated",
        "#2563eb",
        "<p>A job status has been updated:</p>"
        + _details_html("Job Details", rows)
        + "<p>Review this job in the admin dashboard.</p>",
    )
    text = (
        "Job Status Updated\n\nA job status has been updated:\n\n"
        f"{_details_text('Job Details', rows)}\n\n"
        f"Review this job in the admin dashboard.\n\n---\n{FOOTER_TEXT}"
    )
    return EmailMessage(subject=f"Job Status Updated: {job_title}", html=html, text=text)


def welcome_approved(full_name: str, role_tech: bool, role_trainer: bool) -> EmailMessage:
    """Welcome email sent when an admin approves an account."""
    roles = [label for flag, label in ((role_tech, "Technician"), (role_trainer, "Trainer")) if flag]
    role_text = " and ".join(roles) or "member"
    steps = [
        "Browse available jobs in your area",
        "Submit competitive bids",
        "Build your reputation and client base",
    ]
    html = _wrap_html(
        "Welcome to MedEquipTech!",
        "#2563eb",
        f"<p>Hi {escape(full_name)},</p>"
        f"<p>Your account has been approved! You can now access the platform as a "
        f"<strong>{escape(role_text)}</strong>.</p>"
        "<ul>" + "".join(f"<li>{s}</li>" for s in steps) + "</ul>",
    )
    text = (
        f"Welcome to MedEquipTech!\n\nHi {full_name},\n\n"
        f"Your account has been approved! You can now access the platform as a {role_text}.\n\n"
        + "\n".join(f"- {s}" for s in steps)
        + f"\n\n---\n{FOOTER_TEXT}"
    )
    return EmailMessage(subject="Welcome to MedEquipTech!", html=html, text=text)
