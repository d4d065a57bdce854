"""Job creation and manual status changes."""

from ..logging_config import get_logger
from ..notifications.notifier import Notifier
from .errors import ConflictError, NotFoundError, PersistenceError, ValidationFailedError
from .models import Job, JobStatus, Profile, can_transition
from .storage import MarketplaceStorage

logger = get_logger("medequip.jobs")

SERVICE_REQUEST_TAG = "medspa_request"

# Fields a job creator may set. Status and award fields are owned by the workflows.
CREATABLE_FIELDS = {
    "job_type",
    "title",
    "company_name",
    "customer_name",
    "model",
    "priority",
    "met_date",
    "shipping_city",
    "shipping_state",
    "address_line1",
    "address_line2",
    "zip",
    "contact_name",
    "contact_phone",
    "contact_email",
    "instructions_public",
    "instructions_private",
    "external_id",
    "source_tag",
}


class JobService:
    def __init__(self, storage: MarketplaceStorage, notifier: Notifier):
        self.storage = storage
        self.notifier = notifier

    async def create(self, creator: Profile | None, creator_id: str, data: dict) -> Job:
        """Create a job in OPEN status.

        Admins post listings directly; anyone else is filing a service
        request on behalf of their practice.
        """
        row = {k: v for k, v in data.items() if k in CREATABLE_FIELDS and v is not None}
        if not (creator and creator.role_admin):
            row["source_tag"] = SERVICE_REQUEST_TAG
        row["status"] = JobStatus.OPEN
        row["created_by"] = creator_id

        try:
            job = await self.storage.create_job(row)
        except Exception as e:
            logger.error(f"Failed to create job: {e}")
            raise PersistenceError("Failed to create job") from e

        logger.info(f"Job created | id={job.id} | type={job.job_type.value} | by={creator_id}")
        return job

    async def change_status(
        self, job_id: str, new_status: JobStatus, notes: str | None = None
    ) -> tuple[Job, JobStatus]:
        """Apply a manual status transition. Returns (updated job, previous status)."""
        new_status = JobStatus(new_status)
        job = await self.storage.get_job(job_id)
        if not job:
            raise NotFoundError("Job not found")

        old_status = JobStatus(job.status)
        if new_status == JobStatus.AWARDED:
            raise ValidationFailedError("Jobs can only be awarded through the award endpoint")
        if not can_transition(old_status, new_status):
            raise ValidationFailedError(
                f"Cannot transition from {old_status.value} to {new_status.value}"
            )

        updates = {"status_notes": notes} if notes else {}
        try:
            updated = await self.storage.transition_job(job_id, old_status, new_status, **updates)
        except Exception as e:
            raise PersistenceError("Failed to update job status") from e

        if not updated:
            logger.warning(
                f"Race condition detected on job {job_id}: expected status '{old_status.value}'"
            )
            raise ConflictError("Job status was modified by another request. Please refresh and try again.")

        logger.info(f"Job status changed | id={job_id} | {old_status.value} -> {new_status.value}")

        try:
            await self.notifier.send_status_changed(updated, old_status, new_status, notes)
        except Exception as e:
            logger.warning(f"Failed to send status change alert for job {job_id}: {e}")

        return updated, old_status
