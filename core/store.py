"""
Job store: one record per job, keyed by job id.

Thin key-value layer over a SQLAlchemy session. Every write commits so that a
worker picking up a queued message can always read the record back.
"""

import logging
from typing import Optional
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from db.models import Job, utc_now
from core.errors import ConflictError, InternalError, InvalidTransition, NotFound
from core.lifecycle import JobStatus, can_transition

logger = logging.getLogger(__name__)


class JobStore:
    def __init__(self, db: Session):
        self.db = db

    def put(self, job: Job) -> Job:
        """Create a new record. Raises ConflictError if the id is taken."""
        if self._find(job.job_id) is not None:
            raise ConflictError(f"Job {job.job_id} already exists")

        now = utc_now()
        job.created_at = job.created_at or now
        job.updated_at = job.updated_at or job.created_at
        job.status = job.status or JobStatus.PENDING.value

        self.db.add(job)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError(f"Job {job.job_id} already exists") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise InternalError(f"Failed to store job {job.job_id}: {e}") from e
        return job

    def get(self, job_id: str) -> Job:
        job = self._find(job_id)
        if job is None:
            raise NotFound(f"Job {job_id} not found")
        return job

    def update_status(self, job_id: str, status: str,
                      transcript: Optional[dict] = None,
                      summary: Optional[str] = None) -> Job:
        """
        Partial update: sets status and updatedAt, plus whichever result fields
        are supplied. Fields that are not supplied are left as they are, so a
        retry never erases earlier results.
        """
        target = JobStatus(status)
        job = self.get(job_id)

        if not can_transition(job.status, target):
            raise InvalidTransition(
                f"Job {job_id} cannot move from {job.status} to {target.value}"
            )

        job.status = target.value
        job.updated_at = utc_now()
        if transcript is not None:
            job.transcript = transcript
        if summary is not None:
            job.summary = summary

        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise InternalError(f"Failed to update job {job_id}: {e}") from e

        logger.debug("Job %s -> %s", job_id, target.value)
        return job

    def _find(self, job_id: str) -> Optional[Job]:
        try:
            # Always reload so writes from other sessions are seen
            return self.db.query(Job).populate_existing().filter(Job.job_id == job_id).first()
        except SQLAlchemyError as e:
            raise InternalError(f"Failed to read job {job_id}: {e}") from e
