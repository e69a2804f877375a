import logging
from typing import Optional
from db.models import Job, new_job_id
from core.errors import InternalError, InvalidInput, ServiceError
from core.lifecycle import JobStatus
from core.queue import WorkQueue
from core.store import JobStore

logger = logging.getLogger(__name__)


def submit_job(url: Optional[str], store: JobStore, queue: WorkQueue) -> str:
    """
    Create a pending job for ``url`` and enqueue it. Returns the new job id.

    The record is written before the message is sent so a worker can always
    find the job it dequeues. If the send fails the job stays ``pending``;
    nothing tries to recover it.
    """
    if not isinstance(url, str) or not url.strip():
        raise InvalidInput("URL is required")
    url = url.strip()

    job = Job(job_id=new_job_id(), url=url, status=JobStatus.PENDING.value)
    store.put(job)

    try:
        queue.send(job.job_id, url)
    except ServiceError:
        logger.error("Job %s stored but not enqueued; it will stay pending", job.job_id)
        raise
    except Exception as e:
        logger.error("Job %s stored but not enqueued; it will stay pending", job.job_id)
        raise InternalError(f"Failed to enqueue job {job.job_id}: {e}") from e

    logger.info("Created job %s for %s", job.job_id, url)
    return job.job_id
