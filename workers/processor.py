"""
Job worker: drives one queued job through processing to completed or error.

Messages arrive at least once, so ``handle_message`` has to be safe to run
twice for the same job. Jobs that already reached a terminal state are
skipped, everything else is (re)processed and its results overwritten.

Nothing raised while handling a message escapes ``handle_message``; a bad
message is logged and the rest of the batch carries on.
"""

import json
import logging
from typing import Callable, Iterable, List, Optional
from sqlalchemy.orm import Session
from db.session import SessionLocal, session_scope
from core.errors import InvalidTransition, NotFound, ServiceError, UpstreamFailure
from core.lifecycle import JobStatus
from core.media import job_workspace
from core.store import JobStore
from core.summarizer import Summarizer
from core.transcription import TranscriptionProvider, get_transcription_provider

logger = logging.getLogger(__name__)

# handle_message outcomes
COMPLETED = JobStatus.COMPLETED.value
ERROR = JobStatus.ERROR.value
SKIPPED = "skipped"
INVALID = "invalid"


class MalformedMessage(ValueError):
    def __init__(self, message: str, job_id: Optional[str] = None):
        super().__init__(message)
        self.job_id = job_id


def parse_message(body) -> tuple[str, str]:
    """Return ``(job_id, url)`` from a queue message body."""
    try:
        data = json.loads(body) if isinstance(body, (str, bytes)) else body
    except ValueError as e:
        raise MalformedMessage(f"Message body is not JSON: {e}") from e
    if not isinstance(data, dict):
        raise MalformedMessage("Message body is not an object")

    job_id = data.get("jobId")
    if not isinstance(job_id, str) or not job_id:
        raise MalformedMessage("Message has no jobId")
    url = data.get("url")
    if not isinstance(url, str) or not url.strip():
        raise MalformedMessage(f"Message for job {job_id} has no url", job_id=job_id)
    return job_id, url.strip()


class JobWorker:
    def __init__(self, session_factory: Callable[[], Session] = SessionLocal,
                 transcriber: Optional[TranscriptionProvider] = None,
                 summarizer: Optional[Summarizer] = None,
                 workspace_root: Optional[str] = None):
        self.session_factory = session_factory
        self.transcriber = transcriber or get_transcription_provider()
        self.summarizer = summarizer or Summarizer()
        self.workspace_root = workspace_root

    # ── Batch entry points ────────────────────────────────────────────

    def handle_batch(self, bodies: Iterable) -> List[str]:
        """Handle every message independently. Returns one outcome per message."""
        return [self.handle_message(body) for body in bodies]

    def handle_message(self, body) -> str:
        try:
            job_id, url = parse_message(body)
        except MalformedMessage as e:
            logger.error("Dropping malformed message: %s", e)
            if e.job_id:
                try:
                    with session_scope(self.session_factory) as db:
                        self._mark_error(JobStore(db), e.job_id)
                except Exception as db_error:
                    logger.error("Error updating error status for job %s: %s",
                                 e.job_id, db_error)
            return INVALID

        try:
            with session_scope(self.session_factory) as db:
                return self.process(JobStore(db), job_id, url)
        except Exception as e:
            # Store unreachable or similar; leave it to redelivery
            logger.error("Failed to handle job %s: %s", job_id, e, exc_info=True)
            return ERROR

    # ── Per-job state machine ─────────────────────────────────────────

    def process(self, store: JobStore, job_id: str, url: str) -> str:
        try:
            job = store.get(job_id)
        except NotFound:
            logger.warning("Job %s not found, dropping message", job_id)
            return SKIPPED

        if JobStatus(job.status).is_terminal:
            logger.info("Job %s already %s, skipping redelivered message", job_id, job.status)
            return SKIPPED

        logger.info("Starting job %s for URL: %s", job_id, url)
        try:
            store.update_status(job_id, JobStatus.PROCESSING)
        except Exception as e:
            logger.warning("Could not mark job %s processing: %s", job_id, e)

        try:
            with job_workspace(job_id, self.workspace_root) as workspace:
                transcript = self.transcriber.transcribe(url, workspace)
                logger.info("Transcript received for job %s, length: %d",
                            job_id, len(transcript.text))
                summary = self.summarizer.summarize(transcript.text)
        except UpstreamFailure as e:
            logger.error("Job %s failed: %s", job_id, e)
            return self._mark_error(store, job_id)
        except Exception as e:
            logger.error("Unexpected error processing job %s: %s", job_id, e, exc_info=True)
            return self._mark_error(store, job_id)

        try:
            store.update_status(job_id, JobStatus.COMPLETED,
                                transcript=transcript.to_dict(), summary=summary)
        except InvalidTransition as e:
            logger.info("Job %s finished by another delivery, discarding results: %s", job_id, e)
            return SKIPPED
        except ServiceError as e:
            logger.error("Could not store results for job %s: %s", job_id, e)
            return self._mark_error(store, job_id)

        logger.info("Successfully completed job %s", job_id)
        return COMPLETED

    def _mark_error(self, store: JobStore, job_id: str) -> str:
        try:
            store.update_status(job_id, JobStatus.ERROR)
        except InvalidTransition as e:
            logger.info("Job %s already finished, not marking error: %s", job_id, e)
            return SKIPPED
        except Exception as e:
            logger.error("Error updating error status for job %s: %s", job_id, e)
        return ERROR
