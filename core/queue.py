"""
Work queue: at-least-once channel carrying ``{"jobId", "url"}`` messages from
submission to the worker pool.

Two backends, picked by ``settings.queue_backend``:

* ``celery`` - Redis-brokered Celery task, acknowledged late so a worker that
  dies mid-job gets the message redelivered.
* ``sqs``    - Amazon SQS via boto3, received in batches of up to ten.

Neither backend orders messages relative to each other.
"""

import json
import logging
from typing import Any, Dict, List, Optional
from config import settings
from core.errors import InternalError

logger = logging.getLogger(__name__)

PROCESS_JOB_TASK = "workers.tasks.process_job"


def encode_message(job_id: str, url: str) -> str:
    return json.dumps({"jobId": job_id, "url": url})


class WorkQueue:
    def send(self, job_id: str, url: str) -> None:
        raise NotImplementedError


class CeleryWorkQueue(WorkQueue):
    def __init__(self, app=None):
        if app is None:
            from workers.celery_app import celery_app as app
        self.app = app

    def send(self, job_id: str, url: str) -> None:
        try:
            self.app.send_task(PROCESS_JOB_TASK, args=[encode_message(job_id, url)])
        except Exception as e:
            raise InternalError(f"Failed to enqueue job {job_id}: {e}") from e


class SqsWorkQueue(WorkQueue):
    def __init__(self, queue_url: Optional[str] = None, client=None):
        self.queue_url = queue_url or settings.sqs_queue_url
        if not self.queue_url:
            raise ValueError("SQS_QUEUE_URL must be set when QUEUE_BACKEND=sqs")
        if client is None:
            import boto3
            client = boto3.client("sqs", region_name=settings.aws_region)
        self.client = client

    def send(self, job_id: str, url: str) -> None:
        try:
            self.client.send_message(
                QueueUrl=self.queue_url,
                MessageBody=encode_message(job_id, url),
            )
        except Exception as e:
            raise InternalError(f"Failed to enqueue job {job_id}: {e}") from e

    def receive(self, max_messages: int = 10, wait_seconds: int = 20) -> List[Dict[str, Any]]:
        """Long-poll for a batch. Returns raw SQS messages (Body, ReceiptHandle)."""
        response = self.client.receive_message(
            QueueUrl=self.queue_url,
            MaxNumberOfMessages=max_messages,
            WaitTimeSeconds=wait_seconds,
        )
        return response.get("Messages", [])

    def delete(self, message: Dict[str, Any]) -> None:
        self.client.delete_message(
            QueueUrl=self.queue_url,
            ReceiptHandle=message["ReceiptHandle"],
        )


def get_work_queue() -> WorkQueue:
    backend = settings.queue_backend.lower()
    if backend == "celery":
        return CeleryWorkQueue()
    if backend == "sqs":
        return SqsWorkQueue()
    raise ValueError(f"Unknown queue backend: {settings.queue_backend}")
