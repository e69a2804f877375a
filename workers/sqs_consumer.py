"""
SQS consumer loop.

Receives batches from the work queue, hands each batch to the JobWorker and
deletes every message the worker handled. If the process dies mid-batch the
undeleted messages become visible again and are redelivered.
"""

import logging
import threading
from typing import Optional
from config import settings
from core.queue import SqsWorkQueue
from workers.processor import JobWorker

logger = logging.getLogger(__name__)


class SqsConsumer:
    def __init__(self, queue: Optional[SqsWorkQueue] = None, worker: Optional[JobWorker] = None,
                 wait_seconds: int = 20):
        self.queue = queue or SqsWorkQueue()
        self.worker = worker or JobWorker()
        self.wait_seconds = wait_seconds
        self._stop_event = threading.Event()

    def stop(self):
        self._stop_event.set()

    def poll_once(self) -> int:
        """Receive and handle one batch. Returns the number of messages handled."""
        messages = self.queue.receive(wait_seconds=self.wait_seconds)
        if not messages:
            return 0

        logger.info("Received %d message(s)", len(messages))
        outcomes = self.worker.handle_batch(m.get("Body") for m in messages)
        for message, outcome in zip(messages, outcomes):
            logger.debug("Message %s -> %s", message.get("MessageId"), outcome)
            try:
                self.queue.delete(message)
            except Exception as e:
                logger.warning("Failed to delete message %s: %s", message.get("MessageId"), e)
        return len(messages)

    def run_forever(self):
        logger.info("Consuming from %s", self.queue.queue_url)
        while not self._stop_event.is_set():
            try:
                self.poll_once()
            except Exception as e:
                logger.error("Receive failed: %s", e, exc_info=True)
                self._stop_event.wait(5)


if __name__ == "__main__":
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    SqsConsumer().run_forever()
