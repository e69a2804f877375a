import logging
from celery import Celery
from celery.signals import setup_logging
from config import settings

celery_app = Celery(
    "video_summary",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["workers.tasks"]
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=900,
    # At-least-once: ack after the task body runs, redeliver if the worker dies
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_ignore_result=True,
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=50
)

@setup_logging.connect
def configure_logging(**kwargs):
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
