from workers.celery_app import celery_app
from workers.processor import JobWorker

_worker = None

def get_worker() -> JobWorker:
    global _worker
    if _worker is None:
        _worker = JobWorker()
    return _worker

@celery_app.task(name="workers.tasks.process_job", acks_late=True, reject_on_worker_lost=True)
def process_job(body: str) -> str:
    """Celery entry point for one queue message. Never raises."""
    return get_worker().handle_message(body)
