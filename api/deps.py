import logging
from functools import lru_cache
from fastapi import Depends
from sqlalchemy.orm import Session
from db.session import get_db
from core.errors import InternalError
from core.queue import WorkQueue, get_work_queue
from core.store import JobStore

logger = logging.getLogger(__name__)

def get_store(db: Session = Depends(get_db)) -> JobStore:
    return JobStore(db)

@lru_cache(maxsize=1)
def _work_queue() -> WorkQueue:
    return get_work_queue()

def get_queue() -> WorkQueue:
    try:
        return _work_queue()
    except Exception as e:
        logger.error("Work queue unavailable: %s", e, exc_info=True)
        raise InternalError(f"Work queue unavailable: {e}") from e
