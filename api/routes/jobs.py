import logging
from fastapi import APIRouter, Depends
from api.deps import get_queue, get_store
from api.schemas import CreateJobRequest, CreateJobResponse, ErrorResponse, JobRecord
from core.errors import InternalError, ServiceError
from core.queue import WorkQueue
from core.status import get_job_status
from core.store import JobStore
from core.submission import submit_job

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post(
    "",
    status_code=201,
    response_model=CreateJobResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def create_job(
    request: CreateJobRequest,
    store: JobStore = Depends(get_store),
    queue: WorkQueue = Depends(get_queue),
):
    try:
        job_id = submit_job(request.url, store, queue)
    except ServiceError:
        raise
    except Exception as e:
        logger.error("Error creating job: %s", e, exc_info=True)
        raise InternalError(str(e)) from e
    return CreateJobResponse(job_id=job_id)

@router.get(
    "/{job_id}",
    response_model=JobRecord,
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def get_job(job_id: str, store: JobStore = Depends(get_store)):
    try:
        record = get_job_status(job_id, store)
    except ServiceError:
        raise
    except Exception as e:
        logger.error("Error reading job %s: %s", job_id, e, exc_info=True)
        raise InternalError(str(e)) from e
    return JobRecord.model_validate(record)
