from fastapi import APIRouter
from api.schemas import HealthResponse
from config import settings

router = APIRouter()

@router.get("", response_model=HealthResponse)
async def health_check():
    return HealthResponse(
        status="healthy",
        queue_backend=settings.queue_backend,
        transcription_provider=settings.transcription_provider,
    )
