from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

class CreateJobRequest(BaseModel):
    # Optional so a missing url reaches the submission check and becomes a 400
    url: Optional[str] = None

class CreateJobResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    job_id: str = Field(alias="jobId")

class TranscriptOut(BaseModel):
    text: str
    language: str
    title: Optional[str] = None

class JobRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    job_id: str = Field(alias="jobId")
    url: str
    status: str
    transcript: Optional[TranscriptOut] = None
    summary: Optional[str] = None
    created_at: str = Field(alias="createdAt")
    updated_at: str = Field(alias="updatedAt")

class ErrorResponse(BaseModel):
    error: str

class HealthResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: str
    queue_backend: str = Field(alias="queueBackend")
    transcription_provider: str = Field(alias="transcriptionProvider")
