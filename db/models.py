from datetime import datetime, timezone
from sqlalchemy import Column, String, DateTime, Text, JSON
from db.session import Base
from core.lifecycle import JobStatus
import uuid

def utc_now() -> datetime:
    return datetime.now(timezone.utc)

def new_job_id() -> str:
    return str(uuid.uuid4())

class Job(Base):
    __tablename__ = "jobs"

    job_id = Column(String(36), primary_key=True, default=new_job_id)
    url = Column(Text, nullable=False)
    status = Column(String(16), nullable=False, default=JobStatus.PENDING.value)
    transcript = Column(JSON, nullable=True)  # {text, language, title?}
    summary = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    def to_dict(self) -> dict:
        return {
            "jobId": self.job_id,
            "url": self.url,
            "status": self.status,
            "transcript": self.transcript,
            "summary": self.summary,
            "createdAt": _isoformat(self.created_at),
            "updatedAt": _isoformat(self.updated_at),
        }

    def __repr__(self):
        return f"<Job {self.job_id} - {self.status}>"

def _isoformat(value):
    if value is None:
        return None
    # SQLite drops tzinfo on the way back out
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()
