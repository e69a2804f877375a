import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from api.deps import get_queue, get_store
from api.main import app
from core.errors import SummarizationError
from core.queue import WorkQueue, encode_message
from core.store import JobStore
from core.transcription import Transcript, TranscriptionProvider
from db.session import Base
import db.models  # noqa: F401


class RecordingQueue(WorkQueue):
    """Keeps sent messages in memory. ``on_send`` runs before recording."""

    def __init__(self, on_send=None, error=None):
        self.messages = []
        self.on_send = on_send
        self.error = error

    def send(self, job_id, url):
        if self.on_send:
            self.on_send(job_id, url)
        if self.error:
            raise self.error
        self.messages.append(encode_message(job_id, url))


class FakeTranscriber(TranscriptionProvider):
    name = "fake"

    def __init__(self, transcript=None, error=None):
        self.transcript = transcript or Transcript(
            text="Today we talk about prompt frameworks.", language="en", title="Prompting 101"
        )
        self.error = error
        self.calls = []
        self.workspaces = []

    def transcribe(self, url, workspace):
        self.calls.append(url)
        self.workspaces.append(workspace)
        # Simulate downloaded media living in the workspace
        (workspace / "video.mp4").write_bytes(b"\x00" * 16)
        (workspace / "video.mp3").write_bytes(b"\x00" * 8)
        if self.error:
            raise self.error
        return self.transcript


class FakeSummarizer:
    def __init__(self, summary="Prompts work better with structure.\n- Role\n- Steps\n- Examples",
                 error=None):
        self.summary = summary
        self.error = error
        self.calls = []

    def summarize(self, text):
        self.calls.append(text)
        if self.error:
            raise self.error
        return self.summary


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)
    yield factory
    engine.dispose()


@pytest.fixture
def store(session_factory):
    db = session_factory()
    yield JobStore(db)
    db.close()


@pytest.fixture
def queue():
    return RecordingQueue()


@pytest.fixture
def client(session_factory, queue):
    def override_store():
        db = session_factory()
        try:
            yield JobStore(db)
        finally:
            db.close()

    app.dependency_overrides[get_store] = override_store
    app.dependency_overrides[get_queue] = lambda: queue
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


@pytest.fixture
def transcriber():
    return FakeTranscriber()


@pytest.fixture
def summarizer():
    return FakeSummarizer()


@pytest.fixture
def failing_summarizer():
    return FakeSummarizer(error=SummarizationError("upstream 503"))
