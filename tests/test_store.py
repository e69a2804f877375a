import time
from datetime import datetime

import pytest

from core.errors import ConflictError, InvalidTransition, NotFound
from core.lifecycle import JobStatus, can_transition
from core.store import JobStore
from db.models import Job


def _new_job(job_id="job-1", url="https://example.com/video/123"):
    return Job(job_id=job_id, url=url, status=JobStatus.PENDING.value)


class TestLifecycle:
    def test_forward_transitions_allowed(self):
        assert can_transition("pending", "processing")
        assert can_transition("processing", "completed")
        assert can_transition("processing", "error")
        assert can_transition("pending", "error")

    def test_redelivery_reenters_processing(self):
        assert can_transition("processing", "processing")

    @pytest.mark.parametrize("terminal", ["completed", "error"])
    @pytest.mark.parametrize("target", ["pending", "processing", "completed", "error"])
    def test_nothing_leaves_terminal_state(self, terminal, target):
        assert not can_transition(terminal, target)

    def test_no_transition_back_to_pending(self):
        assert not can_transition("processing", "pending")

    def test_terminal_flag(self):
        assert JobStatus.COMPLETED.is_terminal
        assert JobStatus.ERROR.is_terminal
        assert not JobStatus.PROCESSING.is_terminal


class TestJobStore:
    def test_put_then_get(self, store):
        store.put(_new_job())
        job = store.get("job-1")
        assert job.url == "https://example.com/video/123"
        assert job.status == "pending"
        assert job.transcript is None
        assert job.summary is None
        assert job.created_at is not None
        assert job.updated_at == job.created_at

    def test_put_duplicate_id_conflicts(self, store):
        store.put(_new_job())
        with pytest.raises(ConflictError):
            store.put(_new_job(url="https://example.com/video/other"))
        assert store.get("job-1").url == "https://example.com/video/123"

    def test_get_unknown_raises_not_found(self, store):
        with pytest.raises(NotFound):
            store.get("missing")

    def test_update_unknown_raises_not_found(self, store):
        with pytest.raises(NotFound):
            store.update_status("missing", JobStatus.PROCESSING)

    def test_update_refreshes_updated_at_only(self, store):
        created_at = store.put(_new_job()).to_dict()["createdAt"]
        time.sleep(0.01)

        updated = store.update_status("job-1", JobStatus.PROCESSING)
        record = updated.to_dict()

        assert updated.status == "processing"
        assert record["createdAt"] == created_at
        assert datetime.fromisoformat(record["updatedAt"]) > datetime.fromisoformat(created_at)
        assert updated.url == "https://example.com/video/123"

    def test_partial_update_keeps_existing_results(self, store):
        store.put(_new_job())
        transcript = {"text": "hello", "language": "en"}
        store.update_status("job-1", JobStatus.PROCESSING, transcript=transcript)

        job = store.update_status("job-1", JobStatus.COMPLETED, summary="short summary")

        assert job.transcript == transcript
        assert job.summary == "short summary"

    def test_update_out_of_terminal_state_rejected(self, store):
        store.put(_new_job())
        store.update_status("job-1", JobStatus.COMPLETED, summary="done")

        with pytest.raises(InvalidTransition):
            store.update_status("job-1", JobStatus.PROCESSING)
        with pytest.raises(InvalidTransition):
            store.update_status("job-1", JobStatus.ERROR)
        assert store.get("job-1").status == "completed"
        assert store.get("job-1").summary == "done"

    def test_sees_terminal_write_from_another_session(self, store, session_factory):
        store.put(_new_job())
        assert store.get("job-1").status == "pending"

        other_db = session_factory()
        try:
            JobStore(other_db).update_status("job-1", JobStatus.COMPLETED, summary="done")
        finally:
            other_db.close()

        assert store.get("job-1").status == "completed"
        with pytest.raises(InvalidTransition):
            store.update_status("job-1", JobStatus.ERROR)

    def test_to_dict_uses_client_field_names(self, store):
        store.put(_new_job())
        record = store.get("job-1").to_dict()

        assert set(record) == {
            "jobId", "url", "status", "transcript", "summary", "createdAt", "updatedAt",
        }
        assert record["createdAt"].endswith("+00:00")
