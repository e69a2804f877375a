from core.store import JobStore


def get_job_status(job_id: str, store: JobStore) -> dict:
    """Full job record as the client sees it. Raises NotFound for unknown ids."""
    return store.get(job_id).to_dict()
