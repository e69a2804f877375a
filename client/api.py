import logging
from typing import Optional
import requests
from config import settings

logger = logging.getLogger(__name__)


class ClientError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class JobsClient:
    """HTTP client for the jobs API."""

    def __init__(self, base_url: Optional[str] = None, session: Optional[requests.Session] = None,
                 timeout: float = 10.0):
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def submit(self, url: str) -> str:
        resp = self._request("POST", "/jobs", json={"url": url})
        return resp["jobId"]

    def get(self, job_id: str) -> dict:
        return self._request("GET", f"/jobs/{job_id}")

    def _request(self, method: str, path: str, **kwargs) -> dict:
        try:
            resp = self.session.request(method, f"{self.base_url}{path}",
                                        timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise ClientError(f"{method} {path} failed: {e}") from e

        try:
            data = resp.json()
        except ValueError:
            data = {}
        if resp.status_code >= 400:
            message = data.get("error") if isinstance(data, dict) else None
            raise ClientError(message or f"HTTP {resp.status_code}", resp.status_code)
        return data
