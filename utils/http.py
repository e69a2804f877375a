import logging
import random
import time
import requests
from config import settings

logger = logging.getLogger(__name__)

_RATE_LIMIT_BASE_DELAY = 2.0  # seconds, doubles each retry with jitter

def post_with_retry(url: str, max_retries: int | None = None, timeout: float | None = None,
                    **kwargs) -> requests.Response:
    """
    POST with exponential backoff on 429 responses.

    Any other status is returned as-is; connection errors propagate so the
    caller can map them to its own error type.
    """
    retries = settings.http_max_retries if max_retries is None else max_retries
    timeout = settings.http_timeout if timeout is None else timeout

    for attempt in range(retries + 1):
        resp = requests.post(url, timeout=timeout, **kwargs)
        if resp.status_code != 429 or attempt >= retries:
            return resp

        retry_after = resp.headers.get("Retry-After")
        if retry_after and retry_after.isdigit():
            delay = float(retry_after)
        else:
            delay = _RATE_LIMIT_BASE_DELAY * (2 ** attempt) + random.uniform(0, 1)
        logger.warning("Rate limited by %s, retrying in %.1fs (attempt %d/%d)",
                       url, delay, attempt + 1, retries)
        time.sleep(delay)

    return resp
