"""
Client-side controller: submit a job for the current page, poll until it is
terminal, cache the summary and render it.

State is scoped to one page. Navigating to a different page cancels any poll
still running for the old one and drops its cached summary.

Polling runs at a fixed interval with no limit by default. ``max_polls`` and
``backoff`` can bound it; both are off unless the caller sets them.
"""

import logging
import sys
import threading
from dataclasses import dataclass, field
from typing import Callable, Optional
from config import settings
from client.api import ClientError, JobsClient

logger = logging.getLogger(__name__)

ERROR_MESSAGE = "Error processing video"
LOADING_MESSAGE = "Summarizing..."


class ConsoleSummaryView:
    """Renders into a text stream and tracks whether the summary is showing."""

    def __init__(self, write: Optional[Callable[[str], None]] = None):
        self.write = write or (lambda text: print(text, file=sys.stdout, flush=True))
        self.visible = False
        self.content: Optional[str] = None

    def show_loading(self):
        self.write(LOADING_MESSAGE)

    def show_summary(self, summary: str):
        self.content = summary
        self.visible = True
        self.write(summary)

    def show_error(self, message: str = ERROR_MESSAGE):
        self.content = message
        self.visible = True
        self.write(message)

    def hide(self):
        self.visible = False


@dataclass
class PageState:
    page_url: str
    summary: Optional[str] = None
    job_id: Optional[str] = None
    cancel: threading.Event = field(default_factory=threading.Event)
    thread: Optional[threading.Thread] = None


class SummaryPoller:
    def __init__(self, client: Optional[JobsClient] = None, view=None,
                 interval: Optional[float] = None, max_polls: Optional[int] = None,
                 backoff: float = 1.0, max_interval: float = 30.0):
        self.client = client or JobsClient()
        self.view = view or ConsoleSummaryView()
        self.interval = settings.poll_interval_seconds if interval is None else interval
        self.max_polls = max_polls
        self.backoff = backoff
        self.max_interval = max_interval
        self.page: Optional[PageState] = None

    # ── Page lifecycle ────────────────────────────────────────────────

    def navigate(self, page_url: str) -> PageState:
        """Switch to a new page: cancel the old poll and drop its cache."""
        if self.page is not None:
            self.page.cancel.set()
        self.view.hide()
        self.page = PageState(page_url=page_url)
        return self.page

    def is_polling(self) -> bool:
        """True while a poll for the current page is running."""
        page = self.page
        return page is not None and page.thread is not None and page.thread.is_alive()

    # ── User action ───────────────────────────────────────────────────

    def on_user_action(self, page_url: str, background: bool = True) -> Optional[dict]:
        """
        Handle a click on the summarize button.

        Hides the summary if it is showing, shows the cached one if there is
        one, otherwise submits a job and polls. With ``background=False`` the
        poll runs inline and the terminal job record is returned.
        """
        if self.page is None or self.page.page_url != page_url:
            self.navigate(page_url)
        page = self.page

        if self.view.visible:
            self.view.hide()
            return None

        if page.summary:
            self.view.show_summary(page.summary)
            return None

        if self.is_polling():
            logger.info("Summary for %s already in progress", page_url)
            return None

        try:
            page.job_id = self.client.submit(page_url)
        except ClientError as e:
            logger.error("Failed to submit %s: %s", page_url, e)
            self.view.show_error()
            return None

        logger.info("Submitted job %s for %s", page.job_id, page_url)
        self.view.show_loading()

        if not background:
            return self._run(page)

        page.thread = threading.Thread(target=self._run, args=(page,), daemon=True)
        page.thread.start()
        return None

    def _run(self, page: PageState) -> Optional[dict]:
        record = self.poll(page.job_id, page.cancel)
        if record is None or page.cancel.is_set() or page is not self.page:
            return record

        if record.get("status") == "completed":
            page.summary = record.get("summary") or ""
            self.view.show_summary(page.summary)
        else:
            self.view.show_error()
        return record

    # ── Polling ───────────────────────────────────────────────────────

    def poll(self, job_id: str, cancel: Optional[threading.Event] = None) -> Optional[dict]:
        """
        Poll until the job is terminal. Returns the terminal record, or None
        if cancelled or ``max_polls`` ran out.
        """
        cancel = cancel or threading.Event()
        interval = self.interval
        polls = 0

        while not cancel.is_set():
            if self.max_polls is not None and polls >= self.max_polls:
                logger.warning("Gave up on job %s after %d polls", job_id, polls)
                return None
            if cancel.wait(interval):
                break
            polls += 1

            try:
                record = self.client.get(job_id)
            except ClientError as e:
                logger.warning("Status check for job %s failed: %s", job_id, e)
                continue

            status = record.get("status")
            logger.debug("Job %s status: %s", job_id, status)
            if status in ("completed", "error"):
                return record
            interval = min(interval * self.backoff, max(self.max_interval, self.interval))

        logger.info("Polling for job %s cancelled", job_id)
        return None
