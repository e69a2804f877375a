import threading
from unittest.mock import MagicMock

import pytest

from client.api import ClientError, JobsClient
from client.poller import ERROR_MESSAGE, LOADING_MESSAGE, ConsoleSummaryView, SummaryPoller

PAGE = "https://www.tiktok.com/@someone/video/123"


class ScriptedClient:
    """Returns the given statuses in order, repeating the last one."""

    def __init__(self, statuses, summary="Short summary", submit_error=None):
        self.statuses = list(statuses)
        self.summary = summary
        self.submit_error = submit_error
        self.submitted = []
        self.gets = 0

    def submit(self, url):
        if self.submit_error:
            raise self.submit_error
        self.submitted.append(url)
        return f"job-{len(self.submitted)}"

    def get(self, job_id):
        self.gets += 1
        status = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        if isinstance(status, Exception):
            raise status
        record = {"jobId": job_id, "status": status, "summary": None}
        if status == "completed":
            record["summary"] = self.summary
        return record


@pytest.fixture
def output():
    return []


@pytest.fixture
def view(output):
    return ConsoleSummaryView(write=output.append)


def test_polls_until_completed_then_renders(view, output):
    client = ScriptedClient(["pending", "processing", "completed"])
    poller = SummaryPoller(client, view, interval=0)

    record = poller.on_user_action(PAGE, background=False)

    assert record["status"] == "completed"
    assert client.gets == 3
    assert output == [LOADING_MESSAGE, "Short summary"]
    assert view.visible
    assert poller.page.summary == "Short summary"


def test_error_status_renders_generic_message(view, output):
    client = ScriptedClient(["processing", "error"])
    poller = SummaryPoller(client, view, interval=0)

    record = poller.on_user_action(PAGE, background=False)

    assert record["status"] == "error"
    assert output[-1] == ERROR_MESSAGE
    assert poller.page.summary is None


def test_second_click_hides_and_third_uses_cache(view, output):
    client = ScriptedClient(["completed"])
    poller = SummaryPoller(client, view, interval=0)

    poller.on_user_action(PAGE, background=False)
    poller.on_user_action(PAGE, background=False)
    assert not view.visible

    poller.on_user_action(PAGE, background=False)

    assert view.visible
    assert client.submitted == [PAGE]
    assert output == [LOADING_MESSAGE, "Short summary", "Short summary"]


def test_navigation_drops_cached_summary(view):
    client = ScriptedClient(["completed"])
    poller = SummaryPoller(client, view, interval=0)
    other_page = "https://www.tiktok.com/@someone/video/456"

    poller.on_user_action(PAGE, background=False)
    poller.on_user_action(other_page, background=False)

    assert client.submitted == [PAGE, other_page]
    assert poller.page.page_url == other_page


def test_transient_errors_keep_polling(view):
    client = ScriptedClient([ClientError("HTTP 500", 500), "pending", "completed"])
    poller = SummaryPoller(client, view, interval=0)

    record = poller.on_user_action(PAGE, background=False)

    assert record["status"] == "completed"
    assert client.gets == 3


def test_submit_failure_shows_error(view, output):
    client = ScriptedClient(["completed"], submit_error=ClientError("URL is required", 400))
    poller = SummaryPoller(client, view, interval=0)

    assert poller.on_user_action(PAGE, background=False) is None
    assert output == [ERROR_MESSAGE]


def test_cancelled_poll_makes_no_requests(view):
    client = ScriptedClient(["pending"])
    poller = SummaryPoller(client, view, interval=0)
    cancel = threading.Event()
    cancel.set()

    assert poller.poll("job-1", cancel) is None
    assert client.gets == 0


def test_max_polls_bounds_the_loop(view):
    client = ScriptedClient(["pending"])
    poller = SummaryPoller(client, view, interval=0, max_polls=3)

    assert poller.poll("job-1") is None
    assert client.gets == 3


def test_polls_indefinitely_by_default(view):
    client = ScriptedClient(["pending"] * 50 + ["completed"])
    poller = SummaryPoller(client, view, interval=0)

    assert poller.poll("job-1")["status"] == "completed"
    assert client.gets == 51


def test_background_poll_and_single_loop_per_page(view, output):
    release = threading.Event()

    class SlowClient(ScriptedClient):
        def get(self, job_id):
            release.wait(5)
            return super().get(job_id)

    client = SlowClient(["completed"])
    poller = SummaryPoller(client, view, interval=0)

    poller.on_user_action(PAGE)
    assert poller.is_polling()
    poller.on_user_action(PAGE)  # ignored while the first loop runs
    release.set()
    poller.page.thread.join(timeout=5)

    assert client.submitted == [PAGE]
    assert output[-1] == "Short summary"


def test_navigation_cancels_running_poll(view, output):
    client = ScriptedClient(["pending"])
    poller = SummaryPoller(client, view, interval=0.01)

    poller.on_user_action(PAGE)
    first_page = poller.page
    poller.navigate("https://www.tiktok.com/@someone/video/789")
    first_page.thread.join(timeout=5)

    assert first_page.cancel.is_set()
    assert not poller.is_polling()
    assert output == [LOADING_MESSAGE]


def test_new_page_submits_while_old_poll_is_still_running(view, output):
    release = threading.Event()

    class SlowClient(ScriptedClient):
        def get(self, job_id):
            release.wait(5)
            return super().get(job_id)

    client = SlowClient(["completed"])
    poller = SummaryPoller(client, view, interval=0)
    other_page = "https://www.tiktok.com/@someone/video/456"

    poller.on_user_action(PAGE)
    first_page = poller.page
    poller.on_user_action(other_page)
    second_page = poller.page
    release.set()
    first_page.thread.join(timeout=5)
    second_page.thread.join(timeout=5)

    assert client.submitted == [PAGE, other_page]
    assert first_page.cancel.is_set()
    assert first_page.summary is None
    assert second_page.summary == "Short summary"
    assert output == [LOADING_MESSAGE, LOADING_MESSAGE, "Short summary"]


class TestJobsClient:
    def _session(self, status_code, payload):
        session = MagicMock()
        resp = MagicMock(status_code=status_code)
        resp.json.return_value = payload
        session.request.return_value = resp
        return session

    def test_submit(self):
        session = self._session(201, {"jobId": "abc"})

        job_id = JobsClient("http://api.test/", session=session).submit(PAGE)

        assert job_id == "abc"
        session.request.assert_called_once_with(
            "POST", "http://api.test/jobs", timeout=10.0, json={"url": PAGE}
        )

    def test_get_not_found(self):
        session = self._session(404, {"error": "Job not found"})

        with pytest.raises(ClientError) as exc:
            JobsClient("http://api.test", session=session).get("nope")

        assert exc.value.status_code == 404
        assert str(exc.value) == "Job not found"

    def test_connection_error(self):
        import requests
        session = MagicMock()
        session.request.side_effect = requests.ConnectionError("refused")

        with pytest.raises(ClientError):
            JobsClient("http://api.test", session=session).get("abc")


def test_cli_exit_code(monkeypatch):
    import main

    client = ScriptedClient(["completed"])
    monkeypatch.setattr(main, "JobsClient", lambda api_url: client)

    assert main.summarize_url(PAGE, "http://api.test", interval=0) == 0
    assert client.submitted == [PAGE]
