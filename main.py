import argparse
import logging
import sys
from client.api import JobsClient
from client.poller import SummaryPoller
from config import settings

def summarize_url(url: str, api_url: str, interval: float, max_polls: int = None) -> int:
    poller = SummaryPoller(JobsClient(api_url), interval=interval, max_polls=max_polls)
    record = poller.on_user_action(url, background=False)
    if record is None or record.get("status") != "completed":
        return 1
    return 0

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Summarize a short-form video")
    parser.add_argument("url", help="Video page URL")
    parser.add_argument("--api-url", default=settings.api_base_url, help="Jobs API base URL")
    parser.add_argument("-i", "--interval", type=float, default=settings.poll_interval_seconds,
                        help="Seconds between status checks")
    parser.add_argument("--max-polls", type=int, default=None,
                        help="Stop after this many status checks (default: poll until done)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        stream=sys.stderr,
    )

    if not args.url.strip():
        print("Error: URL is required")
        sys.exit(1)

    sys.exit(summarize_url(args.url, args.api_url, args.interval, args.max_polls))
