"""
Media resolution, download and audio extraction.

Everything written here lives inside a per-job workspace directory that is
removed when the ``job_workspace`` context exits, whichever way it exits.
"""

import logging
import shutil
import subprocess
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional
import requests
from config import settings
from core.errors import ResolutionError

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 1024 * 1024
_LINK_KEYS = ("play", "hdplay", "url", "downloadUrl", "download_url", "video_url")


@contextmanager
def job_workspace(job_id: str, root: Optional[str] = None) -> Iterator[Path]:
    """Temporary directory owned by one worker invocation for one job."""
    base = root or settings.temp_dir
    if base:
        Path(base).mkdir(parents=True, exist_ok=True)
    workspace = Path(tempfile.mkdtemp(prefix=f"job_{job_id}_", dir=base))
    try:
        yield workspace
    finally:
        shutil.rmtree(workspace, ignore_errors=True)
        logger.debug("Removed workspace %s", workspace)


def _find_media_link(payload) -> Optional[str]:
    if not isinstance(payload, dict):
        return None
    for key in _LINK_KEYS:
        value = payload.get(key)
        if isinstance(value, str) and value.startswith("http"):
            return value
    # Download APIs commonly wrap the result in a "data" object
    return _find_media_link(payload.get("data"))


class MediaResolver:
    """Turns a page URL into a playable media file on local disk."""

    def __init__(self, api_url: Optional[str] = None, api_key: Optional[str] = None,
                 api_host: Optional[str] = None, timeout: Optional[float] = None):
        self.api_url = api_url or settings.media_resolver_url
        self.api_key = api_key or settings.media_resolver_key
        self.api_host = api_host or settings.media_resolver_host
        self.timeout = timeout or settings.http_timeout

    def _headers(self) -> dict:
        headers = {}
        if self.api_key:
            headers["X-RapidAPI-Key"] = self.api_key
        if self.api_host:
            headers["X-RapidAPI-Host"] = self.api_host
        return headers

    def resolve(self, url: str) -> str:
        """Ask the download API for a direct media link."""
        if not self.api_url:
            raise ResolutionError("MEDIA_RESOLVER_URL is not configured")
        try:
            resp = requests.get(self.api_url, params={"url": url, "hd": "1"},
                                headers=self._headers(), timeout=self.timeout)
            resp.raise_for_status()
            payload = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise ResolutionError(f"Media lookup failed for {url}: {e}") from e

        link = _find_media_link(payload)
        if not link:
            raise ResolutionError(f"No playable media found for {url}")
        return link

    def download(self, url: str, workspace: Path) -> Path:
        """Resolve ``url`` and stream the media into ``workspace``."""
        media_url = self.resolve(url)
        target = workspace / "video.mp4"
        try:
            with requests.get(media_url, stream=True, timeout=self.timeout) as resp:
                resp.raise_for_status()
                with open(target, "wb") as f:
                    for chunk in resp.iter_content(chunk_size=_CHUNK_SIZE):
                        if chunk:
                            f.write(chunk)
        except requests.RequestException as e:
            raise ResolutionError(f"Media download failed for {url}: {e}") from e

        if not target.exists() or target.stat().st_size == 0:
            raise ResolutionError(f"Downloaded media for {url} is empty")
        logger.info("Downloaded %d bytes of media for %s", target.stat().st_size, url)
        return target


def extract_audio(video_path: Path, ffmpeg_binary: Optional[str] = None) -> Path:
    """Extract a mono mp3 track next to ``video_path``."""
    audio_path = video_path.with_suffix(".mp3")
    try:
        subprocess.run(
            [ffmpeg_binary or settings.ffmpeg_binary, "-y", "-i", str(video_path),
             "-vn", "-ac", "1", "-ar", "16000", "-codec:a", "libmp3lame",
             "-b:a", "64k", str(audio_path)],
            check=True, capture_output=True
        )
    except (subprocess.CalledProcessError, FileNotFoundError) as e:
        raise ResolutionError(f"Audio extraction failed: {e}") from e
    return audio_path
