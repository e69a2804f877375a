"""
Transcription providers.

One capability, several vendors. The worker only ever sees
``TranscriptionProvider.transcribe(url, workspace) -> Transcript``; which
vendor answers is chosen by ``settings.transcription_provider``.
"""

import logging
import re
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Optional
import requests
from config import settings
from core.errors import TranscriptionError
from core.media import MediaResolver, extract_audio
from utils.http import post_with_retry

logger = logging.getLogger(__name__)

_CUE_TIMING = re.compile(r"\d{2}:\d{2}:\d{2}\.\d{3} --> \d{2}:\d{2}:\d{2}\.\d{3}[^\n]*")
_LANGUAGE_CODES = {"eng": "en", "spa": "es", "fra": "fr", "deu": "de", "por": "pt", "ita": "it"}


@dataclass
class Transcript:
    text: str
    language: str
    title: Optional[str] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        if self.title is None:
            data.pop("title")
        return data


def clean_webvtt(vtt: str) -> str:
    """Strip the WEBVTT header, cue timings and blank lines."""
    text = vtt.replace("WEBVTT", "", 1)
    text = _CUE_TIMING.sub("", text)
    lines = [line.strip() for line in text.splitlines()]
    return "\n".join(line for line in lines if line)


def _language_code(tag: str) -> str:
    primary = tag.split("-")[0].lower()
    return _LANGUAGE_CODES.get(primary, primary)


class TranscriptionProvider:
    name = "base"

    def transcribe(self, url: str, workspace: Path) -> Transcript:
        raise NotImplementedError


class CaptionApiTranscriber(TranscriptionProvider):
    """Hosted caption API: takes the page URL, returns WEBVTT per language."""

    name = "captions"

    def __init__(self, api_url: Optional[str] = None, language: Optional[str] = None):
        self.api_url = api_url or settings.caption_api_url
        self.language = language or settings.caption_language

    def transcribe(self, url: str, workspace: Path) -> Transcript:
        logger.info("Fetching captions for %s", url)
        try:
            resp = post_with_retry(self.api_url, json={"url": url},
                                   headers={"Content-Type": "application/json"})
            resp.raise_for_status()
            payload = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise TranscriptionError(f"Caption API request failed: {e}") from e

        transcripts = payload.get("transcripts") if isinstance(payload, dict) else None
        if not transcripts or not isinstance(transcripts, dict):
            raise TranscriptionError(f"No transcript found for {url}")

        language = self.language if transcripts.get(self.language) else next(
            (lang for lang, vtt in transcripts.items() if vtt), None
        )
        if language is None:
            raise TranscriptionError(f"No transcript found for {url}")

        text = clean_webvtt(transcripts[language])
        if not text:
            raise TranscriptionError(f"Transcript for {url} is empty")

        return Transcript(
            text=text,
            language=_language_code(language),
            title=payload.get("videoTitle"),
        )


class WhisperTranscriber(TranscriptionProvider):
    """Downloads the media, extracts audio and sends it to a Whisper endpoint."""

    name = "whisper"

    def __init__(self, resolver: Optional[MediaResolver] = None,
                 api_key: Optional[str] = None, base_url: Optional[str] = None,
                 model: Optional[str] = None):
        self.resolver = resolver or MediaResolver()
        self.api_key = api_key or settings.openai_api_key
        self.base_url = (base_url or settings.openai_base_url).rstrip("/")
        self.model = model or settings.whisper_model

    def transcribe(self, url: str, workspace: Path) -> Transcript:
        if not self.api_key:
            raise TranscriptionError("OPENAI_API_KEY is not configured")

        video_path = self.resolver.download(url, workspace)
        audio_path = extract_audio(video_path)

        # post_with_retry may send the body more than once
        audio = audio_path.read_bytes()
        logger.info("Transcribing %s (%d bytes)", audio_path.name, len(audio))
        try:
            resp = post_with_retry(
                f"{self.base_url}/audio/transcriptions",
                headers={"Authorization": f"Bearer {self.api_key}"},
                data={"model": self.model, "response_format": "verbose_json"},
                files={"file": (audio_path.name, audio, "audio/mpeg")},
            )
            resp.raise_for_status()
            payload = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise TranscriptionError(f"Whisper request failed: {e}") from e

        text = (payload.get("text") or "").strip() if isinstance(payload, dict) else ""
        if not text:
            raise TranscriptionError(f"No speech found in {url}")
        return Transcript(text=text, language=payload.get("language") or "en")


_PROVIDERS = {
    CaptionApiTranscriber.name: CaptionApiTranscriber,
    WhisperTranscriber.name: WhisperTranscriber,
}


def get_transcription_provider(name: Optional[str] = None) -> TranscriptionProvider:
    name = (name or settings.transcription_provider).lower()
    try:
        return _PROVIDERS[name]()
    except KeyError:
        raise ValueError(f"Unknown transcription provider: {name}") from None

