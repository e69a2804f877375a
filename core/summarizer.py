import logging
from typing import Optional
import requests
from config import settings
from core.errors import SummarizationError
from utils.http import post_with_retry

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are a concise content summarizer. Structure your summaries exactly as follows:
1. One VERY short paragraph (MAX 2 SHORT sentences) highlighting the main message
2. A single bulleted list of key takeaways (3-5 points)
3. (Optional) One "Bonus Insight" at the end - only if there's a particularly noteworthy observation or implication worth mentioning. Max one SHORT sentence.

Keep the tone conversational but professional. Use bold text only for the optional "Bonus:" prefix if included."""


class Summarizer:
    """Chat-completions client that turns a transcript into a short summary."""

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None,
                 model: Optional[str] = None, temperature: Optional[float] = None,
                 max_tokens: Optional[int] = None):
        self.api_key = api_key or settings.openai_api_key
        self.base_url = (base_url or settings.openai_base_url).rstrip("/")
        self.model = model or settings.summary_model
        self.temperature = settings.summary_temperature if temperature is None else temperature
        self.max_tokens = max_tokens or settings.summary_max_tokens

    def build_payload(self, text: str) -> dict:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": f"Please summarize the following transcript: {text}"},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }

    def summarize(self, text: str) -> str:
        if not self.api_key:
            raise SummarizationError("OPENAI_API_KEY is not configured")
        if not text or not text.strip():
            raise SummarizationError("Nothing to summarize")

        try:
            resp = post_with_retry(
                f"{self.base_url}/chat/completions",
                json=self.build_payload(text),
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
            resp.raise_for_status()
            data = resp.json()
            content = data["choices"][0]["message"]["content"]
        except (requests.RequestException, ValueError) as e:
            raise SummarizationError(f"Summary request failed: {e}") from e
        except (KeyError, IndexError, TypeError) as e:
            raise SummarizationError(f"Unexpected summary response: {e}") from e

        if not content or not content.strip():
            raise SummarizationError("Summary response was empty")
        logger.info("Summary generated (%d chars)", len(content))
        return content.strip()
