from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional

class Settings(BaseSettings):
    # Storage and queue
    database_url: str = "sqlite:///./jobs.db"
    redis_url: Optional[str] = None
    queue_backend: str = "celery"  # celery | sqs
    sqs_queue_url: Optional[str] = None
    aws_region: Optional[str] = None

    # Core settings
    api_port: int = 8000
    cors_origin: str = "https://www.tiktok.com"
    log_level: str = "INFO"

    # Transcription configs
    transcription_provider: str = "captions"  # captions | whisper
    caption_api_url: str = "https://submagic-free-tools.fly.dev/api/tiktok-transcription"
    caption_language: str = "eng-US"
    media_resolver_url: Optional[str] = None
    media_resolver_key: Optional[str] = None
    media_resolver_host: Optional[str] = None
    whisper_model: str = "whisper-1"
    ffmpeg_binary: str = "ffmpeg"
    temp_dir: Optional[str] = None  # Falls back to the system temp dir

    # Summarization configs
    openai_api_key: Optional[str] = None
    openai_base_url: str = "https://api.openai.com/v1"
    summary_model: str = "gpt-4"
    summary_temperature: float = 0.7
    summary_max_tokens: int = 500

    # Outbound HTTP
    http_timeout: float = 60.0
    http_max_retries: int = 3  # Extra attempts on 429 responses

    # Client poller configs
    api_base_url: str = "http://localhost:8000"
    poll_interval_seconds: float = 2.0

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

try:
    settings = Settings()
except Exception:
    settings = Settings(_env_file=None)
