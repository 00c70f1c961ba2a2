"""Centralized configuration using pydantic-settings."""

from pathlib import Path

from pydantic_settings import BaseSettings

DEFAULT_FALLBACK_QUERY = (
    'newer_than:14d (from:googlealerts-noreply@google.com OR from:googlealerts-noreply '
    'OR subject:"Google 알림" OR subject:"Google Alerts")'
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Gmail OAuth2 (token JSON is produced out of band)
    gmail_token_json: str = ""

    # Defaults for the per-user pipeline config
    gmail_label: str = "Newsletters"
    fallback_query: str = DEFAULT_FALLBACK_QUERY
    max_messages_to_read: int = 8
    max_items_to_return: int = 30
    seen_ttl_days: int = 7
    min_title_length: int = 12
    snippet_max_len: int = 320

    # Per-message Gmail fetch timeout (seconds)
    fetch_timeout_seconds: float = 20.0

    # Key-value store for the pipeline config and the seen-URL cache
    db_path: Path = Path("output/newsmail.db")

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


settings = Settings()
