"""Flat key-value persistence for the pipeline config and the seen-URL cache."""

import json
import logging
import sqlite3
from dataclasses import asdict, fields, replace
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol

from config import settings
from newsmail.models import PipelineConfig

logger = logging.getLogger(__name__)

CONFIG_STORAGE_KEY = "gmail_news_config"
SEEN_STORAGE_KEY = "seen_article_urls"

MAX_MESSAGES_LIMIT = 30
MAX_ITEMS_LIMIT = 100


class KeyValueStore(Protocol):
    """String blobs under string keys."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryKeyValueStore:
    """Process-local store, used by tests and one-off CLI runs."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class SqliteKeyValueStore:
    """SQLite-backed store with a single kv_store table."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or settings.db_path

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection, creating the DB and table if needed."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.db_path))
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("""
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)
        return conn

    def get(self, key: str) -> str | None:
        conn = self._get_connection()
        try:
            row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
            return row[0] if row else None
        finally:
            conn.close()

    def set(self, key: str, value: str) -> None:
        conn = self._get_connection()
        try:
            conn.execute(
                """INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)
                   ON CONFLICT(key) DO UPDATE SET value = excluded.value,
                   updated_at = excluded.updated_at""",
                (key, value, datetime.now(UTC).isoformat()),
            )
            conn.commit()
        finally:
            conn.close()


# --- Pipeline config ---

def default_pipeline_config() -> PipelineConfig:
    """Build the default config from environment settings."""
    return PipelineConfig(
        label_name=settings.gmail_label,
        fallback_query=settings.fallback_query,
        max_messages_to_read=settings.max_messages_to_read,
        max_items_to_return=settings.max_items_to_return,
        seen_ttl_days=settings.seen_ttl_days,
        min_title_length=settings.min_title_length,
        snippet_max_len=settings.snippet_max_len,
    )


def _coerce_overrides(raw: dict, defaults: PipelineConfig) -> dict:
    """Keep only known fields whose type matches the default's type."""
    known = {f.name: type(getattr(defaults, f.name)) for f in fields(PipelineConfig)}
    result = {}
    for key, value in raw.items():
        expected = known.get(key)
        if expected is None:
            continue
        if expected is int and (isinstance(value, bool) or not isinstance(value, int)):
            logger.warning("Ignoring config field %s=%r (expected int)", key, value)
            continue
        if expected is str and not isinstance(value, str):
            logger.warning("Ignoring config field %s=%r (expected str)", key, value)
            continue
        result[key] = value
    return result


def clamp_config(config: PipelineConfig) -> PipelineConfig:
    """Bound numeric fields to the ranges the pipeline supports."""
    return replace(
        config,
        label_name=config.label_name.strip(),
        fallback_query=config.fallback_query.strip(),
        max_messages_to_read=max(1, min(config.max_messages_to_read, MAX_MESSAGES_LIMIT)),
        max_items_to_return=max(1, min(config.max_items_to_return, MAX_ITEMS_LIMIT)),
        seen_ttl_days=max(1, config.seen_ttl_days),
        min_title_length=max(0, config.min_title_length),
        snippet_max_len=max(1, config.snippet_max_len),
    )


def load_pipeline_config(store: KeyValueStore) -> PipelineConfig:
    """Load the persisted config, filling missing fields with defaults."""
    defaults = default_pipeline_config()
    raw = store.get(CONFIG_STORAGE_KEY)
    if not raw:
        return clamp_config(defaults)

    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning("Stored pipeline config is not valid JSON, using defaults: %s", e)
        return clamp_config(defaults)
    if not isinstance(parsed, dict):
        logger.warning("Stored pipeline config is not an object, using defaults")
        return clamp_config(defaults)

    return clamp_config(replace(defaults, **_coerce_overrides(parsed, defaults)))


def save_pipeline_config(store: KeyValueStore, partial: dict) -> PipelineConfig:
    """Merge a partial update into the stored config and persist it."""
    current = load_pipeline_config(store)
    updated = clamp_config(replace(current, **_coerce_overrides(partial, current)))
    store.set(CONFIG_STORAGE_KEY, json.dumps(asdict(updated), ensure_ascii=False))
    logger.info("Saved pipeline config (label=%r)", updated.label_name)
    return updated
