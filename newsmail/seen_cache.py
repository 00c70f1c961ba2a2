"""Time-boxed record of article URLs already returned to the user."""

import json
import logging
import time
from collections.abc import Callable
from typing import Protocol

from newsmail.models import NormalizedArticle
from newsmail.storage import SEEN_STORAGE_KEY, KeyValueStore

logger = logging.getLogger(__name__)

MS_PER_DAY = 24 * 60 * 60 * 1000


class SeenRepository(Protocol):
    """Loads and saves the canonical URL -> expiry (epoch ms) map."""

    def load(self) -> dict[str, int]: ...

    def save(self, entries: dict[str, int]) -> None: ...


class KeyValueSeenRepository:
    """Seen map stored as one JSON blob in a key-value store."""

    def __init__(self, store: KeyValueStore, key: str = SEEN_STORAGE_KEY):
        self.store = store
        self.key = key

    def load(self) -> dict[str, int]:
        raw = self.store.get(self.key)
        if not raw:
            return {}
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("Seen cache is corrupt, starting empty: %s", e)
            return {}
        if not isinstance(parsed, dict):
            logger.warning("Seen cache is not an object, starting empty")
            return {}
        return {
            url: int(expiry)
            for url, expiry in parsed.items()
            if isinstance(expiry, (int, float)) and not isinstance(expiry, bool)
        }

    def save(self, entries: dict[str, int]) -> None:
        self.store.set(self.key, json.dumps(entries))


def _now_ms() -> int:
    return int(time.time() * 1000)


class SeenCache:
    """Suppresses articles already surfaced within the last ``ttl_days``.

    Storage is read once by ``load()`` and written back by ``load()`` (after
    pruning) and ``mark_seen()``.
    """

    def __init__(
        self,
        repository: SeenRepository,
        ttl_days: int,
        clock: Callable[[], int] = _now_ms,
    ):
        self.repository = repository
        self.ttl_ms = max(1, ttl_days) * MS_PER_DAY
        self.clock = clock
        self._entries: dict[str, int] | None = None

    @property
    def entries(self) -> dict[str, int]:
        if self._entries is None:
            self.load()
        return self._entries

    def load(self) -> dict[str, int]:
        """Read the map, drop expired entries and persist the pruned map."""
        now = self.clock()
        stored = self.repository.load()
        live = {url: expiry for url, expiry in stored.items() if expiry > now}
        if len(live) != len(stored):
            logger.info("Pruned %d expired seen entries", len(stored) - len(live))
        self.repository.save(live)
        self._entries = live
        return live

    def is_seen(self, canonical_url: str) -> bool:
        expiry = self.entries.get(canonical_url)
        return expiry is not None and expiry > self.clock()

    def filter_seen(self, articles: list[NormalizedArticle]) -> list[NormalizedArticle]:
        kept = [a for a in articles if not self.is_seen(a.canonical_url)]
        if len(kept) < len(articles):
            logger.info("Suppressed %d previously seen articles", len(articles) - len(kept))
        return kept

    def mark_seen(self, articles: list[NormalizedArticle]) -> None:
        """Set or refresh the expiry of each article and persist."""
        expires_at = self.clock() + self.ttl_ms
        entries = self.entries
        for article in articles:
            if article.canonical_url:
                entries[article.canonical_url] = expires_at
        self.repository.save(entries)
