"""Article pipeline: from a Gmail label to a ranked list of unseen articles."""

import asyncio
import logging
from dataclasses import replace

from config import settings
from newsmail.article_extractor import clean_inline_text, extract_articles
from newsmail.deduplicator import deduplicate
from newsmail.email_decoder import decode_message
from newsmail.exceptions import (
    EmailAuthError,
    EmailFetchError,
    NewsMailError,
    NoMatchingMessagesError,
    PipelineError,
)
from newsmail.filters import apply_filters
from newsmail.label_resolver import resolve_label_id
from newsmail.mail_source import MailSource
from newsmail.models import ArticleCandidate, NormalizedArticle, PipelineConfig
from newsmail.scorer import rank_articles
from newsmail.seen_cache import KeyValueSeenRepository, SeenCache
from newsmail.storage import KeyValueStore, clamp_config, load_pipeline_config
from newsmail.url_normalizer import host_of, normalize_url

logger = logging.getLogger(__name__)


def apply_overrides(
    config: PipelineConfig,
    label_name: str | None = None,
    query: str | None = None,
    max_messages: int | None = None,
    max_items: int | None = None,
) -> PipelineConfig:
    """Layer per-call options over the stored config, clamped to limits."""
    changes = {}
    if label_name is not None:
        changes["label_name"] = label_name
    if query is not None:
        changes["fallback_query"] = query
    if max_messages is not None:
        changes["max_messages_to_read"] = max_messages
    if max_items is not None:
        changes["max_items_to_return"] = max_items
    return clamp_config(replace(config, **changes))


async def collect_message_ids(source: MailSource, config: PipelineConfig) -> list[str]:
    """List ids under the configured label, or via the fallback query."""
    try:
        labels = await asyncio.to_thread(source.list_labels)
    except EmailAuthError:
        raise
    except EmailFetchError as e:
        logger.warning("Could not list labels, using fallback query: %s", e)
        labels = []

    label_id = resolve_label_id(config.label_name, labels)
    if label_id:
        ids = await asyncio.to_thread(
            source.list_message_ids,
            label_id=label_id,
            max_results=config.max_messages_to_read,
        )
    else:
        logger.info("Label '%s' not found, searching: %s", config.label_name, config.fallback_query)
        ids = await asyncio.to_thread(
            source.list_message_ids,
            query=config.fallback_query,
            max_results=config.max_messages_to_read,
        )
    return ids[: config.max_messages_to_read]


async def _fetch_one(source: MailSource, message_id: str, timeout: float) -> dict | None:
    try:
        return await asyncio.wait_for(
            asyncio.to_thread(source.get_message, message_id), timeout=timeout
        )
    except EmailAuthError:
        raise
    except (EmailFetchError, asyncio.TimeoutError) as e:
        logger.warning("Skipping message %s: %s", message_id, str(e) or "timed out")
        return None


async def fetch_messages(
    source: MailSource, message_ids: list[str], timeout: float
) -> list[dict]:
    """Fetch every message concurrently; failed fetches are skipped.

    Authentication failures abort the whole batch, and so does every fetch
    failing.
    """
    results = await asyncio.gather(
        *(_fetch_one(source, message_id, timeout) for message_id in message_ids)
    )
    messages = [m for m in results if m is not None]
    if message_ids and not messages:
        raise EmailFetchError(f"All {len(message_ids)} message fetches failed.")
    logger.info("Fetched %d of %d messages", len(messages), len(message_ids))
    return messages


def extract_candidates(messages: list[dict], config: PipelineConfig) -> list[ArticleCandidate]:
    """Decode and extract every message, pooling the candidates."""
    candidates: list[ArticleCandidate] = []
    for message in messages:
        email = decode_message(message)
        candidates.extend(
            extract_articles(email, config.min_title_length, config.snippet_max_len)
        )
    logger.info("Extracted %d candidates from %d messages", len(candidates), len(messages))
    return candidates


def normalize_candidate(candidate: ArticleCandidate) -> NormalizedArticle | None:
    """Canonicalize the URL and clean the text; None if no URL remains."""
    canonical = normalize_url(candidate.raw_url)
    if not canonical:
        return None
    return NormalizedArticle(
        title=clean_inline_text(candidate.title),
        canonical_url=canonical,
        host=host_of(canonical),
        snippet=clean_inline_text(candidate.snippet),
        raw_url=candidate.raw_url,
    )


def select_articles(
    candidates: list[ArticleCandidate],
    config: PipelineConfig,
    seen_cache: SeenCache | None = None,
) -> list[NormalizedArticle]:
    """Normalize, dedupe, filter, drop seen, rank and truncate."""
    normalized = [a for a in map(normalize_candidate, candidates) if a is not None]
    unique = deduplicate(normalized)
    filtered = apply_filters(unique, config.min_title_length)
    if seen_cache is not None:
        filtered = seen_cache.filter_seen(filtered)
    ranked = rank_articles(filtered, keyword_hint=config.label_name)
    return ranked[: config.max_items_to_return]


async def run_pipeline(
    source: MailSource,
    store: KeyValueStore,
    *,
    label_name: str | None = None,
    query: str | None = None,
    max_messages: int | None = None,
    max_items: int | None = None,
    exclude_seen: bool = True,
    fetch_timeout: float | None = None,
) -> list[NormalizedArticle]:
    """Run one harvest and return the ranked articles.

    Args:
        source: Mailbox to read from.
        store: Key-value store holding the pipeline config and seen cache.
        label_name: Overrides the stored label name.
        query: Overrides the stored fallback query.
        max_messages: Overrides how many messages to read.
        max_items: Overrides how many articles to return.
        exclude_seen: When False, the seen cache is neither read nor updated.
        fetch_timeout: Per-message fetch timeout in seconds.

    Returns:
        Articles sorted by descending score. May be empty.

    Raises:
        EmailAuthError: Gmail rejected the credentials.
        NoMatchingMessagesError: Neither label nor query matched any message.
        PipelineError: Anything else went wrong.
    """
    timeout = fetch_timeout if fetch_timeout is not None else settings.fetch_timeout_seconds

    try:
        config = apply_overrides(
            load_pipeline_config(store), label_name, query, max_messages, max_items
        )

        seen_cache = None
        if exclude_seen:
            seen_cache = SeenCache(KeyValueSeenRepository(store), config.seen_ttl_days)
            seen_cache.load()

        message_ids = await collect_message_ids(source, config)
        if not message_ids:
            raise NoMatchingMessagesError(
                "No messages matched the label or search query. "
                "Check the label name and fallback query."
            )

        messages = await fetch_messages(source, message_ids, timeout)
        results = select_articles(extract_candidates(messages, config), config, seen_cache)

        if seen_cache is not None:
            seen_cache.mark_seen(results)

        logger.info("Pipeline returned %d articles", len(results))
        return results

    except (EmailAuthError, NoMatchingMessagesError):
        raise
    except NewsMailError as e:
        raise PipelineError(f"Article pipeline failed: {e}") from e
    except Exception as e:
        logger.error("Unexpected pipeline failure: %s", e, exc_info=True)
        raise PipelineError(f"Article pipeline failed unexpectedly: {e}") from e
