"""Filter chain: drop blocked, system and non-article destinations."""

import logging
from collections import Counter
from urllib.parse import urlsplit

from newsmail.models import NormalizedArticle
from newsmail.url_normalizer import host_of

logger = logging.getLogger(__name__)

# Video and social platforms, never article destinations
BLOCKED_DOMAINS: tuple[str, ...] = (
    "tiktok.com",
    "youtube.com",
    "youtu.be",
    "instagram.com",
    "facebook.com",
    "x.com",
    "twitter.com",
    "threads.net",
    "reddit.com",
    "discord.com",
    "discord.gg",
    "t.me",
)

# Unsubscribe, preference and provider-internal pages
BLOCKED_URL_KEYWORDS: tuple[str, ...] = (
    "google.com/alerts",
    "unsubscribe",
    "preferences",
    "accounts.google",
    "support.google",
    "policies.google",
    "myaccount.google",
    "mail.google.com",
)

# Search and aggregator listing pages (a result list, not one article)
SEARCH_PAGE_PATTERNS: tuple[str, ...] = (
    "google.com/search",
    "news.google.com/search",
    "search.naver.com",
    "m.search.naver.com",
    "media.naver.com/press",
    "vertexaisearch.cloud.google.com",
)


def is_blocked_domain(url: str) -> bool:
    """True if the URL's host is, or is a subdomain of, a blocked domain."""
    host = host_of(url)
    if not host:
        return False
    return any(host == d or host.endswith("." + d) for d in BLOCKED_DOMAINS)


def is_blocked_by_keyword(url: str) -> bool:
    lower = (url or "").lower()
    return any(keyword in lower for keyword in BLOCKED_URL_KEYWORDS)


def is_search_page(url: str) -> bool:
    lower = (url or "").lower()
    return any(pattern in lower for pattern in SEARCH_PAGE_PATTERNS)


def is_article_url(url: str) -> bool:
    """Structural test: http(s), dotted hostname, and a non-root path."""
    if not url:
        return False
    try:
        parts = urlsplit(url)
        host = parts.hostname or ""
    except ValueError:
        return False
    if parts.scheme not in ("http", "https"):
        return False
    if "." not in host:
        return False
    return len(parts.path) >= 2


def rejection_reason(article: NormalizedArticle, min_title_length: int) -> str | None:
    """Name of the first rule the article fails, or None if it passes."""
    if is_blocked_domain(article.canonical_url):
        return "blocked_domain"
    if is_blocked_by_keyword(article.raw_url) or is_blocked_by_keyword(article.canonical_url):
        return "blocked_keyword"
    if is_search_page(article.canonical_url):
        return "search_page"
    if not is_article_url(article.canonical_url):
        return "not_article"
    if len(article.title) < min_title_length:
        return "short_title"
    return None


def apply_filters(
    articles: list[NormalizedArticle], min_title_length: int
) -> list[NormalizedArticle]:
    """Keep only articles passing every rule. Rejections are silent."""
    kept: list[NormalizedArticle] = []
    rejected: Counter[str] = Counter()

    for article in articles:
        reason = rejection_reason(article, min_title_length)
        if reason is None:
            kept.append(article)
            continue
        rejected[reason] += 1
        logger.debug("Filtered %s (%s)", article.canonical_url, reason)

    if rejected:
        logger.info(
            "Filter chain kept %d of %d articles (rejected: %s)",
            len(kept), len(articles), dict(rejected),
        )
    return kept
