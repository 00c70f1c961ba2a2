"""Collapse candidates that point at the same canonical URL."""

import logging

from newsmail.models import NormalizedArticle

logger = logging.getLogger(__name__)


def _informativeness(article: NormalizedArticle) -> int:
    return 2 * len(article.title) + len(article.snippet)


def deduplicate(articles: list[NormalizedArticle]) -> list[NormalizedArticle]:
    """Keep one article per canonical URL, preferring richer title/snippet.

    Ties keep the first one encountered. Output follows the order in which
    each URL first appeared.
    """
    best: dict[str, NormalizedArticle] = {}
    for article in articles:
        key = article.canonical_url
        current = best.get(key)
        if current is None or _informativeness(article) > _informativeness(current):
            best[key] = article

    if len(best) < len(articles):
        logger.info("Deduplicated %d articles into %d unique URLs", len(articles), len(best))
    return list(best.values())
