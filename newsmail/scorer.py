"""Score and rank articles by trust and relevance heuristics."""

import logging
import re
from urllib.parse import urlsplit

from newsmail.models import NormalizedArticle

logger = logging.getLogger(__name__)

# Established publishers
STRONG_DOMAINS: tuple[str, ...] = (
    "reuters.com",
    "bloomberg.com",
    "wsj.com",
    "ft.com",
    "economist.com",
    "nytimes.com",
    "bbc.co.uk",
    "bbc.com",
    "cnn.com",
    "apnews.com",
    "khan.co.kr",
    "chosun.com",
    "joongang.co.kr",
    "donga.com",
    "hani.co.kr",
    "mk.co.kr",
    "hankyung.com",
    "yonhapnews.co.kr",
)

# Portals and blogging platforms
MEDIUM_DOMAINS: tuple[str, ...] = (
    "naver.com",
    "daum.net",
    "medium.com",
    "substack.com",
    "brunch.co.kr",
)

STRONG_DOMAIN_BONUS = 18
MEDIUM_DOMAIN_BONUS = 8
KEYWORD_HINT_BONUS = 8

ARTICLE_PATH_PATTERN = re.compile(r"news|article|story|stories|press|post", re.IGNORECASE)
ARTICLE_PATH_BONUS = 6
YEAR_PATH_PATTERN = re.compile(r"20\d{2}")
YEAR_PATH_BONUS = 4
DEEP_PATH_SEGMENTS = 3
DEEP_PATH_BONUS = 3


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def _matches_domain(host: str, domains: tuple[str, ...]) -> bool:
    return any(host == d or host.endswith("." + d) for d in domains)


def domain_trust_score(host: str) -> int:
    host = (host or "").lower()
    if _matches_domain(host, STRONG_DOMAINS):
        return STRONG_DOMAIN_BONUS
    if _matches_domain(host, MEDIUM_DOMAINS):
        return MEDIUM_DOMAIN_BONUS
    return 0


def url_shape_score(url: str) -> int:
    """Small bonuses for paths that look like a dated article."""
    try:
        path = urlsplit(url).path or ""
    except ValueError:
        return 0

    score = 0
    if ARTICLE_PATH_PATTERN.search(path):
        score += ARTICLE_PATH_BONUS
    if YEAR_PATH_PATTERN.search(path):
        score += YEAR_PATH_BONUS
    if len([segment for segment in path.split("/") if segment]) >= DEEP_PATH_SEGMENTS:
        score += DEEP_PATH_BONUS
    return score


def score_article(article: NormalizedArticle, keyword_hint: str = "") -> float:
    """Additive relevance score; higher is better."""
    score = _clamp(len(article.title), 0, 120) * 0.4
    score += _clamp(len(article.snippet), 0, 300) * 0.2
    score += domain_trust_score(article.host)

    hint = (keyword_hint or "").strip().lower()
    if hint and hint in article.title.lower():
        score += KEYWORD_HINT_BONUS

    score += url_shape_score(article.canonical_url)
    return score


def rank_articles(
    articles: list[NormalizedArticle], keyword_hint: str = ""
) -> list[NormalizedArticle]:
    """Assign scores and sort descending. Equal scores keep input order."""
    for article in articles:
        article.score = score_article(article, keyword_hint)
    return sorted(articles, key=lambda a: a.score, reverse=True)
