"""Pull article links and titles out of newsletter and alert emails."""

import logging
import re
from collections.abc import Callable

from bs4 import BeautifulSoup, Tag

from newsmail.filters import is_article_url
from newsmail.models import ArticleCandidate, DecodedEmail
from newsmail.url_normalizer import unwrap_redirect

logger = logging.getLogger(__name__)

# Call-to-action labels that never describe the linked article
BUTTON_PHRASES = frozenset({
    "read more",
    "learn more",
    "more",
    "see more",
    "view",
    "view more",
    "view online",
    "open",
    "click",
    "click here",
    "go",
    "continue",
    "unsubscribe",
    "보기",
    "자세히",
    "자세히 보기",
    "더보기",
    "확인",
    "신청",
    "구독",
    "수신거부",
})

ZERO_WIDTH_PATTERN = re.compile(r"[\u200b-\u200d\ufeff]")
WHITESPACE_PATTERN = re.compile(r"\s+")

TEXT_URL_PATTERN = re.compile(r"(https?://[^\s<>\"'()]+)|(www\.[^\s<>\"'()]+)")
TRAILING_URL_PUNCTUATION = ".,;:!?]}>"

# Snippet-derived titles are cut to headline length
SNIPPET_TITLE_MAX_LEN = 80

# Anchor context shorter than this is replaced by the plain-text body
MIN_CONTEXT_SNIPPET_LEN = 40

MAX_TEXT_URLS_PER_EMAIL = 10


def clean_inline_text(text: str) -> str:
    """Collapse whitespace and drop zero-width characters."""
    text = ZERO_WIDTH_PATTERN.sub("", text or "")
    return WHITESPACE_PATTERN.sub(" ", text).strip()


def looks_like_button_text(text: str) -> bool:
    return clean_inline_text(text).lower() in BUTTON_PHRASES


def _is_usable_title(text: str, min_title_length: int) -> bool:
    return len(text) >= min_title_length and not looks_like_button_text(text)


def _element_text(element: Tag | None) -> str:
    if element is None:
        return ""
    return clean_inline_text(element.get_text(" "))


def _anchor_title(anchor: Tag) -> str:
    """Anchor text plus its aria-label and title attributes."""
    return clean_inline_text(" ".join([
        anchor.get_text(" "),
        anchor.get("aria-label") or "",
        anchor.get("title") or "",
    ]))


def _snippet_around(anchor: Tag, max_len: int) -> str:
    """Longest of the anchor's own, parent and grandparent text."""
    parent = anchor.parent
    grandparent = parent.parent if parent is not None else None
    candidates = [
        _element_text(anchor),
        _element_text(parent),
        _element_text(grandparent),
    ]
    best = max(candidates, key=len)
    return best[:max_len]


def _choose_title(anchor_title: str, snippet: str, subject: str, min_title_length: int) -> str:
    if _is_usable_title(anchor_title, min_title_length):
        return anchor_title
    if len(snippet) >= min_title_length:
        return snippet[:SNIPPET_TITLE_MAX_LEN].rstrip()
    return clean_inline_text(subject)


def _snippet_for_article(snippet: str, text_body: str, max_len: int) -> str:
    if len(snippet) >= MIN_CONTEXT_SNIPPET_LEN:
        return snippet
    body = clean_inline_text(text_body)
    return body[:max_len] if body else snippet


def extract_from_html(
    email: DecodedEmail, min_title_length: int, snippet_max_len: int
) -> list[ArticleCandidate]:
    """Walk every hyperlink in the HTML body and keep the article-like ones."""
    if not email.body_html:
        return []

    try:
        soup = BeautifulSoup(email.body_html, "lxml")
    except Exception as e:
        logger.warning("Failed to parse HTML for '%s': %s", email.subject, e)
        return []

    candidates: list[ArticleCandidate] = []
    for anchor in soup.find_all("a", href=True):
        url = unwrap_redirect(anchor["href"])
        if not is_article_url(url):
            continue

        snippet = _snippet_around(anchor, snippet_max_len)
        title = _choose_title(_anchor_title(anchor), snippet, email.subject, min_title_length)
        if not _is_usable_title(title, min_title_length):
            logger.debug("Dropping link with unusable title: %s", url)
            continue

        candidates.append(
            ArticleCandidate(
                title=title,
                snippet=_snippet_for_article(snippet, email.body_text, snippet_max_len),
                raw_url=url,
            )
        )

    return candidates


def extract_urls_from_text(text: str) -> list[str]:
    """Find http(s):// and bare www. URLs in plain text."""
    urls = []
    for match in TEXT_URL_PATTERN.finditer(text or ""):
        url = match.group(0).rstrip(TRAILING_URL_PUNCTUATION)
        if url.startswith("www."):
            url = "https://" + url
        urls.append(url)
    return urls


def extract_from_text(
    email: DecodedEmail, min_title_length: int, snippet_max_len: int
) -> list[ArticleCandidate]:
    """Scan the plain-text body for URLs; each gets the subject as title."""
    if not email.body_text:
        return []

    title = clean_inline_text(email.subject)
    snippet = clean_inline_text(email.body_text)[:snippet_max_len]

    urls = [unwrap_redirect(u) for u in extract_urls_from_text(email.body_text)]
    urls = [u for u in urls if is_article_url(u)]

    return [
        ArticleCandidate(title=title, snippet=snippet, raw_url=url)
        for url in urls[:MAX_TEXT_URLS_PER_EMAIL]
    ]


ExtractionStrategy = Callable[[DecodedEmail, int, int], list[ArticleCandidate]]

# Tried in order; the first non-empty result wins
EXTRACTION_STRATEGIES: list[tuple[str, ExtractionStrategy]] = [
    ("html", extract_from_html),
    ("text", extract_from_text),
]


def extract_articles(
    email: DecodedEmail, min_title_length: int, snippet_max_len: int
) -> list[ArticleCandidate]:
    """Run the extraction strategies in order and return the first hit."""
    for name, strategy in EXTRACTION_STRATEGIES:
        candidates = strategy(email, min_title_length, snippet_max_len)
        if candidates:
            logger.debug(
                "Extracted %d candidates from '%s' via %s",
                len(candidates), email.subject, name,
            )
            return candidates

    logger.info("No article links found in '%s'", email.subject)
    return []
