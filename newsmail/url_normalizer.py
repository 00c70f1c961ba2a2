"""Canonicalize article URLs so the same story dedupes across newsletters."""

import logging
import re
from urllib.parse import parse_qs, unquote_plus, urlsplit, urlunsplit

logger = logging.getLogger(__name__)

# Query parameters added by mailers and ad platforms for click tracking
TRACKING_PARAM_PREFIXES = (
    "utm_",
    "fbclid",
    "gclid",
    "dclid",
    "igshid",
    "mc_cid",
    "mc_eid",
    "_hsenc",
    "_hsmi",
)

# Click-tracking redirects that carry the real destination in a query param
WRAPPER_HOST_PATTERN = re.compile(r"^google\.[a-z]{2,3}(?:\.[a-z]{2})?$")
WRAPPER_PATHS = ("/url",)
WRAPPER_PARAMS = ("q", "url")

MAX_UNWRAP_DEPTH = 5

_WWW_PREFIX = re.compile(r"^(?:www\.)+")


def _strip_path(path: str) -> str:
    """Drop trailing slashes (and whitespace around them) from a path."""
    stripped = path.rstrip().rstrip("/")
    while stripped != path:
        path = stripped
        stripped = path.rstrip().rstrip("/")
    return path


def _unwrap_once(url: str) -> str | None:
    """Return the embedded destination if url is a redirect wrapper."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return None
    host = _WWW_PREFIX.sub("", (parts.hostname or "").lower())
    if not WRAPPER_HOST_PATTERN.match(host) or _strip_path(parts.path) not in WRAPPER_PATHS:
        return None

    params = parse_qs(parts.query)
    for name in WRAPPER_PARAMS:
        for value in params.get(name, []):
            value = value.strip()
            if value.lower().startswith(("http://", "https://")):
                return value
    return None


def unwrap_redirect(url: str) -> str:
    """Strip Google-style click wrappers, following nested wrappers."""
    url = (url or "").strip()
    for _ in range(MAX_UNWRAP_DEPTH):
        inner = _unwrap_once(url)
        if inner is None:
            break
        url = inner
    return url


def _is_tracking_param(piece: str) -> bool:
    key = unquote_plus(piece.split("=", 1)[0]).lower()
    return any(key.startswith(prefix) for prefix in TRACKING_PARAM_PREFIXES)


def _normalize_netloc(netloc: str) -> str:
    userinfo, at, hostport = netloc.rpartition("@")
    if hostport.startswith("["):
        host, sep, rest = hostport.partition("]")
        return f"{userinfo}{at}{host.lower()}{sep}{rest}"
    host, colon, port = hostport.partition(":")
    host = _WWW_PREFIX.sub("", host.lower())
    return f"{userinfo}{at}{host}{colon}{port}"


def normalize_url(url: str) -> str:
    """Return the canonical form of an article URL.

    Unwraps redirect wrappers, drops tracking query parameters and the
    fragment, strips a leading ``www.`` and trailing slashes. Never raises:
    unparseable input comes back trimmed. Applying it twice is a no-op.
    """
    url = unwrap_redirect(url)
    if not url:
        return ""
    try:
        parts = urlsplit(url)
    except ValueError:
        logger.debug("Unparseable URL kept as-is: %s", url)
        return url

    pieces = (piece.strip() for piece in parts.query.split("&"))
    query = "&".join(
        piece for piece in pieces
        if piece and not _is_tracking_param(piece)
    )
    return urlunsplit((
        parts.scheme,
        _normalize_netloc(parts.netloc),
        _strip_path(parts.path),
        query,
        "",
    )).strip()


def host_of(url: str) -> str:
    """Hostname of a URL without ``www.``, or empty string."""
    try:
        host = urlsplit(url).hostname or ""
    except ValueError:
        return ""
    return _WWW_PREFIX.sub("", host.lower())
