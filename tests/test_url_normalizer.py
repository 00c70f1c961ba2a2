"""Tests for url_normalizer module."""

import random

import pytest

from newsmail.url_normalizer import host_of, normalize_url, unwrap_redirect


def test_unwrap_google_redirect_q_param():
    wrapped = "https://www.google.com/url?rct=j&sa=t&url=&q=https%3A%2F%2Fexample.com%2Fnews%2F1&ct=ga"
    assert unwrap_redirect(wrapped) == "https://example.com/news/1"


def test_unwrap_google_redirect_url_param():
    wrapped = "https://www.google.com/url?url=https://www.donga.com/news/article/all/20250101/1&sa=D"
    assert unwrap_redirect(wrapped) == "https://www.donga.com/news/article/all/20250101/1"


def test_unwrap_country_domain_redirect():
    wrapped = "https://www.google.co.kr/url?q=https://hani.co.kr/arti/1.html"
    assert unwrap_redirect(wrapped) == "https://hani.co.kr/arti/1.html"


def test_unwrap_nested_redirect():
    inner = "https://www.google.com/url?q=https://example.com/story/2"
    wrapped = "https://www.google.com/url?q=" + inner.replace(":", "%3A").replace("/", "%2F").replace("?", "%3F").replace("=", "%3D")
    assert unwrap_redirect(wrapped) == "https://example.com/story/2"


def test_unwrap_leaves_search_query_alone():
    url = "https://www.google.com/url?q=not+a+link"
    assert unwrap_redirect(url) == url


def test_unwrap_ignores_non_wrapper():
    url = "https://example.com/url?q=https://other.com/x"
    assert unwrap_redirect(url) == url


def test_normalize_strips_tracking_params():
    url = "https://example.com/news/2025/story?utm_source=newsletter&id=42&fbclid=abc&MC_CID=x"
    assert normalize_url(url) == "https://example.com/news/2025/story?id=42"


def test_normalize_drops_fragment_and_trailing_slash():
    assert normalize_url("https://example.com/news/story/#top") == "https://example.com/news/story"


def test_normalize_strips_www_and_lowercases_host():
    assert normalize_url("HTTPS://WWW.Example.COM/Path") == "https://example.com/Path"


def test_normalize_keeps_port():
    assert normalize_url("http://www.example.com:8080/a/") == "http://example.com:8080/a"


def test_normalize_unwraps_redirect_first():
    wrapped = "https://www.google.com/url?q=https://www.reuters.com/world/story-1/%3Futm_medium%3Demail"
    assert normalize_url(wrapped) == "https://reuters.com/world/story-1"


def test_normalize_same_story_different_tracking():
    a = normalize_url("https://example.com/news/2025/story?utm_source=newsletter")
    b = normalize_url("https://example.com/news/2025/story?utm_source=alerts#top")
    assert a == b == "https://example.com/news/2025/story"


def test_normalize_unparseable_returns_trimmed_input():
    assert normalize_url("  http://[::1/broken  ") == "http://[::1/broken"


def test_normalize_empty():
    assert normalize_url("") == ""
    assert normalize_url("   ") == ""


@pytest.mark.parametrize(
    "url",
    [
        "https://example.com/news/2025/story?utm_source=newsletter",
        "https://www.www.example.com/a//",
        "https://example.com/?utm_campaign=x",
        "https://example.com/a/?b=1&&utm_term=2",
        "https://www.google.com/url/?q=https://example.com/x/",
        "http://user@WWW.Example.com:443/p/ /",
        "mailto:someone@example.com",
        "/relative/path/",
        "https://example.com/a%20b/?q=%7Euser",
        "https://news.example.com/story#section-2",
        "https://example.com/news/1? #top",
        "https://www.ex.com/?  #e",
        "https://example.com/a?utm_source=x& b=1& ",
    ],
)
def test_normalize_is_idempotent(url):
    once = normalize_url(url)
    assert normalize_url(once) == once


def test_normalize_whitespace_query_collapses():
    assert normalize_url("https://example.com/news/1? #top") == "https://example.com/news/1"
    assert normalize_url("https://www.ex.com/?  #e") == "https://ex.com"
    assert normalize_url("https://example.com/a?utm_source=x& b=1& ") == "https://example.com/a?b=1"


_URL_BASES = ("https://example.com", "https://www.ex.com", "http://news.example.co.kr")
_URL_TAIL_TOKENS = (
    "/", "//", "news", "a", " ", "  ", "?", "&", "#", "=", "www.",
    "%20", "id=1", "utm_source=x", "fbclid=y",
)


def test_normalize_is_idempotent_for_random_tails():
    rng = random.Random(20250101)
    for _ in range(2000):
        tail = "".join(rng.choice(_URL_TAIL_TOKENS) for _ in range(rng.randint(0, 10)))
        url = rng.choice(_URL_BASES) + tail
        once = normalize_url(url)
        assert normalize_url(once) == once, url


def test_host_of():
    assert host_of("https://www.Example.com/a") == "example.com"
    assert host_of("not a url") == ""
