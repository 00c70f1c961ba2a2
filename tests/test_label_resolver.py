"""Tests for label_resolver module."""

from newsmail.label_resolver import resolve_label_id
from newsmail.models import MailLabel

LABELS = [
    MailLabel(id="INBOX", name="INBOX"),
    MailLabel(id="Label_1", name="Tech Newsletters"),
    MailLabel(id="Label_2", name="뉴스 요약"),
    MailLabel(id="Label_3", name="Daily News Digest"),
]


def test_exact_match_ignores_case_and_whitespace():
    assert resolve_label_id("technewsletters", LABELS) == "Label_1"
    assert resolve_label_id("뉴스요약", LABELS) == "Label_2"


def test_exact_match_preferred_over_prefix():
    labels = [
        MailLabel(id="Label_long", name="News Summary Archive"),
        MailLabel(id="Label_exact", name="News Summary"),
    ]
    assert resolve_label_id("news summary", labels) == "Label_exact"


def test_prefix_match():
    assert resolve_label_id("Daily News", LABELS) == "Label_3"


def test_no_substring_match():
    assert resolve_label_id("Newsletters", LABELS) is None
    assert resolve_label_id("Digest", LABELS) is None


def test_empty_name_never_matches():
    assert resolve_label_id("   ", LABELS) is None


def test_no_labels():
    assert resolve_label_id("Newsletters", []) is None
