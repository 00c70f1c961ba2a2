"""Data models for the article pipeline."""

from dataclasses import asdict, dataclass, field


@dataclass
class MailLabel:
    """A Gmail label as returned by labels.list."""

    id: str
    name: str


@dataclass
class DecodedEmail:
    """Subject and decoded bodies of one Gmail message."""

    subject: str
    body_html: str = ""
    body_text: str = ""


@dataclass
class ArticleCandidate:
    """An article link pulled out of a newsletter, before normalization."""

    title: str
    snippet: str
    raw_url: str


@dataclass
class NormalizedArticle:
    """A canonicalized article, the unit returned to callers."""

    title: str
    canonical_url: str
    host: str
    snippet: str
    score: float = 0.0
    raw_url: str = field(default="", repr=False, compare=False)

    def to_dict(self) -> dict:
        data = asdict(self)
        data.pop("raw_url")
        return data


@dataclass(frozen=True)
class PipelineConfig:
    """Per-run settings, loaded once from the key-value store."""

    label_name: str
    fallback_query: str
    max_messages_to_read: int = 8
    max_items_to_return: int = 30
    seen_ttl_days: int = 7
    min_title_length: int = 12
    snippet_max_len: int = 320
