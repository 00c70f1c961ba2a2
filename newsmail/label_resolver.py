"""Map a human label name onto a Gmail label id."""

import logging
import re

from newsmail.models import MailLabel

logger = logging.getLogger(__name__)


def _label_key(name: str) -> str:
    return re.sub(r"\s+", "", name or "").lower()


def resolve_label_id(label_name: str, labels: list[MailLabel]) -> str | None:
    """Find the label id for a name, ignoring whitespace and case.

    Tries an exact match first, then a prefix match; never a substring
    match. Returns None when nothing matches and the caller should use its
    fallback query.
    """
    target = _label_key(label_name)
    if not target:
        return None

    for label in labels:
        if label.id and _label_key(label.name) == target:
            return label.id

    for label in labels:
        if label.id and _label_key(label.name).startswith(target):
            logger.info("Label '%s' matched by prefix: '%s'", label_name, label.name)
            return label.id

    logger.info("No label matches '%s'", label_name)
    return None
