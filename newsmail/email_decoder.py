"""Decode Gmail message payloads into subject, HTML body and text body."""

import base64
import binascii
import logging

from newsmail.models import DecodedEmail

logger = logging.getLogger(__name__)

NO_SUBJECT = "no subject"


def decode_base64url(data: str) -> str:
    """Decode Gmail's base64url body data to text.

    Returns an empty string on any decode failure instead of raising.
    """
    if not data:
        return ""
    standard = data.replace("-", "+").replace("_", "/")
    standard += "=" * (-len(standard) % 4)
    try:
        return base64.b64decode(standard, validate=True).decode("utf-8")
    except (binascii.Error, ValueError) as e:
        logger.debug("Failed to decode body part: %s", e)
        return ""


def _get_header(headers: list[dict], name: str) -> str:
    """Get a header value by name from Gmail message headers."""
    for header in headers:
        if header.get("name", "").lower() == name.lower():
            return header.get("value", "")
    return ""


def _extract_body(payload: dict) -> tuple[str, str]:
    """Extract HTML and plain text body from a Gmail message payload.

    Parts may nest arbitrarily. When several parts share a media type the
    last one found wins.

    Returns:
        Tuple of (body_html, body_text).
    """
    body_html = ""
    body_text = ""

    def _walk_parts(parts):
        nonlocal body_html, body_text
        for part in parts:
            mime_type = part.get("mimeType", "")
            data = (part.get("body") or {}).get("data", "")

            if mime_type == "text/html" and data:
                body_html = decode_base64url(data)
            elif mime_type == "text/plain" and data:
                body_text = decode_base64url(data)

            if part.get("parts"):
                _walk_parts(part["parts"])

    if payload.get("parts"):
        _walk_parts(payload["parts"])
    else:
        data = (payload.get("body") or {}).get("data", "")
        if payload.get("mimeType", "") == "text/html":
            body_html = decode_base64url(data)
        else:
            body_text = decode_base64url(data)

    return body_html, body_text


def decode_message(message: dict) -> DecodedEmail:
    """Decode a users.messages.get(format="full") resource.

    Accepts either the full message resource or its bare payload.
    """
    payload = message.get("payload", message) or {}
    subject = _get_header(payload.get("headers", []), "Subject").strip() or NO_SUBJECT
    body_html, body_text = _extract_body(payload)
    return DecodedEmail(subject=subject, body_html=body_html, body_text=body_text)
