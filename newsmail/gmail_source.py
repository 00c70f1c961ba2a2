"""Gmail API integration: list labels and fetch newsletter messages."""

import json
import logging
import threading

from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from config import settings
from newsmail.exceptions import EmailAuthError, EmailFetchError
from newsmail.models import MailLabel

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/gmail.readonly"]

AUTH_STATUS_CODES = (401, 403)


def _load_credentials(token_json: str) -> Credentials:
    """Build OAuth credentials from token JSON, refreshing if expired."""
    if not token_json:
        raise EmailAuthError("Gmail token not configured.")

    try:
        token_data = json.loads(token_json)
        creds = Credentials.from_authorized_user_info(token_data, SCOPES)
    except (ValueError, KeyError) as e:
        raise EmailAuthError(f"Invalid Gmail token: {e}") from e

    if creds.expired and creds.refresh_token:
        try:
            creds.refresh(Request())
        except RefreshError as e:
            raise EmailAuthError(f"Failed to refresh Gmail token: {e}") from e
    return creds


def _translate_error(e: Exception, action: str) -> Exception:
    if isinstance(e, HttpError) and e.resp.status in AUTH_STATUS_CODES:
        return EmailAuthError(f"Gmail denied access while {action}: {e}")
    if isinstance(e, RefreshError):
        return EmailAuthError(f"Gmail token expired while {action}: {e}")
    return EmailFetchError(f"Failed {action}: {e}")


class GmailMailSource:
    """MailSource backed by the Gmail REST API.

    The discovery client's HTTP transport is not thread-safe, so each worker
    thread builds its own service object from the shared credentials.
    """

    def __init__(self, credentials: Credentials, user_id: str = "me"):
        self.credentials = credentials
        self.user_id = user_id
        self._local = threading.local()

    @classmethod
    def from_settings(cls) -> "GmailMailSource":
        return cls(_load_credentials(settings.gmail_token_json))

    def _service(self):
        service = getattr(self._local, "service", None)
        if service is None:
            service = build("gmail", "v1", credentials=self.credentials, cache_discovery=False)
            self._local.service = service
        return service

    def list_labels(self) -> list[MailLabel]:
        try:
            result = self._service().users().labels().list(userId=self.user_id).execute()
        except Exception as e:
            raise _translate_error(e, "listing labels") from e

        return [
            MailLabel(id=label.get("id", ""), name=label.get("name", ""))
            for label in result.get("labels", [])
        ]

    def list_message_ids(
        self,
        *,
        label_id: str | None = None,
        query: str | None = None,
        max_results: int,
    ) -> list[str]:
        params: dict = {"userId": self.user_id, "maxResults": max_results}
        if label_id:
            params["labelIds"] = [label_id]
        elif query:
            params["q"] = query

        logger.info("Listing Gmail messages (label=%s, query=%s)", label_id, query)
        try:
            result = self._service().users().messages().list(**params).execute()
        except Exception as e:
            raise _translate_error(e, "listing messages") from e

        ids = [ref["id"] for ref in result.get("messages", []) if ref.get("id")]
        return ids[:max_results]

    def get_message(self, message_id: str) -> dict:
        try:
            return (
                self._service()
                .users()
                .messages()
                .get(userId=self.user_id, id=message_id, format="full")
                .execute()
            )
        except Exception as e:
            raise _translate_error(e, f"fetching message {message_id}") from e
