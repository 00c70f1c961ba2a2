"""Tests for gmail_source module."""

from unittest.mock import MagicMock, Mock, patch

import pytest
from googleapiclient.errors import HttpError

from newsmail.exceptions import EmailAuthError, EmailFetchError
from newsmail.gmail_source import GmailMailSource, _load_credentials
from newsmail.models import MailLabel


def _http_error(status: int) -> HttpError:
    return HttpError(Mock(status=status, reason="error"), b"")


@pytest.fixture
def service():
    with patch("newsmail.gmail_source.build") as mock_build:
        mock_service = MagicMock()
        mock_build.return_value = mock_service
        yield mock_service, mock_build


def test_list_labels(service):
    mock_service, _ = service
    mock_service.users().labels().list().execute.return_value = {
        "labels": [{"id": "Label_1", "name": "Newsletters"}, {"id": "INBOX", "name": "INBOX"}]
    }
    labels = GmailMailSource(Mock()).list_labels()
    assert labels == [MailLabel(id="Label_1", name="Newsletters"), MailLabel(id="INBOX", name="INBOX")]


def test_list_message_ids_by_label(service):
    mock_service, _ = service
    messages = mock_service.users().messages()
    messages.list().execute.return_value = {"messages": [{"id": "a"}, {"id": "b"}, {"threadId": "t"}]}

    ids = GmailMailSource(Mock()).list_message_ids(label_id="Label_1", query="ignored", max_results=5)

    assert ids == ["a", "b"]
    messages.list.assert_called_with(userId="me", maxResults=5, labelIds=["Label_1"])


def test_list_message_ids_by_query(service):
    mock_service, _ = service
    messages = mock_service.users().messages()
    messages.list().execute.return_value = {"messages": [{"id": "a"}, {"id": "b"}, {"id": "c"}]}

    ids = GmailMailSource(Mock()).list_message_ids(query="newer_than:14d", max_results=2)

    assert ids == ["a", "b"]
    messages.list.assert_called_with(userId="me", maxResults=2, q="newer_than:14d")


def test_list_message_ids_empty(service):
    mock_service, _ = service
    mock_service.users().messages().list().execute.return_value = {"resultSizeEstimate": 0}
    assert GmailMailSource(Mock()).list_message_ids(query="x", max_results=5) == []


def test_get_message(service):
    mock_service, _ = service
    messages = mock_service.users().messages()
    messages.get().execute.return_value = {"id": "m1", "payload": {}}

    assert GmailMailSource(Mock()).get_message("m1") == {"id": "m1", "payload": {}}
    messages.get.assert_called_with(userId="me", id="m1", format="full")


def test_service_built_once_per_thread(service):
    _, mock_build = service
    source = GmailMailSource(Mock())
    source.list_labels()
    source.list_labels()
    assert mock_build.call_count == 1


@pytest.mark.parametrize("status", [401, 403])
def test_auth_errors_map_to_email_auth_error(service, status):
    mock_service, _ = service
    mock_service.users().messages().get().execute.side_effect = _http_error(status)
    with pytest.raises(EmailAuthError):
        GmailMailSource(Mock()).get_message("m1")


def test_other_http_errors_map_to_fetch_error(service):
    mock_service, _ = service
    mock_service.users().labels().list().execute.side_effect = _http_error(500)
    with pytest.raises(EmailFetchError, match="listing labels"):
        GmailMailSource(Mock()).list_labels()


def test_load_credentials_requires_token():
    with pytest.raises(EmailAuthError, match="not configured"):
        _load_credentials("")


def test_load_credentials_rejects_invalid_json():
    with pytest.raises(EmailAuthError, match="Invalid Gmail token"):
        _load_credentials("{not json")


def test_from_settings_without_token():
    with patch("newsmail.gmail_source.settings") as mock_settings:
        mock_settings.gmail_token_json = ""
        with pytest.raises(EmailAuthError):
            GmailMailSource.from_settings()
