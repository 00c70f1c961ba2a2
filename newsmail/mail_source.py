"""Interface the pipeline expects from a mail provider."""

from typing import Protocol

from newsmail.models import MailLabel


class MailSource(Protocol):
    """Read-only view of a mailbox.

    Implementations raise EmailAuthError when credentials are rejected and
    EmailFetchError for other transport failures. Calls may block; the
    pipeline runs them in worker threads.
    """

    def list_labels(self) -> list[MailLabel]: ...

    def list_message_ids(
        self,
        *,
        label_id: str | None = None,
        query: str | None = None,
        max_results: int,
    ) -> list[str]: ...

    def get_message(self, message_id: str) -> dict: ...
