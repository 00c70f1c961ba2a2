"""Custom exception hierarchy for the newsletter article harvester."""


class NewsMailError(Exception):
    """Base exception for all harvester errors."""


class EmailAuthError(NewsMailError):
    """Raised when Gmail rejects or cannot refresh the OAuth token."""


class EmailFetchError(NewsMailError):
    """Raised when listing or fetching messages from Gmail fails."""


class NoMatchingMessagesError(NewsMailError):
    """Raised when neither the label nor the fallback query matches any message."""


class PipelineError(NewsMailError):
    """Raised when the article pipeline fails for an unexpected reason."""
