# errors.py
class ThemesifyError(Exception):
    """Base for every failure surfaced to the user as a single message."""

    severity = "error"

    def __init__(self, message: str, http_status=None):
        super().__init__(message)
        self.message = message
        self.http_status = http_status


class AuthorizationError(ThemesifyError):
    """Missing/invalid token or denied scope. The stored token must be cleared."""


class FetchError(ThemesifyError):
    """A saved-tracks page request failed; the partial library is discarded."""


class FeatureLookupError(ThemesifyError):
    """An audio-features batch failed or came back malformed."""


class PublishError(ThemesifyError):
    """User lookup, playlist creation or track add failed, or nothing to add."""


class PipelineBusyError(ThemesifyError):
    severity = "info"


class NotAnalyzedError(ThemesifyError):
    """A mood bucket was requested before an analysis finished."""
