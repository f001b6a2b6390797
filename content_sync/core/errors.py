"""
Exception hierarchy for content_sync.

Selector and section-type problems are not exceptions: they are logged as
warnings and the offending field or section is skipped. Only malformed input
and remote-store failures are raised.
"""


class ContentSyncError(Exception):
    """Base class for all content_sync errors."""


class MalformedHtmlError(ContentSyncError, ValueError):
    """HTML input is missing or could not be parsed."""


class RemoteError(ContentSyncError):
    """A remote store operation failed."""


class RemoteConflictError(RemoteError):
    """Version token mismatch: the file changed since it was loaded."""


class RemoteAuthError(RemoteError):
    """The remote store rejected our credentials."""


class RemoteNotFoundError(RemoteError):
    """Repository, branch or file does not exist."""


class RemoteMisconfigurationError(RemoteError):
    """Token, owner or repository is not configured."""


class RemoteNetworkError(RemoteError):
    """Connection error, timeout or other transport failure."""
