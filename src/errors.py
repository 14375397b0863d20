"""
Exception taxonomy for the archiver.

Per-item errors (TransportError, ResolutionFailed, ThreadFetchFailed, …) are
caught at the item boundary and turned into a `failed` counter or a fallback
path. Only ConfigurationInvalid is fatal.
"""


class ArchiveError(Exception):
    """Base class for all archiver errors."""


class ConfigurationInvalid(ArchiveError):
    """User configuration cannot be used (e.g. empty file naming scheme)."""


class SourceUnavailable(ArchiveError):
    """Subreddit or user is private, banned, nonexistent, or returned no posts."""

    def __init__(self, source: str, reason: str = ""):
        self.source = source
        self.reason = reason
        super().__init__(f"{source}: {reason}" if reason else source)


class TransportError(ArchiveError):
    """A content download failed mid-flight or could not start."""

    def __init__(self, url: str, reason: str = ""):
        self.url = url
        self.reason = reason
        super().__init__(f"{url}: {reason}" if reason else url)


class CredentialUnavailable(ArchiveError):
    """The RedGIFs temporary token could not be obtained."""


class ResolutionFailed(ArchiveError):
    """A RedGIFs lookup failed or returned no usable rendition."""


class ThreadFetchFailed(ArchiveError):
    """The discussion thread of a post could not be fetched."""


class StreamingVideoError(ArchiveError):
    """Experimental streaming-video download or muxing failed."""
