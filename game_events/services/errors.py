"""
Pipeline error taxonomy.

Only conditions a caller has to act on are exceptions. Malformed feed entries,
videos without events and inserts into an existing key are normal outcomes.
"""


class PipelineError(Exception):
    """Base class for ingestion pipeline errors"""
    pass


class FetchFailure(PipelineError):
    """Raised when both the feed and the page fallback failed for a channel"""

    def __init__(self, channel_identifier: str, reason: str | None = None):
        self.channel_identifier = channel_identifier
        self.reason = reason
        message = f"Failed to fetch videos for channel {channel_identifier}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ResolutionFailure(PipelineError):
    """Raised when a channel URL cannot be mapped to a channel identifier"""

    def __init__(self, url: str, reason: str | None = None):
        self.url = url
        self.reason = reason
        message = f"Could not resolve a channel identifier from {url}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
