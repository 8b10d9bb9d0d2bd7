"""Error taxonomy for the extraction pipeline.

None of these escape ``ListingExtractor.extract``: each is caught at the
boundary where it can be degraded into a partial result.
"""


class CardexError(Exception):
    """Base class for extraction errors."""


class MalformedInput(CardexError):
    """Title is empty, whitespace-only or not a string."""


class KnowledgeTableUnavailable(CardexError):
    """A knowledge table or catalog source could not be loaded."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"{source}: {reason}")


class ExternalLookupFailure(CardexError):
    """External player lookup timed out, failed, or returned garbage."""
