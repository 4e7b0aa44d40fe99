"""
Exception hierarchy for the ingestion pipeline.
"""


class IngestError(Exception):
    """Base error for the ingestion pipeline."""


class ConfigurationError(IngestError):
    """A required setting is missing or invalid; the run cannot start."""


class StoreError(IngestError):
    """A read or write against the content store failed."""


class DuplicateContentError(IngestError):
    """More than one stored record shares an identity key."""

    def __init__(self, source_url: str, title: str, count: int):
        self.source_url = source_url
        self.title = title
        self.count = count
        super().__init__(
            f"{count} stored records share identity key ({source_url!r}, {title!r})"
        )
