"""Exceptions for srefsync."""


class SrefSyncError(Exception):
    """Base class for srefsync errors."""


class ConfigError(SrefSyncError, ValueError):
    """Raised when the sync configuration is present but invalid."""


class MetadataError(SrefSyncError, ValueError):
    """Raised when an entry's metadata document fails validation.

    Attributes:
        source: Where the document came from (usually its file path).
        problems: Every problem found, in field order.
    """

    def __init__(self, source, problems):
        self.source = str(source) if source is not None else None
        self.problems = list(problems)
        where = f"{self.source}: " if self.source else ""
        super().__init__(where + "; ".join(self.problems))
