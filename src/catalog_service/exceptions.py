"""Errors raised by the catalog sync pipeline."""


class CatalogSyncError(Exception):
    """Base class for errors that end a sync pass."""


class FeedTransportError(CatalogSyncError):
    """The product feed could not be fetched."""


class FeedParseError(CatalogSyncError):
    """The product feed body is not a usable JSON document."""
