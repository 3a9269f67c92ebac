"""Exception types raised by the collection tracker."""

from __future__ import annotations


class CollectionError(Exception):
    """Base class for collection tracker errors."""


class ConfigError(CollectionError):
    """Required secrets are missing or malformed."""


class SyncError(CollectionError):
    """The remote spreadsheet store could not be read or written."""


class AnalysisError(CollectionError):
    """The AI photo analysis failed or returned unusable output."""
