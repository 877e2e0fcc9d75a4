"""Exception hierarchy shared by the fetch, store and pipeline layers."""

from __future__ import annotations


class InsiderAlertsError(RuntimeError):
    pass


class ConfigError(InsiderAlertsError):
    """A required setting (User-Agent, store credentials) is missing.

    Raised before a run starts; never retried.
    """


class SyncError(InsiderAlertsError):
    """The primary source could not be fetched at all.

    ``result`` carries whatever the other sources contributed.
    """

    def __init__(self, message: str, result=None):
        super().__init__(message)
        self.result = result


class StoreError(InsiderAlertsError):
    pass


class DuplicateRowError(StoreError):
    """Insert hit the unique constraint on ``filing_id``."""

    def __init__(self, filing_id: str):
        super().__init__(f"Row with filing_id {filing_id!r} already exists")
        self.filing_id = filing_id
