"""Error types raised by the ledger, the oracle and the resampler.

Caller errors (``InvalidTransaction``, ``UnsupportedRange``) are raised
synchronously and leave state untouched. Market-data errors
(``PriceUnavailable``, ``DataUnavailable``) are soft failures: callers
decide what to show.
"""


class TrackerError(Exception):
    """Base class for every error raised by ``crypto_tracker``."""


class InvalidTransaction(TrackerError):
    """Raised when a transaction has a bad asset, type, price or quantity."""


class UnsupportedRange(TrackerError):
    """Raised when a chart range name is not in the sampling table."""


class PriceUnavailable(TrackerError):
    """Raised when the latest quote for an asset cannot be fetched."""


class DataUnavailable(TrackerError):
    """Raised when the price history for an asset cannot be fetched."""


class StaleRequest(TrackerError):
    """Raised when a newer resample request superseded this one."""
