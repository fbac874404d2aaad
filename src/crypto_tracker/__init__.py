"""Portfolio ledger and price chart feed for a handful of crypto assets.

This module re-exports the entry points of the package so they can be used
as ``crypto_tracker.PositionLedger``, ``crypto_tracker.TimeSeriesResampler``
and ``crypto_tracker.PriceOracle``.
"""

from .exceptions import (
    DataUnavailable,
    InvalidTransaction,
    PriceUnavailable,
    StaleRequest,
    TrackerError,
    UnsupportedRange,
)
from .models import ChartSeries, Position, PriceBar, SamplingPlan, Transaction
from .oracle import PriceOracle
from .resampler import TimeSeriesResampler
from .utils.portfolio import PositionLedger

__all__ = [
    "ChartSeries",
    "DataUnavailable",
    "InvalidTransaction",
    "Position",
    "PositionLedger",
    "PriceBar",
    "PriceOracle",
    "PriceUnavailable",
    "SamplingPlan",
    "StaleRequest",
    "TimeSeriesResampler",
    "TrackerError",
    "Transaction",
    "UnsupportedRange",
]
