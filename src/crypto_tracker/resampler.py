"""Turn raw price history into a chart-ready, sparsely labeled series.

A named range (``"24h"``, ``"7d"``, ``"1M"``, ``"1Y"``, ``"ALL"``) selects a
bar interval and a bar count. The bars returned by the exchange are reduced
to a list of close prices and a list of labels of the same length, where only
about ``config.MAX_LABELS`` entries are non-empty so the x-axis stays
readable whatever the number of bars.
"""

import logging
import threading

import pandas as pd

from . import config
from .downloader import MarketData
from .exceptions import DataUnavailable, PriceUnavailable, StaleRequest, UnsupportedRange
from .models import ChartSeries, SamplingPlan
from .oracle import PriceOracle

logger = logging.getLogger(__name__)


def sampling_plan(range_name):
    """Resolve a range name to its bar interval and bar count.

    Raises:
        UnsupportedRange: If the range is not in ``config.SAMPLING_PLANS``.
    """
    try:
        plan = config.SAMPLING_PLANS[range_name]
    except (KeyError, TypeError) as err:
        raise UnsupportedRange(
            f"Unsupported range {range_name!r}. Available ranges : {list(config.SAMPLING_PLANS)}"
        ) from err
    return SamplingPlan(interval=plan["interval"], count=plan["limit"])


def label_step(size):
    """Spacing between non-empty labels for a series of ``size`` points."""
    return max(1, size // config.MAX_LABELS)


def format_label(time, range_name):
    """Format a bar time for the x-axis, in UTC.

    ``24h`` charts show the hour (``"07:00"``). Other ranges show the day and
    abbreviated month (``"3 Feb"``), plus the year for long ranges.
    """
    time = pd.Timestamp(time)
    time = time.tz_localize("UTC") if time.tzinfo is None else time.tz_convert("UTC")
    if range_name == "24h":
        return f"{time.hour:02d}:00"
    label = f"{time.day} {time.strftime('%b')}"
    if range_name in config.YEAR_LABEL_RANGES:
        label = f"{label} {time.year}"
    return label


def build_series(bars, range_name):
    """Reduce bars to labels and values, keeping the provider order.

    Args:
        bars (list[PriceBar]): Bars as received.
        range_name (str): Range the bars were fetched for; drives label format.

    Returns:
        ChartSeries: ``len(labels) == len(values) == len(bars)``.
    """
    size = len(bars)
    step = label_step(size)
    labels = [
        format_label(bar.time, range_name) if index % step == 0 or index == size - 1 else ""
        for index, bar in enumerate(bars)
    ]
    return ChartSeries(labels=labels, values=[bar.close_price for bar in bars])


class TimeSeriesResampler:
    """Fetch and resample price history for charting.

    The bars behind the last completed request are kept in ``bars``, and its
    ``(asset, range_name)`` in ``request``, so a chart index can be mapped
    back to its exact timestamp.

    Args:
        market (MarketData | None): Historical-data collaborator.
        oracle (PriceOracle | None): Quote collaborator used by
            ``current_price``. Defaults to an oracle on ``market``.
    """

    def __init__(self, market=None, oracle=None):
        self.market = market or MarketData()
        self.oracle = oracle or PriceOracle(self.market)
        self.bars = []
        self.request = None
        self._ticket = 0
        self._lock = threading.Lock()

    async def resample(self, asset, range_name):
        """Build the chart series of ``asset`` over ``range_name``.

        A failed fetch yields an empty series, which callers must read as "no
        data" rather than a zero price.

        Raises:
            UnsupportedRange: If ``range_name`` is unknown. Nothing is fetched.
            StaleRequest: If another ``resample`` call started while this one
                was waiting on the exchange. Its result is dropped.
        """
        plan = sampling_plan(range_name)
        with self._lock:
            self._ticket += 1
            ticket = self._ticket
        try:
            bars = await self.market.bars(asset, plan.interval, plan.count)
        except DataUnavailable as err:
            logger.warning("%s", err)
            bars = []
        with self._lock:
            if ticket != self._ticket:
                raise StaleRequest(
                    f"Dropped {range_name} series of {asset}, a newer request is pending"
                )
            self.bars = list(bars)
            self.request = (asset, range_name)
        return build_series(bars, range_name)

    def bar_at(self, index):
        """Return the raw bar behind chart point ``index`` of the last series."""
        with self._lock:
            return self.bars[index]

    def bar_for(self, asset, range_name, index):
        """Raw bar at ``index`` if the last series is ``asset`` over ``range_name``.

        Returns:
            PriceBar | None: None when another series is loaded or ``index`` is
                out of range.
        """
        with self._lock:
            if (asset, range_name) != self.request or not 0 <= index < len(self.bars):
                return None
            return self.bars[index]

    async def current_price(self, asset):
        """Latest price of ``asset``, or None when it cannot be fetched."""
        try:
            return await self.oracle.latest(asset)
        except PriceUnavailable as err:
            logger.warning("%s", err)
            return None
