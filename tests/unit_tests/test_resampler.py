"""
Tests for TimeSeriesResampler.

Tests in this module verify that:
- Range names resolve to the fixed sampling table
- Series always have one label and one value per received bar
- Only every step-th point and the last point carry a label
- Failed fetches produce an empty series and stale requests are dropped
"""

import asyncio
import math
from concurrent.futures import ThreadPoolExecutor

import ccxt
import pandas as pd
import pytest

from conftest import FakeExchange, make_candles
from crypto_tracker import StaleRequest, TimeSeriesResampler, UnsupportedRange
from crypto_tracker.downloader import MarketData
from crypto_tracker.models import PriceBar, SamplingPlan
from crypto_tracker.resampler import build_series, format_label, label_step, sampling_plan


def make_bars(count, freq="1h"):
    times = pd.date_range("2024-01-01", periods=count, freq=freq, tz="UTC")
    return [PriceBar(time=time, close_price=float(i)) for i, time in enumerate(times)]


@pytest.mark.parametrize(
    "range_name, interval, count",
    [("24h", "1h", 48), ("7d", "1h", 168), ("1M", "4h", 180), ("1Y", "1d", 365), ("ALL", "1w", 500)],
)
def test_sampling_table(range_name, interval, count):
    assert sampling_plan(range_name) == SamplingPlan(interval=interval, count=count)


def test_unknown_range():
    with pytest.raises(UnsupportedRange):
        sampling_plan("bogus")


@pytest.mark.parametrize("size", [0, 1, 2, 9, 10, 11, 19, 20, 47, 48, 100, 168, 180, 365, 499, 500])
def test_lengths_and_label_count(size):
    series = build_series(make_bars(size), "7d")
    assert len(series.labels) == len(series.values) == size
    if size == 0:
        return

    step = label_step(size)
    labeled = [i for i, label in enumerate(series.labels) if label]
    expected = math.ceil(size / step) + (0 if (size - 1) % step == 0 else 1)
    assert len(labeled) == expected
    assert labeled[-1] == size - 1
    assert all(i % step == 0 for i in labeled[:-1])


def test_24h_hourly_labels():
    series = build_series(make_bars(48), "24h")
    step = label_step(48)

    assert step == 4
    assert series.values == [float(i) for i in range(48)]
    labeled = {i: label for i, label in enumerate(series.labels) if label}
    assert list(labeled) == list(range(0, 48, step)) + [47]
    assert labeled[0] == "00:00"
    assert labeled[4] == "04:00"
    assert labeled[47] == "23:00"


def test_label_formats():
    time = pd.Timestamp("2024-03-05 07:00", tz="UTC")

    assert format_label(time, "24h") == "07:00"
    assert format_label(time, "7d") == "5 Mar"
    assert format_label(time, "1M") == "5 Mar"
    assert format_label(time, "1Y") == "5 Mar 2024"
    assert format_label(time, "ALL") == "5 Mar 2024"


def test_labels_are_rendered_in_utc():
    time = pd.Timestamp("2024-03-05 23:30", tz="America/New_York")

    assert format_label(time, "24h") == "04:00"
    assert format_label(time, "7d") == "6 Mar"


@pytest.mark.asyncio
async def test_resample_uses_plan_and_pair(market, fake_exchange):
    resampler = TimeSeriesResampler(market)
    series = await resampler.resample("BTC", "24h")

    assert fake_exchange.ohlcv_calls == [("BTC/USDT", "1h", 48)]
    assert len(series) == 48
    assert series.labels[0] == "00:00"
    assert resampler.request == ("BTC", "24h")
    assert resampler.bar_at(47).time == pd.Timestamp("2024-01-02 23:00", tz="UTC")


@pytest.mark.asyncio
async def test_short_response_uses_actual_length():
    exchange = FakeExchange(candles=make_candles(37, freq="1d"))
    resampler = TimeSeriesResampler(MarketData(exchange=exchange))

    series = await resampler.resample("ETH", "1Y")

    assert len(series.labels) == len(series.values) == 37
    assert series.labels[-1] == "6 Feb 2024"
    assert sum(1 for label in series.labels if label) == 13


@pytest.mark.asyncio
async def test_provider_error_gives_empty_series():
    exchange = FakeExchange(ohlcv_error=ccxt.NetworkError("connection reset"))
    resampler = TimeSeriesResampler(MarketData(exchange=exchange))

    series = await resampler.resample("BTC", "7d")

    assert series.empty
    assert series.to_dict() == {"labels": [], "values": []}
    assert resampler.bars == []


@pytest.mark.asyncio
async def test_zero_bars_gives_empty_series():
    resampler = TimeSeriesResampler(MarketData(exchange=FakeExchange(candles=[])))

    assert (await resampler.resample("BTC", "ALL")).to_dict() == {"labels": [], "values": []}


@pytest.mark.asyncio
async def test_unknown_range_fetches_nothing(market, fake_exchange):
    resampler = TimeSeriesResampler(market)

    with pytest.raises(UnsupportedRange):
        await resampler.resample("BTC", "bogus")
    assert fake_exchange.ohlcv_calls == []


class BlockingExchange(FakeExchange):
    """Holds the first OHLCV request until released."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.release = asyncio.Event()

    async def fetch_ohlcv(self, symbol, timeframe, limit):
        if not self.ohlcv_calls:
            self.ohlcv_calls.append((symbol, timeframe, limit))
            await self.release.wait()
            return self.candles[-limit:]
        return await super().fetch_ohlcv(symbol, timeframe, limit)


@pytest.mark.asyncio
async def test_superseded_request_is_dropped():
    exchange = BlockingExchange(candles=make_candles(200))
    resampler = TimeSeriesResampler(MarketData(exchange=exchange))

    first = asyncio.create_task(resampler.resample("BTC", "24h"))
    await asyncio.sleep(0)
    latest = await resampler.resample("ETH", "7d")
    exchange.release.set()

    with pytest.raises(StaleRequest):
        await first
    assert len(latest) == 168
    assert resampler.request == ("ETH", "7d")
    assert len(resampler.bars) == 168


@pytest.mark.asyncio
async def test_current_price(market):
    resampler = TimeSeriesResampler(market)

    assert await resampler.current_price("BTC") == 43000.5
    assert await resampler.current_price("SOL") is None


@pytest.mark.asyncio
async def test_bar_for_matches_the_loaded_series(market):
    resampler = TimeSeriesResampler(market)
    await resampler.resample("BTC", "24h")

    assert resampler.bar_for("BTC", "24h", 0).close_price == 100.0
    assert resampler.bar_for("BTC", "24h", 48) is None
    assert resampler.bar_for("BTC", "24h", -1) is None
    assert resampler.bar_for("ETH", "24h", 0) is None
    assert resampler.bar_for("BTC", "7d", 0) is None


def resample_in_thread(resampler, asset):
    try:
        return asyncio.run(resampler.resample(asset, "24h"))
    except StaleRequest:
        return None


def test_resample_from_many_threads_keeps_bars_consistent():
    resampler = TimeSeriesResampler(MarketData(exchange=FakeExchange(candles=make_candles(48))))
    assets = ["BTC", "ETH", "XRP", "SOL"] * 5

    with ThreadPoolExecutor(max_workers=4) as pool:
        results = list(pool.map(lambda asset: resample_in_thread(resampler, asset), assets))

    assert resampler._ticket == len(assets)
    assert any(result is not None for result in results)
    assert all(result is None or len(result) == 48 for result in results)
    assert resampler.request in [(asset, "24h") for asset in assets]
    assert len(resampler.bars) == 48
