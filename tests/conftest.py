import pandas as pd
import pytest

from crypto_tracker.downloader import MarketData


def make_candles(count, start="2024-01-01 00:00", freq="1h", first_close=100.0):
    """OHLCV rows shaped like ccxt ``fetch_ohlcv`` output."""
    times = pd.date_range(start=start, periods=count, freq=freq, tz="UTC")
    rows = []
    for i, time in enumerate(times):
        close = first_close + i
        rows.append([int(time.timestamp() * 1000), close - 1, close + 1, close - 2, close, 10.0])
    return rows


class FakeExchange:
    """Stands in for an async ccxt exchange."""

    def __init__(self, candles=None, tickers=None, ohlcv_error=None):
        self.candles = candles if candles is not None else []
        self.tickers = tickers or {}
        self.ohlcv_error = ohlcv_error
        self.ohlcv_calls = []
        self.ticker_calls = []

    async def fetch_ohlcv(self, symbol, timeframe, limit):
        self.ohlcv_calls.append((symbol, timeframe, limit))
        if self.ohlcv_error is not None:
            raise self.ohlcv_error
        return self.candles[-limit:]

    async def fetch_ticker(self, symbol):
        self.ticker_calls.append(symbol)
        ticker = self.tickers.get(symbol)
        if isinstance(ticker, Exception):
            raise ticker
        if ticker is None:
            raise KeyError(symbol)
        return ticker


@pytest.fixture
def fake_exchange():
    return FakeExchange(
        candles=make_candles(48),
        tickers={"BTC/USDT": {"last": 43000.5}, "ETH/USDT": {"last": "2600"}},
    )


@pytest.fixture
def market(fake_exchange):
    return MarketData("binance", exchange=fake_exchange)
