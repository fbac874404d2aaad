"""Asynchronous market data access over ``ccxt``.

This module is the only place that talks to an exchange. It fetches recent
OHLCV candles and last-trade quotes for a trading pair and adapts the
exchange payloads to :class:`~crypto_tracker.models.PriceBar` and plain
floats, so the resampler and the oracle never see provider formats.

Example:
    ```python
    from crypto_tracker.downloader import MarketData, run

    market = MarketData("binance")
    bars = run(market.bars("BTC", timeframe="1h", limit=48))
    price = run(market.last_price("BTC"))
    ```
"""

import asyncio
import logging
import math

import ccxt.async_support as ccxt
import nest_asyncio
import pandas as pd

from . import config
from .exceptions import DataUnavailable, PriceUnavailable
from .models import PriceBar

logger = logging.getLogger(__name__)

OHLCV_COLUMNS = ["timestamp_open", "open", "high", "low", "close", "volume"]

FETCH_ERRORS = (ccxt.BaseError, OSError, KeyError, TypeError, ValueError)


async def _ohlcv(exchange, symbol, timeframe, limit):
    """Fetch the most recent candles and return them as a formatted DataFrame.

    Args:
        exchange: An instantiated ``ccxt`` exchange with async support.
        symbol (str): Trading pair symbol (e.g., ``"BTC/USDT"``).
        timeframe (str): CCXT timeframe string (e.g., ``"1h"``, ``"1w"``).
        limit (int): Max number of candles to fetch.

    Returns:
        pandas.DataFrame: A DataFrame with columns
        ``[timestamp_open, open, high, low, close, volume, date_open]`` in
        the order the exchange returned them.
    """
    result = await exchange.fetch_ohlcv(symbol=symbol, timeframe=timeframe, limit=limit)
    result_df = pd.DataFrame(result, columns=OHLCV_COLUMNS)
    for col in ["open", "high", "low", "close", "volume"]:
        result_df[col] = pd.to_numeric(result_df[col])
    result_df["date_open"] = pd.to_datetime(result_df["timestamp_open"], unit="ms", utc=True)
    return result_df


class MarketData:
    """Historical-data and quote collaborator backed by one ccxt exchange.

    Args:
        exchange_name (str | None): CCXT exchange id. Defaults to
            ``config.DEFAULT_EXCHANGE``.
        exchange: An already configured async exchange. When given it is
            reused for every call and never closed here; otherwise a fresh
            exchange is opened and closed around each call, so instances can
            be shared across event loops.
    """

    def __init__(self, exchange_name=None, exchange=None):
        self.exchange_name = exchange_name or config.DEFAULT_EXCHANGE
        self.exchange = exchange

    def _open(self):
        return getattr(ccxt, self.exchange_name)({"enableRateLimit": True})

    async def _call(self, method, *args, **kwargs):
        if self.exchange is not None:
            return await method(self.exchange, *args, **kwargs)
        exchange = self._open()
        try:
            return await method(exchange, *args, **kwargs)
        finally:
            await exchange.close()

    async def bars(self, asset, timeframe, limit):
        """Fetch up to ``limit`` most recent bars of ``timeframe`` for an asset.

        Args:
            asset (str): Asset symbol, mapped to its trading pair.
            timeframe (str): CCXT timeframe string.
            limit (int): Number of bars requested.

        Returns:
            list[PriceBar]: Bars in the exchange's order.

        Raises:
            DataUnavailable: If the request fails, the payload is malformed or
                no bar is returned.
        """
        symbol = config.pair_symbol(asset)
        logger.debug(
            "Fetching %s x %s bars for %s on %s", limit, timeframe, symbol, self.exchange_name
        )
        try:
            df = await self._call(_ohlcv, symbol, timeframe, limit)
        except FETCH_ERRORS as err:
            raise DataUnavailable(f"Could not fetch {timeframe} bars for {symbol}: {err}") from err
        if df.empty:
            raise DataUnavailable(f"No {timeframe} bars returned for {symbol}")
        return [
            PriceBar(time=row.date_open, close_price=float(row.close))
            for row in df.itertuples(index=False)
        ]

    async def last_price(self, asset):
        """Fetch the latest traded price of an asset.

        Args:
            asset (str): Asset symbol, mapped to its trading pair.

        Returns:
            float: The last trade price in the quote currency.

        Raises:
            PriceUnavailable: If the request fails or the ticker carries no
                usable price.
        """
        symbol = config.pair_symbol(asset)
        try:
            ticker = await self._call(_ticker, symbol)
            price = float(ticker["last"])
        except FETCH_ERRORS as err:
            raise PriceUnavailable(f"Could not fetch the price of {symbol}: {err}") from err
        if not math.isfinite(price) or price < 0:
            raise PriceUnavailable(f"Exchange returned an invalid price for {symbol}: {price}")
        return price


async def _ticker(exchange, symbol):
    return await exchange.fetch_ticker(symbol)


def run(coroutine):
    """Run a coroutine to completion from synchronous code.

    Starts a fresh event loop when none is running. Inside an already running
    loop (e.g. a notebook) the loop is patched with ``nest_asyncio`` so it can
    be re-entered.

    Args:
        coroutine: The awaitable to run.

    Returns:
        object: Whatever the coroutine returns.
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coroutine)
    nest_asyncio.apply(loop)
    return loop.run_until_complete(coroutine)
