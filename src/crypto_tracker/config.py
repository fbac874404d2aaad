"""Tracker-wide settings.

Every value is a plain module attribute so it can be overridden before use,
the same way exchange rate limits are tweaked in the examples:

```python
from crypto_tracker import config

config.SUPPORTED_ASSETS = ("BTC", "ETH", "DOGE")
```
"""

import os

DEFAULT_EXCHANGE = os.environ.get("CRYPTO_TRACKER_EXCHANGE", "binance")
QUOTE_CURRENCY = os.environ.get("CRYPTO_TRACKER_QUOTE", "USDT")

SUPPORTED_ASSETS = ("BTC", "ETH", "XRP", "SOL")

# range name -> (ccxt timeframe, number of bars)
SAMPLING_PLANS = {
    "24h": {"interval": "1h", "limit": 48},
    "7d": {"interval": "1h", "limit": 168},
    "1M": {"interval": "4h", "limit": 180},
    "1Y": {"interval": "1d", "limit": 365},
    "ALL": {"interval": "1w", "limit": 500},
}

# Roughly how many x-axis labels a chart gets, whatever its length.
MAX_LABELS = 10

# Ranges whose labels carry the year.
YEAR_LABEL_RANGES = ("1Y", "ALL")


def pair_symbol(asset, quote=None):
    """Return the ccxt trading pair for an asset (e.g. ``"BTC/USDT"``).

    Args:
        asset (str): Internal asset symbol.
        quote (str | None): Quote currency. Defaults to ``QUOTE_CURRENCY``.

    Returns:
        str: The unified pair symbol.
    """
    return f"{asset}/{quote or QUOTE_CURRENCY}"
