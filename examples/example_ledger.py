"""Record a few trades and value the resulting portfolio.

The ledger starts from the demo holdings (1 BTC bought at 40 000 and 5 ETH
bought at 2 500), records a buy and a sell, then prints each position at
live prices.

Args:
    None: The script is intended to be executed directly.

Returns:
    None: Outputs the portfolio to stdout.
"""

import sys

sys.path.append("./src")


from crypto_tracker import PositionLedger, PriceOracle, Transaction
from crypto_tracker.downloader import run

ledger = PositionLedger.from_holdings(
    [
        {"asset": "BTC", "price": 40000, "quantity": 1},
        {"asset": "ETH", "price": 2500, "quantity": 5},
    ]
)
ledger.record(Transaction(asset="BTC", type="buy", price=44000, quantity=1))
ledger.record({"asset": "ETH", "type": "sell", "price": 3000, "quantity": 2})

prices = run(PriceOracle().latest_many(ledger.positions))
ledger.describe(prices)
