"""Serve the chart and portfolio feed on http://127.0.0.1:5000.

Try ``/chart/BTC/7d``, ``/price/ETH`` or ``/portfolio``, and POST trades to
``/transactions``.
"""

import logging
import sys

sys.path.append("./src")


from crypto_tracker.renderer import Renderer
from crypto_tracker.utils.portfolio import PositionLedger

logging.basicConfig(level=logging.INFO)

ledger = PositionLedger.from_holdings(
    [
        {"asset": "BTC", "price": 40000, "quantity": 1},
        {"asset": "ETH", "price": 2500, "quantity": 5},
    ]
)
renderer = Renderer(ledger=ledger)
renderer.run()
