"""Flask-based JSON feed for a portfolio and price chart front-end.

This module exposes a small Flask app that serves chart series, live prices
and the ledger state. The chart widget itself lives in the front-end; every
action it triggers (selecting an asset, changing the range, submitting a
trade) maps to one explicit request here.
"""

import logging
import threading

from flask import Flask, jsonify, request

from . import config
from .downloader import MarketData, run
from .exceptions import (
    DataUnavailable,
    InvalidTransaction,
    PriceUnavailable,
    StaleRequest,
    TrackerError,
    UnsupportedRange,
)
from .models import Transaction
from .oracle import PriceOracle
from .resampler import TimeSeriesResampler
from .utils.portfolio import PositionLedger

logger = logging.getLogger(__name__)

STATUS_CODES = {
    InvalidTransaction: 400,
    UnsupportedRange: 400,
    StaleRequest: 409,
    PriceUnavailable: 503,
    DataUnavailable: 503,
}


class Renderer:
    """Feed server exposing the ledger, the oracle and the resampler.

    Args:
        ledger (PositionLedger | None): Ledger to serve. Defaults to an
            empty one.
        market (MarketData | None): Market data used by the default oracle
            and resampler.
        oracle (PriceOracle | None): Quote source for prices and valuation.
        resampler (TimeSeriesResampler | None): Chart series source.
    """

    def __init__(self, ledger=None, market=None, oracle=None, resampler=None):
        self.app = Flask(__name__)
        self.ledger = ledger if ledger is not None else PositionLedger()
        market = market or MarketData()
        self.oracle = oracle or PriceOracle(market)
        self.resampler = resampler or TimeSeriesResampler(market, self.oracle)
        # Flask serves requests on several threads; trades are applied one at a time.
        self._ledger_lock = threading.Lock()
        self._register_routes()

    def _unknown_asset(self, asset):
        return jsonify({"error": f"Unknown asset {asset!r}"}), 404

    @staticmethod
    def _handle_error(err):
        status = STATUS_CODES.get(type(err), 500)
        logger.warning("Request failed with %s: %s", status, err)
        return jsonify({"error": str(err)}), status

    def _register_routes(self):
        """Expose routes.

        Routes:
            - ``/``: Supported assets and ranges.
            - ``/chart/<asset>/<range_name>``: Labels and values to draw.
            - ``/chart/<asset>/<range_name>/bars/<index>``: Raw bar behind a
              chart point of the last series, for tooltips.
            - ``/price/<asset>``: Latest price.
            - ``/portfolio``: Positions and total value at live prices.
            - ``/transactions``: Record a trade (POST) or list them (GET).
        """
        app = self.app
        app.register_error_handler(TrackerError, self._handle_error)

        @app.route("/")
        def index():
            return jsonify(
                {"assets": list(self.ledger.assets), "ranges": list(config.SAMPLING_PLANS)}
            )

        @app.route("/chart/<asset>/<range_name>")
        def chart(asset, range_name):
            if asset not in self.ledger.assets:
                return self._unknown_asset(asset)
            series = run(self.resampler.resample(asset, range_name))
            return jsonify(series.to_dict())

        @app.route("/chart/<asset>/<range_name>/bars/<int:index>")
        def chart_bar(asset, range_name, index):
            bar = self.resampler.bar_for(asset, range_name, index)
            if bar is None:
                message = f"No bar {index} in the {range_name} series of {asset}"
                return jsonify({"error": message}), 404
            return jsonify(bar.to_dict())

        @app.route("/price/<asset>")
        def price(asset):
            if asset not in self.ledger.assets:
                return self._unknown_asset(asset)
            return jsonify({"asset": asset, "price": run(self.oracle.latest(asset))})

        @app.route("/portfolio")
        def portfolio():
            prices = run(self.oracle.latest_many(self.ledger.positions))
            with self._ledger_lock:
                body = {
                    "positions": self.ledger.summary(prices),
                    "total_value": self.ledger.valorisation(prices),
                }
            return jsonify(body)

        @app.route("/transactions", methods=["GET"])
        def list_transactions():
            with self._ledger_lock:
                transactions = self.ledger.transactions.to_list()
            return jsonify([transaction.to_dict() for transaction in transactions])

        @app.route("/transactions", methods=["POST"])
        def add_transaction():
            data = request.get_json(silent=True)
            if not isinstance(data, dict):
                raise InvalidTransaction("Request body must be a JSON object")
            if data.get("price") is None:
                asset = data.get("asset")
                if asset not in self.ledger.assets:
                    raise InvalidTransaction(f"Unknown asset {asset!r}")
                # A trade without an explicit price needs a live one.
                data = {**data, "price": run(self.oracle.latest(asset))}
            with self._ledger_lock:
                position = self.ledger.record(Transaction.from_dict(data))
            return jsonify(position.to_dict()), 201

    def run(self, **kwargs):
        """Start the Flask development server.

        Args:
            **kwargs: Forwarded to ``Flask.run`` (``host``, ``port``...).
        """
        self.app.run(**kwargs)
