"""Command line entry point.

Subcommands:
    - ``chart``: print the labeled points of an asset over a range.
    - ``price``: print the latest price of one or more assets.
    - ``portfolio``: value starting holdings (``BTC:1:40000``) at live prices.
    - ``serve``: run the JSON feed for a set of starting holdings.
"""

import argparse
import logging
import sys

from . import config
from .downloader import MarketData, run
from .exceptions import TrackerError
from .oracle import PriceOracle
from .renderer import Renderer
from .resampler import TimeSeriesResampler
from .utils.portfolio import PositionLedger

logger = logging.getLogger(__name__)


def parse_holding(text):
    """Parse ``ASSET:QUANTITY:PRICE`` into a holding dict."""
    try:
        asset, quantity, price = text.split(":")
        return {"asset": asset.upper(), "quantity": float(quantity), "price": float(price)}
    except ValueError as err:
        raise argparse.ArgumentTypeError(
            f"Holding must look like ASSET:QUANTITY:PRICE, got {text!r}"
        ) from err


def create_parser():
    parser = argparse.ArgumentParser(
        prog="crypto-tracker",
        description="Track crypto holdings and chart their price history",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--exchange", default=None, help=f"CCXT exchange id (default: {config.DEFAULT_EXCHANGE})"
    )
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND", required=True)

    chart = subparsers.add_parser("chart", help="Print a resampled price series")
    chart.add_argument("asset", type=str.upper)
    chart.add_argument("range_name", nargs="?", default="24h", choices=list(config.SAMPLING_PLANS))
    chart.add_argument("--all", action="store_true", help="Also print unlabeled points")

    price = subparsers.add_parser("price", help="Print latest prices")
    price.add_argument("assets", nargs="+", type=str.upper)

    for name, help_text in [
        ("portfolio", "Value holdings at live prices"),
        ("serve", "Serve the JSON feed"),
    ]:
        subparser = subparsers.add_parser(name, help=help_text)
        subparser.add_argument(
            "--holding",
            "-H",
            dest="holdings",
            action="append",
            type=parse_holding,
            default=[],
            metavar="ASSET:QUANTITY:PRICE",
            help="Starting holding, may be repeated",
        )
        subparser.add_argument(
            "--no-oversell", action="store_true", help="Reject sells larger than the holding"
        )
    serve = subparsers.choices["serve"]
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=5000)
    return parser


def _chart(args, market):
    series = run(TimeSeriesResampler(market).resample(args.asset, args.range_name))
    if series.empty:
        print(f"No {args.range_name} data available for {args.asset}")
        return 1
    for label, value in zip(series.labels, series.values):
        if label or args.all:
            print(f"{label:>12}  {value:.2f}")
    return 0


def _price(args, market):
    prices = run(PriceOracle(market).latest_many(args.assets))
    for asset in args.assets:
        price = prices.get(asset)
        print(f"{asset}: {price:.2f}" if price is not None else f"{asset}: unavailable")
    return 0 if len(prices) == len(args.assets) else 1


def _ledger(args):
    return PositionLedger.from_holdings(args.holdings, allow_oversell=not args.no_oversell)


def _portfolio(args, market):
    ledger = _ledger(args)
    prices = run(PriceOracle(market).latest_many(ledger.positions))
    ledger.describe(prices)
    return 0


def _serve(args, market):
    Renderer(ledger=_ledger(args), market=market).run(host=args.host, port=args.port)
    return 0


COMMANDS = {"chart": _chart, "price": _price, "portfolio": _portfolio, "serve": _serve}


def main(argv=None, market=None):
    """Run the CLI.

    Args:
        argv (list[str] | None): Arguments, defaults to ``sys.argv[1:]``.
        market (MarketData | None): Market data to use instead of a fresh
            ``MarketData`` on ``--exchange``.

    Returns:
        int: Process exit code.
    """
    args = create_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    market = market or MarketData(args.exchange)
    try:
        return COMMANDS[args.command](args, market)
    except TrackerError as err:
        logger.error("%s", err)
        print(f"Error: {err}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
