import asyncio
import logging

from .downloader import MarketData
from .exceptions import PriceUnavailable

logger = logging.getLogger(__name__)


class PriceOracle:
    """Latest traded price of an asset, fetched fresh on every call.

    Args:
        market (MarketData | None): Quote collaborator. Defaults to a
            ``MarketData`` on the configured exchange.
    """

    def __init__(self, market=None):
        self.market = market or MarketData()
        self.last_prices = {}

    async def latest(self, asset):
        """Fetch the current price of ``asset``.

        Raises:
            PriceUnavailable: If the quote cannot be fetched. ``last_prices``
                keeps its previous value for the asset.
        """
        price = await self.market.last_price(asset)
        self.last_prices[asset] = price
        return price

    async def latest_many(self, assets):
        """Fetch several quotes concurrently.

        Returns:
            dict[str, float]: Price per asset. Assets whose quote failed are
                left out.
        """
        assets = list(assets)
        results = await asyncio.gather(
            *[self.latest(asset) for asset in assets], return_exceptions=True
        )
        prices = {}
        for asset, result in zip(assets, results):
            if isinstance(result, PriceUnavailable):
                logger.warning("%s", result)
            elif isinstance(result, BaseException):
                raise result
            else:
                prices[asset] = result
        return prices
