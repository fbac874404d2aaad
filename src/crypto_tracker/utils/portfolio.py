import logging
import math
import numbers
from dataclasses import replace

from .. import config
from ..exceptions import InvalidTransaction
from ..models import BUY, TRANSACTION_TYPES, Position, Transaction
from .history import TransactionLog

logger = logging.getLogger(__name__)


class PositionLedger:
    """Track holdings and average cost per asset from a transaction stream.

    Cost basis is a simple running average: buys move it, sells do not.
    There is no lot tracking and realized profit is not computed.
    """

    def __init__(self, assets=None, allow_oversell=True):
        """Initialize an empty ledger.

        Args:
            assets (Iterable[str] | None): Recognized asset symbols. Defaults
                to ``config.SUPPORTED_ASSETS``.
            allow_oversell (bool): If False, a sell larger than the held
                quantity is rejected instead of driving the position negative.
        """
        self.assets = tuple(assets) if assets is not None else tuple(config.SUPPORTED_ASSETS)
        self.allow_oversell = allow_oversell
        self._positions = {}
        self._transactions = TransactionLog()

    @classmethod
    def replay(cls, transactions, **kwargs):
        """Build a ledger by recording ``transactions`` in order.

        Args:
            transactions (Iterable[Transaction | dict]): The transaction stream.
            **kwargs: Forwarded to the constructor.

        Returns:
            PositionLedger: The resulting ledger.
        """
        ledger = cls(**kwargs)
        for transaction in transactions:
            ledger.record(transaction)
        return ledger

    @classmethod
    def from_holdings(cls, holdings, **kwargs):
        """Seed a ledger with starting holdings, each booked as a buy.

        Args:
            holdings (Iterable[dict]): Items with ``asset``, ``price`` and
                ``quantity``.
            **kwargs: Forwarded to the constructor.

        Returns:
            PositionLedger: The seeded ledger.
        """
        return cls.replay(({**holding, "type": BUY} for holding in holdings), **kwargs)

    def _validate(self, transaction):
        if transaction.asset not in self.assets:
            raise InvalidTransaction(
                f"Unknown asset {transaction.asset!r}. Supported assets : {list(self.assets)}"
            )
        if transaction.type not in TRANSACTION_TYPES:
            raise InvalidTransaction(
                f"Transaction type must be one of {list(TRANSACTION_TYPES)}, "
                f"got {transaction.type!r}"
            )
        for name in ("price", "quantity"):
            value = getattr(transaction, name)
            if isinstance(value, bool) or not isinstance(value, numbers.Real):
                raise InvalidTransaction(f"{name.capitalize()} must be a number, got {value!r}")
            if not math.isfinite(value):
                raise InvalidTransaction(f"{name.capitalize()} must be finite, got {value}")
        if not transaction.quantity > 0:
            raise InvalidTransaction(f"Quantity must be positive, got {transaction.quantity}")
        if not transaction.price >= 0:
            raise InvalidTransaction(f"Price must not be negative, got {transaction.price}")

    def record(self, transaction):
        """Apply a transaction to the position of its asset.

        A buy moves the average cost to the volume-weighted mean of the
        previous holdings and the new units. A sell only reduces the quantity.

        Args:
            transaction (Transaction | dict): The transaction to apply.

        Returns:
            Position: A copy of the updated position.

        Raises:
            InvalidTransaction: If the transaction is malformed, or if it
                over-sells while ``allow_oversell`` is False. The ledger is
                left unchanged.
        """
        if not isinstance(transaction, Transaction):
            transaction = Transaction.from_dict(transaction)
        self._validate(transaction)

        current = self._positions.get(transaction.asset) or Position(asset=transaction.asset)
        if (
            not self.allow_oversell
            and transaction.type != BUY
            and transaction.quantity > current.quantity
        ):
            raise InvalidTransaction(
                f"Cannot sell {transaction.quantity} {transaction.asset}, "
                f"only {current.quantity} held"
            )

        quantity = current.quantity + transaction.delta
        avg_buy_price = current.avg_buy_price
        if transaction.type == BUY and quantity == 0:
            avg_buy_price = 0
        elif transaction.type == BUY and current.quantity <= 0:
            # Nothing was held, so the new units are the whole cost basis.
            avg_buy_price = transaction.price
        elif transaction.type == BUY:
            cost = (
                current.avg_buy_price * current.quantity
                + transaction.price * transaction.quantity
            )
            avg_buy_price = cost / quantity

        position = Position(asset=transaction.asset, quantity=quantity, avg_buy_price=avg_buy_price)
        self._positions[transaction.asset] = position
        self._transactions.append(transaction)
        logger.debug("Recorded %s -> %s", transaction, position)
        return replace(position)

    def position(self, asset):
        """Return a copy of the position for ``asset``, or None if never traded."""
        position = self._positions.get(asset)
        return replace(position) if position is not None else None

    @property
    def positions(self):
        return {asset: replace(position) for asset, position in self._positions.items()}

    @property
    def transactions(self):
        return self._transactions

    def valorisation(self, prices):
        """Compute the total value of all positions.

        Args:
            prices (dict[str, float]): Current price per asset. Assets without
                a quote contribute 0.

        Returns:
            float: Sum of ``price * quantity`` over the quoted positions.
        """
        return sum(
            [
                position.value(prices[asset])
                for asset, position in self._positions.items()
                if prices.get(asset) is not None
            ]
        )

    def profit_loss(self, asset, price):
        """Unrealized profit or loss of ``asset`` at ``price`` (0 if never traded)."""
        position = self._positions.get(asset)
        return position.profit_loss(price) if position is not None else 0.0

    def summary(self, prices):
        """Describe every position at the given prices.

        Args:
            prices (dict[str, float]): Current price per asset.

        Returns:
            list[dict]: One row per position with ``asset``, ``price``,
                ``quantity``, ``avg_buy_price``, ``value`` and
                ``profit_loss``. Value and profit are 0 and price is None when
                the asset has no quote.
        """
        rows = []
        for asset, position in self._positions.items():
            price = prices.get(asset)
            rows.append(
                {
                    **position.to_dict(),
                    "price": price,
                    "value": position.value(price) if price is not None else 0.0,
                    "profit_loss": position.profit_loss(price) if price is not None else 0.0,
                }
            )
        return rows

    def __str__(self):
        return f"{self.__class__.__name__}({self._positions})"

    def describe(self, prices):
        """Print the portfolio value and every position for the given prices."""
        print("Value : ", self.valorisation(prices))
        for row in self.summary(prices):
            print(row)
