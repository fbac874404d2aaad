"""Value objects shared by the ledger, the oracle and the resampler."""

import math
from dataclasses import asdict, dataclass, field

import pandas as pd

from .exceptions import InvalidTransaction

BUY = "buy"
SELL = "sell"
TRANSACTION_TYPES = (BUY, SELL)


def _as_number(data, name):
    try:
        value = float(data[name])
    except KeyError as err:
        raise InvalidTransaction(f"Missing required field '{name}'") from err
    except (TypeError, ValueError) as err:
        raise InvalidTransaction(f"Field '{name}' must be a number, got {data[name]!r}") from err
    if not math.isfinite(value):
        raise InvalidTransaction(f"Field '{name}' must be finite, got {value}")
    return value


@dataclass(frozen=True)
class Transaction:
    """A single buy or sell as submitted by the caller.

    ``quantity`` is always the positive magnitude entered by the user; the
    direction comes from ``type``.
    """

    asset: str
    type: str
    price: float
    quantity: float

    @property
    def delta(self):
        """Signed quantity change this transaction applies to its position."""
        return self.quantity if self.type == BUY else -self.quantity

    @classmethod
    def from_dict(cls, data):
        """Build a transaction from a request payload.

        Args:
            data (dict): Mapping with ``asset``, ``type``, ``price`` and
                ``quantity``. Numbers may be given as strings.

        Returns:
            Transaction: The parsed transaction (not yet validated against a
            ledger's asset set).

        Raises:
            InvalidTransaction: If a field is missing or not a number.
        """
        if not isinstance(data, dict):
            raise InvalidTransaction("Transaction payload must be an object")
        for name in ("asset", "type"):
            if not data.get(name):
                raise InvalidTransaction(f"Missing required field '{name}'")
        return cls(
            asset=str(data["asset"]),
            type=str(data["type"]).lower(),
            price=_as_number(data, "price"),
            quantity=_as_number(data, "quantity"),
        )

    def to_dict(self):
        return asdict(self)


@dataclass
class Position:
    """Running holdings and weighted-average cost for one asset."""

    asset: str
    quantity: float = 0.0
    avg_buy_price: float = 0.0

    def value(self, price):
        return price * self.quantity

    def profit_loss(self, price):
        """Unrealized profit or loss of the held quantity at ``price``."""
        return price * self.quantity - self.avg_buy_price * self.quantity

    def to_dict(self):
        return asdict(self)


@dataclass(frozen=True)
class PriceBar:
    """One historical observation: bar open time and close price."""

    time: pd.Timestamp
    close_price: float

    def to_dict(self):
        return {"time": self.time.isoformat(), "close_price": self.close_price}


@dataclass(frozen=True)
class SamplingPlan:
    interval: str
    count: int


@dataclass
class ChartSeries:
    """Labels and values of equal length, ready for a line chart."""

    labels: list = field(default_factory=list)
    values: list = field(default_factory=list)

    def __len__(self):
        return len(self.values)

    @property
    def empty(self):
        return len(self.values) == 0

    def to_dict(self):
        return {"labels": list(self.labels), "values": list(self.values)}
