import numpy as np

from ..models import Transaction

TRANSACTION_COLUMNS = ["asset", "type", "price", "quantity"]


class TransactionLog:
    """Append-only, ordered store of recorded transactions.

    Rows live in a numpy object array that grows as needed. Access supports
    several forms via `__getitem__`: by position, by column name, a tuple of
    (column, t), or a list of columns.
    """

    def __init__(self, initial_size=256):
        """Initialize an empty log.

        Args:
            initial_size (int): Number of rows allocated up front. The storage
                doubles whenever it fills up.
        """
        self.columns = list(TRANSACTION_COLUMNS)
        self.width = len(self.columns)
        self.height = max(1, initial_size)
        self.storage = np.zeros(shape=(self.height, self.width), dtype="O")
        self.size = 0

    def append(self, transaction: Transaction):
        """Append a transaction at the end of the log.

        Args:
            transaction (Transaction): The transaction to store.
        """
        if self.size == self.height:
            self.storage = np.vstack(
                [self.storage, np.zeros(shape=(self.height, self.width), dtype="O")]
            )
            self.height *= 2
        self.storage[self.size, :] = [getattr(transaction, column) for column in self.columns]
        self.size += 1

    def _column_index(self, column):
        try:
            return self.columns.index(column)
        except ValueError as err:
            raise ValueError(
                f"Column {column} does not exist ... Check the available columns : "
                f"{self.columns}"
            ) from err

    def __len__(self):
        return self.size

    def __iter__(self):
        for t in range(self.size):
            yield self[t]

    def __getitem__(self, arg):
        """Retrieve transactions by position, column, or combinations.

        Supports the following forms:
        - (column: str, t: int) -> scalar; value of the column for row t.
        - t: int -> Transaction; the transaction at position t.
        - column: str -> numpy.ndarray; values for that column over all rows.
        - columns: list[str] -> numpy.ndarray; table with the selected columns.

        Args:
            arg (tuple | int | str | list[str]): Indexing argument.

        Returns:
            object: Value, transaction or array depending on the input form.

        Raises:
            ValueError: If a requested column is not found.
            TypeError: If the argument form is not supported.
        """
        rows = self.storage[: self.size]
        if isinstance(arg, tuple):
            column, t = arg
            return rows[t, self._column_index(column)]
        if isinstance(arg, int):
            return Transaction(**dict(zip(self.columns, rows[arg])))
        if isinstance(arg, str):
            return rows[:, self._column_index(arg)]
        if isinstance(arg, list):
            return rows[:, [self._column_index(column) for column in arg]]
        raise TypeError(f"Unsupported index type: {type(arg).__name__}")

    def to_list(self):
        return list(self)
