"""Utility modules for bookkeeping.

- `history`: Append-only, column-indexed transaction log.
- `portfolio`: Position ledger with weighted-average cost basis.
"""
