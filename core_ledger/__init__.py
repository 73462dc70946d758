"""
Core Ledger

Accounts with non-negative balances and deposit/withdrawal transactions,
where every transaction row and its balance update commit or roll back
together. All financial math uses Decimal.
"""

__version__ = "1.0.0"
