"""Database module for the settlement ledger."""

from .database import LedgerDatabase, LedgerData

__all__ = [
    "LedgerDatabase",
    "LedgerData",
]
