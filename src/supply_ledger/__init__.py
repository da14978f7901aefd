"""
Supply Ledger - event-sourced custody ledger for manufactured goods

Tracks products through ordering, raw-material supply, manufacturing,
distribution, retail and sale. Each stage transition may only be performed
by a participant the ledger owner registered for that role, and every
stage entry is timestamped exactly once.
"""

from supply_ledger.facade import SupplyLedger

__version__ = "0.1.0"
__all__ = ["SupplyLedger", "__version__"]
