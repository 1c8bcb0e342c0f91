"""
Bank Ledger

A single-process bank account ledger with role-gated console menus,
append-only per-account transaction logs and flat binary persistence.
"""

__version__ = "1.0.0"
