"""Marketplace ledger and support escalation server."""

__version__ = "0.1.0"
