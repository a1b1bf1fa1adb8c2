"""Domain modules: accounts, ledger and support escalation."""
