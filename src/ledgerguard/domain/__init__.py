"""Domain layer for ledgerguard."""
