"""Ledger integrity checks for a pharmacy point-of-sale back office."""

__version__ = "0.1.0"


# Import main lazily to avoid circular dependencies
def __getattr__(name):
    if name == "main":
        from ledgerguard.cli.main import main
        return main
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
