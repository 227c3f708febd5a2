"""Utility functions for ledgerguard."""

from ledgerguard.utils.date_parser import parse_date
from ledgerguard.utils.amount_parser import parse_amount

__all__ = ["parse_date", "parse_amount"]
