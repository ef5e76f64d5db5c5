"""Utility functions for ledgerwise."""

from ledgerwise.utils.date_parser import parse_date, parse_month
from ledgerwise.utils.amount_parser import parse_amount, parse_rate

__all__ = ["parse_date", "parse_month", "parse_amount", "parse_rate"]
