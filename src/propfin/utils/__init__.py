"""Utility functions for propfin."""

from propfin.utils.date_parser import parse_date, parse_datetime, to_calendar_date, utc_now
from propfin.utils.amount_parser import parse_amount

__all__ = ["parse_date", "parse_datetime", "to_calendar_date", "utc_now", "parse_amount"]
