"""Utility modules for common operations."""

from jobmarket.utils.clock import to_naive_utc, utcnow
from jobmarket.utils.query_params import (
    parse_bool_param,
    parse_datetime_param,
    parse_int_param,
)

__all__ = [
    "parse_int_param",
    "parse_bool_param",
    "parse_datetime_param",
    "utcnow",
    "to_naive_utc",
]
