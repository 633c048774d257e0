"""Utility functions for ci-cleaner."""

from .logging_config import get_logger
from .naming import (
    NamePattern,
    age,
    as_utc,
    matches_any,
    parse_epoch_creation_time,
    prefixes,
    substrings,
    utc_now,
)

__all__ = [
    "get_logger",
    "NamePattern",
    "age",
    "as_utc",
    "matches_any",
    "parse_epoch_creation_time",
    "prefixes",
    "substrings",
    "utc_now",
]
