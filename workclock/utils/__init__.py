"""
Utilities for the work clock ledger.
"""

from .errors import (
    WorkClockError,
    ValidationError,
    NotFoundError,
    AlreadyInStateError,
    MalformedPairError,
    TransactionError,
    ParseError,
)
from .time_utils import (
    parse_timestamp,
    format_store_timestamp,
    parse_store_timestamp,
    from_unix_nanos,
    to_utc,
    utc_now,
)

__all__ = [
    'WorkClockError',
    'ValidationError',
    'NotFoundError',
    'AlreadyInStateError',
    'MalformedPairError',
    'TransactionError',
    'ParseError',
    'parse_timestamp',
    'format_store_timestamp',
    'parse_store_timestamp',
    'from_unix_nanos',
    'to_utc',
    'utc_now',
]
