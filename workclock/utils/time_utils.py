"""
Timestamp helpers shared by the store, the importer and the command line tools.
"""
import datetime
from typing import Optional

from .errors import ParseError

# Fixed-width text format used by the store, always UTC with milliseconds
STORE_FORMAT = "%Y-%m-%d %H:%M:%S.%fZ"

_LOCAL_FORMATS = [
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%d.%m.%Y %H:%M:%S",
    "%d.%m.%Y %H:%M",
]


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def to_utc(value: datetime.datetime) -> datetime.datetime:
    """
    Normalize a datetime to aware UTC, truncated to millisecond precision.
    Naive values are interpreted as local time.
    """
    if value.tzinfo is None:
        value = value.astimezone()
    value = value.astimezone(datetime.timezone.utc)
    return value.replace(microsecond=(value.microsecond // 1000) * 1000)


def format_store_timestamp(value: datetime.datetime) -> str:
    """Format a datetime as 'YYYY-MM-DD HH:MM:SS.mmmZ' in UTC"""
    value = to_utc(value)
    return value.strftime("%Y-%m-%d %H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_store_timestamp(text: str) -> datetime.datetime:
    """Parse the store text format back into an aware UTC datetime"""
    try:
        parsed = datetime.datetime.strptime(text, STORE_FORMAT)
    except ValueError:
        raise ParseError(f"Invalid store timestamp: {text!r}")
    return parsed.replace(tzinfo=datetime.timezone.utc)


def from_unix_nanos(nanos: int) -> datetime.datetime:
    """Convert nanoseconds since the epoch into an aware UTC datetime"""
    seconds, remainder = divmod(int(nanos), 1_000_000_000)
    base = datetime.datetime.fromtimestamp(seconds, tz=datetime.timezone.utc)
    return base + datetime.timedelta(microseconds=remainder // 1000)


def unix_millis(value: datetime.datetime) -> int:
    value = to_utc(value)
    epoch = datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc)
    return (value - epoch) // datetime.timedelta(milliseconds=1)


def parse_timestamp(text: Optional[str]) -> datetime.datetime:
    """
    Parse a user supplied timestamp.

    Accepts RFC 3339 ('2024-01-15T14:30:00Z', '2024-01-15T14:30:00.123+01:00'),
    the store format ('2024-01-15 14:30:00.000Z') and local formats such as
    'YYYY-MM-DD HH:MM:SS' or 'DD.MM.YYYY HH:MM'. Local formats are
    interpreted in the system timezone.

    Returns:
        Aware UTC datetime

    Raises:
        ParseError: if the text matches none of the supported formats
    """
    if not text or not text.strip():
        raise ParseError("Missing timestamp: please provide an RFC 3339 formatted timestamp")
    text = text.strip()

    if text.endswith("Z") and " " in text:
        try:
            return parse_store_timestamp(text)
        except ParseError:
            pass

    iso_text = text[:-1] + "+00:00" if text.endswith("Z") else text
    try:
        parsed = datetime.datetime.fromisoformat(iso_text)
    except ValueError:
        parsed = None
    if parsed is not None:
        return to_utc(parsed)

    for fmt in _LOCAL_FORMATS:
        try:
            return to_utc(datetime.datetime.strptime(text, fmt))
        except ValueError:
            continue

    raise ParseError(
        f"Could not parse timestamp: {text!r}. Supported formats: RFC 3339, "
        "YYYY-MM-DD HH:MM[:SS], DD.MM.YYYY HH:MM[:SS]"
    )
