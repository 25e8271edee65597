"""
Projection of a ledger into clock in/out pairs grouped by calendar day.

Pure and synchronous: callers re-run `project()` whenever they need fresh
numbers, e.g. once per second while a session is active.
"""
import datetime
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from ..data.event_store import TimestampEvent
from ..utils.time_utils import to_utc, utc_now

logger = logging.getLogger(__name__)

ZERO = datetime.timedelta(0)


def format_duration(duration: datetime.timedelta) -> str:
    """Format a duration as HH:MM:SS (hours may exceed 24)"""
    total_seconds = max(int(duration.total_seconds()), 0)
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


@dataclass
class EntryPair:
    """A clock in and its clock out, either of which may be missing"""
    clock_in_id: Optional[str] = None
    clock_out_id: Optional[str] = None
    clock_in: Optional[datetime.datetime] = None
    clock_out: Optional[datetime.datetime] = None
    duration: datetime.timedelta = ZERO
    day_boundary: bool = False
    missing_entry: bool = False

    @property
    def is_open(self) -> bool:
        """Clocked in and not yet clocked out"""
        return self.clock_in is not None and self.clock_out is None and not self.missing_entry


@dataclass
class DailyRecord:
    """All pairs of one local calendar day"""
    date: datetime.date
    entry_pairs: List[EntryPair] = field(default_factory=list)
    total_time: datetime.timedelta = ZERO
    has_missing_entries: bool = False
    is_active: bool = False

    @property
    def formatted_total(self) -> str:
        return format_duration(self.total_time)


def _local_date(timestamp: datetime.datetime, tz: Optional[datetime.tzinfo]) -> datetime.date:
    return timestamp.astimezone(tz).date()


def create_pairs(events: Iterable[TimestampEvent],
                 tz: Optional[datetime.tzinfo] = None) -> List[EntryPair]:
    """
    Pair each clock in with the next clock out.

    A clock in followed by another clock in, or a clock out without an open
    clock in, yields a pair flagged `missing_entry`. A trailing clock in is
    the active session and is not flagged.
    """
    pairs = []
    current = None

    for event in events:
        if event.clock_in:
            if current is not None:
                pairs.append(current)
            current = EntryPair(clock_in_id=event.id, clock_in=event.timestamp, missing_entry=True)
        elif current is not None:
            current.clock_out_id = event.id
            current.clock_out = event.timestamp
            current.duration = current.clock_out - current.clock_in
            current.missing_entry = False
            current.day_boundary = _local_date(current.clock_in, tz) != _local_date(current.clock_out, tz)
            pairs.append(current)
            current = None
        else:
            pairs.append(EntryPair(clock_out_id=event.id, clock_out=event.timestamp, missing_entry=True))

    if current is not None:
        current.missing_entry = False
        pairs.append(current)

    return pairs


def _pair_date(pair: EntryPair, now: datetime.datetime, tz: Optional[datetime.tzinfo]) -> datetime.date:
    timestamp = pair.clock_in or pair.clock_out or now
    return _local_date(timestamp, tz)


def _cleanup_stale_record(record: DailyRecord):
    """Demote an older day that still claims an active session"""
    if not record.is_active:
        return

    logger.info(f"Unterminated session on {record.date} is not the latest one, marking as missing entry")
    record.has_missing_entries = True
    record.is_active = False
    record.total_time = ZERO
    for pair in record.entry_pairs:
        if pair.clock_in is None or pair.clock_out is None:
            pair.missing_entry = True
            pair.duration = ZERO
            pair.day_boundary = False
        else:
            record.total_time += pair.duration


def project(events: Iterable[TimestampEvent],
            now: Optional[datetime.datetime] = None,
            tz: Optional[datetime.tzinfo] = None) -> List[DailyRecord]:
    """
    Build daily records from a ledger.

    Args:
        events: Ledger events sorted by timestamp, oldest first
        now: Reference time for the active session (defaults to current time)
        tz: Timezone defining calendar days (defaults to the system timezone)

    Returns:
        DailyRecord list, newest day first
    """
    now = to_utc(now) if now is not None else utc_now()
    pairs = create_pairs(events, tz)

    pairs_by_date: Dict[datetime.date, List[EntryPair]] = {}
    for pair in pairs:
        pairs_by_date.setdefault(_pair_date(pair, now, tz), []).append(pair)

    records = []
    for date, day_pairs in pairs_by_date.items():
        record = DailyRecord(date=date, entry_pairs=day_pairs)
        for pair in day_pairs:
            if pair.missing_entry:
                record.has_missing_entries = True

            if pair.is_open:
                record.is_active = True
                pair.duration = max(now - pair.clock_in, ZERO)

            if not pair.missing_entry:
                record.total_time += pair.duration
        records.append(record)

    records.sort(key=lambda r: r.date, reverse=True)

    for record in records[1:]:
        _cleanup_stale_record(record)

    if records and records[0].is_active:
        for pair in records[0].entry_pairs:
            if pair.is_open:
                pair.day_boundary = _local_date(pair.clock_in, tz) != _local_date(now, tz)

    return records
