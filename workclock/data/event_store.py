"""
Event store for a single work clock ledger.

This is the only module that talks to peewee. The controller and the
sequence guard depend on the small interface below: neighbour lookups,
range scans, and atomic blocks.
"""
import datetime
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional

from peewee import DatabaseError, IntegrityError

from .database import bind_entry_model, initialize_db, close_db
from ..utils.errors import NotFoundError, TransactionError, ValidationError
from ..utils.time_utils import to_utc, format_store_timestamp

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimestampEvent:
    """
    One clock action in the ledger.

    Attributes:
        timestamp: Aware UTC datetime, millisecond precision
        clock_in: True for clock-in, False for clock-out
        id: Store identifier, None until persisted
    """
    timestamp: datetime.datetime
    clock_in: bool
    id: Optional[str] = None

    def __str__(self):
        return f"{'IN' if self.clock_in else 'OUT'} @ {format_store_timestamp(self.timestamp)}"


class EventStore:
    """Durable, queryable set of `TimestampEvent` records for one ledger"""

    def __init__(self, database):
        """
        Bind the ledger table to a database and create it if missing.

        Args:
            database: peewee database, see `database.open_database`
        """
        self.database = database
        self.Entry = bind_entry_model(database)
        initialize_db(database, [self.Entry])

    def close(self):
        close_db(self.database)

    @staticmethod
    def _to_event(entry) -> TimestampEvent:
        return TimestampEvent(timestamp=entry.timestamp, clock_in=entry.clock_in, id=entry.id)

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """
        Run a block in one transaction. Any exception rolls it back; store
        failures surface as `TransactionError`.
        """
        try:
            with self.database.atomic():
                yield
        except DatabaseError as e:
            logger.error(f"Store transaction failed: {e}")
            raise TransactionError(f"Store transaction failed: {e}") from e

    # --- Reads ---

    def get(self, event_id: str) -> TimestampEvent:
        entry = self.Entry.get_or_none(self.Entry.id == event_id)
        if entry is None:
            raise NotFoundError(f"Work clock record with id '{event_id}' not found")
        return self._to_event(entry)

    def latest(self) -> Optional[TimestampEvent]:
        """Most recent event of the ledger, or None if it is empty"""
        entry = self.Entry.select().order_by(self.Entry.timestamp.desc()).first()
        return self._to_event(entry) if entry else None

    def predecessor_of(self, timestamp: datetime.datetime) -> Optional[TimestampEvent]:
        """Latest event strictly before the given timestamp"""
        entry = (self.Entry.select()
                 .where(self.Entry.timestamp < to_utc(timestamp))
                 .order_by(self.Entry.timestamp.desc())
                 .first())
        return self._to_event(entry) if entry else None

    def successor_of(self, timestamp: datetime.datetime) -> Optional[TimestampEvent]:
        """Earliest event strictly after the given timestamp"""
        entry = (self.Entry.select()
                 .where(self.Entry.timestamp > to_utc(timestamp))
                 .order_by(self.Entry.timestamp.asc())
                 .first())
        return self._to_event(entry) if entry else None

    def list_events(self, from_: Optional[datetime.datetime] = None,
                    until: Optional[datetime.datetime] = None,
                    clock_in: Optional[bool] = None,
                    descending: bool = False) -> List[TimestampEvent]:
        """
        Range scan ordered by timestamp.

        Args:
            from_: Inclusive lower bound
            until: Exclusive upper bound
            clock_in: Only return clock-ins (True) or clock-outs (False)
            descending: Newest first instead of oldest first
        """
        query = self.Entry.select()
        if from_ is not None:
            query = query.where(self.Entry.timestamp >= to_utc(from_))
        if until is not None:
            query = query.where(self.Entry.timestamp < to_utc(until))
        if clock_in is not None:
            query = query.where(self.Entry.clock_in == clock_in)

        order = self.Entry.timestamp.desc() if descending else self.Entry.timestamp.asc()
        return [self._to_event(entry) for entry in query.order_by(order)]

    def count(self) -> int:
        return self.Entry.select().count()

    # --- Writes ---

    def insert(self, timestamp: datetime.datetime, clock_in: bool) -> TimestampEvent:
        """
        Insert an event. If an event with the same timestamp and type already
        exists, that event is returned instead of creating a duplicate.
        """
        timestamp = to_utc(timestamp)
        try:
            # Savepoint, so a duplicate does not abort an enclosing transaction
            with self.database.atomic():
                entry = self.Entry.create(timestamp=timestamp, clock_in=clock_in)
        except IntegrityError:
            existing = self.Entry.get_or_none(
                (self.Entry.timestamp == timestamp) & (self.Entry.clock_in == clock_in)
            )
            if existing is None:
                raise
            logger.debug(f"Reusing existing record {existing.id} for {format_store_timestamp(timestamp)}")
            return self._to_event(existing)
        return self._to_event(entry)

    def update_timestamp(self, event_id: str, timestamp: datetime.datetime) -> TimestampEvent:
        event = self.get(event_id)
        timestamp = to_utc(timestamp)
        try:
            with self.database.atomic():
                self.Entry.update(timestamp=timestamp).where(self.Entry.id == event_id).execute()
        except IntegrityError:
            raise ValidationError(
                f"A {'clock in' if event.clock_in else 'clock out'} record already exists "
                f"at {format_store_timestamp(timestamp)}",
                event_id=event_id,
            )
        return TimestampEvent(timestamp=timestamp, clock_in=event.clock_in, id=event_id)

    def delete(self, event_ids: Iterable[str]) -> int:
        event_ids = list(event_ids)
        if not event_ids:
            return 0
        return self.Entry.delete().where(self.Entry.id.in_(event_ids)).execute()
