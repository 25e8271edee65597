"""
Clock controller: every mutation of a work clock ledger goes through here.

Each operation holds the controller lock for its whole read-validate-write
sequence and runs inside a single store transaction, so either all of its
writes commit or none do.
"""
import datetime
import logging
import threading
from typing import Callable, List, Optional, Sequence

from . import sequence_guard
from ..data.event_store import EventStore, TimestampEvent
from ..utils.errors import AlreadyInStateError, MalformedPairError, ValidationError
from ..utils.time_utils import utc_now, format_store_timestamp

logger = logging.getLogger(__name__)


def _kind(clock_in: bool) -> str:
    return "in" if clock_in else "out"


class ClockController:
    """Serializes and validates all mutations of one ledger"""

    def __init__(self, store: EventStore, clock: Callable[[], datetime.datetime] = utc_now):
        """
        Args:
            store: Event store of the ledger
            clock: Source of "now", replaceable in tests
        """
        self.store = store
        self._clock = clock
        self._lock = threading.Lock()

    # --- Reads (no lock, committed data only) ---

    def is_clocked_in(self) -> bool:
        """True if the most recent event is a clock in. An empty ledger is clocked out."""
        latest = self.store.latest()
        return latest is not None and latest.clock_in

    def current_state(self) -> Optional[TimestampEvent]:
        """Most recent event, or None for an empty ledger"""
        return self.store.latest()

    def list_events(self, from_: Optional[datetime.datetime] = None,
                    until: Optional[datetime.datetime] = None,
                    descending: bool = False) -> List[TimestampEvent]:
        return self.store.list_events(from_=from_, until=until, descending=descending)

    # --- Mutations ---

    def clock_in_out(self, want_clock_in: bool) -> TimestampEvent:
        """
        Clock in or out at the current time.

        Raises:
            AlreadyInStateError: if the ledger is already in the requested state
            ValidationError: if "now" falls between events entered for a later time
        """
        with self._lock:
            return self._clock_in_out(want_clock_in)

    def clock_in(self) -> TimestampEvent:
        return self.clock_in_out(True)

    def clock_out(self) -> TimestampEvent:
        return self.clock_in_out(False)

    def toggle(self) -> TimestampEvent:
        """Clock out if clocked in, otherwise clock in"""
        with self._lock:
            return self._clock_in_out(not self.is_clocked_in())

    def _clock_in_out(self, want_clock_in: bool) -> TimestampEvent:
        with self.store.atomic():
            clocked_in = self.is_clocked_in()
            if clocked_in == want_clock_in:
                logger.warning(f"Rejected clock {_kind(want_clock_in)}: already clocked {_kind(clocked_in)}")
                raise AlreadyInStateError(clocked_in)

            # "now" may lie before events entered for a later time
            event = self.store.insert(self._clock(), want_clock_in)
            self._validate(event, f"clock {_kind(want_clock_in)} record")

        logger.info(f"Clocked {_kind(want_clock_in).upper()} @ {format_store_timestamp(event.timestamp)}")
        return event

    def clock_in_out_at(self, want_clock_in: bool, timestamp: datetime.datetime) -> TimestampEvent:
        """
        Insert a clock in or out event at an arbitrary point in time.

        Raises:
            ValidationError: if the new event does not alternate with its neighbours
        """
        with self._lock, self.store.atomic():
            event = self.store.insert(timestamp, want_clock_in)
            self._validate(event, f"clock {_kind(want_clock_in)} record")

        logger.info(f"Added clock {_kind(want_clock_in)} record {event.id} @ {format_store_timestamp(event.timestamp)}")
        return event

    def add_pair(self, clock_in_timestamp: datetime.datetime,
                 clock_out_timestamp: datetime.datetime) -> List[TimestampEvent]:
        """
        Insert a clock in and a clock out event together.

        The clock out may lie before the clock in, which allows splitting an
        existing session in two.

        Raises:
            ValidationError: if either event does not alternate with its neighbours
        """
        with self._lock, self.store.atomic():
            clock_in = self.store.insert(clock_in_timestamp, True)
            clock_out = self.store.insert(clock_out_timestamp, False)
            self._validate(clock_in, "clock in record")
            self._validate(clock_out, "clock out record")

        logger.info(f"Added clock in/out pair {clock_in.id}/{clock_out.id}")
        return [clock_in, clock_out]

    def delete_pair(self, clock_in_id: str) -> List[TimestampEvent]:
        """
        Delete a clock in record together with the clock out that follows it.
        An open session (clock in without any following record) is deleted alone.

        Raises:
            NotFoundError: if no record has the given ID
            MalformedPairError: if the record is not a clock in, or is followed
                by another clock in
        """
        with self._lock, self.store.atomic():
            record = self.store.get(clock_in_id)
            if not record.clock_in:
                raise MalformedPairError(f"Record with id '{clock_in_id}' is not a clock in record")

            successor = self.store.successor_of(record.timestamp)
            if successor is not None and successor.clock_in:
                raise MalformedPairError(
                    f"Succeeding record with id '{successor.id}' is not a clock out record"
                )

            deleted = [record] if successor is None else [record, successor]
            self.store.delete(event.id for event in deleted)

        logger.info(f"Deleted clock in/out pair starting with {clock_in_id} ({len(deleted)} record(s))")
        return deleted

    def modify_timestamp(self, event_id: str, new_timestamp: datetime.datetime) -> TimestampEvent:
        """
        Move an existing event to a new timestamp.

        Raises:
            NotFoundError: if no record has the given ID
            ValidationError: if the event no longer alternates at its new position
        """
        with self._lock, self.store.atomic():
            event = self.store.update_timestamp(event_id, new_timestamp)
            self._validate(event, "modified work clock record")

        logger.info(f"Moved record {event_id} to {format_store_timestamp(event.timestamp)}")
        return event

    def bulk_import(self, clock_in_timestamps: Sequence[datetime.datetime],
                    clock_out_timestamps: Sequence[datetime.datetime]) -> List[TimestampEvent]:
        """
        Insert many clock in and clock out events in one transaction.

        All clock ins are inserted first, then all clock outs, and only then
        is every inserted event validated. A single invalid event rolls back
        the entire import.

        Raises:
            ValidationError: if any inserted event breaks alternation
        """
        with self._lock, self.store.atomic():
            clock_ins = [self.store.insert(ts, True) for ts in clock_in_timestamps]
            clock_outs = [self.store.insert(ts, False) for ts in clock_out_timestamps]

            for event in clock_ins:
                self._validate(event, "added clock in record")
            for event in clock_outs:
                self._validate(event, "added clock out record")

        logger.info(f"Imported {len(clock_ins)} clock in and {len(clock_outs)} clock out records")
        return clock_ins + clock_outs

    def _validate(self, event: TimestampEvent, label: str):
        try:
            sequence_guard.validate(self.store, event.id)
        except ValidationError as e:
            logger.warning(f"Rejected {label} at {format_store_timestamp(event.timestamp)}: {e}")
            raise ValidationError(
                f"The {label} at {format_store_timestamp(event.timestamp)} is not valid: {e}",
                event_id=e.event_id, relation=e.relation, neighbor_id=e.neighbor_id,
            ) from e
