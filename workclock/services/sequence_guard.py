"""
Alternation check for a single ledger event.
"""
import logging

from ..utils.errors import ValidationError

logger = logging.getLogger(__name__)


def _kind(clock_in: bool) -> str:
    return "clock in" if clock_in else "clock out"


def validate(store, event_id: str):
    """
    Verify that an event alternates with its chronological neighbours.

    The event must differ in type from both its predecessor and its
    successor, and the first event of the ledger must be a clock in.
    Read-only; meant to run inside the mutating transaction.

    Args:
        store: EventStore of the ledger
        event_id: ID of the event to check

    Raises:
        NotFoundError: if the event does not exist
        ValidationError: if alternation is broken, with `relation` set to
            'first', 'predecessor' or 'successor'
    """
    if not event_id:
        raise ValidationError("Work clock ID cannot be empty")

    event = store.get(event_id)

    successor = store.successor_of(event.timestamp)
    if successor is not None and successor.clock_in == event.clock_in:
        logger.debug(f"Record {event_id} conflicts with succeeding record {successor.id}")
        raise ValidationError(
            f"Expected the succeeding work clock record with id '{successor.id}' "
            f"to be a {_kind(not event.clock_in)} record",
            event_id=event_id, relation='successor', neighbor_id=successor.id,
        )

    predecessor = store.predecessor_of(event.timestamp)
    if predecessor is not None and predecessor.clock_in == event.clock_in:
        logger.debug(f"Record {event_id} conflicts with preceding record {predecessor.id}")
        raise ValidationError(
            f"Expected the preceding work clock record with id '{predecessor.id}' "
            f"to be a {_kind(not event.clock_in)} record",
            event_id=event_id, relation='predecessor', neighbor_id=predecessor.id,
        )

    if predecessor is None and not event.clock_in:
        raise ValidationError(
            f"Expected the work clock record with id '{event_id}' to be a clock in record "
            "since the first work clock record cannot be a clock out record",
            event_id=event_id, relation='first',
        )
