"""
Error types for the work clock ledger.
"""
from typing import Optional


class WorkClockError(Exception):
    """Base exception for the work clock ledger"""
    pass


class ValidationError(WorkClockError):
    """
    Raised when a mutation would break the clock-in/clock-out alternation.

    Attributes:
        event_id: ID of the event that failed validation
        relation: 'first', 'predecessor' or 'successor'
        neighbor_id: ID of the conflicting neighbour, if any
    """

    def __init__(self, message: str, event_id: Optional[str] = None,
                 relation: Optional[str] = None, neighbor_id: Optional[str] = None):
        super().__init__(message)
        self.event_id = event_id
        self.relation = relation
        self.neighbor_id = neighbor_id


class NotFoundError(WorkClockError):
    """Raised when a referenced event does not exist"""
    pass


class AlreadyInStateError(WorkClockError):
    """Raised when clocking in while clocked in, or out while clocked out"""

    def __init__(self, clocked_in: bool):
        super().__init__(f"Already clocked {'in' if clocked_in else 'out'}")
        self.clocked_in = clocked_in


class MalformedPairError(WorkClockError):
    """Raised when a clock-in/clock-out pair cannot be deleted as a pair"""
    pass


class TransactionError(WorkClockError):
    """Raised when the store fails to commit a mutation"""
    pass


class ParseError(WorkClockError):
    """Raised when a timestamp or a legacy row cannot be interpreted"""
    pass
