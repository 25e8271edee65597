"""
Clock service: result-returning facade over the clock controller for
transport layers (HTTP handlers, command line, kiosk UI).
"""
import datetime
import logging
from typing import Callable, List, Optional, Sequence, Union
from dataclasses import dataclass

from .clock_controller import ClockController
from ..data.event_store import TimestampEvent
from ..utils.errors import WorkClockError

logger = logging.getLogger(__name__)


@dataclass
class ClockResult:
    """Result of a ledger operation"""
    success: bool
    action: str
    event: Optional[Union[TimestampEvent, List[TimestampEvent]]] = None
    error: Optional[WorkClockError] = None

    @property
    def message(self) -> str:
        return str(self.error) if self.error else ""


class ClockService:
    """Runs controller operations and reports typed errors as results"""

    def __init__(self, controller: ClockController):
        self.controller = controller

    def _run(self, action: str, operation: Callable, *args) -> ClockResult:
        try:
            event = operation(*args)
        except WorkClockError as e:
            logger.error(f"Error performing {action}: {e}")
            return ClockResult(success=False, action=action, error=e)
        return ClockResult(success=True, action=action, event=event)

    def clock_in(self) -> ClockResult:
        return self._run('clock_in', self.controller.clock_in)

    def clock_out(self) -> ClockResult:
        return self._run('clock_out', self.controller.clock_out)

    def toggle(self) -> ClockResult:
        result = self._run('toggle', self.controller.toggle)
        if result.success:
            result.action = 'clock_in' if result.event.clock_in else 'clock_out'
        return result

    def clock_in_out_at(self, clock_in: bool, timestamp: datetime.datetime) -> ClockResult:
        return self._run('clock_in_out_at', self.controller.clock_in_out_at, clock_in, timestamp)

    def add_pair(self, clock_in_timestamp: datetime.datetime,
                 clock_out_timestamp: datetime.datetime) -> ClockResult:
        return self._run('add_pair', self.controller.add_pair, clock_in_timestamp, clock_out_timestamp)

    def delete_pair(self, clock_in_id: str) -> ClockResult:
        return self._run('delete_pair', self.controller.delete_pair, clock_in_id)

    def modify_timestamp(self, event_id: str, new_timestamp: datetime.datetime) -> ClockResult:
        return self._run('modify_timestamp', self.controller.modify_timestamp, event_id, new_timestamp)

    def bulk_import(self, clock_in_timestamps: Sequence[datetime.datetime],
                    clock_out_timestamps: Sequence[datetime.datetime]) -> ClockResult:
        return self._run('bulk_import', self.controller.bulk_import,
                         clock_in_timestamps, clock_out_timestamps)
