"""
Reconciliation of legacy "active change" logs into clean clock in/out lists.

The legacy tracker wrote a row every time the user's activity state changed,
both on its own (system rows) and when the user corrected it by hand. Rows
overlap, repeat and sometimes contradict each other. This module reduces
them to an alternating sequence that `ClockController.bulk_import` accepts.
"""
import datetime
import logging
from collections import Counter
from dataclasses import dataclass, field, replace
from typing import Iterable, List

from ..utils.time_utils import unix_millis

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActiveChange:
    """One legacy state change row"""
    timestamp: datetime.datetime
    active: bool
    is_system: bool = False


@dataclass
class ReconciledLog:
    """Clock in and clock out timestamps ready for bulk import"""
    clock_in_timestamps: List[datetime.datetime] = field(default_factory=list)
    clock_out_timestamps: List[datetime.datetime] = field(default_factory=list)

    def __len__(self):
        return len(self.clock_in_timestamps) + len(self.clock_out_timestamps)


def _sort_key(change: ActiveChange):
    # Time ASC, Active DESC, StartEnd DESC
    return (change.timestamp, not change.active, not change.is_system)


def group_changes(changes: Iterable[ActiveChange]) -> List[List[ActiveChange]]:
    """
    Split sorted changes into sessions. A system originated activation starts
    a new session unless nothing has been collected yet.
    """
    groups = []
    current = []
    for change in changes:
        if current and change.active and change.is_system:
            groups.append(current)
            current = []
        current.append(change)
    if current:
        groups.append(current)
    return groups


def collapse_group(group: List[ActiveChange]) -> List[ActiveChange]:
    """
    Reduce a session to alternating state changes.

    Leading inactive rows are dropped, repeated activations keep the first
    row and repeated deactivations keep the last one.
    """
    collapsed = []
    for change in group:
        if not collapsed:
            if change.active:
                collapsed.append(change)
            continue

        previous = collapsed[-1]
        if previous.active and change.active:
            continue
        elif not previous.active and not change.active:
            collapsed[-1] = change
        else:
            collapsed.append(change)
    return collapsed


def reconcile(changes: Iterable[ActiveChange]) -> ReconciledLog:
    """
    Convert legacy active changes into clock in/out timestamps.

    Never raises: ambiguous input is dropped rather than guessed at. Any
    timestamp produced more than once (at millisecond precision) is excluded
    entirely.

    Args:
        changes: Legacy rows, in any order

    Returns:
        ReconciledLog with clock in timestamps (active rows) and clock out
        timestamps (inactive rows)
    """
    groups = group_changes(sorted(changes, key=_sort_key))

    collapsed_groups = []
    for index, group in enumerate(groups):
        # Every session but the last one must be closed
        if index != len(groups) - 1 and group[-1].active:
            group = group[:-1] + [replace(group[-1], active=False)]
        collapsed_groups.append(collapse_group(group))

    occurrences = Counter(
        unix_millis(change.timestamp)
        for group in collapsed_groups
        for change in group
    )

    result = ReconciledLog()
    dropped = 0
    for group in collapsed_groups:
        for change in group:
            if occurrences[unix_millis(change.timestamp)] > 1:
                dropped += 1
                continue
            if change.active:
                result.clock_in_timestamps.append(change.timestamp)
            else:
                result.clock_out_timestamps.append(change.timestamp)

    if dropped:
        logger.info(f"Dropped {dropped} legacy change(s) with conflicting timestamps")
    logger.debug(f"Reconciled {len(groups)} legacy session(s) into {len(result)} record(s)")
    return result
