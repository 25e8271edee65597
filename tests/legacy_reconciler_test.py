"""
Unit tests for reconciling legacy active change rows.
"""
import datetime as dt

from tests.helpers import at
from workclock.services.legacy_reconciler import (
    ActiveChange,
    collapse_group,
    group_changes,
    reconcile,
)


def change(timestamp, active, is_system=False):
    return ActiveChange(timestamp=timestamp, active=active, is_system=is_system)


def test_empty_input():
    result = reconcile([])

    assert result.clock_in_timestamps == []
    assert result.clock_out_timestamps == []
    assert len(result) == 0


def test_single_session():
    result = reconcile([change(at(9), True, True), change(at(17), False)])

    assert result.clock_in_timestamps == [at(9)]
    assert result.clock_out_timestamps == [at(17)]


def test_system_activation_starts_new_group():
    rows = [
        change(at(9), True, True),
        change(at(10), True),
        change(at(11), False),
        change(at(13), True, True),
        change(at(14), False),
    ]

    groups = group_changes(rows)

    assert [len(g) for g in groups] == [3, 2]
    assert groups[1][0].timestamp == at(13)


def test_collapse_drops_leading_inactive_and_keeps_extremes():
    group = [
        change(at(8), False),
        change(at(9), True, True),
        change(at(10), True),
        change(at(11), False),
        change(at(12), False),
    ]

    collapsed = collapse_group(group)

    assert [(c.timestamp, c.active) for c in collapsed] == [(at(9), True), (at(12), False)]


def test_unclosed_session_is_closed_at_its_last_row():
    rows = [
        change(at(9), True, True),
        change(at(10), True),
        change(at(13), True, True),
        change(at(17), False),
    ]

    result = reconcile(rows)

    assert result.clock_in_timestamps == [at(9), at(13)]
    assert result.clock_out_timestamps == [at(10), at(17)]


def test_last_session_may_stay_open():
    rows = [
        change(at(9), True, True),
        change(at(12), False),
        change(at(13), True, True),
    ]

    result = reconcile(rows)

    assert result.clock_in_timestamps == [at(9), at(13)]
    assert result.clock_out_timestamps == [at(12)]


def test_input_order_does_not_matter():
    rows = [
        change(at(9), True, True),
        change(at(10), False),
        change(at(11), False),
        change(at(13), True, True),
        change(at(15), True),
        change(at(17), False),
    ]

    assert reconcile(reversed(rows)) == reconcile(rows)


def test_zero_length_session_dropped():
    rows = [
        change(at(9), True, True),
        change(at(9), False),
        change(at(12), True, True),
        change(at(13), False),
    ]

    result = reconcile(rows)

    assert result.clock_in_timestamps == [at(12)]
    assert result.clock_out_timestamps == [at(13)]


def test_timestamps_equal_to_the_millisecond_are_dropped():
    # Clock out of one session and clock in of the next differ only in microseconds
    same_millisecond_out = at(12) + dt.timedelta(microseconds=100)
    same_millisecond_in = at(12) + dt.timedelta(microseconds=200)
    rows = [
        change(at(9), True, True),
        change(same_millisecond_out, False),
        change(same_millisecond_in, True, True),
        change(at(17), False),
    ]

    result = reconcile(rows)

    assert result.clock_in_timestamps == [at(9)]
    assert result.clock_out_timestamps == [at(17)]


def test_output_alternates():
    rows = [
        change(at(7), False),
        change(at(8), True, True),
        change(at(8, 30), True),
        change(at(9), True, True),
        change(at(11), False),
        change(at(11, 30), False),
        change(at(12), True, True),
        change(at(16), False),
    ]

    result = reconcile(rows)

    merged = sorted(
        [(ts, True) for ts in result.clock_in_timestamps]
        + [(ts, False) for ts in result.clock_out_timestamps]
    )
    assert merged[0][1] is True
    assert all(a[1] != b[1] for a, b in zip(merged, merged[1:]))
