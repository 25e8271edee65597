"""
Unit tests for the clock controller. Every test ends with the ledger in
strict clock in/out alternation, whether the operation succeeded or not.
"""
import datetime as dt
import threading

import pytest

from tests.helpers import TickingClock, assert_alternating, at
from workclock.services.clock_controller import ClockController
from workclock.utils.errors import (
    AlreadyInStateError,
    MalformedPairError,
    NotFoundError,
    ValidationError,
)


def seed(controller, *timestamps):
    """Insert alternating events starting with a clock in, return them oldest first"""
    controller.bulk_import(timestamps[0::2], timestamps[1::2])
    return controller.list_events()


# --- Clocking now ---

def test_empty_ledger_is_clocked_out(controller):
    assert controller.is_clocked_in() is False
    assert controller.current_state() is None


def test_clock_in_then_out(controller, clock):
    clock_in = controller.clock_in()
    assert clock_in.clock_in is True
    assert clock_in.timestamp == clock.now
    assert controller.is_clocked_in() is True

    clock_out = controller.clock_out()
    assert clock_out.clock_in is False
    assert controller.is_clocked_in() is False
    assert controller.current_state() == clock_out


def test_double_clock_in_rejected(controller):
    controller.clock_in()

    with pytest.raises(AlreadyInStateError) as exc_info:
        controller.clock_in()

    assert exc_info.value.clocked_in is True
    assert str(exc_info.value) == "Already clocked in"
    assert controller.store.count() == 1


def test_clock_out_on_empty_ledger_rejected(controller):
    with pytest.raises(AlreadyInStateError) as exc_info:
        controller.clock_out()

    assert str(exc_info.value) == "Already clocked out"
    assert controller.store.count() == 0


def test_toggle_alternates(controller):
    events = [controller.toggle() for _ in range(5)]

    assert [e.clock_in for e in events] == [True, False, True, False, True]
    assert_alternating(controller.list_events())


def test_clock_in_before_later_entries_rejected(controller, clock):
    controller.clock_in_out_at(True, at(7))
    controller.clock_in_out_at(False, at(20))

    # The clock now reads 08:30, inside the session that ends at 20:00
    with pytest.raises(ValidationError) as exc_info:
        controller.clock_in()

    assert clock.now == at(8, 30)
    assert exc_info.value.relation == 'predecessor'
    assert [(e.timestamp, e.clock_in) for e in controller.list_events()] == [
        (at(7), True), (at(20), False),
    ]


def test_toggle_before_later_entries_rejected(controller):
    controller.clock_in_out_at(True, at(7))
    controller.clock_in_out_at(False, at(20))

    with pytest.raises(ValidationError):
        controller.toggle()

    assert controller.store.count() == 2
    assert_alternating(controller.list_events())


# --- Clocking at a given time ---

def test_clock_in_out_at_inserts_valid_event(controller):
    seed(controller, at(9), at(17))

    controller.clock_in_out_at(True, at(18))

    assert_alternating(controller.list_events())
    assert controller.is_clocked_in() is True


def test_clock_out_as_first_event_rejected(controller):
    with pytest.raises(ValidationError) as exc_info:
        controller.clock_in_out_at(False, at(9))

    assert exc_info.value.relation == 'first'
    assert controller.store.count() == 0


def test_clock_in_inside_session_rejected(controller):
    seed(controller, at(9), at(17))

    with pytest.raises(ValidationError) as exc_info:
        controller.clock_in_out_at(True, at(12))

    assert exc_info.value.relation in ('predecessor', 'successor')
    assert controller.store.count() == 2


# --- Pairs ---

def test_add_pair(controller):
    seed(controller, at(9), at(12))

    clock_in, clock_out = controller.add_pair(at(13), at(17))

    assert clock_in.clock_in and not clock_out.clock_in
    assert [e.timestamp for e in controller.list_events()] == [at(9), at(12), at(13), at(17)]


def test_add_pair_splits_a_session(controller):
    seed(controller, at(9), at(17))

    # Clock out before clock in: a break inside the existing session
    controller.add_pair(at(13), at(12))

    events = controller.list_events()
    assert [e.timestamp for e in events] == [at(9), at(12), at(13), at(17)]
    assert_alternating(events)


def test_add_pair_inside_session_rolls_back(controller):
    seed(controller, at(9), at(17))

    with pytest.raises(ValidationError) as exc_info:
        controller.add_pair(at(10), at(11))

    assert exc_info.value.relation == 'predecessor'
    assert [e.timestamp for e in controller.list_events()] == [at(9), at(17)]


def test_delete_pair(controller):
    _, _, second_in, second_out = seed(controller, at(9), at(12), at(13), at(17))

    deleted = controller.delete_pair(second_in.id)

    assert [e.id for e in deleted] == [second_in.id, second_out.id]
    assert [e.timestamp for e in controller.list_events()] == [at(9), at(12)]
    assert_alternating(controller.list_events())


def test_delete_open_session(controller):
    seed(controller, at(9), at(12))
    open_session = controller.clock_in_out_at(True, at(13))

    deleted = controller.delete_pair(open_session.id)

    assert deleted == [open_session]
    assert controller.is_clocked_in() is False


def test_delete_pair_requires_clock_in(controller):
    _, clock_out = seed(controller, at(9), at(12))

    with pytest.raises(MalformedPairError):
        controller.delete_pair(clock_out.id)

    assert controller.store.count() == 2


def test_delete_pair_followed_by_clock_in(controller):
    # Broken ledger written straight to the store
    first = controller.store.insert(at(9), True)
    controller.store.insert(at(10), True)

    with pytest.raises(MalformedPairError):
        controller.delete_pair(first.id)

    assert controller.store.count() == 2


def test_delete_unknown_pair(controller):
    with pytest.raises(NotFoundError):
        controller.delete_pair("unknown")


# --- Modifying ---

def test_modify_timestamp(controller):
    _, clock_out = seed(controller, at(9), at(17))

    moved = controller.modify_timestamp(clock_out.id, at(16))

    assert moved.timestamp == at(16)
    assert controller.store.get(clock_out.id).timestamp == at(16)


def test_modify_timestamp_across_neighbour_rolls_back(controller):
    _, clock_out, _, _ = seed(controller, at(9), at(17), at(18), at(19))

    with pytest.raises(ValidationError) as exc_info:
        controller.modify_timestamp(clock_out.id, at(18, 30))

    assert exc_info.value.relation == 'successor'
    assert controller.store.get(clock_out.id).timestamp == at(17)
    assert_alternating(controller.list_events())


def test_modify_unknown_event(controller):
    with pytest.raises(NotFoundError):
        controller.modify_timestamp("unknown", at(9))


# --- Bulk import ---

def test_bulk_import(controller):
    events = controller.bulk_import([at(9), at(13)], [at(12), at(17)])

    assert [e.clock_in for e in events] == [True, True, False, False]
    assert controller.store.count() == 4
    assert_alternating(controller.list_events())


def test_bulk_import_is_all_or_nothing(controller):
    with pytest.raises(ValidationError) as exc_info:
        controller.bulk_import([at(10)], [at(9)])

    assert exc_info.value.relation == 'first'
    assert controller.store.count() == 0


def test_bulk_import_rolls_back_on_partial_failure(controller):
    seed(controller, at(8), at(9))

    with pytest.raises(ValidationError):
        controller.bulk_import([at(10), at(11), at(12)], [at(13)])

    assert [e.timestamp for e in controller.list_events()] == [at(8), at(9)]


def test_bulk_import_reuses_existing_events(controller):
    original = seed(controller, at(9), at(12))

    imported = controller.bulk_import([at(9)], [at(12)])

    assert [e.id for e in imported] == [e.id for e in original]
    assert controller.store.count() == 2


def test_bulk_import_empty(controller):
    assert controller.bulk_import([], []) == []


# --- Concurrency ---

def test_concurrent_toggles_keep_alternation(file_store):
    controller = ClockController(file_store, clock=TickingClock(at(8), dt.timedelta(seconds=1)))
    errors = []

    def worker():
        try:
            for _ in range(10):
                controller.toggle()
        except Exception as e:  # collected for the assertion below
            errors.append(e)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    events = controller.list_events()
    assert len(events) == 80
    assert_alternating(events)


def test_concurrent_clock_ins_only_one_wins(file_store):
    controller = ClockController(file_store, clock=TickingClock(at(8), dt.timedelta(seconds=1)))
    results = []
    barrier = threading.Barrier(6)

    def worker():
        barrier.wait()
        try:
            controller.clock_in()
            results.append('ok')
        except AlreadyInStateError:
            results.append('rejected')

    threads = [threading.Thread(target=worker) for _ in range(6)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert results.count('ok') == 1
    assert results.count('rejected') == 5
    assert file_store.count() == 1
