from datetime import datetime, timedelta, timezone

import pytest

from roombook.core.exceptions import ReservationValidationError
from roombook.models.reservation import ReservationStatus
from roombook.services.conflicts import ConflictDetector, intervals_overlap
from roombook.services.reservation_store import SqlAlchemyReservationStore


def _at(hour, minute=0, day=9):
    return datetime(2026, 3, day, hour, minute, tzinfo=timezone.utc)


def test_overlap_is_symmetric():
    intervals = [
        (_at(9), _at(10)),
        (_at(9, 30), _at(10, 30)),
        (_at(10), _at(11)),
        (_at(8), _at(12)),
        (_at(11), _at(12)),
    ]
    for a in intervals:
        for b in intervals:
            assert intervals_overlap(*a, *b) == intervals_overlap(*b, *a)


def test_back_to_back_intervals_do_not_overlap():
    assert not intervals_overlap(_at(9), _at(10), _at(10), _at(11))
    assert intervals_overlap(_at(9), _at(10), _at(9, 59), _at(11))
    assert intervals_overlap(_at(8), _at(12), _at(9), _at(10))


def test_half_open_boundary_does_not_conflict(memory_store):
    memory_store.add(room_id="room-1", start_datetime=_at(9), end_datetime=_at(10))
    detector = ConflictDetector(memory_store)

    assert detector.find_conflicts("room-1", _at(10), _at(11)) == []
    assert detector.find_conflicts("room-1", _at(8), _at(9)) == []


def test_conflicts_are_scoped_to_room(memory_store):
    memory_store.add(room_id="room-1", start_datetime=_at(9), end_datetime=_at(10))
    detector = ConflictDetector(memory_store)

    assert detector.find_conflicts("room-2", _at(9), _at(10)) == []


def test_non_occupying_statuses_never_block(memory_store):
    memory_store.add(
        room_id="room-1",
        start_datetime=_at(9),
        end_datetime=_at(10),
        status=ReservationStatus.cancelled,
    )
    memory_store.add(
        room_id="room-1",
        start_datetime=_at(9),
        end_datetime=_at(10),
        status=ReservationStatus.completed,
    )
    detector = ConflictDetector(memory_store)

    assert detector.first_conflict("room-1", _at(9), _at(10)) is None


def test_pending_and_confirmed_block(memory_store):
    pending = memory_store.add(
        room_id="room-1",
        start_datetime=_at(11),
        end_datetime=_at(12),
        status=ReservationStatus.pending,
    )
    confirmed = memory_store.add(room_id="room-1", start_datetime=_at(9), end_datetime=_at(10))
    detector = ConflictDetector(memory_store)

    conflicts = detector.find_conflicts("room-1", _at(8), _at(13))

    assert [item.id for item in conflicts] == [confirmed.id, pending.id]
    assert detector.first_conflict("room-1", _at(8), _at(13)).id == confirmed.id


def test_repeated_queries_return_identical_results(memory_store):
    for hour in (9, 11, 13):
        memory_store.add(room_id="room-1", start_datetime=_at(hour), end_datetime=_at(hour + 1))
    detector = ConflictDetector(memory_store)

    first = [item.id for item in detector.find_conflicts("room-1", _at(8), _at(14))]
    second = [item.id for item in detector.find_conflicts("room-1", _at(8), _at(14))]

    assert first == second
    assert len(first) == 3


def test_empty_or_inverted_interval_is_rejected(memory_store):
    detector = ConflictDetector(memory_store)

    with pytest.raises(ReservationValidationError):
        detector.find_conflicts("room-1", _at(10), _at(10))
    with pytest.raises(ReservationValidationError):
        detector.find_conflicts("room-1", _at(11), _at(10))


def test_sqlalchemy_store_finds_overlaps(db_session):
    store = SqlAlchemyReservationStore(db_session)
    base = {
        "room_id": "room-1",
        "title": "Algorithms",
        "status": ReservationStatus.confirmed,
        "equipment_needed": [],
    }
    kept = store.insert_reservation({**base, "start_datetime": _at(9), "end_datetime": _at(10)})
    store.insert_reservation({**base, "start_datetime": _at(10), "end_datetime": _at(11)})
    store.insert_reservation(
        {**base, "start_datetime": _at(9), "end_datetime": _at(10), "status": ReservationStatus.cancelled}
    )
    store.insert_reservation(
        {
            **base,
            "room_id": "room-2",
            "start_datetime": _at(9),
            "end_datetime": _at(10),
        }
    )

    conflicts = ConflictDetector(store).find_conflicts("room-1", _at(9, 15), _at(9, 45) + timedelta(minutes=10))

    assert [item.id for item in conflicts] == [kept.id]
