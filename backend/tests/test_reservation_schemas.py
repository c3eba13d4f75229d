import pytest
from pydantic import ValidationError

from roombook.schemas.reservation import OccurrencesTermination, ReservationCreate, UntilTermination


def _payload(**overrides):
    payload = {
        "title": "  Linear Algebra  ",
        "room_id": "room-1",
        "date": "2026-01-05",
        "start_time": "09:00",
        "end_time": "10:00",
    }
    payload.update(overrides)
    return payload


def test_title_is_trimmed_and_defaults_applied():
    draft = ReservationCreate(**_payload())

    assert draft.title == "Linear Algebra"
    assert draft.event_type.value == "class"
    assert draft.attendee_count == 0
    assert draft.recurrence is None


def test_termination_is_discriminated_by_type():
    by_date = ReservationCreate(
        **_payload(recurrence={"frequency": "daily", "termination": {"type": "until", "end_date": "2026-02-01"}})
    )
    by_count = ReservationCreate(
        **_payload(recurrence={"frequency": "monthly", "termination": {"type": "occurrences", "count": 6}})
    )

    assert isinstance(by_date.recurrence.termination, UntilTermination)
    assert isinstance(by_count.recurrence.termination, OccurrencesTermination)


def test_days_of_week_are_sorted_and_deduplicated():
    draft = ReservationCreate(
        **_payload(
            recurrence={
                "frequency": "weekly",
                "days_of_week": [5, 1, 5, 3],
                "termination": {"type": "occurrences", "count": 2},
            }
        )
    )

    assert draft.recurrence.days_of_week == [1, 3, 5]


def test_invalid_recurrence_values_are_rejected():
    bad_day = {"frequency": "weekly", "days_of_week": [7], "termination": {"type": "occurrences", "count": 2}}
    too_many = {"frequency": "daily", "termination": {"type": "occurrences", "count": 366}}
    unknown_frequency = {"frequency": "yearly", "termination": {"type": "occurrences", "count": 2}}

    for recurrence in (bad_day, too_many, unknown_frequency):
        with pytest.raises(ValidationError):
            ReservationCreate(**_payload(recurrence=recurrence))


def test_blank_title_and_inverted_times_are_rejected():
    with pytest.raises(ValidationError):
        ReservationCreate(**_payload(title="   "))
    with pytest.raises(ValidationError):
        ReservationCreate(**_payload(start_time="10:00", end_time="10:00"))
