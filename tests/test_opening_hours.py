from datetime import datetime

import pytest

from dinebook_service.domain.entities.booking import Booking, compute_slot_availability
from dinebook_service.domain.entities.restaurant import (
    DayHours,
    GeoPoint,
    Restaurant,
    day_of_week,
    generate_time_slots,
    is_time_within_hours,
    is_valid_time,
    parse_date,
)


def test_slots_run_from_open_inclusive_to_close_exclusive():
    slots = generate_time_slots("17:00", "22:00", 30)

    assert slots[0] == "17:00"
    assert slots[-1] == "21:30"
    assert len(slots) == 10


def test_slot_interval_is_configurable():
    assert generate_time_slots("11:00", "13:00", 60) == ["11:00", "12:00"]
    assert generate_time_slots("11:00", "11:45", 15) == ["11:00", "11:15", "11:30"]


def test_equal_open_and_close_produce_no_slots():
    assert generate_time_slots("12:00", "12:00") == []


def test_time_within_hours_boundaries():
    assert is_time_within_hours("17:00", "17:00", "22:00")
    assert is_time_within_hours("21:59", "17:00", "22:00")
    assert not is_time_within_hours("22:00", "17:00", "22:00")
    assert not is_time_within_hours("16:30", "17:00", "22:00")


@pytest.mark.parametrize("value", ["7:00", "24:00", "12:60", "noon", "", "12-30"])
def test_invalid_time_labels(value):
    assert not is_valid_time(value)


def test_parse_date_rejects_other_formats():
    with pytest.raises(ValueError):
        parse_date("08/01/2030")
    with pytest.raises(ValueError):
        parse_date("2030-02-30")


def test_day_of_week_is_lowercase_english():
    assert day_of_week("2030-01-07") == "monday"
    assert day_of_week("2030-01-06") == "sunday"


def test_missing_or_equal_hours_mean_closed():
    restaurant = Restaurant(opening_hours={
        "tuesday": DayHours(open="17:00", close="22:00"),
        "wednesday": DayHours(open="12:00", close="12:00"),
        "thursday": DayHours(open="12:00", close=None),
    })

    assert not restaurant.hours_for("tuesday").is_closed
    assert restaurant.hours_for("wednesday").is_closed
    assert restaurant.hours_for("thursday").is_closed
    assert restaurant.hours_for("monday").is_closed


def test_slot_capacity_subtracts_booked_guests():
    slots = compute_slot_availability(["18:30", "19:00", "19:30"], {"19:00": 18, "19:30": 20}, 20)

    by_time = {slot.time: slot for slot in slots}
    assert by_time["18:30"].available_capacity == 20
    assert by_time["19:00"].available_capacity == 2
    assert by_time["19:00"].available
    assert by_time["19:30"].available_capacity == 0
    assert not by_time["19:30"].available
    assert all(slot.total_capacity == 20 for slot in slots)


def test_geo_point_validates_range_and_uses_geojson_order():
    point = GeoPoint(latitude=43.65, longitude=-79.38)

    assert point.to_geojson() == {"type": "Point", "coordinates": [-79.38, 43.65]}
    assert GeoPoint.from_geojson(point.to_geojson()) == point
    with pytest.raises(ValueError):
        GeoPoint(latitude=91, longitude=0)
    with pytest.raises(ValueError):
        GeoPoint(latitude=0, longitude=-181)


def test_booking_is_past_and_cancel():
    booking = Booking(date="2030-01-08", time="19:00")

    assert not booking.is_past(datetime(2030, 1, 8, 18, 59))
    assert booking.is_past(datetime(2030, 1, 8, 19, 1))

    booking.cancel()
    assert booking.is_cancelled
    assert booking.updated_at is not None
