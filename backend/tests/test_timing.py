import random
from datetime import datetime

import pytest

from metropulse.services.timing import (
    format_time,
    generate_id,
    generate_train_number,
    get_active_train_count,
    get_distance,
    get_traffic_status,
    interpolate_position,
    is_metro_running,
)


def test_interpolate_position_endpoints_and_midpoint():
    start = interpolate_position(48.0, 2.0, 49.0, 3.0, 0)
    assert (start.lat, start.lng) == (48.0, 2.0)

    end = interpolate_position(48.0, 2.0, 49.0, 3.0, 1)
    assert (end.lat, end.lng) == (49.0, 3.0)

    middle = interpolate_position(48.0, 2.0, 49.0, 3.0, 0.25)
    assert middle.lat == pytest.approx(48.25)
    assert middle.lng == pytest.approx(2.25)


def test_get_distance():
    assert get_distance(48.8566, 2.3522, 48.8566, 2.3522) == 0
    # One degree of latitude is roughly 111 km.
    assert get_distance(48.0, 2.0, 49.0, 2.0) == pytest.approx(111_195, rel=1e-3)


@pytest.mark.parametrize("hour, minute, running", [
    (0, 59, True),
    (1, 0, False),
    (3, 0, False),
    (5, 29, False),
    (5, 30, True),
    (12, 0, True),
    (23, 59, True),
])
def test_is_metro_running(hour, minute, running):
    assert is_metro_running(hour, minute) is running


@pytest.mark.parametrize("hour, minute, expected", [
    (3, 0, 0),
    (5, 0, 0),
    (5, 45, 3),
    (6, 0, 3),
    (7, 0, 4),
    (8, 59, 4),
    (9, 0, 5),
    (16, 0, 5),
    (17, 0, 6),
    (18, 0, 6),
    (21, 0, 4),
    (22, 0, 3),
    (23, 30, 3),
    (0, 30, 3),
])
def test_get_active_train_count(hour, minute, expected):
    assert get_active_train_count(hour, minute) == expected


@pytest.mark.parametrize("hour, expected", [
    (8, "slowed"),
    (10, "normal"),
    (18, "slowed"),
    (19, "normal"),
    (20, "slowed"),
    (3, "stopped"),
    (23, "normal"),
])
def test_get_traffic_status(hour, expected):
    assert get_traffic_status(hour) == expected


def test_format_time_pads_hours_and_minutes():
    assert format_time(datetime(2024, 1, 1, 7, 5)) == "07:05"


def test_generate_train_number_is_five_digits():
    rng = random.Random(3)
    for _ in range(50):
        number = generate_train_number(rng)
        assert len(number) == 5
        assert number.isdigit()


def test_generate_id_is_unique():
    assert len({generate_id() for _ in range(100)}) == 100
