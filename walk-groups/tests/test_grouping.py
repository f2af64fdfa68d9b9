"""Tests for distance helpers and the walk grouping service."""

import pytest

from walk_groups.distance import (
    distance_between,
    total_route_distance,
    within_distance,
)
from walk_groups.grouping import (
    ScheduledWalk,
    groupable_walk_type,
    suggest_groups,
    time_compatible,
)
from walk_groups.store import Appointment, Pet

BASE_LAT = 40.7128
BASE_LON = -74.0060


def _walk(appointment_id, start="09:00", *, duration=30, walk_type=None, lat_offset=0.0, geocoded=True):
    pet = Pet(
        id=appointment_id,
        user_id=1,
        name=f"Pet {appointment_id}",
        latitude=BASE_LAT + lat_offset if geocoded else None,
        longitude=BASE_LON if geocoded else None,
    )
    appointment = Appointment(
        id=appointment_id,
        user_id=1,
        pet_id=pet.id,
        start_time=start,
        duration=duration,
        walk_type=walk_type,
    )
    return ScheduledWalk(appointment=appointment, pet=pet)


class TestDistance:

    def test_new_york_to_los_angeles(self):
        distance = distance_between(40.7128, -74.0060, 34.0522, -118.2437)
        assert distance == pytest.approx(2445, abs=10)

    def test_kilometres(self):
        distance = distance_between(40.7128, -74.0060, 34.0522, -118.2437, unit="km")
        assert distance == pytest.approx(3936, abs=15)

    def test_missing_coordinate(self):
        assert distance_between(None, -74.0, 40.0, -74.0) is None

    def test_same_point(self):
        assert distance_between(BASE_LAT, BASE_LON, BASE_LAT, BASE_LON) == 0.0

    def test_route_distance_sums_legs(self):
        points = [(BASE_LAT, BASE_LON), (BASE_LAT + 0.001, BASE_LON), (BASE_LAT + 0.002, BASE_LON)]
        assert total_route_distance(points) == pytest.approx(0.14)

    def test_route_distance_needs_two_points(self):
        assert total_route_distance([(BASE_LAT, BASE_LON)]) == 0.0

    def test_within_distance(self):
        assert within_distance(BASE_LAT, BASE_LON, BASE_LAT + 0.001, BASE_LON, 0.5)
        assert not within_distance(BASE_LAT, BASE_LON, BASE_LAT + 0.1, BASE_LON, 0.5)
        assert not within_distance(None, BASE_LON, BASE_LAT, BASE_LON, 0.5)


class TestTimeCompatibility:

    def test_overlapping_windows(self):
        assert time_compatible(_walk(1, "09:00"), _walk(2, "09:20"))

    def test_gap_within_buffer(self):
        assert time_compatible(_walk(1, "09:00"), _walk(2, "09:45"))

    def test_gap_beyond_buffer(self):
        assert not time_compatible(_walk(1, "09:00"), _walk(2, "09:46"))

    def test_unparseable_start(self):
        assert not time_compatible(_walk(1, "whenever"), _walk(2, "09:00"))

    def test_twelve_hour_clock(self):
        assert time_compatible(_walk(1, "2:00 PM"), _walk(2, "14:10"))


class TestSuggestGroups:

    def test_groups_nearby_compatible_walks(self):
        walks = [_walk(1, "09:00"), _walk(2, "09:10", lat_offset=0.001), _walk(3, "09:20", lat_offset=0.002)]
        suggestions = suggest_groups(walks)
        assert len(suggestions) == 1
        suggestion = suggestions[0]
        assert suggestion.appointments == [1, 2, 3]
        assert suggestion.group_size == 3
        assert [pet.name for pet in suggestion.pets] == ["Pet 1", "Pet 2", "Pet 3"]
        assert suggestion.total_distance == pytest.approx(0.14)
        assert suggestion.estimated_time == 30 + 3
        assert suggestion.estimated_savings == 90 - 33

    def test_solo_and_training_walks_are_never_grouped(self):
        walks = [_walk(1), _walk(2, walk_type="Solo"), _walk(3, walk_type="training")]
        assert suggest_groups(walks) == []
        assert not groupable_walk_type("SOLO")
        assert groupable_walk_type(None)

    def test_ungeocoded_pets_are_skipped(self):
        assert suggest_groups([_walk(1), _walk(2, geocoded=False)]) == []

    def test_far_walks_are_not_grouped(self):
        assert suggest_groups([_walk(1), _walk(2, lat_offset=0.1)]) == []

    def test_custom_max_distance(self):
        walks = [_walk(1), _walk(2, lat_offset=0.01)]
        assert suggest_groups(walks) == []
        assert len(suggest_groups(walks, max_distance=1.0)) == 1

    def test_group_size_is_capped(self):
        walks = [_walk(i, "09:00") for i in range(1, 8)]
        suggestions = suggest_groups(walks)
        assert [s.appointments for s in suggestions] == [[1, 2, 3, 4, 5], [6, 7]]

    def test_distance_is_measured_from_seed(self):
        # 2 is near 1 and 3 is near 2, but 3 is too far from 1.
        walks = [_walk(1), _walk(2, lat_offset=0.006), _walk(3, lat_offset=0.012)]
        suggestions = suggest_groups(walks)
        assert [s.appointments for s in suggestions] == [[1, 2]]

    def test_sorted_by_savings(self):
        small = [_walk(1, "07:00"), _walk(2, "07:00")]
        large = [_walk(3, "12:00", duration=60), _walk(4, "12:00", duration=60), _walk(5, "12:00", duration=60)]
        suggestions = suggest_groups(small + large)
        assert [s.appointments for s in suggestions] == [[3, 4, 5], [1, 2]]
        assert suggestions[0].estimated_savings > suggestions[1].estimated_savings

    def test_empty_input(self):
        assert suggest_groups([]) == []
