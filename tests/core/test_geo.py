"""Unit tests for geographic calculations.

Pure function tests - no mocks needed, fast execution.
"""

import pytest

from locom.core.geo import (
    DEFAULT_LOCATION,
    Coordinate,
    calculate_distance,
    distance_km,
    is_visible,
    resolve_observer_location,
    select_visible,
    within_radius,
)
from locom.core.post import Post


NICOSIA = Coordinate(latitude=35.1856, longitude=33.3823)


def make_post(post_id, latitude=None, longitude=None):
    """Create a post at an optional location."""
    return Post(
        id=post_id,
        user_id="user-1",
        content=f"Post {post_id}",
        latitude=latitude,
        longitude=longitude,
    )


class TestCalculateDistance:
    """Tests for calculate_distance() Haversine implementation."""

    def test_same_point_returns_zero(self):
        """Distance from point to itself should be zero."""
        distance = calculate_distance(35.1856, 33.3823, 35.1856, 33.3823)
        assert distance == pytest.approx(0.0, abs=0.001)

    def test_known_distance_nicosia_to_limassol(self):
        """Nicosia to Limassol should be approximately 62 km."""
        distance = calculate_distance(35.1856, 33.3823, 34.7071, 33.0226)
        assert distance == pytest.approx(62, rel=0.05)

    def test_antipodal_points(self):
        """Antipodal points are half the circumference apart."""
        distance = calculate_distance(0, 0, 0, 180)
        assert distance == pytest.approx(20015, rel=0.001)

    def test_near_antipodal_points_do_not_raise(self):
        """Rounding near the antipode still yields half the circumference."""
        distance = distance_km(Coordinate(-82, -180), Coordinate(82, 0))
        assert distance == pytest.approx(20015, rel=0.001)

    @pytest.mark.parametrize("lat", range(-89, 90, 7))
    def test_integer_antipodal_pairs(self, lat):
        """Antipodal pairs across latitudes stay within the domain."""
        distance = calculate_distance(lat, -180, -lat, 0)
        assert distance == pytest.approx(20015, rel=0.001)

    def test_distance_is_symmetric(self):
        """Distance A to B equals B to A."""
        d1 = calculate_distance(35.1856, 33.3823, 35.40, 33.95)
        d2 = calculate_distance(35.40, 33.95, 35.1856, 33.3823)
        assert d1 == pytest.approx(d2)


class TestDistanceKm:
    """Tests for distance_km()."""

    def test_matches_calculate_distance(self):
        """Coordinate wrapper delegates to the Haversine formula."""
        other = Coordinate(latitude=35.19, longitude=33.39)
        expected = calculate_distance(35.1856, 33.3823, 35.19, 33.39)
        assert distance_km(NICOSIA, other) == pytest.approx(expected)

    def test_never_negative(self):
        """Distances are non-negative."""
        other = Coordinate(latitude=-35.0, longitude=-33.0)
        assert distance_km(NICOSIA, other) > 0


class TestWithinRadius:
    """Tests for within_radius()."""

    def test_nearby_point_is_within(self):
        """Point under a kilometer away is within 5 km."""
        assert within_radius(NICOSIA, Coordinate(35.19, 33.39), 5.0)

    def test_far_point_is_outside(self):
        """Point ~58 km away is outside 5 km."""
        assert not within_radius(NICOSIA, Coordinate(35.40, 33.95), 5.0)

    def test_boundary_is_inclusive(self):
        """A point exactly at the radius is included."""
        other = Coordinate(35.19, 33.39)
        radius = distance_km(NICOSIA, other)
        assert within_radius(NICOSIA, other, radius)

    def test_zero_radius_includes_same_point(self):
        """Zero radius still includes the observer's own location."""
        assert within_radius(NICOSIA, NICOSIA, 0.0)


class TestResolveObserverLocation:
    """Tests for resolve_observer_location() fallback chain."""

    def test_profile_location_wins(self):
        """Stored profile location is preferred."""
        profile = Coordinate(34.7, 33.0)
        device = Coordinate(35.0, 33.5)
        assert resolve_observer_location(profile, device) == profile

    def test_device_location_when_no_profile(self):
        """Device location is used when the profile has none."""
        device = Coordinate(35.0, 33.5)
        assert resolve_observer_location(None, device) == device

    def test_default_when_nothing_known(self):
        """Falls back to the default location."""
        assert resolve_observer_location(None, None) == DEFAULT_LOCATION

    def test_zero_coordinates_are_a_real_location(self):
        """(0, 0) is a valid profile location, not missing."""
        origin = Coordinate(0.0, 0.0)
        assert resolve_observer_location(origin, None) == origin

    def test_custom_default(self):
        """Caller can supply a different default."""
        limassol = Coordinate(34.7071, 33.0226)
        assert resolve_observer_location(None, None, default=limassol) == limassol


class TestIsVisible:
    """Tests for is_visible()."""

    def test_item_without_location_is_always_visible(self):
        """Unlocated items are shown regardless of radius."""
        assert is_visible(None, NICOSIA, 0.1)

    def test_item_outside_radius_is_hidden(self):
        """Located items outside the radius are hidden."""
        assert not is_visible(Coordinate(35.40, 33.95), NICOSIA, 5.0)


class TestSelectVisible:
    """Tests for select_visible()."""

    def test_filters_posts_by_radius(self):
        """Unlocated and nearby posts are kept, far posts dropped."""
        posts = [
            make_post("no-location"),
            make_post("nearby", 35.19, 33.39),
            make_post("far", 35.40, 33.95),
        ]

        visible = select_visible(posts, NICOSIA, 5.0)

        assert [p.id for p in visible] == ["no-location", "nearby"]

    def test_post_with_one_coordinate_is_unlocated(self):
        """A post missing either coordinate counts as unlocated."""
        post = make_post("half", latitude=35.9)
        assert select_visible([post], NICOSIA, 1.0) == [post]

    def test_preserves_input_order(self):
        """Output order follows input order."""
        posts = [make_post(str(i), 35.1856, 33.3823) for i in range(5)]
        visible = select_visible(posts, NICOSIA, 1.0)
        assert [p.id for p in visible] == ["0", "1", "2", "3", "4"]

    def test_custom_location_accessor(self):
        """Works with any item type given an accessor."""
        items = [("a", NICOSIA), ("b", Coordinate(35.40, 33.95)), ("c", None)]
        visible = select_visible(items, NICOSIA, 5.0, location_of=lambda item: item[1])
        assert [name for name, _ in visible] == ["a", "c"]

    def test_empty_input(self):
        """Empty input yields empty output."""
        assert select_visible([], NICOSIA, 5.0) == []
