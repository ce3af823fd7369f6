"""Geographic calculations - Pure functions.

This module provides great-circle distance and radius membership used to
scope the feed to the neighborhood around a user.
All functions are pure with no side effects.
"""

import math
from dataclasses import dataclass
from typing import Callable, Iterable, TypeVar


# Earth's radius in kilometers
EARTH_RADIUS_KM = 6371.0

# Default feed radius in kilometers
DEFAULT_RADIUS_KM = 5.0


T = TypeVar("T")


@dataclass(frozen=True)
class Coordinate:
    """A point on the Earth's surface in degrees.

    Attributes:
        latitude: Latitude in [-90, 90]
        longitude: Longitude in [-180, 180]
    """
    latitude: float
    longitude: float


# Nicosia, Cyprus. Used when neither a profile nor a device location is known.
DEFAULT_LOCATION = Coordinate(latitude=35.1856, longitude=33.3823)


def calculate_distance(
    lat1: float,
    lon1: float,
    lat2: float,
    lon2: float,
) -> float:
    """Calculate distance between two points using Haversine formula.

    Pure function.

    Args:
        lat1: Latitude of first point
        lon1: Longitude of first point
        lat2: Latitude of second point
        lon2: Longitude of second point

    Returns:
        Distance in kilometers
    """
    # Convert to radians
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    # Haversine formula
    a = (
        math.sin(delta_lat / 2) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lon / 2) ** 2
    )
    # Rounding can push a just past 1 for near-antipodal points
    a = min(1.0, a)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def distance_km(observer: Coordinate, candidate: Coordinate) -> float:
    """Great-circle distance between two coordinates in kilometers."""
    return calculate_distance(
        observer.latitude,
        observer.longitude,
        candidate.latitude,
        candidate.longitude,
    )


def within_radius(
    observer: Coordinate,
    candidate: Coordinate,
    radius_km: float,
) -> bool:
    """Check if a candidate lies within a radius of the observer.

    Pure function. The boundary is inclusive.

    Args:
        observer: Center point
        candidate: Point to test
        radius_km: Radius in kilometers

    Returns:
        True if candidate is within radius
    """
    return distance_km(observer, candidate) <= radius_km


def resolve_observer_location(
    profile_location: Coordinate | None,
    device_location: Coordinate | None,
    default: Coordinate = DEFAULT_LOCATION,
) -> Coordinate:
    """Pick the location the feed is centered on.

    Pure function. Stored profile coordinate wins, then the live device
    coordinate, then the fixed default.
    """
    if profile_location is not None:
        return profile_location
    if device_location is not None:
        return device_location
    return default


def is_visible(
    candidate: Coordinate | None,
    observer: Coordinate,
    radius_km: float,
) -> bool:
    """Check if an item at ``candidate`` should appear in the feed.

    Pure function. Items without a location are always shown.
    """
    if candidate is None:
        return True
    return within_radius(observer, candidate, radius_km)


def select_visible(
    items: Iterable[T],
    observer: Coordinate,
    radius_km: float,
    location_of: Callable[[T], Coordinate | None] = lambda item: item.location,
) -> list[T]:
    """Filter items to those visible from the observer.

    Pure function.

    Args:
        items: Items to filter (posts by default)
        observer: Resolved observer location
        radius_km: Feed radius in kilometers
        location_of: Extracts an item's coordinate, None when unknown

    Returns:
        Visible items in their original order
    """
    return [
        item for item in items
        if is_visible(location_of(item), observer, radius_km)
    ]
