"""Proximity verification between a device fix and a venue."""

import math
from dataclasses import dataclass

from checkins.domain.value_objects import GPS_WEIGHT, Coordinates

EARTH_RADIUS_METERS = 6_371_000
DEFAULT_MAX_RANGE_METERS = 100

# Upper bounds (metres) of the informational accuracy labels.
EXACT_RANGE_METERS = 20
CLOSE_RANGE_METERS = 50


@dataclass(frozen=True)
class GeoCheck:
    """Outcome of a proximity check."""

    distance_meters: float | None
    within_range: bool
    score: int
    accuracy: str


def haversine_distance(origin: Coordinates, destination: Coordinates) -> float:
    """Great-circle distance in metres on a spherical Earth."""
    lat1 = math.radians(origin.latitude)
    lat2 = math.radians(destination.latitude)
    d_lat = lat2 - lat1
    d_lon = math.radians(destination.longitude - origin.longitude)

    a = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2) ** 2
    return 2 * EARTH_RADIUS_METERS * math.asin(min(1.0, math.sqrt(a)))


def accuracy_label(distance_meters: float | None, max_range_meters: float) -> str:
    if distance_meters is None:
        return "unknown"
    if distance_meters > max_range_meters:
        return "far"
    if distance_meters <= EXACT_RANGE_METERS:
        return "exact"
    if distance_meters <= CLOSE_RANGE_METERS:
        return "close"
    return "near"


def round_coordinate(value: float) -> float:
    """Reduce precision to 4 decimal places (about 11 m) before storage."""
    return round(value, 4)


def verify_location(
    user: Coordinates | None,
    venue: Coordinates | None,
    max_range_meters: float = DEFAULT_MAX_RANGE_METERS,
) -> GeoCheck:
    """Score a location fix against a venue.

    Credit is all-or-nothing: the full GPS weight inside the radius
    (boundary inclusive), zero outside it. A missing fix, or a venue
    without published coordinates, scores zero rather than failing.
    """
    if user is None or venue is None:
        return GeoCheck(distance_meters=None, within_range=False, score=0, accuracy="unknown")

    distance = haversine_distance(user, venue)
    within_range = distance <= max_range_meters
    return GeoCheck(
        distance_meters=distance,
        within_range=within_range,
        score=GPS_WEIGHT if within_range else 0,
        accuracy=accuracy_label(distance, max_range_meters),
    )
