"""Distance, travel time, and surge collaborators for quoting.

The default implementations are offline: great-circle distance, travel
time from an average speed, and a fixed surge multiplier. A geocoding
or demand-pricing backend can replace them through the protocols.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import NamedTuple, Protocol

from verifyhub.domain.errors import InvalidValueError
from verifyhub.domain.geo import EARTH_RADIUS_KM


class Coordinates(Protocol):
    @property
    def latitude(self) -> float: ...

    @property
    def longitude(self) -> float: ...


class DistanceCalculator(Protocol):
    def distance_km(self, origin: Coordinates, destination: Coordinates) -> float: ...

    def travel_minutes(self, origin: Coordinates, destination: Coordinates) -> int: ...


class SurgeCalculator(Protocol):
    def surge_multiplier(self, location: Coordinates, when: datetime) -> float: ...


class HaversineDistance:
    """Straight-line distance with a fixed average travel speed."""

    def __init__(self, average_speed_kmh: float = 30.0) -> None:
        if average_speed_kmh <= 0:
            msg = "Average speed must be positive"
            raise ValueError(msg)
        self._speed = average_speed_kmh

    def distance_km(self, origin: Coordinates, destination: Coordinates) -> float:
        lat1 = math.radians(origin.latitude)
        lat2 = math.radians(destination.latitude)
        d_lat = lat2 - lat1
        d_lon = math.radians(destination.longitude - origin.longitude)
        a = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2) ** 2
        return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    def travel_minutes(self, origin: Coordinates, destination: Coordinates) -> int:
        """Whole minutes at the average speed, rounded up."""
        return math.ceil(self.distance_km(origin, destination) / self._speed * 60)


class FixedSurge:
    """Same surge multiplier everywhere, at every time."""

    def __init__(self, multiplier: float = 1.0) -> None:
        self._multiplier = multiplier

    def surge_multiplier(self, location: Coordinates, when: datetime) -> float:
        return self._multiplier


class Point(NamedTuple):
    """Bare coordinates, for callers that have no address."""

    latitude: float
    longitude: float

    @classmethod
    def checked(cls, latitude: float, longitude: float) -> Point:
        if not -90 <= latitude <= 90:
            msg = f"Latitude must be between -90 and 90, got {latitude}"
            raise InvalidValueError(msg)
        if not -180 <= longitude <= 180:
            msg = f"Longitude must be between -180 and 180, got {longitude}"
            raise InvalidValueError(msg)
        return cls(latitude, longitude)
