"""GeoPoint value object: an address with coordinates.

Distances use the haversine great-circle formula on a spherical Earth
of radius :data:`EARTH_RADIUS_KM`.
"""

from __future__ import annotations

import math

from pydantic import Field, field_validator

from verifyhub.domain.base import ValueObject

EARTH_RADIUS_KM = 6371.0
MIN_ADDRESS_LENGTH = 10


class GeoPoint(ValueObject):
    """A verification site: address, coordinates, and access hints."""

    address: str
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    place_id: str | None = None
    landmark: str | None = None
    access_instructions: str | None = None

    @field_validator("address")
    @classmethod
    def _check_address(cls, v: str) -> str:
        if len(v.strip()) < MIN_ADDRESS_LENGTH:
            msg = f"Address must be at least {MIN_ADDRESS_LENGTH} characters long"
            raise ValueError(msg)
        return v

    def distance_to(self, other: GeoPoint) -> float:
        """Great-circle distance to *other* in kilometres."""
        lat1 = math.radians(self.latitude)
        lat2 = math.radians(other.latitude)
        d_lat = math.radians(other.latitude - self.latitude)
        d_lon = math.radians(other.longitude - self.longitude)

        a = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2) ** 2
        c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
        return EARTH_RADIUS_KM * c

    def is_within_radius(self, other: GeoPoint, radius_km: float) -> bool:
        return self.distance_to(other) <= radius_km
