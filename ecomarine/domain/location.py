"""Geographic value objects and the static coastal location catalog.

The catalog is the default pool the ingestion cycle samples from.  Each
location carries a bounding box; sampled observation points are drawn
uniformly inside it so repeated cycles look at slightly different water.
"""

from __future__ import annotations

import random

from pydantic import BaseModel, Field, model_validator

from ecomarine.domain.enums import Priority


class Coordinates(BaseModel):
    """A (latitude, longitude) pair within valid Earth bounds."""

    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)

    model_config = {"frozen": True}

    def __str__(self) -> str:
        return f"{self.lat:.4f},{self.lng:.4f}"


class Bounds(BaseModel):
    north: float = Field(..., ge=-90.0, le=90.0)
    south: float = Field(..., ge=-90.0, le=90.0)
    east: float = Field(..., ge=-180.0, le=180.0)
    west: float = Field(..., ge=-180.0, le=180.0)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_order(self) -> "Bounds":
        if self.north < self.south:
            raise ValueError("north must not be below south")
        if self.east < self.west:
            raise ValueError("east must not be west of west")
        return self

    def random_point(self, rng: random.Random | None = None) -> Coordinates:
        """Uniform point inside the box, rounded to four decimals."""
        rng = rng or random
        lat = self.south + rng.random() * (self.north - self.south)
        lng = self.west + rng.random() * (self.east - self.west)
        return Coordinates(lat=round(lat, 4), lng=round(lng, 4))


class CoastalLocation(BaseModel):
    """A named coastal monitoring site."""

    id: int
    name: str = Field(..., min_length=1, max_length=255)
    coordinates: Coordinates
    region: str
    priority: Priority = Priority.MEDIUM
    bounds: Bounds

    model_config = {"frozen": True}


def _loc(
    id: int,
    name: str,
    lat: float,
    lng: float,
    region: str,
    priority: Priority,
    north: float,
    south: float,
    east: float,
    west: float,
) -> CoastalLocation:
    return CoastalLocation(
        id=id,
        name=name,
        coordinates=Coordinates(lat=lat, lng=lng),
        region=region,
        priority=priority,
        bounds=Bounds(north=north, south=south, east=east, west=west),
    )


COASTAL_LOCATIONS: tuple[CoastalLocation, ...] = (
    # Sea of Marmara
    _loc(1, "Marmara Denizi - Tuzla", 40.8250, 29.3083, "Marmara", Priority.HIGH, 40.9, 40.7, 29.5, 29.1),
    _loc(2, "Marmara Denizi - Pendik", 40.8750, 29.2500, "Marmara", Priority.HIGH, 40.95, 40.8, 29.4, 29.1),
    _loc(3, "Marmara Denizi - Silivri", 41.0750, 28.2500, "Marmara", Priority.MEDIUM, 41.15, 41.0, 28.4, 28.1),
    _loc(4, "Marmara Denizi - Bandırma", 40.3500, 27.9667, "Marmara", Priority.MEDIUM, 40.45, 40.25, 28.1, 27.8),
    # Bosphorus
    _loc(5, "İstanbul Boğazı - Beşiktaş", 41.0428, 29.0069, "İstanbul", Priority.HIGH, 41.1, 40.98, 29.1, 28.9),
    _loc(6, "İstanbul Boğazı - Üsküdar", 41.0167, 29.0167, "İstanbul", Priority.HIGH, 41.08, 40.95, 29.1, 28.9),
    # Dardanelles
    _loc(7, "Çanakkale Boğazı - Eceabat", 40.1833, 26.3667, "Çanakkale", Priority.HIGH, 40.25, 40.1, 26.5, 26.2),
    # Aegean
    _loc(8, "Ege Denizi - İzmir Körfezi", 38.4333, 27.1500, "İzmir", Priority.MEDIUM, 38.5, 38.35, 27.3, 27.0),
    # Mediterranean
    _loc(9, "Akdeniz - Antalya Körfezi", 36.8833, 30.7000, "Antalya", Priority.MEDIUM, 36.95, 36.8, 30.8, 30.6),
    _loc(10, "Akdeniz - Mersin Körfezi", 36.8000, 34.6333, "Mersin", Priority.MEDIUM, 36.85, 36.75, 34.7, 34.5),
    # Black Sea
    _loc(11, "Karadeniz - Trabzon", 41.0000, 39.7167, "Trabzon", Priority.LOW, 41.05, 40.95, 39.8, 39.6),
    _loc(12, "Karadeniz - Samsun", 41.2833, 36.3333, "Samsun", Priority.LOW, 41.35, 41.2, 36.4, 36.2),
)


def find_location(name: str) -> CoastalLocation | None:
    """Look up a catalog location by exact name."""
    for location in COASTAL_LOCATIONS:
        if location.name == name:
            return location
    return None
