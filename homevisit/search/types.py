"""
Value types for the geo search engine.

None of these touch the database. SearchFilter is built per request by the
filter builders in sources.py from already validated query parameters.
"""
from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class Coordinate:
    latitude: float
    longitude: float

    def __post_init__(self):
        if not -90 <= self.latitude <= 90:
            raise ValueError(f"latitude out of range: {self.latitude}")
        if not -180 <= self.longitude <= 180:
            raise ValueError(f"longitude out of range: {self.longitude}")


@dataclass
class SearchFilter:
    predicates: list = field(default_factory=list)
    origin: Optional[Coordinate] = None
    radius_km: float = 25
    sort_by: str = 'distance'
    page: int = 1
    limit: int = 20


@dataclass
class RankedResult:
    entity: Any
    # None when the search had no origin
    distance_km: Optional[float] = None
