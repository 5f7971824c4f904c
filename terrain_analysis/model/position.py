"""Position - The fundamental geometry atom for terrain analysis.

A Position represents a single WGS84 coordinate with a geodetic height.
It is the single source of truth for location throughout the system.

Used by:
- SightSample (where along a ray a sample was taken)
- GridNode (lattice point of the pathfinder)
- All analysis results (observer, target, path vertices)
"""

from dataclasses import dataclass, replace
from math import isnan

from terrain_analysis.core.geo_calculator import GeoCalculator


@dataclass(frozen=True)
class Position:
    """A point with WGS84 coordinates and geodetic height.

    Immutable value type. `height` is the height of the picked point; analyses
    never trust it for terrain and re-query the Height Provider instead. Height
    may be NaN when a sample was taken where terrain data is missing.

    Attributes:
        lon: Longitude in decimal degrees (WGS84)
        lat: Latitude in decimal degrees (WGS84)
        height: Height in meters above the ellipsoid

    Example:
        point = Position(lon=116.39, lat=39.91, height=44.0)
    """

    lon: float
    lat: float
    height: float = 0.0

    def __post_init__(self) -> None:
        """Validate data after initialization."""
        if isnan(self.lon) or isnan(self.lat):
            raise ValueError(f"Position cannot have NaN coordinates ({self.lon}, {self.lat})")
        if not -90.0 <= self.lat <= 90.0:
            raise ValueError(f"Latitude {self.lat} outside [-90, 90]")

    @property
    def lat_lon(self) -> tuple[float, float]:
        """Return (lat, lon) tuple - standard geographic order."""
        return (self.lat, self.lon)

    @property
    def lon_lat(self) -> tuple[float, float]:
        """Return (lon, lat) tuple - GeoJSON order."""
        return (self.lon, self.lat)

    @property
    def triplet(self) -> tuple[float, float, float]:
        """Return (lon, lat, height)."""
        return (self.lon, self.lat, self.height)

    def with_height(self, height: float) -> "Position":
        """Copy of this position at another height."""
        return replace(self, height=height)

    def to_ecef(self) -> tuple[float, float, float]:
        """ECEF Cartesian coordinates of this position (meters)."""
        return GeoCalculator.to_ecef(lon=self.lon, lat=self.lat, height=0.0 if isnan(self.height) else self.height)

    def distance_to(self, other: "Position") -> float:
        """Surface chord distance to another position in meters.

        Heights are ignored: this is the horizontal distance used for sight
        angles and slopes.
        """
        return GeoCalculator.chord_distance_m(
            lon1=self.lon,
            lat1=self.lat,
            lon2=other.lon,
            lat2=other.lat,
        )

    def lerp(self, other: "Position", t: float) -> "Position":
        """Linearly interpolate towards another position (t=0 self, t=1 other)."""
        lon, lat, height = GeoCalculator.lerp(start=self.triplet, end=other.triplet, t=t)
        return Position(lon=lon, lat=lat, height=height)

    def __repr__(self) -> str:
        return f"Position(lon={self.lon:.6f}, lat={self.lat:.6f}, height={self.height:.1f}m)"
