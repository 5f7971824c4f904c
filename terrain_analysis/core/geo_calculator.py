"""Geodesic calculations on Earth's surface.

Provides the geodesy primitives used by every analysis:
- Distance calculation (straight-line chord)
- Bearing calculation (initial heading between points)
- Destination calculation (endpoint from start, bearing, distance)
- Angle of elevation between an eye height and a terrain point
- Linear interpolation between two 3D points
- WGS84 geodetic to Earth-Centered Earth-Fixed (ECEF) conversion

Spherical formulas use R = 6,371 km; ECEF uses the WGS84 ellipsoid.

Chord distance is the straight line through the ellipsoid between two surface
points. It is what the visibility analyses measure along a ray. Over the radii
used here (a few km) it differs from the curved geodesic by millimeters.
"""

from math import asin, atan2, cos, degrees, radians, sin, sqrt

from terrain_analysis.constants import GeoConfig

EARTH_RADIUS_M = GeoConfig.EARTH_RADIUS_M


class GeoCalculator:
    """Static methods for geodesic calculations on Earth's surface.

    Coordinates are in decimal degrees (WGS84).
    Bearings are in degrees clockwise from North (0-360).
    Distances and heights are in meters.
    """

    @staticmethod
    def to_ecef(lon: float, lat: float, height: float = 0.0) -> tuple[float, float, float]:
        """Convert WGS84 geodetic coordinates to ECEF Cartesian coordinates.

        Args:
            lon: Longitude (decimal degrees)
            lat: Latitude (decimal degrees)
            height: Height above the ellipsoid (meters)

        Returns:
            Tuple (x, y, z) in meters.
        """
        lon_rad, lat_rad = radians(lon), radians(lat)
        sin_lat = sin(lat_rad)
        # Prime vertical radius of curvature
        n = GeoConfig.WGS84_A / sqrt(1 - GeoConfig.WGS84_E2 * sin_lat**2)
        x = (n + height) * cos(lat_rad) * cos(lon_rad)
        y = (n + height) * cos(lat_rad) * sin(lon_rad)
        z = (n * (1 - GeoConfig.WGS84_E2) + height) * sin_lat
        return x, y, z

    @staticmethod
    def chord_distance_m(
        lon1: float,
        lat1: float,
        lon2: float,
        lat2: float,
        height1: float = 0.0,
        height2: float = 0.0,
    ) -> float:
        """Straight-line (chord) distance between two points through the ellipsoid.

        Heights default to 0, giving the surface chord used as horizontal distance.

        Returns:
            Distance in meters.
        """
        x1, y1, z1 = GeoCalculator.to_ecef(lon=lon1, lat=lat1, height=height1)
        x2, y2, z2 = GeoCalculator.to_ecef(lon=lon2, lat=lat2, height=height2)
        return sqrt((x2 - x1) ** 2 + (y2 - y1) ** 2 + (z2 - z1) ** 2)

    @staticmethod
    def initial_bearing_deg(lon1: float, lat1: float, lon2: float, lat2: float) -> float:
        """Calculate initial bearing from point 1 to point 2.

        The bearing is the compass direction to travel from start to end,
        measured clockwise from true North.

        Args:
            lon1: Longitude of start point (decimal degrees)
            lat1: Latitude of start point (decimal degrees)
            lon2: Longitude of end point (decimal degrees)
            lat2: Latitude of end point (decimal degrees)

        Returns:
            Bearing in degrees (0-360, clockwise from North).
        """
        lon1_rad, lat1_rad = radians(lon1), radians(lat1)
        lon2_rad, lat2_rad = radians(lon2), radians(lat2)
        dlon = lon2_rad - lon1_rad
        y = sin(dlon) * cos(lat2_rad)
        x = cos(lat1_rad) * sin(lat2_rad) - sin(lat1_rad) * cos(lat2_rad) * cos(dlon)
        return (degrees(atan2(y, x)) + 360) % 360

    @staticmethod
    def destination(
        lon: float,
        lat: float,
        bearing_deg: float,
        distance_m: float,
    ) -> tuple[float, float]:
        """Calculate destination point given start, bearing, and distance.

        Uses the formula for finding a point at given distance and bearing
        from a starting point on a sphere.

        Args:
            lon: Longitude of start point (decimal degrees)
            lat: Latitude of start point (decimal degrees)
            bearing_deg: Bearing in degrees (clockwise from North)
            distance_m: Distance to travel in meters

        Returns:
            Tuple (lon, lat) of destination point in decimal degrees.
        """
        brng = radians(bearing_deg)
        lat1 = radians(lat)
        lon1 = radians(lon)
        d_R = distance_m / EARTH_RADIUS_M

        lat2 = asin(sin(lat1) * cos(d_R) + cos(lat1) * sin(d_R) * cos(brng))
        lon2 = lon1 + atan2(
            sin(brng) * sin(d_R) * cos(lat1),
            cos(d_R) - sin(lat1) * sin(lat2),
        )
        return degrees(lon2), degrees(lat2)

    @staticmethod
    def elevation_angle_deg(eye_height: float, point_elevation: float, distance_m: float) -> float:
        """Angle of elevation from an eye to a terrain point.

        Args:
            eye_height: Absolute eye height (terrain + observer offset) in meters
            point_elevation: Terrain elevation of the target point in meters
            distance_m: Horizontal distance to the point in meters

        Returns:
            Angle in degrees (-90 to 90, positive = above the eye).
        """
        return degrees(atan2(point_elevation - eye_height, distance_m))

    @staticmethod
    def slope_deg(elevation_change: float, distance_m: float) -> float:
        """Terrain slope in degrees from an absolute elevation change over a distance."""
        return degrees(atan2(abs(elevation_change), distance_m))

    @staticmethod
    def lerp(
        start: tuple[float, float, float],
        end: tuple[float, float, float],
        t: float,
    ) -> tuple[float, float, float]:
        """Linear interpolation between two (lon, lat, height) triplets.

        Args:
            start: Point at t=0
            end: Point at t=1
            t: Interpolation parameter (not clamped)

        Returns:
            Interpolated (lon, lat, height).
        """
        return (
            start[0] + (end[0] - start[0]) * t,
            start[1] + (end[1] - start[1]) * t,
            start[2] + (end[2] - start[2]) * t,
        )
