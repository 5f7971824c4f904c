"""Configuration constants for Terrain Analysis.

All configurable parameters are centralized here for easy tuning.

Classes:
    GeoConfig: Earth model constants
    SightConfig: Shared line-of-sight sampler parameters
    ViewshedConfig: Single-target viewshed defaults
    SkylineConfig: 360° skyline scan defaults
    SectorConfig: Sector (angular) viewshed defaults
    PathfinderConfig: Slope-weighted A* pathfinder parameters
    ProfileConfig: Elevation profile defaults
    VolumeConfig: Cut/fill volume defaults
    DEMConfig: Elevation data file paths
    ElevationApiConfig: Remote elevation service parameters
"""

from pathlib import Path

# Package root directory (where terrain_analysis/ lives)
PACKAGE_DIR = Path(__file__).parent

# Project root directory (parent of terrain_analysis/)
PROJECT_ROOT = PACKAGE_DIR.parent

# Data directory outside package (downloaded separately, not shipped with package)
DATA_DIR = PROJECT_ROOT / "data"


class GeoConfig:
    """Earth model constants."""

    # Spherical radius used by destination (WGS84 mean radius)
    EARTH_RADIUS_M = 6_371_000

    # WGS84 ellipsoid for geodetic -> ECEF conversion
    WGS84_A = 6_378_137.0  # Semi-major axis (m)
    WGS84_F = 1 / 298.257223563  # Flattening
    WGS84_E2 = WGS84_F * (2 - WGS84_F)  # First eccentricity squared

    # At equator, 1 degree of latitude or longitude ≈ 111,320 meters
    METERS_PER_DEGREE_EQUATOR = 111320.0


class SightConfig:
    """Line-of-sight sampler parameters shared by all visibility analyses."""

    # Standing observer eye height above terrain (meters)
    DEFAULT_OBSERVER_HEIGHT_M = 1.6
    DEFAULT_TARGET_HEIGHT_M = 0.0

    # A ray needs at least its two endpoints
    MIN_SAMPLE_COUNT = 2

    # Running horizon starts looking straight down
    INITIAL_HORIZON_ANGLE_DEG = -90.0


class ViewshedConfig:
    """Single-target (two point) viewshed defaults."""

    SAMPLE_COUNT = 100


class SkylineConfig:
    """360° skyline scan defaults."""

    RADIUS_M = 1000.0
    AZIMUTH_SAMPLES = 360
    DISTANCE_SAMPLES = 50  # Steps along each azimuth ray

    # Vertical field of view (degrees, 0 = horizontal)
    MIN_PITCH_DEG = -90.0
    MAX_PITCH_DEG = 90.0


class SectorConfig:
    """Sector (angular) viewshed defaults."""

    RADIUS_M = 500.0
    HORIZONTAL_FOV_DEG = 360.0
    HORIZONTAL_ANGLE_DEG = 0.0  # Start azimuth, 0 = north
    VERTICAL_FOV_DEG = 90.0
    VERTICAL_ANGLE_DEG = -45.0  # Look direction, negative = down
    AZIMUTH_SAMPLES = 180
    DISTANCE_SAMPLES = 50

    FULL_CIRCLE_DEG = 360.0


class PathfinderConfig:
    """Slope-weighted A* pathfinder parameters.

    Cost model:
        move_cost = DISTANCE_WEIGHT * d + SLOPE_WEIGHT * d * (1 + slope / SLOPE_NORMALIZER_DEG) ** 2

    Edges steeper than MAX_SLOPE_DEG are removed from the graph, not penalized.
    """

    GRID_SIZE_M = 20.0  # Lattice spacing in meters
    SLOPE_WEIGHT = 1.0
    DISTANCE_WEIGHT = 1.0
    MAX_SLOPE_DEG = 45.0

    GRID_PADDING_FACTOR = 0.2  # Bounding box expanded by 20% of its span on each side
    NEIGHBOR_RADIUS_FACTOR = 1.5  # 1.5 × grid size reaches diagonal neighbors
    SLOPE_NORMALIZER_DEG = 45.0

    # Lattice nodes allowed per search (performance cap)
    MAX_NODES = 250_000


class ProfileConfig:
    """Elevation profile defaults."""

    SAMPLE_COUNT = 100


class VolumeConfig:
    """Cut/fill volume over a polygon."""

    GRID_SIZE_M = 10.0  # Cell edge in projected (UTM) meters
    MAX_CELLS = 250_000  # Bounding-box cells before the grid is rejected
    MIN_VERTICES = 3


class DEMConfig:
    """Elevation data file paths."""

    # Local GeoTIFF used by DEMService when no path is given
    DEM_PATH = DATA_DIR / "dem.tif"

    # Native CRS of query coordinates
    WGS84_CRS = "EPSG:4326"

    DOWNLOAD_CHUNK_SIZE = 8192
    DOWNLOAD_TIMEOUT_S = 180


class ElevationApiConfig:
    """Remote elevation service (Open-Elevation compatible lookup endpoint)."""

    BASE_URL = "https://api.open-elevation.com"
    LOOKUP_PATH = "/api/v1/lookup"
    BATCH_SIZE = 100  # Locations per POST request
    TIMEOUT_S = 30


assert 0 < SightConfig.MIN_SAMPLE_COUNT <= ViewshedConfig.SAMPLE_COUNT, "Viewshed needs at least two samples"
assert SkylineConfig.MIN_PITCH_DEG <= SkylineConfig.MAX_PITCH_DEG, "Pitch window must not be inverted"
assert 0 < PathfinderConfig.MAX_SLOPE_DEG <= 90, "Slope cutoff must be a valid angle"
assert PathfinderConfig.NEIGHBOR_RADIUS_FACTOR > 2**0.5, "Neighbor radius must include diagonals"
assert VolumeConfig.GRID_SIZE_M > 0, "Volume grid cells need a positive size"
