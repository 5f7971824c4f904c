"""Shared pytest fixtures for terrain_analysis tests.

Provides MockHeightProvider and reusable positions for all terrain_analysis tests.
All fixtures use explicit values with documented rationale.

COORDINATE SYSTEM:
    Tests use coordinates near the equator (lat~0) and prime meridian (lon~0)
    where the math is simple: 1 degree ≈ 111,320 meters in both directions.
    This avoids needing GeoCalculator in the mock (which would test with tested code).
"""

from math import nan
from pathlib import Path
from typing import Sequence

import numpy as np
import pytest
import rasterio
from rasterio.transform import from_origin

from terrain_analysis.constants import DEMConfig, GeoConfig
from terrain_analysis.core.dem_service import DEMService
from terrain_analysis.model.position import Position

M = GeoConfig.METERS_PER_DEGREE_EQUATOR


def at_m(east_m: float, north_m: float) -> Position:
    """Position east_m/north_m meters from the origin (0, 0)."""
    return Position(lon=east_m / M, lat=north_m / M)


# =============================================================================
# MOCK HEIGHT PROVIDER
# =============================================================================


class MockHeightProvider:
    """Mock terrain returning synthetic elevation from a simple formula.

    Elevation formula (east/north in meters from the origin):
        elevation = base_elevation + north * slope_ns_pct / 100 - east * slope_ew_pct / 100
                    + height of every ridge covering east

    Ridges are north-south walls spanning all latitudes: (east_min_m, east_max_m, height_m).
    Voids are rectangles without data: (east_min_m, east_max_m, north_min_m, north_max_m).

    Example with base=100m, ridge (495, 505, 50):
        - east=0: 100m
        - east=500: 150m (on the wall)
    """

    def __init__(
        self,
        base_elevation: float = 100.0,
        slope_ns_pct: float = 0.0,
        slope_ew_pct: float = 0.0,
        ridges: Sequence[tuple[float, float, float]] = (),
        voids: Sequence[tuple[float, float, float, float]] = (),
    ) -> None:
        """Initialize mock terrain.

        Args:
            base_elevation: Elevation at origin (lat=0, lon=0)
            slope_ns_pct: North-south slope percentage. Positive = drops going south.
            slope_ew_pct: East-west slope percentage. Positive = drops going east.
            ridges: North-south walls added on top of the plane
            voids: Rectangles returning NaN
        """
        self.base_elevation = base_elevation
        self.slope_ns_pct = slope_ns_pct
        self.slope_ew_pct = slope_ew_pct
        self.ridges = list(ridges)
        self.voids = list(voids)
        self.height_calls = 0
        self.batch_calls = 0

    def elevation_at_m(self, east_m: float, north_m: float) -> float:
        for east_min, east_max, north_min, north_max in self.voids:
            if east_min <= east_m <= east_max and north_min <= north_m <= north_max:
                return nan
        elevation = (
            self.base_elevation + north_m * (self.slope_ns_pct / 100) - east_m * (self.slope_ew_pct / 100)
        )
        for east_min, east_max, ridge_height in self.ridges:
            if east_min <= east_m <= east_max:
                elevation += ridge_height
        return elevation

    def height(self, position: Position) -> float:
        self.height_calls += 1
        return self.elevation_at_m(east_m=position.lon * M, north_m=position.lat * M)

    async def sample_batch(self, positions: Sequence[Position]) -> list[float]:
        self.batch_calls += 1
        return [self.elevation_at_m(east_m=p.lon * M, north_m=p.lat * M) for p in positions]


# =============================================================================
# MOCK TERRAIN FIXTURES
# =============================================================================


@pytest.fixture
def flat_terrain() -> MockHeightProvider:
    """Flat plain at 100m everywhere."""
    return MockHeightProvider(base_elevation=100.0)


@pytest.fixture
def ridge_terrain() -> MockHeightProvider:
    """Flat 100m plain with a 50m high, 10m wide wall centered 500m east of the origin.

    A sight line from the origin to 1000m east at eye level is blocked at 500m.
    """
    return MockHeightProvider(base_elevation=100.0, ridges=[(495.0, 505.0, 50.0)])


@pytest.fixture
def east_ridge_terrain() -> MockHeightProvider:
    """Flat 100m plain with a 50m high wall 300-320m east (hides everything behind it to the east)."""
    return MockHeightProvider(base_elevation=100.0, ridges=[(300.0, 320.0, 50.0)])


@pytest.fixture
def steep_east_terrain() -> MockHeightProvider:
    """Plane climbing 100% (45°) going west, flat north-south.

    Every lattice edge with an east-west component is steeper than 30°.
    """
    return MockHeightProvider(base_elevation=1000.0, slope_ew_pct=100.0)


@pytest.fixture
def blue_slope_south() -> MockHeightProvider:
    """20% slope going south (about 11.3°), flat east-west."""
    return MockHeightProvider(base_elevation=2500.0, slope_ns_pct=20.0)


@pytest.fixture
def void_terrain() -> MockHeightProvider:
    """Flat 100m plain with a no-data block 80-120m east, -100..100m north."""
    return MockHeightProvider(base_elevation=100.0, voids=[(80.0, 120.0, -100.0, 100.0)])


# =============================================================================
# POSITION FIXTURES
# =============================================================================


@pytest.fixture
def origin() -> Position:
    return Position(lon=0.0, lat=0.0)


@pytest.fixture
def target_1000m_east() -> Position:
    """Target 1000m due east of the origin."""
    return at_m(east_m=1000.0, north_m=0.0)


# =============================================================================
# DEM FIXTURES
# =============================================================================


@pytest.fixture
def small_geotiff(tmp_path: Path) -> Path:
    """10x10 WGS84 GeoTIFF, 0.001° pixels, north-west corner at (0.0, 0.01).

    Pixel value = row * 10 + col; pixel (row=9, col=9) is nodata.
    """
    path = tmp_path / "small_dem.tif"
    data = np.array([[row * 10 + col for col in range(10)] for row in range(10)], dtype=np.float32)
    data[9, 9] = -9999.0
    with rasterio.open(
        path,
        "w",
        driver="GTiff",
        height=10,
        width=10,
        count=1,
        dtype="float32",
        crs=DEMConfig.WGS84_CRS,
        transform=from_origin(0.0, 0.01, 0.001, 0.001),
        nodata=-9999.0,
    ) as dst:
        dst.write(data, 1)
    return path


# =============================================================================
# REAL DEM FIXTURES (skipped if file unavailable)
# =============================================================================


@pytest.fixture
def real_dem() -> DEMService:
    """Real DEM service for integration tests.

    Automatically skips test if the dem.tif file is not available.
    """
    if not DEMConfig.DEM_PATH.exists():
        pytest.skip("DEM file not available")
    return DEMService(dem_path=DEMConfig.DEM_PATH)
