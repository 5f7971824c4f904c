"""Height Provider contract and in-memory implementations.

A Height Provider is the only way the engine learns terrain elevation. It is a
capability injected into every analysis call; the engine keeps no reference to
it beyond the call.

Contract:
- height(position) -> float: synchronous, side-effect free, NaN when no data
- sample_batch(positions) -> list[float]: optional coroutine returning
  higher-precision elevations in one request

Implementations here:
- FunctionHeightProvider: wraps a plain (lon, lat) -> elevation callable
- GridHeightProvider: regular lon/lat elevation grid, bilinear interpolation
"""

from __future__ import annotations

import logging
from math import isnan, nan
from typing import TYPE_CHECKING, Callable, Optional, Protocol, Sequence, runtime_checkable

import numpy as np
from scipy.interpolate import RegularGridInterpolator

if TYPE_CHECKING:
    from terrain_analysis.model.position import Position

logger = logging.getLogger(__name__)


@runtime_checkable
class HeightProvider(Protocol):
    """Synchronous terrain elevation query."""

    def height(self, position: Position) -> float:
        """Terrain elevation in meters at the position, NaN if unavailable."""
        ...


@runtime_checkable
class AsyncHeightProvider(HeightProvider, Protocol):
    """Height Provider that also offers a batched asynchronous query."""

    async def sample_batch(self, positions: Sequence[Position]) -> list[float]:
        """Terrain elevations for all positions, in order, NaN where unavailable."""
        ...


def query_heights(heights: HeightProvider, positions: Sequence[Position]) -> tuple[list[float], int]:
    """Query elevations one by one.

    Args:
        heights: Height Provider
        positions: Positions to query

    Returns:
        Tuple (elevations, missing_count). Missing values are NaN.
    """
    elevations = [heights.height(p) for p in positions]
    return elevations, sum(1 for e in elevations if isnan(e))


async def query_heights_async(heights: AsyncHeightProvider, positions: Sequence[Position]) -> tuple[list[float], int]:
    """Query elevations with a single batched request.

    Raises:
        RuntimeError: If the provider returns a different number of elevations.
    """
    elevations = [float(e) for e in await heights.sample_batch(list(positions))]
    if len(elevations) != len(positions):
        raise RuntimeError(f"sample_batch returned {len(elevations)} elevations for {len(positions)} positions")
    return elevations, sum(1 for e in elevations if isnan(e))


class FunctionHeightProvider:
    """Height Provider backed by a plain function.

    Example:
        heights = FunctionHeightProvider(lambda lon, lat: 100.0)
        heights.height(Position(lon=0.0, lat=0.0))  # 100.0
    """

    def __init__(self, func: Callable[[float, float], Optional[float]]):
        """Initialize with an elevation function.

        Args:
            func: Callable (lon, lat) -> elevation in meters, or None for no data
        """
        self._func = func

    def height(self, position: Position) -> float:
        elevation = self._func(position.lon, position.lat)
        if elevation is None:
            return nan
        return float(elevation)

    async def sample_batch(self, positions: Sequence[Position]) -> list[float]:
        return [self.height(p) for p in positions]


class GridHeightProvider:
    """Height Provider over a regular lon/lat elevation grid.

    Elevations between grid points are bilinearly interpolated; queries outside
    the grid (or touching NaN cells) return NaN.

    Attributes:
        bounds: (min_lon, min_lat, max_lon, max_lat) covered by the grid
    """

    def __init__(
        self,
        lons: Sequence[float],
        lats: Sequence[float],
        elevations: np.ndarray,
    ):
        """Initialize from grid axes and a (len(lats), len(lons)) elevation array.

        Args:
            lons: Strictly ascending longitudes (columns)
            lats: Strictly ascending latitudes (rows)
            elevations: Elevation array indexed [lat_index, lon_index]

        Raises:
            ValueError: If the array shape does not match the axes.
        """
        lon_axis = np.asarray(lons, dtype=np.float64)
        lat_axis = np.asarray(lats, dtype=np.float64)
        grid = np.asarray(elevations, dtype=np.float64)
        if grid.shape != (len(lat_axis), len(lon_axis)):
            raise ValueError(f"Elevation grid shape {grid.shape} does not match axes ({len(lat_axis)}, {len(lon_axis)})")

        self._interpolator = RegularGridInterpolator(
            (lat_axis, lon_axis),
            grid,
            method="linear",
            bounds_error=False,
            fill_value=np.nan,
        )
        self.bounds = (float(lon_axis[0]), float(lat_axis[0]), float(lon_axis[-1]), float(lat_axis[-1]))

    @classmethod
    def from_function(
        cls,
        func: Callable[[float, float], float],
        bounds: tuple[float, float, float, float],
        shape: tuple[int, int],
    ) -> "GridHeightProvider":
        """Rasterize an elevation function onto a regular grid.

        Args:
            func: Callable (lon, lat) -> elevation
            bounds: (min_lon, min_lat, max_lon, max_lat)
            shape: (rows, cols) of the grid

        Returns:
            GridHeightProvider sampling the rasterized function.
        """
        min_lon, min_lat, max_lon, max_lat = bounds
        rows, cols = shape
        lons = np.linspace(min_lon, max_lon, cols)
        lats = np.linspace(min_lat, max_lat, rows)
        grid = np.array([[func(float(lon), float(lat)) for lon in lons] for lat in lats], dtype=np.float64)
        return cls(lons=lons, lats=lats, elevations=grid)

    def height(self, position: Position) -> float:
        return float(self._interpolator((position.lat, position.lon)))

    async def sample_batch(self, positions: Sequence[Position]) -> list[float]:
        if not positions:
            return []
        points = np.array([(p.lat, p.lon) for p in positions], dtype=np.float64)
        return [float(e) for e in self._interpolator(points)]
