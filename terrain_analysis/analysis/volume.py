"""Cut/fill volume inside a polygon.

The polygon is projected to its UTM zone and covered with square cells of
grid_size meters aligned to its bounding box. Every cell whose center lies
inside the polygon is sampled once at the center:

    cut  = sum(max(0, elevation - base)) * cell_area
    fill = sum(max(0, base - elevation)) * cell_area

The base elevation defaults to the mean sampled elevation, which makes cut
and fill balance. Cells without terrain data are left out.
"""

import logging
from dataclasses import dataclass
from math import ceil, floor
from typing import Optional, Sequence

import numpy as np
import pyproj
import shapely
from shapely.geometry import Polygon
from shapely.ops import transform as shapely_transform

from terrain_analysis.constants import DEMConfig, VolumeConfig
from terrain_analysis.core.height_providers import (
    AsyncHeightProvider,
    HeightProvider,
    query_heights,
    query_heights_async,
)
from terrain_analysis.model.position import Position
from terrain_analysis.model.results import VolumeResult
from terrain_analysis.model.warning import missing_elevation_warnings

logger = logging.getLogger(__name__)


def _get_utm_zone(lon: float, lat: float) -> str:
    """Get UTM zone EPSG code for given coordinates."""
    zone_number = floor((lon + 180) / 6) + 1
    if lat >= 0:
        return f"EPSG:326{zone_number:02d}"
    return f"EPSG:327{zone_number:02d}"


@dataclass(frozen=True)
class VolumeOptions:
    """Options for compute_volume.

    Attributes:
        grid_size: Cell edge length in meters
        base_elevation: Reference plane in meters; None uses the mean sampled elevation
        max_cells: Upper bound on bounding-box cells
    """

    grid_size: float = VolumeConfig.GRID_SIZE_M
    base_elevation: Optional[float] = None
    max_cells: int = VolumeConfig.MAX_CELLS

    def __post_init__(self) -> None:
        if not self.grid_size > 0:
            raise ValueError(f"grid_size must be > 0, got {self.grid_size}")
        if self.max_cells < 1:
            raise ValueError(f"max_cells must be >= 1, got {self.max_cells}")


@dataclass(frozen=True)
class VolumeGrid:
    """Cell centers inside the polygon, ready for one elevation query."""

    cells: list[Position]
    area: float
    cell_area: float


def plan_volume_grid(polygon: Sequence[Position], options: VolumeOptions) -> VolumeGrid:
    """Cover a polygon with projected square cells and keep those centered inside.

    Args:
        polygon: Polygon vertices (closing vertex optional)
        options: Grid size and cell budget

    Returns:
        VolumeGrid with WGS84 cell centers, polygon area and cell area.

    Raises:
        ValueError: If the polygon has fewer than 3 vertices, no area, crosses
            itself, or needs more than max_cells cells.
    """
    vertices = list(polygon)
    if len(vertices) > 1 and vertices[0].lon_lat == vertices[-1].lon_lat:
        vertices = vertices[:-1]
    if len(vertices) < VolumeConfig.MIN_VERTICES:
        raise ValueError(f"A volume polygon needs at least {VolumeConfig.MIN_VERTICES} vertices, got {len(vertices)}")

    center_lon = sum(v.lon for v in vertices) / len(vertices)
    center_lat = sum(v.lat for v in vertices) / len(vertices)
    wgs84 = pyproj.CRS(DEMConfig.WGS84_CRS)
    utm = pyproj.CRS(_get_utm_zone(lon=center_lon, lat=center_lat))
    to_utm = pyproj.Transformer.from_crs(wgs84, utm, always_xy=True)
    to_wgs84 = pyproj.Transformer.from_crs(utm, wgs84, always_xy=True)

    outline = shapely_transform(to_utm.transform, Polygon([v.lon_lat for v in vertices]))
    if outline.area <= 0:
        raise ValueError("Volume polygon has zero area")
    if not outline.is_valid:
        raise ValueError("Volume polygon crosses itself")

    grid_size = options.grid_size
    min_x, min_y, max_x, max_y = outline.bounds
    cols = max(1, ceil((max_x - min_x) / grid_size))
    rows = max(1, ceil((max_y - min_y) / grid_size))
    if rows * cols > options.max_cells:
        raise ValueError(f"Volume grid needs {rows}x{cols} cells, above max_cells={options.max_cells}")

    xs = min_x + (np.arange(cols) + 0.5) * grid_size
    ys = min_y + (np.arange(rows) + 0.5) * grid_size
    grid_x, grid_y = np.meshgrid(xs, ys)
    shapely.prepare(outline)
    inside = shapely.contains_xy(outline, grid_x, grid_y)

    lons, lats = to_wgs84.transform(grid_x[inside], grid_y[inside])
    cells = [Position(lon=float(lon), lat=float(lat)) for lon, lat in zip(lons, lats)]
    logger.debug(f"Volume grid: {len(cells)} of {rows}x{cols} cells inside {outline.area:.0f}m²")

    return VolumeGrid(cells=cells, area=float(outline.area), cell_area=grid_size * grid_size)


def _build_result(grid: VolumeGrid, elevations: list[float], missing: int, options: VolumeOptions) -> VolumeResult:
    if missing:
        logger.warning(f"Volume: {missing}/{len(grid.cells)} cells without terrain data")

    known = np.array([e for e in elevations if not np.isnan(e)], dtype=np.float64)
    if options.base_elevation is not None:
        base_elevation = options.base_elevation
    else:
        base_elevation = float(known.mean()) if known.size else np.nan

    result = VolumeResult(
        cells=tuple(cell.with_height(elevation) for cell, elevation in zip(grid.cells, elevations)),
        area=grid.area,
        cell_area=grid.cell_area,
        base_elevation=base_elevation,
        warnings=tuple(
            missing_elevation_warnings(missing_count=missing, total_count=len(grid.cells), treatment="skipped")
        ),
    )
    logger.info(
        f"Volume over {result.area:.0f}m² at base {base_elevation:.1f}m: "
        f"cut {result.cut_volume:.0f}m³, fill {result.fill_volume:.0f}m³"
    )
    return result


def compute_volume(
    polygon: Sequence[Position],
    heights: HeightProvider,
    options: Optional[VolumeOptions] = None,
) -> VolumeResult:
    """Cut/fill volume inside a polygon with per-cell synchronous elevation queries."""
    options = options or VolumeOptions()
    grid = plan_volume_grid(polygon=polygon, options=options)
    elevations, missing = query_heights(heights=heights, positions=grid.cells)
    return _build_result(grid=grid, elevations=elevations, missing=missing, options=options)


async def compute_volume_async(
    polygon: Sequence[Position],
    heights: AsyncHeightProvider,
    options: Optional[VolumeOptions] = None,
) -> VolumeResult:
    """Cut/fill volume with all cell centers fetched in one sample_batch() call."""
    options = options or VolumeOptions()
    grid = plan_volume_grid(polygon=polygon, options=options)
    elevations, missing = await query_heights_async(heights=heights, positions=grid.cells)
    return _build_result(grid=grid, elevations=elevations, missing=missing, options=options)
