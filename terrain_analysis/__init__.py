"""Terrain Analysis - Visibility and slope-weighted routing on terrain.

Geometric analyses over any elevation source:
- Line-of-sight viewshed between two points
- 360° skyline and sector viewshed scans around an observer
- Slope-weighted A* shortest path over a terrain lattice
- Elevation profiles along a polyline
- Cut/fill volumes inside a polygon

Terrain comes from an injected Height Provider (in-memory grid, GeoTIFF DEM,
or an HTTP elevation service), so the analyses never touch I/O themselves.

Modules:
    core: Foundation classes (geo calculations, Height Providers, ray sampler)
    model: Data structures (Position, SightSample, GridNode, result records)
    analysis: Viewshed, skyline, sector viewshed, pathfinder, profile, volume

Example:
    from terrain_analysis import Position, compute_viewshed
    from terrain_analysis.core import DEMService

    result = compute_viewshed(observer=a, target=b, heights=DEMService())
    print(result.visible, result.block_distance)
"""

from terrain_analysis.analysis import (
    PathOptions,
    ProfileOptions,
    SectorViewshedOptions,
    SkylineOptions,
    SlopeWeightedPathfinder,
    ViewshedOptions,
    VolumeOptions,
    compute_path,
    compute_path_async,
    compute_profile,
    compute_profile_async,
    compute_sector_viewshed,
    compute_skyline,
    compute_viewshed,
    compute_volume,
    compute_volume_async,
)
from terrain_analysis.core import (
    AsyncHeightProvider,
    DEMService,
    ElevationApiClient,
    FunctionHeightProvider,
    GridHeightProvider,
    HeightProvider,
)
from terrain_analysis.model import (
    PathOutcome,
    PathResult,
    Position,
    ProfileResult,
    SectorResult,
    SkylineResult,
    VisibilityResult,
    VolumeResult,
)

__all__ = [
    "Position",
    "HeightProvider",
    "AsyncHeightProvider",
    "FunctionHeightProvider",
    "GridHeightProvider",
    "DEMService",
    "ElevationApiClient",
    "ViewshedOptions",
    "compute_viewshed",
    "VisibilityResult",
    "SkylineOptions",
    "compute_skyline",
    "SkylineResult",
    "SectorViewshedOptions",
    "compute_sector_viewshed",
    "SectorResult",
    "PathOptions",
    "SlopeWeightedPathfinder",
    "compute_path",
    "compute_path_async",
    "PathOutcome",
    "PathResult",
    "ProfileOptions",
    "compute_profile",
    "compute_profile_async",
    "ProfileResult",
    "VolumeOptions",
    "compute_volume",
    "compute_volume_async",
    "VolumeResult",
]
