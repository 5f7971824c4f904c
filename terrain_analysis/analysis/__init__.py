"""Terrain analyses built on the core sampler and Height Providers.

- viewshed: Single-target line of sight (visible?, block point, visible length)
- skyline: 360° horizon scan, one horizon sample per azimuth
- sector_viewshed: Polar visibility raster over a horizontal field of view
- pathfinder: Slope-weighted A* shortest path over a terrain lattice
- profile: Elevation profile along a polyline
- volume: Cut/fill earthwork volume inside a polygon
"""

from terrain_analysis.analysis.pathfinder import (
    PathOptions,
    SlopeWeightedPathfinder,
    compute_path,
    compute_path_async,
)
from terrain_analysis.analysis.profile import ProfileOptions, compute_profile, compute_profile_async
from terrain_analysis.analysis.sector_viewshed import SectorViewshedOptions, compute_sector_viewshed
from terrain_analysis.analysis.skyline import SkylineOptions, compute_skyline
from terrain_analysis.analysis.viewshed import ViewshedOptions, compute_viewshed
from terrain_analysis.analysis.volume import VolumeOptions, compute_volume, compute_volume_async

__all__ = [
    # Viewshed
    "ViewshedOptions",
    "compute_viewshed",
    # Skyline
    "SkylineOptions",
    "compute_skyline",
    # Sector
    "SectorViewshedOptions",
    "compute_sector_viewshed",
    # Pathfinder
    "PathOptions",
    "SlopeWeightedPathfinder",
    "compute_path",
    "compute_path_async",
    # Profile
    "ProfileOptions",
    "compute_profile",
    "compute_profile_async",
    # Volume
    "VolumeOptions",
    "compute_volume",
    "compute_volume_async",
]
