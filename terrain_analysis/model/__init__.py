"""Data model classes for terrain analysis.

Value types flow one way, from inputs to result records:
- Position: Geometry atom (lon, lat, height)
- SightSample: One sample along a line of sight
- GridNode: Pathfinder lattice node (arena-indexed parent)
- Results: VisibilityResult, SkylineResult, SectorResult, PathResult, ProfileResult, VolumeResult
- Warning: Data-quality warnings attached to results
"""

from terrain_analysis.model.grid_node import GridNode
from terrain_analysis.model.position import Position
from terrain_analysis.model.results import (
    PathOutcome,
    PathResult,
    ProfileResult,
    ProfileSample,
    SectorResult,
    SkylineResult,
    VisibilityResult,
    VisibilitySegment,
    VolumeResult,
)
from terrain_analysis.model.sight_sample import SightSample
from terrain_analysis.model.warning import (
    FallbackPathWarning,
    MissingElevationWarning,
    Warning,
)

__all__ = [
    "Position",
    "SightSample",
    "GridNode",
    "VisibilityResult",
    "VisibilitySegment",
    "SkylineResult",
    "SectorResult",
    "PathOutcome",
    "PathResult",
    "ProfileSample",
    "ProfileResult",
    "VolumeResult",
    "Warning",
    "MissingElevationWarning",
    "FallbackPathWarning",
]
