"""Core foundation classes for geodesy, terrain access and line-of-sight sampling.

This module provides the mathematical backbone for terrain analysis:
- GeoCalculator: Geodesic calculations (distances, bearings, destinations, angles)
- Height Providers: HeightProvider protocol, FunctionHeightProvider,
  GridHeightProvider, DEMService (GeoTIFF), ElevationApiClient (HTTP)
- LineOfSightSampler: Shared ray sampler (import directly from sight_sampler module)
"""

from terrain_analysis.core.dem_service import DEMService, download_dem
from terrain_analysis.core.elevation_api import ElevationApiClient
from terrain_analysis.core.geo_calculator import GeoCalculator
from terrain_analysis.core.height_providers import (
    AsyncHeightProvider,
    FunctionHeightProvider,
    GridHeightProvider,
    HeightProvider,
)

# LineOfSightSampler has circular import with model.position
# Import directly: from terrain_analysis.core.sight_sampler import LineOfSightSampler

__all__ = [
    # Geo calculator
    "GeoCalculator",
    # Height providers
    "HeightProvider",
    "AsyncHeightProvider",
    "FunctionHeightProvider",
    "GridHeightProvider",
    "DEMService",
    "download_dem",
    "ElevationApiClient",
]
