"""Sector viewshed: horizon-mode rays fanned across a horizontal field of view.

Unlike the skyline scan, every sample of every ray is kept, giving a polar
visibility raster around the observer. Rays start at horizontal_angle and
step by horizontal_fov / azimuth_samples; both sector edges get a ray, except
for a full circle where the closing ray would duplicate the first.

Each sample also carries the theoretical sight height of the look direction,
eye + distance * tan(vertical_angle), so callers can draw the view cone.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from terrain_analysis.constants import SectorConfig, SightConfig
from terrain_analysis.core.height_providers import HeightProvider
from terrain_analysis.core.sight_sampler import LineOfSightSampler, count_missing
from terrain_analysis.model.position import Position
from terrain_analysis.model.results import SectorResult
from terrain_analysis.model.warning import missing_elevation_warnings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SectorViewshedOptions:
    """Options for compute_sector_viewshed.

    Attributes:
        observer_height: Eye offset above terrain (meters)
        radius: Ray length (meters)
        horizontal_fov: Width of the sector (degrees, 360 = full circle)
        horizontal_angle: Azimuth of the sector's first edge (degrees from North)
        vertical_fov: Height of the view cone (degrees)
        vertical_angle: Look direction pitch (degrees, negative = down)
        azimuth_samples: Azimuth steps across the sector
        distance_samples: Samples along each ray
    """

    observer_height: float = SightConfig.DEFAULT_OBSERVER_HEIGHT_M
    radius: float = SectorConfig.RADIUS_M
    horizontal_fov: float = SectorConfig.HORIZONTAL_FOV_DEG
    horizontal_angle: float = SectorConfig.HORIZONTAL_ANGLE_DEG
    vertical_fov: float = SectorConfig.VERTICAL_FOV_DEG
    vertical_angle: float = SectorConfig.VERTICAL_ANGLE_DEG
    azimuth_samples: int = SectorConfig.AZIMUTH_SAMPLES
    distance_samples: int = SectorConfig.DISTANCE_SAMPLES

    def __post_init__(self) -> None:
        if self.radius <= 0:
            raise ValueError(f"radius must be > 0, got {self.radius}")
        if not 0 < self.horizontal_fov <= SectorConfig.FULL_CIRCLE_DEG:
            raise ValueError(f"horizontal_fov must be in (0, 360], got {self.horizontal_fov}")
        if not 0 < self.vertical_fov <= 180:
            raise ValueError(f"vertical_fov must be in (0, 180], got {self.vertical_fov}")
        if not -90 < self.vertical_angle < 90:
            raise ValueError(f"vertical_angle must be in (-90, 90), got {self.vertical_angle}")
        if self.azimuth_samples < 1:
            raise ValueError(f"azimuth_samples must be >= 1, got {self.azimuth_samples}")
        if self.distance_samples < SightConfig.MIN_SAMPLE_COUNT:
            raise ValueError(
                f"distance_samples must be >= {SightConfig.MIN_SAMPLE_COUNT}, got {self.distance_samples}"
            )

    @property
    def is_full_circle(self) -> bool:
        return self.horizontal_fov >= SectorConfig.FULL_CIRCLE_DEG

    def azimuths(self) -> list[float]:
        """Ray azimuths in degrees, normalized to [0, 360)."""
        step = self.horizontal_fov / self.azimuth_samples
        ray_count = self.azimuth_samples if self.is_full_circle else self.azimuth_samples + 1
        return [(self.horizontal_angle + i * step) % SectorConfig.FULL_CIRCLE_DEG for i in range(ray_count)]


def compute_sector_viewshed(
    observer: Position,
    heights: HeightProvider,
    options: Optional[SectorViewshedOptions] = None,
) -> SectorResult:
    """Visibility raster for a sector around an observer.

    Args:
        observer: Observer location
        heights: Terrain elevation source
        options: Sector geometry and sampling density (defaults from SectorConfig)

    Returns:
        SectorResult with one ray of samples per azimuth.
    """
    options = options or SectorViewshedOptions()
    sampler = LineOfSightSampler(heights=heights)
    eye = sampler.eye_height(position=observer, offset=options.observer_height)

    azimuths = options.azimuths()
    logger.debug(
        f"Sector viewshed: {len(azimuths)} rays x {options.distance_samples} samples, "
        f"fov={options.horizontal_fov}° from {options.horizontal_angle}°"
    )

    rays = []
    missing = 0
    for azimuth in azimuths:
        ray = sampler.sample_horizon(
            observer=observer,
            azimuth_deg=azimuth,
            radius=options.radius,
            sample_count=options.distance_samples,
            vertical_angle=options.vertical_angle,
            observer_eye=eye,
        )
        missing += count_missing(samples=ray)
        rays.append(tuple(ray))

    total_queried = len(azimuths) * options.distance_samples
    if missing:
        logger.warning(f"Sector viewshed: {missing}/{total_queried} samples without terrain data, treated as occluded")

    return SectorResult(
        rays=tuple(rays),
        radius=options.radius,
        observer_height=options.observer_height,
        horizontal_fov=options.horizontal_fov,
        horizontal_angle=options.horizontal_angle,
        vertical_fov=options.vertical_fov,
        vertical_angle=options.vertical_angle,
        warnings=tuple(missing_elevation_warnings(missing_count=missing, total_count=total_queried)),
    )
