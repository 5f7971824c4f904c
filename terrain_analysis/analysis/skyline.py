"""Radial skyline scan (360° horizon analysis).

For each of N evenly spaced azimuths in [0, 360), a horizon-mode ray is cast
out to the scan radius and only its final (farthest) sample is kept as that
azimuth's horizon point. The point counts as visible when it is not occluded
by nearer terrain AND its elevation angle lies inside [min_pitch, max_pitch].

Aggregates (on SkylineResult): visible/invisible percentages and the skyline
length, the chord length of the closed ring through the horizon points.
"""

import logging
from dataclasses import dataclass, replace
from typing import Optional

from terrain_analysis.constants import SightConfig, SkylineConfig
from terrain_analysis.core.height_providers import HeightProvider
from terrain_analysis.core.sight_sampler import LineOfSightSampler, count_missing
from terrain_analysis.model.position import Position
from terrain_analysis.model.results import SkylineResult
from terrain_analysis.model.sight_sample import SightSample
from terrain_analysis.model.warning import missing_elevation_warnings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SkylineOptions:
    """Options for compute_skyline.

    Attributes:
        observer_height: Eye offset above terrain (meters)
        radius: Scan radius (meters, 0 allowed)
        azimuth_samples: Number of azimuths over the full circle
        distance_samples: Steps along each azimuth ray
        min_pitch: Lowest elevation angle inside the vertical field of view (degrees)
        max_pitch: Highest elevation angle inside the vertical field of view (degrees)
    """

    observer_height: float = SightConfig.DEFAULT_OBSERVER_HEIGHT_M
    radius: float = SkylineConfig.RADIUS_M
    azimuth_samples: int = SkylineConfig.AZIMUTH_SAMPLES
    distance_samples: int = SkylineConfig.DISTANCE_SAMPLES
    min_pitch: float = SkylineConfig.MIN_PITCH_DEG
    max_pitch: float = SkylineConfig.MAX_PITCH_DEG

    def __post_init__(self) -> None:
        if self.radius < 0:
            raise ValueError(f"radius must be >= 0, got {self.radius}")
        if self.azimuth_samples < 1:
            raise ValueError(f"azimuth_samples must be >= 1, got {self.azimuth_samples}")
        if self.distance_samples < SightConfig.MIN_SAMPLE_COUNT:
            raise ValueError(
                f"distance_samples must be >= {SightConfig.MIN_SAMPLE_COUNT}, got {self.distance_samples}"
            )
        if not -90.0 <= self.min_pitch <= self.max_pitch <= 90.0:
            raise ValueError(f"Pitch window [{self.min_pitch}, {self.max_pitch}] must satisfy -90 <= min <= max <= 90")


def compute_skyline(
    observer: Position,
    heights: HeightProvider,
    options: Optional[SkylineOptions] = None,
) -> SkylineResult:
    """360° skyline scan around an observer.

    Args:
        observer: Observer location
        heights: Terrain elevation source
        options: Radius, sampling density and pitch window (defaults from SkylineConfig)

    Returns:
        SkylineResult with one horizon sample per azimuth, ordered by azimuth.
    """
    options = options or SkylineOptions()
    sampler = LineOfSightSampler(heights=heights)
    eye = sampler.eye_height(position=observer, offset=options.observer_height)

    azimuth_step = 360.0 / options.azimuth_samples
    horizon: list[SightSample] = []
    missing = 0

    for i in range(options.azimuth_samples):
        azimuth = i * azimuth_step
        ray = sampler.sample_horizon(
            observer=observer,
            azimuth_deg=azimuth,
            radius=options.radius,
            sample_count=options.distance_samples,
            observer_eye=eye,
        )
        missing += count_missing(samples=ray)

        last = ray[-1]
        assert last.angle is not None
        in_pitch_window = options.min_pitch <= last.angle <= options.max_pitch
        horizon.append(replace(last, visible=last.visible and in_pitch_window))

    total_queried = options.azimuth_samples * options.distance_samples
    if missing:
        logger.warning(f"Skyline: {missing}/{total_queried} samples without terrain data, treated as occluded")

    result = SkylineResult(
        samples=tuple(horizon),
        radius=options.radius,
        observer_height=options.observer_height,
        min_pitch=options.min_pitch,
        max_pitch=options.max_pitch,
        warnings=tuple(missing_elevation_warnings(missing_count=missing, total_count=total_queried)),
    )
    logger.debug(f"Skyline r={options.radius:.0f}m: {result.visible_percent:.1f}% visible")
    return result
