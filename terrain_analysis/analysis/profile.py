"""Elevation profile along a polyline.

Samples are spaced evenly by distance along the whole polyline, not per
segment: the k-th sample sits at k / (n - 1) of the total chord length and is
interpolated linearly inside the segment containing that distance.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from terrain_analysis.constants import ProfileConfig, SightConfig
from terrain_analysis.core.height_providers import (
    AsyncHeightProvider,
    HeightProvider,
    query_heights,
    query_heights_async,
)
from terrain_analysis.model.position import Position
from terrain_analysis.model.results import ProfileResult, ProfileSample
from terrain_analysis.model.warning import missing_elevation_warnings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProfileOptions:
    """Options for compute_profile.

    Attributes:
        sample_count: Samples along the polyline, both ends included
    """

    sample_count: int = ProfileConfig.SAMPLE_COUNT

    def __post_init__(self) -> None:
        if self.sample_count < SightConfig.MIN_SAMPLE_COUNT:
            raise ValueError(f"sample_count must be >= {SightConfig.MIN_SAMPLE_COUNT}, got {self.sample_count}")


def sample_polyline(positions: Sequence[Position], sample_count: int) -> tuple[list[float], list[Position], float]:
    """Evenly spaced sample locations along a polyline.

    Args:
        positions: Polyline vertices (at least two)
        sample_count: Number of samples including both ends

    Returns:
        Tuple (distances, locations, total_distance).

    Raises:
        ValueError: If there are fewer than two vertices or the polyline has no length.
    """
    if len(positions) < 2:
        raise ValueError(f"A profile needs at least 2 positions, got {len(positions)}")

    segment_lengths = np.array([a.distance_to(other=b) for a, b in zip(positions, positions[1:])])
    cumulative = np.concatenate(([0.0], np.cumsum(segment_lengths)))
    total_distance = float(cumulative[-1])
    if total_distance <= 0:
        raise ValueError("Profile polyline has zero length")

    distances = np.linspace(0.0, total_distance, sample_count)
    # Segment containing each distance; a distance on a vertex belongs to the earlier segment
    segment_index = np.clip(np.searchsorted(cumulative, distances, side="left") - 1, 0, len(segment_lengths) - 1)

    locations = []
    for distance, index in zip(distances, segment_index):
        length = segment_lengths[index]
        t = (distance - cumulative[index]) / length if length > 0 else 0.0
        locations.append(positions[index].lerp(other=positions[index + 1], t=float(t)))

    return [float(d) for d in distances], locations, total_distance


def _build_result(
    distances: list[float],
    locations: list[Position],
    elevations: list[float],
    missing: int,
    total_distance: float,
) -> ProfileResult:
    if missing:
        logger.warning(f"Profile: {missing}/{len(locations)} samples without terrain data")

    samples = tuple(
        ProfileSample(distance=distance, elevation=elevation, position=location.with_height(elevation))
        for distance, location, elevation in zip(distances, locations, elevations)
    )
    return ProfileResult(
        samples=samples,
        total_distance=total_distance,
        warnings=tuple(
            missing_elevation_warnings(missing_count=missing, total_count=len(samples), treatment="skipped")
        ),
    )


def compute_profile(
    positions: Sequence[Position],
    heights: HeightProvider,
    options: Optional[ProfileOptions] = None,
) -> ProfileResult:
    """Terrain elevation profile along a polyline, one height() query per sample.

    Args:
        positions: Polyline vertices
        heights: Terrain elevation source
        options: Sample count (default from ProfileConfig)

    Returns:
        ProfileResult with evenly spaced samples and elevation statistics.
    """
    options = options or ProfileOptions()
    distances, locations, total_distance = sample_polyline(positions=positions, sample_count=options.sample_count)
    elevations, missing = query_heights(heights=heights, positions=locations)
    return _build_result(
        distances=distances,
        locations=locations,
        elevations=elevations,
        missing=missing,
        total_distance=total_distance,
    )


async def compute_profile_async(
    positions: Sequence[Position],
    heights: AsyncHeightProvider,
    options: Optional[ProfileOptions] = None,
) -> ProfileResult:
    """Same as compute_profile, but all samples are fetched with one sample_batch() call."""
    options = options or ProfileOptions()
    distances, locations, total_distance = sample_polyline(positions=positions, sample_count=options.sample_count)
    elevations, missing = await query_heights_async(heights=heights, positions=locations)
    return _build_result(
        distances=distances,
        locations=locations,
        elevations=elevations,
        missing=missing,
        total_distance=total_distance,
    )
