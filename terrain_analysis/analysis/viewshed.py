"""Single-target viewshed (two-point line-of-sight analysis).

Answers "can the observer see the target?" and, if not, where the sight line
is first blocked:

    1. Sample the sight line observer → target in target mode
    2. visible = every sample visible
    3. Block point = nearest occluded sample (not the farthest)
    4. Split the ray length into visible and occluded parts: each sample after
       the first contributes the distance step from its predecessor to the
       accumulator of its own visibility; the first sample contributes 0

visible_distance + invisible_distance always equals total_distance.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from terrain_analysis.constants import SightConfig, ViewshedConfig
from terrain_analysis.core.height_providers import HeightProvider
from terrain_analysis.core.sight_sampler import LineOfSightSampler, count_missing
from terrain_analysis.model.position import Position
from terrain_analysis.model.results import VisibilityResult
from terrain_analysis.model.warning import missing_elevation_warnings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ViewshedOptions:
    """Options for compute_viewshed.

    Attributes:
        observer_height: Eye offset above terrain at the observer (meters)
        target_height: Offset above terrain at the target (meters)
        sample_count: Samples along the sight line, both endpoints included
    """

    observer_height: float = SightConfig.DEFAULT_OBSERVER_HEIGHT_M
    target_height: float = SightConfig.DEFAULT_TARGET_HEIGHT_M
    sample_count: int = ViewshedConfig.SAMPLE_COUNT

    def __post_init__(self) -> None:
        if self.sample_count < SightConfig.MIN_SAMPLE_COUNT:
            raise ValueError(f"sample_count must be >= {SightConfig.MIN_SAMPLE_COUNT}, got {self.sample_count}")


def compute_viewshed(
    observer: Position,
    target: Position,
    heights: HeightProvider,
    options: Optional[ViewshedOptions] = None,
) -> VisibilityResult:
    """Line-of-sight analysis between an observer and a target.

    Args:
        observer: Observer location
        target: Target location
        heights: Terrain elevation source
        options: Heights and sample count (defaults from ViewshedConfig)

    Returns:
        VisibilityResult with visibility, block point and visible/occluded lengths.

    Raises:
        ValueError: If observer and target coincide.
    """
    options = options or ViewshedOptions()

    total_distance = observer.distance_to(other=target)
    if total_distance <= 0:
        raise ValueError(f"Observer and target coincide at ({observer.lon}, {observer.lat})")

    sampler = LineOfSightSampler(heights=heights)
    samples = sampler.sample_to_target(
        observer=observer,
        target=target,
        observer_height=options.observer_height,
        target_height=options.target_height,
        sample_count=options.sample_count,
    )

    visible = True
    block_distance = 0.0
    block_position: Optional[Position] = None
    visible_distance = 0.0
    invisible_distance = 0.0

    previous_distance = samples[0].distance
    for sample in samples:
        step = sample.distance - previous_distance
        previous_distance = sample.distance

        if sample.visible:
            visible_distance += step
            continue

        invisible_distance += step
        if visible:
            visible = False
            block_distance = sample.distance
            block_position = sample.position

    missing = count_missing(samples=samples)
    if missing:
        logger.warning(f"Viewshed: {missing}/{len(samples)} samples without terrain data, treated as occluded")

    logger.debug(
        f"Viewshed over {total_distance:.1f}m: visible={visible}, "
        f"visible={visible_distance:.1f}m, occluded={invisible_distance:.1f}m"
    )

    return VisibilityResult(
        total_distance=total_distance,
        visible=visible,
        block_distance=block_distance,
        block_position=block_position,
        visible_distance=visible_distance,
        invisible_distance=invisible_distance,
        samples=tuple(samples),
        observer_height=options.observer_height,
        target_height=options.target_height,
        warnings=tuple(missing_elevation_warnings(missing_count=missing, total_count=len(samples))),
    )
