"""SightSample - one terrain sample along a line of sight."""

from dataclasses import dataclass
from typing import Optional

from terrain_analysis.model.position import Position


@dataclass(frozen=True)
class SightSample:
    """A single sample produced by the line-of-sight sampler.

    Samples of one ray are produced in ascending `distance` order and are
    read-only once created.

    Attributes:
        distance: Horizontal distance from the observer (meters)
        elevation: Terrain elevation at the sample (meters, NaN if unavailable)
        sight_height: Theoretical line-of-sight height at this distance, if any
        visible: Whether the sample is visible from the observer
        position: Where the sample was taken (height = terrain elevation)
        angle: Elevation angle from the observer eye in degrees (horizon mode)
        azimuth: Ray bearing in degrees clockwise from North
    """

    distance: float
    elevation: float
    sight_height: Optional[float]
    visible: bool
    position: Position
    angle: Optional[float] = None
    azimuth: Optional[float] = None
