"""Line-of-sight sampling shared by all visibility analyses.

Walks a ray from an observer in N steps and classifies every sample:

Target mode (two-point viewshed):
    The sight line runs from the observer eye to the target eye. The line is
    blocked at the first sample whose terrain rises above it:
        sight_height(t) = eye_obs + (eye_tgt - eye_obs) * t
        clear(t) = elevation(t) <= sight_height(t)
        visible(t) = clear(t) and clear(t') for every nearer t'
    Past the first blocking sample the rest of the line is occluded. The raw
    per-sample test stays recoverable from elevation and sight_height. The
    whole ray is always walked so visible/occluded lengths can be split.

Horizon mode (skyline and sector scans):
    Along a fixed azimuth, track the running maximum elevation angle. A sample
    is occluded when a nearer sample already rose above it:
        angle = atan2(elevation - eye_obs, distance)
        visible = angle >= max_angle
        max_angle = max(max_angle, angle)
    One forward pass, O(samples).

Eye heights are terrain elevation + offset, never ellipsoid height + offset.
Distances are surface chords (see GeoCalculator), fine for rays of a few km.

Missing terrain (NaN) makes a sample occluded and never raises the horizon.
"""

import logging
from math import isnan, radians, tan
from typing import Optional

from terrain_analysis.constants import SightConfig, ViewshedConfig
from terrain_analysis.core.geo_calculator import GeoCalculator
from terrain_analysis.core.height_providers import HeightProvider
from terrain_analysis.model.position import Position
from terrain_analysis.model.sight_sample import SightSample

logger = logging.getLogger(__name__)


def count_missing(samples: list[SightSample]) -> int:
    """Number of samples without terrain elevation."""
    return sum(1 for s in samples if isnan(s.elevation))


class LineOfSightSampler:
    """Samples terrain along sight lines using an injected Height Provider.

    Example:
        sampler = LineOfSightSampler(heights=provider)
        samples = sampler.sample_to_target(observer=a, target=b, sample_count=100)
        blocked = [s for s in samples if not s.visible]
    """

    def __init__(self, heights: HeightProvider):
        """Initialize with the Height Provider used for every query.

        Args:
            heights: Terrain elevation source
        """
        self._heights = heights

    @property
    def heights(self) -> HeightProvider:
        """Access the Height Provider."""
        return self._heights

    @staticmethod
    def _check_sample_count(sample_count: int) -> None:
        if sample_count < SightConfig.MIN_SAMPLE_COUNT:
            raise ValueError(f"sample_count must be >= {SightConfig.MIN_SAMPLE_COUNT}, got {sample_count}")

    def eye_height(self, position: Position, offset: float) -> float:
        """Absolute eye height: terrain elevation at position + offset."""
        return self._heights.height(position) + offset

    def sample_to_target(
        self,
        observer: Position,
        target: Position,
        observer_height: float = SightConfig.DEFAULT_OBSERVER_HEIGHT_M,
        target_height: float = SightConfig.DEFAULT_TARGET_HEIGHT_M,
        sample_count: int = ViewshedConfig.SAMPLE_COUNT,
    ) -> list[SightSample]:
        """Sample the straight sight line from observer to target (target mode).

        Args:
            observer: Observer location
            target: Target location
            observer_height: Eye offset above terrain at the observer
            target_height: Offset above terrain at the target
            sample_count: Number of samples including both endpoints (>= 2)

        Returns:
            Samples at t = i / (sample_count - 1), ascending distance.
        """
        self._check_sample_count(sample_count=sample_count)

        observer_eye = self.eye_height(position=observer, offset=observer_height)
        target_eye = self.eye_height(position=target, offset=target_height)
        total_distance = observer.distance_to(other=target)
        azimuth = GeoCalculator.initial_bearing_deg(lon1=observer.lon, lat1=observer.lat, lon2=target.lon, lat2=target.lat)
        logger.debug(f"Sampling sight line: {sample_count} samples over {total_distance:.1f}m")

        blocked = False
        samples: list[SightSample] = []
        for i in range(sample_count):
            t = i / (sample_count - 1)
            location = observer.lerp(other=target, t=t)
            elevation = self._heights.height(location)
            sight_height = observer_eye + (target_eye - observer_eye) * t

            # NaN compares False: missing terrain counts as occluded
            if not elevation <= sight_height:
                blocked = True

            samples.append(
                SightSample(
                    distance=total_distance * t,
                    elevation=elevation,
                    sight_height=sight_height,
                    visible=not blocked,
                    position=location.with_height(elevation),
                    azimuth=azimuth,
                )
            )

        return samples

    def sample_horizon(
        self,
        observer: Position,
        azimuth_deg: float,
        radius: float,
        sample_count: int,
        observer_height: float = SightConfig.DEFAULT_OBSERVER_HEIGHT_M,
        vertical_angle: Optional[float] = None,
        observer_eye: Optional[float] = None,
    ) -> list[SightSample]:
        """Sample one azimuth ray out to radius with a running horizon (horizon mode).

        Args:
            observer: Observer location
            azimuth_deg: Ray direction in degrees clockwise from North
            radius: Ray length in meters (0 gives a degenerate ray at the observer)
            sample_count: Number of samples, observer excluded (>= 2)
            observer_height: Eye offset above terrain at the observer
            vertical_angle: Look pitch in degrees; when set, each sample carries
                the theoretical sight height eye + distance * tan(vertical_angle)
            observer_eye: Precomputed absolute eye height (skips one terrain query)

        Returns:
            Samples stepped radius * i / sample_count along the bearing for
            i = 1..sample_count; each distance is the chord from the observer.
        """
        self._check_sample_count(sample_count=sample_count)
        if radius < 0:
            raise ValueError(f"radius must be >= 0, got {radius}")

        eye = observer_eye if observer_eye is not None else self.eye_height(position=observer, offset=observer_height)
        slope = tan(radians(vertical_angle)) if vertical_angle is not None else None

        max_angle = SightConfig.INITIAL_HORIZON_ANGLE_DEG
        samples: list[SightSample] = []
        for i in range(1, sample_count + 1):
            lon, lat = GeoCalculator.destination(
                lon=observer.lon,
                lat=observer.lat,
                bearing_deg=azimuth_deg,
                distance_m=radius * i / sample_count,
            )
            location = Position(lon=lon, lat=lat)
            distance = observer.distance_to(other=location)
            elevation = self._heights.height(location)
            angle = GeoCalculator.elevation_angle_deg(eye_height=eye, point_elevation=elevation, distance_m=distance)

            visible = angle >= max_angle
            if not isnan(angle):
                max_angle = max(max_angle, angle)

            samples.append(
                SightSample(
                    distance=distance,
                    elevation=elevation,
                    sight_height=eye + distance * slope if slope is not None else None,
                    visible=visible,
                    position=location.with_height(elevation),
                    angle=angle,
                    azimuth=azimuth_deg,
                )
            )

        return samples


def sample_ray(
    observer: Position,
    heights: HeightProvider,
    sample_count: int,
    observer_height: float = SightConfig.DEFAULT_OBSERVER_HEIGHT_M,
    target: Optional[Position] = None,
    target_height: float = SightConfig.DEFAULT_TARGET_HEIGHT_M,
    azimuth_deg: Optional[float] = None,
    radius: Optional[float] = None,
    vertical_angle: Optional[float] = None,
) -> list[SightSample]:
    """Sample one ray, either towards a target or along an azimuth.

    Exactly one of `target` or (`azimuth_deg`, `radius`) must be given.

    Raises:
        ValueError: If the ray direction is ambiguous or missing.
    """
    sampler = LineOfSightSampler(heights=heights)
    if target is not None:
        if azimuth_deg is not None:
            raise ValueError("Give either target or azimuth_deg, not both")
        return sampler.sample_to_target(
            observer=observer,
            target=target,
            observer_height=observer_height,
            target_height=target_height,
            sample_count=sample_count,
        )
    if azimuth_deg is None or radius is None:
        raise ValueError("Horizon sampling needs both azimuth_deg and radius")
    return sampler.sample_horizon(
        observer=observer,
        azimuth_deg=azimuth_deg,
        radius=radius,
        sample_count=sample_count,
        observer_height=observer_height,
        vertical_angle=vertical_angle,
    )
