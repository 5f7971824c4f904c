"""Result records returned by the analyses.

All records are frozen dataclasses holding tuples, so a result can be shared
with renderers and serializers without defensive copies. Aggregate numbers
are computed on-the-fly from the stored samples.
"""

from dataclasses import dataclass
from enum import Enum
from math import isnan, nan
from typing import Iterator, Optional

from terrain_analysis.model.position import Position
from terrain_analysis.model.sight_sample import SightSample
from terrain_analysis.model.warning import Warning


@dataclass(frozen=True)
class VisibilitySegment:
    """A maximal run of consecutive samples sharing the same visibility.

    Attributes:
        visible: Visibility shared by the run
        start_distance: Distance of the run's first sample
        end_distance: Distance of the run's last sample
        positions: Sample positions of the run (at least two)
    """

    visible: bool
    start_distance: float
    end_distance: float
    positions: tuple[Position, ...]

    @property
    def length_m(self) -> float:
        return self.end_distance - self.start_distance


@dataclass(frozen=True)
class VisibilityResult:
    """Single-target viewshed result.

    Attributes:
        total_distance: Observer to target distance (meters)
        visible: True if every sample is visible
        block_distance: Distance of the nearest occluding sample (0 when visible)
        block_position: Position of the nearest occluding sample, if any
        visible_distance: Ray length covered by visible samples
        invisible_distance: Ray length covered by occluded samples
        samples: Ray samples in ascending distance order
        observer_height: Eye offset above terrain used for the analysis
        target_height: Target offset above terrain used for the analysis
        warnings: Data-quality warnings
    """

    total_distance: float
    visible: bool
    block_distance: float
    block_position: Optional[Position]
    visible_distance: float
    invisible_distance: float
    samples: tuple[SightSample, ...]
    observer_height: float
    target_height: float
    warnings: tuple[Warning, ...] = ()

    def segments(self) -> list[VisibilitySegment]:
        """Run-length encode the samples into visible/occluded line segments.

        Neighbouring runs share their boundary sample so the segments form a
        continuous polyline, the way they are drawn.
        """
        segments: list[VisibilitySegment] = []
        n = len(self.samples)
        run_start = 0
        for i in range(1, n + 1):
            if i < n and self.samples[i].visible == self.samples[run_start].visible:
                continue
            # Close the run at the sample where visibility flips
            run = self.samples[run_start : min(i, n - 1) + 1]
            if len(run) >= 2:
                segments.append(
                    VisibilitySegment(
                        visible=self.samples[run_start].visible,
                        start_distance=run[0].distance,
                        end_distance=run[-1].distance,
                        positions=tuple(s.position for s in run),
                    )
                )
            run_start = i
        return segments


@dataclass(frozen=True)
class SkylineResult:
    """360° skyline result: one horizon sample per azimuth.

    Attributes:
        samples: Horizon samples ordered by azimuth (0 <= azimuth < 360)
        radius: Scan radius (meters)
        observer_height: Eye offset above terrain
        min_pitch: Lower edge of the vertical field of view (degrees)
        max_pitch: Upper edge of the vertical field of view (degrees)
        warnings: Data-quality warnings
    """

    samples: tuple[SightSample, ...]
    radius: float
    observer_height: float
    min_pitch: float
    max_pitch: float
    warnings: tuple[Warning, ...] = ()

    @property
    def visible_count(self) -> int:
        return sum(1 for s in self.samples if s.visible)

    @property
    def invisible_count(self) -> int:
        return len(self.samples) - self.visible_count

    @property
    def visible_percent(self) -> float:
        """Share of visible azimuths (0-100)."""
        if not self.samples:
            return 0.0
        return self.visible_count / len(self.samples) * 100

    @property
    def invisible_percent(self) -> float:
        """Share of occluded azimuths (0-100)."""
        if not self.samples:
            return 0.0
        return self.invisible_count / len(self.samples) * 100

    @property
    def skyline_length(self) -> float:
        """Chord length of the closed ring through the horizon points (meters)."""
        n = len(self.samples)
        if n < 2:
            return 0.0
        return sum(self.samples[i].position.distance_to(other=self.samples[(i + 1) % n].position) for i in range(n))


@dataclass(frozen=True)
class SectorResult:
    """Sector viewshed result: every sample of every azimuth ray.

    Attributes:
        rays: One tuple of samples per azimuth, ordered by azimuth
        radius: Scan radius (meters)
        observer_height: Eye offset above terrain
        horizontal_fov: Horizontal field of view (degrees)
        horizontal_angle: Start azimuth of the sector (degrees)
        vertical_fov: Vertical field of view (degrees)
        vertical_angle: Look direction pitch (degrees)
        warnings: Data-quality warnings
    """

    rays: tuple[tuple[SightSample, ...], ...]
    radius: float
    observer_height: float
    horizontal_fov: float
    horizontal_angle: float
    vertical_fov: float
    vertical_angle: float
    warnings: tuple[Warning, ...] = ()

    def iter_samples(self) -> Iterator[SightSample]:
        for ray in self.rays:
            yield from ray

    @property
    def total_count(self) -> int:
        return sum(len(ray) for ray in self.rays)

    @property
    def visible_count(self) -> int:
        return sum(1 for s in self.iter_samples() if s.visible)

    @property
    def visible_percent(self) -> float:
        """Share of visible cells (0-100)."""
        total = self.total_count
        return self.visible_count / total * 100 if total > 0 else 0.0

    @property
    def invisible_percent(self) -> float:
        """Share of occluded cells (0-100)."""
        return 100.0 - self.visible_percent if self.total_count > 0 else 0.0

    @property
    def vertical_bounds(self) -> tuple[float, float]:
        """(lowest, highest) pitch inside the vertical field of view, clamped to ±90°."""
        half = self.vertical_fov / 2
        return (
            max(-90.0, self.vertical_angle - half),
            min(90.0, self.vertical_angle + half),
        )

    def in_view_samples(self) -> list[SightSample]:
        """Visible samples whose elevation angle lies inside the vertical field of view."""
        low, high = self.vertical_bounds
        return [s for s in self.iter_samples() if s.visible and s.angle is not None and low <= s.angle <= high]


class PathOutcome(Enum):
    """How the pathfinder produced its positions."""

    FOUND = "found"  # A* reached the sink
    FALLBACK = "fallback"  # Search exhausted, straight line returned
    DEGENERATE = "degenerate"  # Grid could not be built, straight line returned


@dataclass(frozen=True)
class PathResult:
    """Slope-weighted pathfinder result.

    Attributes:
        positions: Path vertices from start to end (height = terrain elevation)
        straight_distance: Chord distance start to end (meters)
        path_distance: Sum of chord lengths along the path (meters)
        avg_slope: Mean segment slope (degrees)
        max_slope: Steepest segment slope (degrees)
        elevation_change: |terrain elevation at end - at start| (meters)
        outcome: FOUND, FALLBACK or DEGENERATE
        node_count: Lattice nodes built for the search
        warnings: Data-quality and fallback warnings
    """

    positions: tuple[Position, ...]
    straight_distance: float
    path_distance: float
    avg_slope: float
    max_slope: float
    elevation_change: float
    outcome: PathOutcome
    node_count: int = 0
    warnings: tuple[Warning, ...] = ()

    @property
    def path_found(self) -> bool:
        """True only when the positions come from a successful search."""
        return self.outcome is PathOutcome.FOUND


@dataclass(frozen=True)
class ProfileSample:
    """One elevation sample along a profile line.

    Attributes:
        distance: Distance along the polyline from its first vertex (meters)
        elevation: Terrain elevation (meters, NaN if unavailable)
        position: Sample location (height = elevation)
    """

    distance: float
    elevation: float
    position: Position


@dataclass(frozen=True)
class ProfileResult:
    """Elevation profile along a polyline.

    Attributes:
        samples: Evenly spaced samples from first to last vertex
        total_distance: Polyline length (meters)
        warnings: Data-quality warnings
    """

    samples: tuple[ProfileSample, ...]
    total_distance: float
    warnings: tuple[Warning, ...] = ()

    @property
    def _elevations(self) -> list[float]:
        return [s.elevation for s in self.samples if not isnan(s.elevation)]

    @property
    def min_elevation(self) -> float:
        elevations = self._elevations
        return min(elevations) if elevations else nan

    @property
    def max_elevation(self) -> float:
        elevations = self._elevations
        return max(elevations) if elevations else nan

    @property
    def avg_elevation(self) -> float:
        elevations = self._elevations
        return sum(elevations) / len(elevations) if elevations else nan

    @property
    def total_ascent(self) -> float:
        """Sum of positive elevation steps between consecutive known samples."""
        elevations = self._elevations
        return sum(max(0.0, b - a) for a, b in zip(elevations, elevations[1:]))

    @property
    def total_descent(self) -> float:
        """Sum of negative elevation steps, as a positive number."""
        elevations = self._elevations
        return sum(max(0.0, a - b) for a, b in zip(elevations, elevations[1:]))


@dataclass(frozen=True)
class VolumeResult:
    """Cut/fill earthwork volume inside a polygon relative to a base elevation.

    Each cell is a grid square of cell_area sampled at its center. Terrain above
    the base is cut, terrain below is fill. Cells without elevation are left out
    of every number.

    Attributes:
        cells: Cell centers inside the polygon (height = terrain elevation)
        area: Polygon area (square meters)
        cell_area: Area represented by one cell (square meters)
        base_elevation: Reference plane (meters, NaN when no cell has data)
        warnings: Data-quality warnings
    """

    cells: tuple[Position, ...]
    area: float
    cell_area: float
    base_elevation: float
    warnings: tuple[Warning, ...] = ()

    @property
    def _elevations(self) -> list[float]:
        return [c.height for c in self.cells if not isnan(c.height)]

    @property
    def cell_count(self) -> int:
        return len(self.cells)

    @property
    def cut_volume(self) -> float:
        """Volume of terrain above the base (cubic meters)."""
        return sum(e - self.base_elevation for e in self._elevations if e > self.base_elevation) * self.cell_area

    @property
    def fill_volume(self) -> float:
        """Volume missing below the base (cubic meters)."""
        return sum(self.base_elevation - e for e in self._elevations if e < self.base_elevation) * self.cell_area

    @property
    def net_volume(self) -> float:
        """Cut minus fill; positive means surplus material."""
        return self.cut_volume - self.fill_volume

    @property
    def total_volume(self) -> float:
        return self.cut_volume + self.fill_volume

    @property
    def min_elevation(self) -> float:
        elevations = self._elevations
        return min(elevations) if elevations else nan

    @property
    def max_elevation(self) -> float:
        elevations = self._elevations
        return max(elevations) if elevations else nan

    @property
    def avg_elevation(self) -> float:
        elevations = self._elevations
        return sum(elevations) / len(elevations) if elevations else nan
