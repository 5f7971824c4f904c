"""Tests for terrain_analysis data model.

Tests: Position, GridNode, result records (aggregates, segments), Warnings
Focus: Derived values computed from hand-built samples, no terrain queries
"""

from dataclasses import FrozenInstanceError
from math import inf, isnan, nan

import pytest

from conftest import at_m
from terrain_analysis.model import (
    FallbackPathWarning,
    GridNode,
    MissingElevationWarning,
    PathOutcome,
    PathResult,
    Position,
    ProfileResult,
    ProfileSample,
    SectorResult,
    SightSample,
    SkylineResult,
    VisibilityResult,
)
from terrain_analysis.model.warning import missing_elevation_warnings


def make_sample(distance: float, visible: bool, angle: float = 0.0, east_m: float = 0.0) -> SightSample:
    """Flat-terrain sample at east_m meters (defaults to distance)."""
    return SightSample(
        distance=distance,
        elevation=100.0,
        sight_height=None,
        visible=visible,
        position=at_m(east_m=east_m or distance, north_m=0.0).with_height(100.0),
        angle=angle,
    )


def make_visibility(flags: list[bool], step: float = 10.0) -> VisibilityResult:
    samples = tuple(make_sample(distance=i * step, visible=v) for i, v in enumerate(flags))
    return VisibilityResult(
        total_distance=(len(flags) - 1) * step,
        visible=all(flags),
        block_distance=0.0,
        block_position=None,
        visible_distance=0.0,
        invisible_distance=0.0,
        samples=samples,
        observer_height=1.6,
        target_height=0.0,
    )


# =============================================================================
# POSITION
# =============================================================================


class TestPosition:
    """Position - immutable WGS84 coordinate."""

    def test_tuple_orders(self) -> None:
        p = Position(lon=10.0, lat=46.0, height=2000.0)
        assert p.lon_lat == (10.0, 46.0)
        assert p.lat_lon == (46.0, 10.0)
        assert p.triplet == (10.0, 46.0, 2000.0)

    def test_frozen(self) -> None:
        p = Position(lon=10.0, lat=46.0)
        with pytest.raises(FrozenInstanceError):
            p.lon = 11.0  # type: ignore[misc]

    def test_with_height_returns_copy(self) -> None:
        p = Position(lon=10.0, lat=46.0)
        q = p.with_height(123.0)
        assert q.height == 123.0
        assert p.height == 0.0

    def test_invalid_coordinates_rejected(self) -> None:
        with pytest.raises(ValueError, match="NaN"):
            Position(lon=nan, lat=0.0)
        with pytest.raises(ValueError, match="Latitude"):
            Position(lon=0.0, lat=91.0)

    def test_nan_height_allowed(self) -> None:
        """Samples over missing terrain carry NaN height."""
        p = Position(lon=0.0, lat=0.0, height=nan)
        assert isnan(p.height)
        assert p.to_ecef()[0] == pytest.approx(6_378_137.0)

    def test_distance_ignores_height(self) -> None:
        a = at_m(east_m=0.0, north_m=0.0)
        b = at_m(east_m=1000.0, north_m=0.0)
        assert a.distance_to(other=b.with_height(500.0)) == pytest.approx(a.distance_to(other=b))
        assert a.distance_to(other=b) == pytest.approx(1000.0, abs=1.0)

    def test_lerp_midpoint(self) -> None:
        a = Position(lon=0.0, lat=0.0, height=0.0)
        b = Position(lon=1.0, lat=2.0, height=100.0)
        mid = a.lerp(other=b, t=0.5)
        assert mid.triplet == pytest.approx((0.5, 1.0, 50.0))


# =============================================================================
# GRID NODE
# =============================================================================


class TestGridNode:
    """GridNode - pathfinder lattice node."""

    def test_new_node_has_infinite_costs(self) -> None:
        node = GridNode(index=0, row=0, col=0, position=Position(lon=0.0, lat=0.0), elevation=100.0)
        assert node.g_cost == inf
        assert node.f_cost == inf
        assert node.parent is None

    def test_set_costs_keeps_f_in_sync(self) -> None:
        node = GridNode(index=3, row=1, col=1, position=Position(lon=0.0, lat=0.0), elevation=100.0)
        node.set_costs(g_cost=12.0, h_cost=30.0)
        assert node.f_cost == node.g_cost + node.h_cost == 42.0


# =============================================================================
# RESULT RECORDS
# =============================================================================


class TestVisibilitySegments:
    """VisibilityResult.segments() - run-length encoding of sample visibility."""

    def test_all_visible_single_segment(self) -> None:
        segments = make_visibility(flags=[True] * 5).segments()
        assert len(segments) == 1
        assert segments[0].visible
        assert segments[0].length_m == pytest.approx(40.0)

    def test_runs_share_boundary_sample(self) -> None:
        """Visible run ends at the first occluded sample, where the occluded run starts."""
        segments = make_visibility(flags=[True, True, True, False, False]).segments()
        assert [s.visible for s in segments] == [True, False]
        assert segments[0].end_distance == segments[1].start_distance == pytest.approx(30.0)
        assert sum(s.length_m for s in segments) == pytest.approx(40.0)

    def test_alternating_runs(self) -> None:
        segments = make_visibility(flags=[True, False, False, True, True]).segments()
        assert [s.visible for s in segments] == [True, False, True]
        assert len(segments[1].positions) == 3


class TestSkylineResult:
    """SkylineResult aggregates."""

    def test_percentages(self) -> None:
        samples = tuple(make_sample(distance=100.0, visible=i % 4 != 0) for i in range(8))
        result = SkylineResult(samples=samples, radius=100.0, observer_height=1.6, min_pitch=-90.0, max_pitch=90.0)
        assert result.visible_count == 6
        assert result.invisible_count == 2
        assert result.visible_percent == pytest.approx(75.0)
        assert result.invisible_percent == pytest.approx(25.0)

    def test_ring_length_closes_loop(self) -> None:
        """Two points 100m apart form a closed ring of 200m."""
        samples = (make_sample(distance=0.0, visible=True, east_m=1e-9), make_sample(distance=100.0, visible=True))
        result = SkylineResult(samples=samples, radius=100.0, observer_height=1.6, min_pitch=-90.0, max_pitch=90.0)
        assert result.skyline_length == pytest.approx(200.0, abs=1.0)

    def test_empty(self) -> None:
        result = SkylineResult(samples=(), radius=0.0, observer_height=1.6, min_pitch=-90.0, max_pitch=90.0)
        assert result.visible_percent == 0.0
        assert result.skyline_length == 0.0


class TestSectorResult:
    """SectorResult aggregates and vertical field of view."""

    def make_result(self, vertical_angle: float, vertical_fov: float) -> SectorResult:
        ray = (
            make_sample(distance=10.0, visible=True, angle=-30.0),
            make_sample(distance=20.0, visible=False, angle=-40.0),
            make_sample(distance=30.0, visible=True, angle=10.0),
        )
        return SectorResult(
            rays=(ray, ray),
            radius=30.0,
            observer_height=1.6,
            horizontal_fov=90.0,
            horizontal_angle=0.0,
            vertical_fov=vertical_fov,
            vertical_angle=vertical_angle,
        )

    def test_counts(self) -> None:
        result = self.make_result(vertical_angle=-45.0, vertical_fov=90.0)
        assert result.total_count == 6
        assert result.visible_count == 4
        assert result.visible_percent + result.invisible_percent == pytest.approx(100.0)

    def test_vertical_bounds_clamped(self) -> None:
        assert self.make_result(vertical_angle=-80.0, vertical_fov=40.0).vertical_bounds == (-90.0, -60.0)

    def test_in_view_samples(self) -> None:
        """Default look direction (-45° ± 45°) keeps the visible sample at -30°, not the one at +10°."""
        in_view = self.make_result(vertical_angle=-45.0, vertical_fov=90.0).in_view_samples()
        assert [s.angle for s in in_view] == [-30.0, -30.0]


class TestPathResult:
    def test_path_found_only_for_search_result(self) -> None:
        common = dict(
            positions=(),
            straight_distance=1.0,
            path_distance=1.0,
            avg_slope=0.0,
            max_slope=0.0,
            elevation_change=0.0,
        )
        assert PathResult(outcome=PathOutcome.FOUND, **common).path_found
        assert not PathResult(outcome=PathOutcome.FALLBACK, **common).path_found
        assert not PathResult(outcome=PathOutcome.DEGENERATE, **common).path_found


class TestProfileResult:
    """ProfileResult statistics."""

    def make_result(self, elevations: list[float]) -> ProfileResult:
        samples = tuple(
            ProfileSample(distance=i * 10.0, elevation=e, position=Position(lon=0.0, lat=0.0, height=e))
            for i, e in enumerate(elevations)
        )
        return ProfileResult(samples=samples, total_distance=(len(elevations) - 1) * 10.0)

    def test_statistics(self) -> None:
        result = self.make_result([100.0, 120.0, 110.0, 130.0])
        assert result.min_elevation == 100.0
        assert result.max_elevation == 130.0
        assert result.avg_elevation == pytest.approx(115.0)
        assert result.total_ascent == pytest.approx(40.0)
        assert result.total_descent == pytest.approx(10.0)

    def test_nan_ignored(self) -> None:
        result = self.make_result([100.0, nan, 120.0])
        assert result.min_elevation == 100.0
        assert result.total_ascent == pytest.approx(20.0)

    def test_all_missing(self) -> None:
        result = self.make_result([nan, nan])
        assert isnan(result.avg_elevation)
        assert result.total_ascent == 0.0


# =============================================================================
# WARNINGS
# =============================================================================


class TestWarnings:
    def test_missing_elevation_message(self) -> None:
        warning = MissingElevationWarning(missing_count=5, total_count=20)
        assert warning.missing_fraction == pytest.approx(0.25)
        assert "5 of 20" in str(warning)
        assert warning.warning_type == "MissingElevationWarning"
        assert "occluded" in warning.message

    def test_missing_elevation_treatment_in_message(self) -> None:
        """Pathfinding reports missing terrain as impassable, not occluded."""
        (warning,) = missing_elevation_warnings(missing_count=3, total_count=9, treatment="impassable")
        assert "impassable" in warning.message
        assert "occluded" not in warning.message

    def test_fallback_message(self) -> None:
        warning = FallbackPathWarning(reason="sink unreachable")
        assert "sink unreachable" in warning.message

    def test_helper_only_warns_when_missing(self) -> None:
        assert missing_elevation_warnings(missing_count=0, total_count=10) == []
        assert len(missing_elevation_warnings(missing_count=1, total_count=10)) == 1
