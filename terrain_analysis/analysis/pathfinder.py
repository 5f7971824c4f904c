"""Slope-weighted shortest path over a terrain lattice (A*).

Pipeline:
    1. Grid: regular lon/lat lattice over the start/end bounding box, padded
       by 20% of each span, spacing <= grid_size; every node gets its terrain
       elevation from the Height Provider
    2. Bind: start and end snap to their nearest lattice nodes (ECEF, KD-tree)
    3. Search: A* with a binary heap; neighbors are all nodes within
       1.5 × grid_size (diagonals included)
    4. Reconstruct: follow parent indices back from the sink

Cost model (per edge of horizontal length d and slope s in degrees):
    cost = distance_weight * d + slope_weight * d * (1 + s / 45) ** 2
Edges steeper than max_slope, or touching a node without elevation, are not
part of the graph.

Heuristic: (distance_weight + slope_weight) × straight distance to the sink.
The slope factor is >= 1, so this never overestimates and A* stays optimal.

When the search cannot reach the sink the result is the straight start-end
line with outcome FALLBACK and a FallbackPathWarning, never an exception.
"""

from __future__ import annotations

import heapq
import logging
from dataclasses import dataclass, field
from itertools import count
from math import ceil, isnan
from typing import Optional, Sequence

import numpy as np
from scipy.spatial import cKDTree

from terrain_analysis.constants import PathfinderConfig
from terrain_analysis.core.geo_calculator import GeoCalculator
from terrain_analysis.core.height_providers import (
    AsyncHeightProvider,
    HeightProvider,
    query_heights,
    query_heights_async,
)
from terrain_analysis.model.grid_node import GridNode
from terrain_analysis.model.position import Position
from terrain_analysis.model.results import PathOutcome, PathResult
from terrain_analysis.model.warning import FallbackPathWarning, Warning, missing_elevation_warnings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PathOptions:
    """Options for the slope-weighted pathfinder.

    Attributes:
        grid_size: Maximum lattice spacing in meters
        slope_weight: Weight of the slope-scaled distance term
        distance_weight: Weight of the plain distance term
        max_slope: Steepest allowed edge in degrees (hard constraint)
        max_nodes: Largest lattice the pathfinder will build
    """

    grid_size: float = PathfinderConfig.GRID_SIZE_M
    slope_weight: float = PathfinderConfig.SLOPE_WEIGHT
    distance_weight: float = PathfinderConfig.DISTANCE_WEIGHT
    max_slope: float = PathfinderConfig.MAX_SLOPE_DEG
    max_nodes: int = PathfinderConfig.MAX_NODES

    def __post_init__(self) -> None:
        if self.grid_size <= 0:
            raise ValueError(f"grid_size must be > 0, got {self.grid_size}")
        if self.slope_weight < 0 or self.distance_weight < 0:
            raise ValueError(
                f"Weights must be >= 0, got slope_weight={self.slope_weight}, distance_weight={self.distance_weight}"
            )
        if not 0 < self.max_slope <= 90:
            raise ValueError(f"max_slope must be in (0, 90], got {self.max_slope}")
        if self.max_nodes < 1:
            raise ValueError(f"max_nodes must be >= 1, got {self.max_nodes}")


@dataclass
class LatticePlan:
    """Lattice geometry before elevations are known.

    Attributes:
        rows: Cell rows (lattice has rows + 1 node rows)
        cols: Cell columns (lattice has cols + 1 node columns)
        positions: Node locations, row-major from the south-west corner
    """

    rows: int
    cols: int
    positions: list[Position] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.positions


@dataclass
class SearchGrid:
    """Node arena plus spatial index for one pathfinder invocation."""

    nodes: list[GridNode]
    xyz: np.ndarray
    tree: Optional[cKDTree]
    expansions: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.nodes


class SlopeWeightedPathfinder:
    """A* pathfinder over a regular terrain lattice.

    Each call builds its own grid, so one instance can serve many queries.

    Example:
        finder = SlopeWeightedPathfinder(heights=provider, options=PathOptions(grid_size=10))
        result = finder.find_path(start=a, end=b)
        if result.path_found:
            draw(result.positions)
    """

    def __init__(self, heights: HeightProvider, options: Optional[PathOptions] = None):
        """Initialize pathfinder.

        Args:
            heights: Terrain elevation source for lattice nodes
            options: Grid spacing, weights and slope cutoff (defaults from PathfinderConfig)
        """
        self._heights = heights
        self._options = options or PathOptions()

    @property
    def options(self) -> PathOptions:
        return self._options

    # =========================================================================
    # Grid
    # =========================================================================

    def plan_lattice(self, start: Position, end: Position) -> LatticePlan:
        """Lay out the lattice over the padded start/end bounding box.

        A box without area (start and end share a latitude or longitude)
        gives an empty plan.

        Raises:
            ValueError: If the lattice would exceed max_nodes.
        """
        min_lon, max_lon = min(start.lon, end.lon), max(start.lon, end.lon)
        min_lat, max_lat = min(start.lat, end.lat), max(start.lat, end.lat)

        lon_padding = (max_lon - min_lon) * PathfinderConfig.GRID_PADDING_FACTOR
        lat_padding = (max_lat - min_lat) * PathfinderConfig.GRID_PADDING_FACTOR
        min_lon, max_lon = min_lon - lon_padding, max_lon + lon_padding
        min_lat, max_lat = min_lat - lat_padding, max_lat + lat_padding

        width = GeoCalculator.chord_distance_m(lon1=min_lon, lat1=min_lat, lon2=max_lon, lat2=min_lat)
        height = GeoCalculator.chord_distance_m(lon1=min_lon, lat1=min_lat, lon2=min_lon, lat2=max_lat)
        cols = ceil(width / self._options.grid_size)
        rows = ceil(height / self._options.grid_size)

        if rows == 0 or cols == 0:
            logger.debug(f"Degenerate lattice: {width:.1f}m x {height:.1f}m box has no area")
            return LatticePlan(rows=rows, cols=cols)

        node_count = (rows + 1) * (cols + 1)
        if node_count > self._options.max_nodes:
            raise ValueError(
                f"Lattice of {node_count} nodes exceeds max_nodes={self._options.max_nodes}; "
                f"increase grid_size (now {self._options.grid_size}m)"
            )

        positions = [
            Position(
                lon=min_lon + (max_lon - min_lon) * col / cols,
                lat=min_lat + (max_lat - min_lat) * row / rows,
            )
            for row in range(rows + 1)
            for col in range(cols + 1)
        ]
        logger.debug(f"Lattice {rows + 1}x{cols + 1} ({node_count} nodes) over {width:.0f}m x {height:.0f}m")
        return LatticePlan(rows=rows, cols=cols, positions=positions)

    def build_grid(self, plan: LatticePlan, elevations: Optional[Sequence[float]] = None) -> SearchGrid:
        """Create the node arena for a lattice plan.

        Args:
            plan: Lattice layout from plan_lattice()
            elevations: Node elevations in plan order (queried from the
                Height Provider when not given)

        Returns:
            SearchGrid with fresh nodes (infinite costs, no parent).
        """
        if plan.is_empty:
            return SearchGrid(nodes=[], xyz=np.empty((0, 3)), tree=None)

        if elevations is None:
            elevations, _ = query_heights(heights=self._heights, positions=plan.positions)
        if len(elevations) != len(plan.positions):
            raise RuntimeError(f"Got {len(elevations)} elevations for {len(plan.positions)} lattice nodes")

        row_length = plan.cols + 1
        nodes = [
            GridNode(
                index=i,
                row=i // row_length,
                col=i % row_length,
                position=position.with_height(elevation),
                elevation=elevation,
            )
            for i, (position, elevation) in enumerate(zip(plan.positions, elevations))
        ]
        xyz = np.array([GeoCalculator.to_ecef(lon=p.lon, lat=p.lat) for p in plan.positions])
        return SearchGrid(nodes=nodes, xyz=xyz, tree=cKDTree(xyz))

    def bind_endpoints(self, grid: SearchGrid, start: Position, end: Position) -> Optional[tuple[int, int]]:
        """Arena indices of the nodes nearest to start and end, None for an empty grid."""
        if grid.is_empty or grid.tree is None:
            return None
        query = np.array(
            [
                GeoCalculator.to_ecef(lon=start.lon, lat=start.lat),
                GeoCalculator.to_ecef(lon=end.lon, lat=end.lat),
            ]
        )
        _, indices = grid.tree.query(query)
        return int(indices[0]), int(indices[1])

    # =========================================================================
    # Search
    # =========================================================================

    def _distance(self, grid: SearchGrid, a: int, b: int) -> float:
        return float(np.linalg.norm(grid.xyz[a] - grid.xyz[b]))

    def _heuristic(self, grid: SearchGrid, node: int, sink: int) -> float:
        weight = self._options.distance_weight + self._options.slope_weight
        return weight * self._distance(grid=grid, a=node, b=sink)

    def edge_cost(self, from_node: GridNode, to_node: GridNode, distance: float) -> Optional[float]:
        """Cost of moving between two nodes, None when the edge is not traversable.

        Args:
            from_node: Edge start
            to_node: Edge end
            distance: Horizontal distance between the nodes (meters)

        Returns:
            Weighted cost, or None if the slope exceeds max_slope or an elevation is missing.
        """
        slope = GeoCalculator.slope_deg(elevation_change=to_node.elevation - from_node.elevation, distance_m=distance)
        # NaN compares False: missing elevation is impassable
        if not slope <= self._options.max_slope:
            return None
        slope_factor = (1 + slope / PathfinderConfig.SLOPE_NORMALIZER_DEG) ** 2
        return self._options.distance_weight * distance + self._options.slope_weight * distance * slope_factor

    def search(self, grid: SearchGrid, source: int, sink: int) -> bool:
        """Run A* from source to sink over the grid.

        Updates g/h/f costs and parents of the arena nodes in place.

        Returns:
            True if the sink was reached.
        """
        nodes = grid.nodes
        radius = self._options.grid_size * PathfinderConfig.NEIGHBOR_RADIUS_FACTOR
        tie_breaker = count()

        nodes[source].set_costs(g_cost=0.0, h_cost=self._heuristic(grid=grid, node=source, sink=sink))
        open_heap: list[tuple[float, int, int]] = [(nodes[source].f_cost, next(tie_breaker), source)]
        closed: set[int] = set()

        while open_heap:
            f_cost, _, current = heapq.heappop(open_heap)
            if current in closed or f_cost > nodes[current].f_cost:
                continue  # Stale heap entry
            closed.add(current)
            grid.expansions += 1

            if current == sink:
                logger.debug(f"A* reached sink after {grid.expansions} expansions, cost={nodes[sink].g_cost:.1f}")
                return True

            current_node = nodes[current]
            for neighbor in grid.tree.query_ball_point(grid.xyz[current], r=radius):
                if neighbor == current or neighbor in closed:
                    continue
                neighbor_node = nodes[neighbor]
                distance = self._distance(grid=grid, a=current, b=neighbor)
                move_cost = self.edge_cost(from_node=current_node, to_node=neighbor_node, distance=distance)
                if move_cost is None:
                    continue

                tentative_g = current_node.g_cost + move_cost
                if tentative_g < neighbor_node.g_cost:
                    neighbor_node.parent = current
                    neighbor_node.set_costs(
                        g_cost=tentative_g,
                        h_cost=self._heuristic(grid=grid, node=neighbor, sink=sink),
                    )
                    heapq.heappush(open_heap, (neighbor_node.f_cost, next(tie_breaker), neighbor))

        logger.debug(f"A* open set exhausted after {grid.expansions} expansions")
        return False

    def reconstruct(self, grid: SearchGrid, sink: int) -> list[GridNode]:
        """Follow parent indices from the sink back to the source.

        Raises:
            RuntimeError: If the parent chain loops.
        """
        path: list[GridNode] = []
        current: Optional[int] = sink
        while current is not None:
            if len(path) > len(grid.nodes):
                raise RuntimeError("Parent chain longer than the node arena")
            node = grid.nodes[current]
            path.append(node)
            current = node.parent
        path.reverse()
        return path

    # =========================================================================
    # Entry point
    # =========================================================================

    def find_path(
        self,
        start: Position,
        end: Position,
        elevations: Optional[Sequence[float]] = None,
    ) -> PathResult:
        """Compute the slope-weighted path from start to end.

        Args:
            start: Path start
            end: Path end
            elevations: Pre-fetched elevations for plan_lattice() positions
                followed by start and end (queried synchronously when not given)

        Returns:
            PathResult; see PathOutcome for how the positions were obtained.

        Raises:
            ValueError: If start equals end or the lattice is too large.
        """
        if start.lon == end.lon and start.lat == end.lat:
            raise ValueError(f"Start and end coincide at ({start.lon}, {start.lat})")

        plan = self.plan_lattice(start=start, end=end)
        if elevations is None:
            node_elevations, missing = query_heights(heights=self._heights, positions=plan.positions)
            start_elevation = self._heights.height(start)
            end_elevation = self._heights.height(end)
        else:
            if len(elevations) != len(plan.positions) + 2:
                raise RuntimeError(f"Expected {len(plan.positions) + 2} elevations, got {len(elevations)}")
            node_elevations = list(elevations[:-2])
            start_elevation, end_elevation = elevations[-2], elevations[-1]
            missing = sum(1 for e in node_elevations if isnan(e))

        warnings: list[Warning] = []
        if missing:
            logger.warning(f"Pathfinder: {missing}/{len(plan.positions)} lattice nodes without terrain data, impassable")
            warnings.extend(
                missing_elevation_warnings(
                    missing_count=missing, total_count=len(plan.positions), treatment="impassable"
                )
            )

        grid = self.build_grid(plan=plan, elevations=node_elevations)
        start_point = start.with_height(start_elevation)
        end_point = end.with_height(end_elevation)

        endpoints = self.bind_endpoints(grid=grid, start=start, end=end)
        if endpoints is None:
            positions = [start_point, end_point]
            outcome = PathOutcome.DEGENERATE
        elif self.search(grid=grid, source=endpoints[0], sink=endpoints[1]):
            positions = [node.position for node in self.reconstruct(grid=grid, sink=endpoints[1])]
            outcome = PathOutcome.FOUND
        else:
            positions = [start_point, end_point]
            outcome = PathOutcome.FALLBACK
            reason = f"sink unreachable within max_slope={self._options.max_slope}°"
            logger.warning(f"Pathfinder fallback to straight line: {reason}")
            warnings.append(FallbackPathWarning(reason=reason))

        return _summarize(
            positions=positions,
            start=start_point,
            end=end_point,
            outcome=outcome,
            node_count=len(grid.nodes),
            warnings=warnings,
        )


def _summarize(
    positions: list[Position],
    start: Position,
    end: Position,
    outcome: PathOutcome,
    node_count: int,
    warnings: list[Warning],
) -> PathResult:
    """Path statistics: chord length and per-segment slopes."""
    path_distance = 0.0
    slopes: list[float] = []
    for a, b in zip(positions, positions[1:]):
        distance = a.distance_to(other=b)
        path_distance += distance
        slopes.append(GeoCalculator.slope_deg(elevation_change=b.height - a.height, distance_m=distance))

    return PathResult(
        positions=tuple(positions),
        straight_distance=start.distance_to(other=end),
        path_distance=path_distance,
        avg_slope=sum(slopes) / len(slopes) if slopes else 0.0,
        max_slope=max(slopes, default=0.0),
        elevation_change=abs(end.height - start.height),
        outcome=outcome,
        node_count=node_count,
        warnings=tuple(warnings),
    )


def compute_path(
    start: Position,
    end: Position,
    heights: HeightProvider,
    options: Optional[PathOptions] = None,
) -> PathResult:
    """Slope-weighted shortest path with per-node synchronous elevation queries."""
    return SlopeWeightedPathfinder(heights=heights, options=options).find_path(start=start, end=end)


async def compute_path_async(
    start: Position,
    end: Position,
    heights: AsyncHeightProvider,
    options: Optional[PathOptions] = None,
) -> PathResult:
    """Slope-weighted shortest path with one batched elevation request.

    All lattice nodes plus start and end are fetched with a single
    sample_batch() call; the search itself is synchronous.
    """
    finder = SlopeWeightedPathfinder(heights=heights, options=options)
    if start.lon == end.lon and start.lat == end.lat:
        raise ValueError(f"Start and end coincide at ({start.lon}, {start.lat})")

    plan = finder.plan_lattice(start=start, end=end)
    elevations, _ = await query_heights_async(heights=heights, positions=[*plan.positions, start, end])
    return finder.find_path(start=start, end=end, elevations=elevations)
