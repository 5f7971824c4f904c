"""GridNode - Lattice point of the pathfinder's search grid.

Nodes live in a flat arena (list) owned by one pathfinder invocation.
Back-references use arena indices, never object references, so the arena
can be inspected or serialized without following cycles.
"""

from dataclasses import dataclass
from math import inf
from typing import Optional

from terrain_analysis.model.position import Position


@dataclass(slots=True)
class GridNode:
    """A node in the search grid.

    Attributes:
        index: Position of this node in the arena
        row: Lattice row (south to north)
        col: Lattice column (west to east)
        position: Geographic location, height = terrain elevation
        elevation: Terrain elevation in meters (NaN if unavailable)
        g_cost: Cost of the best known route from the source
        h_cost: Heuristic estimate of the remaining cost to the sink
        f_cost: g_cost + h_cost (kept in sync by set_costs)
        parent: Arena index of the predecessor on the best known route
    """

    index: int
    row: int
    col: int
    position: Position
    elevation: float
    g_cost: float = inf
    h_cost: float = inf
    f_cost: float = inf
    parent: Optional[int] = None

    def set_costs(self, g_cost: float, h_cost: float) -> None:
        """Update g and h together so f_cost always equals g_cost + h_cost."""
        self.g_cost = g_cost
        self.h_cost = h_cost
        self.f_cost = g_cost + h_cost

