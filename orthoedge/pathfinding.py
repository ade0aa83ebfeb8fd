"""Grid-based A* routing around node obstacles using NetworkX."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

import networkx as nx

from .config import PathfindingConfig
from .models import Point

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .models import NodeBounds

logger = logging.getLogger(__name__)

Cell = tuple[int, int]
# Routing states are (row, col, heading); "start"/"end" are virtual terminals
GraphNode = Union[tuple[int, int, str], str]


@dataclass
class VirtualNode:
    """A point in the virtual routing grid."""

    x: float
    y: float
    grid_row: int
    grid_col: int
    is_blocked: bool = False
    # Cost multiplier for passing close to an obstacle
    proximity: float = 1.0


class VirtualGrid:
    """Routing grid with a NetworkX graph for orthogonal A* search.

    Every grid cell exists twice in the graph, once per heading. Moving
    along the heading costs one grid step, switching heading in place costs
    the turn penalty, so A* prefers routes with few bends.
    """

    def __init__(
        self,
        origin: Point,
        rows: int,
        cols: int,
        config: PathfindingConfig,
    ):
        self.origin = origin
        self.rows = rows
        self.cols = cols
        self.config = config
        self.nodes: dict[Cell, VirtualNode] = {}
        self.graph: nx.Graph = nx.Graph()
        self._obstacles: list[tuple[float, float, float, float]] = []

    @classmethod
    def generate(
        cls,
        obstacles: Sequence[NodeBounds],
        anchors: Sequence[Point],
        config: PathfindingConfig | None = None,
    ) -> VirtualGrid:
        """Build a grid covering the obstacles and anchor points.

        The grid is aligned so that the first anchor sits exactly on a
        grid node.

        Args:
            obstacles: Node rectangles edges must not cross
            anchors: Points the route has to reach (source first)
            config: Pathfinding configuration

        Returns:
            Populated VirtualGrid ready for pathfinding
        """
        config = config or PathfindingConfig()
        spacing = config.grid_spacing
        padding = spacing * config.bounds_padding

        xs = [p.x for p in anchors]
        ys = [p.y for p in anchors]
        for ob in obstacles:
            xs.extend((ob.x, ob.x + ob.width))
            ys.extend((ob.y, ob.y + ob.height))

        min_x, max_x = min(xs) - padding, max(xs) + padding
        min_y, max_y = min(ys) - padding, max(ys) + padding

        # Shift the origin so the first anchor lands on a grid line
        anchor = anchors[0]
        origin = Point(
            anchor.x - math.ceil((anchor.x - min_x) / spacing) * spacing,
            anchor.y - math.ceil((anchor.y - min_y) / spacing) * spacing,
        )
        cols = int(math.ceil((max_x - origin.x) / spacing)) + 1
        rows = int(math.ceil((max_y - origin.y) / spacing)) + 1

        grid = cls(origin, rows, cols, config)
        grid._create_grid()
        grid._mark_obstacles(obstacles)
        grid._build_graph()
        return grid

    def _create_grid(self) -> None:
        spacing = self.config.grid_spacing
        for row in range(self.rows):
            for col in range(self.cols):
                self.nodes[(row, col)] = VirtualNode(
                    x=self.origin.x + col * spacing,
                    y=self.origin.y + row * spacing,
                    grid_row=row,
                    grid_col=col,
                )

    def _mark_obstacles(self, obstacles: Sequence[NodeBounds]) -> None:
        """Block cells strictly inside a node; penalise cells near one.

        Border cells stay free so routes can leave from handles that sit
        on a node's edge.
        """
        margin = self.config.node_margin * self.config.grid_spacing
        self._obstacles = [
            (ob.x, ob.y, ob.x + ob.width, ob.y + ob.height) for ob in obstacles
        ]

        for vnode in self.nodes.values():
            x, y = vnode.x, vnode.y
            for ox1, oy1, ox2, oy2 in self._obstacles:
                if ox1 < x < ox2 and oy1 < y < oy2:
                    vnode.is_blocked = True
                    break
                dx = max(ox1 - x, 0, x - ox2)
                dy = max(oy1 - y, 0, y - oy2)
                if margin > 0 and max(dx, dy) < margin:
                    vnode.proximity = max(vnode.proximity, 1.5)

    def _build_graph(self) -> None:
        spacing = self.config.grid_spacing
        step = spacing * self.config.distance_weight
        turn = spacing * self.config.turn_penalty

        for (row, col), vnode in self.nodes.items():
            if vnode.is_blocked:
                continue
            self.graph.add_edge((row, col, "h"), (row, col, "v"), weight=turn)

            right = self.nodes.get((row, col + 1))
            if right and not right.is_blocked:
                weight = step * max(vnode.proximity, right.proximity)
                self.graph.add_edge((row, col, "h"), (row, col + 1, "h"), weight=weight)

            down = self.nodes.get((row + 1, col))
            if down and not down.is_blocked:
                weight = step * max(vnode.proximity, down.proximity)
                self.graph.add_edge((row, col, "v"), (row + 1, col, "v"), weight=weight)

    def get_nearest_grid_point(self, point: Point, max_radius: int = 3) -> Cell | None:
        """Nearest unblocked cell to a world coordinate."""
        spacing = self.config.grid_spacing
        col = round((point.x - self.origin.x) / spacing)
        row = round((point.y - self.origin.y) / spacing)

        for radius in range(max_radius + 1):
            candidates = [
                (row + dr, col + dc)
                for dr in range(-radius, radius + 1)
                for dc in range(-radius, radius + 1)
                if max(abs(dr), abs(dc)) == radius
            ]
            candidates.sort(key=lambda c: abs(c[0] - row) + abs(c[1] - col))
            for cell in candidates:
                vnode = self.nodes.get(cell)
                if vnode is not None and not vnode.is_blocked:
                    return cell
        return None

    def find_path(self, start: Cell, end: Cell) -> list[Point] | None:
        """Find the cheapest orthogonal cell path with A*.

        Args:
            start: Grid coordinates (row, col) of start
            end: Grid coordinates (row, col) of end

        Returns:
            Corner points of the route in world coordinates, or None
        """
        if start == end:
            node = self.nodes[start]
            return [Point(node.x, node.y)]

        graph = self.graph.copy()
        for heading in ("h", "v"):
            if (*start, heading) in graph:
                graph.add_edge("start", (*start, heading), weight=0)
            if (*end, heading) in graph:
                graph.add_edge((*end, heading), "end", weight=0)
        if "start" not in graph or "end" not in graph:
            return None

        spacing = self.config.grid_spacing

        def heuristic(a: GraphNode, b: GraphNode) -> float:
            # Manhattan distance to the goal cell never overestimates
            if isinstance(a, str):
                cell = start if a == "start" else end
            else:
                cell = (a[0], a[1])
            return (abs(cell[0] - end[0]) + abs(cell[1] - end[1])) * spacing

        try:
            states = nx.astar_path(graph, "start", "end", heuristic=heuristic, weight="weight")
        except nx.NetworkXNoPath:
            return None

        cells: list[Cell] = []
        for state in states[1:-1]:
            cell = (state[0], state[1])
            if not cells or cells[-1] != cell:
                cells.append(cell)

        return compress_collinear(
            [Point(self.nodes[c].x, self.nodes[c].y) for c in cells]
        )


def compress_collinear(points: Sequence[Point]) -> list[Point]:
    """Drop points that continue a straight horizontal or vertical run."""
    if len(points) <= 2:
        return list(points)

    result = [points[0]]
    for i in range(1, len(points) - 1):
        prev, curr, nxt = result[-1], points[i], points[i + 1]
        same_row = prev.y == curr.y == nxt.y
        same_col = prev.x == curr.x == nxt.x
        if not (same_row or same_col):
            result.append(curr)
    result.append(points[-1])
    return result


def _connect_orthogonally(frm: Point, to: Point, horizontal_first: bool) -> list[Point]:
    """Corner needed to reach ``to`` from ``frm`` with axis-aligned legs."""
    if frm.x == to.x or frm.y == to.y:
        return []
    if horizontal_first:
        return [Point(to.x, frm.y)]
    return [Point(frm.x, to.y)]


def route_around_obstacles(
    source: Point,
    target: Point,
    obstacles: Sequence[NodeBounds],
    config: PathfindingConfig | None = None,
) -> list[Point] | None:
    """Orthogonal route from source to target avoiding node interiors.

    Args:
        source: Start point (usually a handle on a node border)
        target: End point
        obstacles: Node rectangles to avoid
        config: Pathfinding configuration

    Returns:
        Full point list including source and target, or None when no route
        exists on the grid
    """
    grid = VirtualGrid.generate(obstacles, [source, target], config)
    start = grid.get_nearest_grid_point(source)
    end = grid.get_nearest_grid_point(target)
    if start is None or end is None:
        logger.debug("No free grid cell near %s or %s", source, target)
        return None

    corners = grid.find_path(start, end)
    if corners is None:
        logger.debug("Grid search found no route from %s to %s", source, target)
        return None

    first, last = corners[0], corners[-1]
    # Continue the first and last grid legs straight into the exact endpoints
    head_horizontal = len(corners) > 1 and corners[1].y == first.y
    tail_horizontal = len(corners) > 1 and corners[-2].y == last.y

    points = [source]
    points.extend(_connect_orthogonally(source, first, horizontal_first=not head_horizontal))
    points.extend(corners)
    points.extend(_connect_orthogonally(last, target, horizontal_first=tail_horizontal))
    points.append(target)

    deduped = [p for i, p in enumerate(points) if i == 0 or p != points[i - 1]]
    return compress_collinear(deduped)
