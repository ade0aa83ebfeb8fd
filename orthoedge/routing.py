"""Initial route generation and handle selection between nodes."""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .config import DEFAULT_CONFIG, PathfindingConfig, RoutingConfig
from .geometry import manhattan_distance, routing_efficiency
from .models import (
    ControlPoint,
    HandleCombination,
    OrthogonalPath,
    PathSegment,
    Point,
    RoutingMetrics,
)
from .pathfinding import route_around_obstacles

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .models import HandleInfo, NodeBounds, NodeInfo, RoutingType

logger = logging.getLogger(__name__)

HANDLE_SIDE_ORDER = {"top": 0, "right": 1, "bottom": 2, "left": 3}
# A preferred routing is kept while at most this much longer than the other
PREFERENCE_THRESHOLD = 0.2


@dataclass
class RoutingComparison:
    selected_path: OrthogonalPath
    alternative_path: OrthogonalPath
    reason: str
    efficiency: float


@dataclass
class HandleEvaluation:
    combination: HandleCombination
    score: float
    reason: str


# ---------------------------------------------------------------------------
# Path generation
# ---------------------------------------------------------------------------


def _path_segment(start: Point, end: Point) -> PathSegment:
    direction = "horizontal" if start.y == end.y else "vertical"
    length = abs(end.x - start.x) if direction == "horizontal" else abs(end.y - start.y)
    return PathSegment(start=start, end=end, direction=direction, length=length)


def apply_alignment_tolerance(
    start: Point, end: Point, tolerance: float
) -> tuple[Point, Point]:
    """Pull nearly aligned coordinates onto their common mean."""
    sx, sy, ex, ey = start.x, start.y, end.x, end.y
    if abs(sy - ey) <= tolerance:
        sy = ey = (sy + ey) / 2
    if abs(sx - ex) <= tolerance:
        sx = ex = (sx + ex) / 2
    return Point(sx, sy), Point(ex, ey)


def generate_l_path(start: Point, end: Point, routing_type: RoutingType) -> list[PathSegment]:
    """One or two axis-aligned segments from start to end.

    Coincident points give no segments, aligned points a single one.
    """
    if start == end:
        return []
    if start.x == end.x or start.y == end.y:
        return [_path_segment(start, end)]

    if routing_type == "horizontal-first":
        corner = Point(end.x, start.y)
    else:
        corner = Point(start.x, end.y)
    return [_path_segment(start, corner), _path_segment(corner, end)]


def generate_control_points(segments: Sequence[PathSegment]) -> list[ControlPoint]:
    """Every vertex of a segment chain, start and end included."""
    if not segments:
        return []
    points = [ControlPoint(segments[0].start.x, segments[0].start.y)]
    points.extend(ControlPoint(s.end.x, s.end.y) for s in segments)
    return points


def create_orthogonal_path(
    source_handle: HandleInfo,
    target_handle: HandleInfo,
    routing_type: RoutingType,
    alignment_tolerance: float = DEFAULT_CONFIG.alignment_tolerance,
) -> OrthogonalPath:
    """Build the L-shaped route of the given type between two handles."""
    start, end = apply_alignment_tolerance(
        source_handle.position, target_handle.position, alignment_tolerance
    )
    segments = generate_l_path(start, end, routing_type)
    control_points = generate_control_points(segments)
    if not segments:
        control_points = [ControlPoint(start.x, start.y)]

    return OrthogonalPath(
        segments=segments,
        total_length=sum(s.length for s in segments),
        routing_type=routing_type,
        efficiency=routing_efficiency(start, end),
        control_points=control_points,
    )


def compare_orthogonal_paths(
    horizontal_first: OrthogonalPath, vertical_first: OrthogonalPath
) -> OrthogonalPath:
    """Shorter of two routes; horizontal-first wins ties."""
    if vertical_first.total_length < horizontal_first.total_length:
        return vertical_first
    return horizontal_first


def _path_from_points(
    points: Sequence[Point], efficiency: float
) -> OrthogonalPath:
    segments = [_path_segment(a, b) for a, b in zip(points, points[1:])]
    first_direction = segments[0].direction if segments else "horizontal"
    routing_type: RoutingType = (
        "horizontal-first" if first_direction == "horizontal" else "vertical-first"
    )
    return OrthogonalPath(
        segments=segments,
        total_length=sum(s.length for s in segments),
        routing_type=routing_type,
        efficiency=efficiency,
        control_points=generate_control_points(segments),
    )


def _segment_crosses(segment: PathSegment, bounds: NodeBounds) -> bool:
    """Whether an axis-aligned segment passes through a node's interior."""
    x1, x2 = sorted((segment.start.x, segment.end.x))
    y1, y2 = sorted((segment.start.y, segment.end.y))
    bx1, by1 = bounds.x, bounds.y
    bx2, by2 = bounds.x + bounds.width, bounds.y + bounds.height

    if segment.direction == "horizontal":
        return by1 < y1 < by2 and max(x1, bx1) < min(x2, bx2)
    return bx1 < x1 < bx2 and max(y1, by1) < min(y2, by2)


def path_is_blocked(path: OrthogonalPath, obstacles: Sequence[NodeBounds]) -> bool:
    return any(_segment_crosses(s, ob) for s in path.segments for ob in obstacles)


# ---------------------------------------------------------------------------
# Routing engine
# ---------------------------------------------------------------------------


class OrthogonalRoutingEngine:
    """Calculates initial orthogonal routes between handles.

    Results are memoised per handle pair and options. The cache keeps the
    ``path_cache_size`` most recently used routes.
    """

    def __init__(
        self,
        config: RoutingConfig | None = None,
        pathfinding_config: PathfindingConfig | None = None,
    ):
        self.config = config or DEFAULT_CONFIG
        self.pathfinding_config = pathfinding_config or PathfindingConfig()
        self._path_cache: OrderedDict[tuple[Any, ...], OrthogonalPath] = OrderedDict()

    def create_orthogonal_path(
        self,
        source_handle: HandleInfo,
        target_handle: HandleInfo,
        routing_type: RoutingType,
    ) -> OrthogonalPath:
        return create_orthogonal_path(
            source_handle, target_handle, routing_type, self.config.alignment_tolerance
        )

    def calculate_orthogonal_path(
        self,
        source_handle: HandleInfo,
        target_handle: HandleInfo,
        preferred_routing: RoutingType | None = None,
        obstacles: Sequence[NodeBounds] | None = None,
    ) -> OrthogonalPath:
        """Calculate the best route between two handles.

        Both L-shapes are built. A preferred routing is used unless it is
        more than 20% longer than the alternative; otherwise the shorter
        one wins. With obstacles, a grid route replaces an L-shape that
        would cross a node.

        Args:
            source_handle: Handle the edge starts at
            target_handle: Handle the edge ends at
            preferred_routing: Optional routing type to favour
            obstacles: Node bounds the route should avoid

        Returns:
            The selected OrthogonalPath
        """
        key = self._cache_key(source_handle, target_handle, preferred_routing, obstacles)
        cached = self._path_cache.get(key)
        if cached is not None:
            self._path_cache.move_to_end(key)
            return cached

        horizontal_first = self.create_orthogonal_path(
            source_handle, target_handle, "horizontal-first"
        )
        vertical_first = self.create_orthogonal_path(
            source_handle, target_handle, "vertical-first"
        )
        path = self._select_optimal_path(horizontal_first, vertical_first, preferred_routing)

        if obstacles and path_is_blocked(path, obstacles):
            path = self._route_around(path, source_handle, target_handle, obstacles)

        self._path_cache[key] = path
        if len(self._path_cache) > self.config.path_cache_size:
            self._path_cache.popitem(last=False)
        return path

    def compare_routing_options(
        self,
        horizontal_first: OrthogonalPath,
        vertical_first: OrthogonalPath,
    ) -> RoutingComparison:
        """Pick between the two L-shapes and explain why."""
        selected = compare_orthogonal_paths(horizontal_first, vertical_first)
        alternative = vertical_first if selected is horizontal_first else horizontal_first

        h_len, v_len = horizontal_first.total_length, vertical_first.total_length
        if h_len < v_len:
            reason = f"Horizontal-first routing selected: shorter path ({h_len:g} vs {v_len:g})"
        elif v_len < h_len:
            reason = f"Vertical-first routing selected: shorter path ({v_len:g} vs {h_len:g})"
        else:
            reason = "Horizontal-first routing selected: equal path lengths, using tie-breaker rule"

        return RoutingComparison(
            selected_path=selected,
            alternative_path=alternative,
            reason=reason,
            efficiency=selected.efficiency,
        )

    def generate_control_points(self, path: OrthogonalPath) -> list[ControlPoint]:
        return generate_control_points(path.segments)

    def calculate_routing_metrics(
        self,
        path: OrthogonalPath,
        source_handle: HandleInfo,
        target_handle: HandleInfo,
    ) -> RoutingMetrics:
        return RoutingMetrics(
            path_length=path.total_length,
            segment_count=len(path.segments),
            routing_type=path.routing_type,
            efficiency=path.efficiency,
            handle_combination=(
                f"{source_handle.node_id}:{source_handle.side} -> "
                f"{target_handle.node_id}:{target_handle.side}"
            ),
        )

    def calculate_path_with_obstacles(
        self,
        source_handle: HandleInfo,
        target_handle: HandleInfo,
        obstacles: Sequence[NodeBounds],
    ) -> OrthogonalPath:
        return self.calculate_orthogonal_path(
            source_handle, target_handle, obstacles=obstacles
        )

    def clear_cache(self) -> None:
        self._path_cache.clear()

    def get_cache_stats(self) -> dict[str, Any]:
        return {"size": len(self._path_cache), "keys": list(self._path_cache)}

    # ------------------------------------------------------------------

    @staticmethod
    def _select_optimal_path(
        horizontal_first: OrthogonalPath,
        vertical_first: OrthogonalPath,
        preferred_routing: RoutingType | None,
    ) -> OrthogonalPath:
        if preferred_routing:
            if preferred_routing == "horizontal-first":
                preferred, alternative = horizontal_first, vertical_first
            else:
                preferred, alternative = vertical_first, horizontal_first

            if alternative.total_length == 0:
                if preferred.total_length == 0:
                    return preferred
            elif (
                preferred.total_length - alternative.total_length
            ) / alternative.total_length <= PREFERENCE_THRESHOLD:
                return preferred

        return compare_orthogonal_paths(horizontal_first, vertical_first)

    def _route_around(
        self,
        fallback: OrthogonalPath,
        source_handle: HandleInfo,
        target_handle: HandleInfo,
        obstacles: Sequence[NodeBounds],
    ) -> OrthogonalPath:
        points = route_around_obstacles(
            source_handle.position,
            target_handle.position,
            obstacles,
            self.pathfinding_config,
        )
        if points is None or len(points) < 2:
            logger.warning(
                "No obstacle-free route from %s to %s, using %s L-shape",
                source_handle.id,
                target_handle.id,
                fallback.routing_type,
            )
            return fallback

        logger.debug(
            "Routed %s -> %s around %d obstacle(s) with %d bend(s)",
            source_handle.id,
            target_handle.id,
            len(obstacles),
            len(points) - 2,
        )
        return _path_from_points(points, fallback.efficiency)

    @staticmethod
    def _cache_key(
        source_handle: HandleInfo,
        target_handle: HandleInfo,
        preferred_routing: RoutingType | None,
        obstacles: Sequence[NodeBounds] | None,
    ) -> tuple[Any, ...]:
        return (
            source_handle.node_id,
            source_handle.side,
            source_handle.position,
            target_handle.node_id,
            target_handle.side,
            target_handle.position,
            preferred_routing,
            tuple(obstacles) if obstacles else (),
        )


# ---------------------------------------------------------------------------
# Handle selection
# ---------------------------------------------------------------------------


def preferred_routing_type(
    source_handle: HandleInfo, target_handle: HandleInfo
) -> RoutingType:
    """Routing type suggested by the handle offset, then by handle sides."""
    dx = abs(target_handle.position.x - source_handle.position.x)
    dy = abs(target_handle.position.y - source_handle.position.y)
    if dx > dy:
        return "horizontal-first"
    if dy > dx:
        return "vertical-first"

    source_horizontal = source_handle.side in ("left", "right")
    target_horizontal = target_handle.side in ("left", "right")
    if not source_horizontal and not target_horizontal:
        return "vertical-first"
    return "horizontal-first"


class HandleSelectionService:
    """Chooses which source and target handles an edge should use."""

    def find_optimal_handles(
        self,
        source_node: NodeInfo,
        target_node: NodeInfo,
    ) -> HandleCombination:
        """Best handle pair between two nodes.

        Shortest Manhattan distance wins, then lower efficiency ratio,
        then horizontal-first routing, then handle side order
        top, right, bottom, left.

        Raises:
            ValueError: if the nodes have no source/target handle pair
        """
        combinations = self.get_all_handle_combinations(source_node, target_node)
        if not combinations:
            raise ValueError(
                f"No valid handle combinations found between {source_node.id} "
                f"and {target_node.id}"
            )

        def sort_key(c: HandleCombination) -> tuple[float, float, int, int, int]:
            return (
                c.manhattan_distance,
                c.efficiency,
                0 if c.routing_type == "horizontal-first" else 1,
                HANDLE_SIDE_ORDER[c.source_handle.side],
                HANDLE_SIDE_ORDER[c.target_handle.side],
            )

        best = min(combinations, key=sort_key)
        logger.debug(
            "Selected %s -> %s out of %d combination(s)",
            best.source_handle.id,
            best.target_handle.id,
            len(combinations),
        )
        return best

    @staticmethod
    def calculate_manhattan_distance(
        source_handle: HandleInfo, target_handle: HandleInfo
    ) -> float:
        return manhattan_distance(source_handle.position, target_handle.position)

    def evaluate_handle_combination(
        self,
        source_handle: HandleInfo,
        target_handle: HandleInfo,
    ) -> HandleEvaluation:
        """Score one handle pair; lower is better."""
        distance = self.calculate_manhattan_distance(source_handle, target_handle)
        efficiency = routing_efficiency(source_handle.position, target_handle.position)
        routing_type = preferred_routing_type(source_handle, target_handle)

        combination = HandleCombination(
            source_handle=source_handle,
            target_handle=target_handle,
            manhattan_distance=distance,
            path_length=distance,
            efficiency=efficiency,
            routing_type=routing_type,
        )
        score = distance + efficiency * 10
        reason = (
            f"{source_handle.side}-to-{target_handle.side} connection: "
            f"Manhattan distance {distance:g}, "
            f"efficiency {efficiency:.2f}, "
            f"{routing_type} routing, "
            f"score {score:.2f}"
        )
        return HandleEvaluation(combination=combination, score=score, reason=reason)

    def get_all_handle_combinations(
        self,
        source_node: NodeInfo,
        target_node: NodeInfo,
    ) -> list[HandleCombination]:
        source_handles = [h for h in source_node.handles if h.type == "source"]
        target_handles = [h for h in target_node.handles if h.type == "target"]
        return [
            self.evaluate_handle_combination(s, t).combination
            for s in source_handles
            for t in target_handles
        ]

    @staticmethod
    def find_optimal_handles_for_position(
        source_node: NodeInfo,
        target_position: Point,
    ) -> HandleInfo | None:
        """Source handle closest (Manhattan) to a free pointer position."""
        source_handles = [h for h in source_node.handles if h.type == "source"]
        if not source_handles:
            return None
        # min() keeps the first handle on ties
        return min(
            source_handles,
            key=lambda h: manhattan_distance(h.position, target_position),
        )

