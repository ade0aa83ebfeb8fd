"""Data models for orthogonal edge geometry."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

SegmentDirection = Literal["horizontal", "vertical"]
MovementAxis = Literal["x", "y", "both", "none"]
HandleType = Literal["source", "target"]
HandleSide = Literal["top", "right", "bottom", "left"]
EdgeType = Literal["straight", "rounded", "orthogonal"]
RoutingType = Literal["horizontal-first", "vertical-first"]


@dataclass(frozen=True)
class Point:
    """A canvas coordinate."""

    x: float
    y: float

    def translate(self, dx: float, dy: float) -> Point:
        """Return this point moved by (dx, dy)."""
        return Point(self.x + dx, self.y + dy)

    def to_dict(self) -> dict[str, float]:
        """Persisted ``{"x": .., "y": ..}`` form."""
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: Mapping[str, float]) -> Point:
        return cls(x=data["x"], y=data["y"])


ORIGIN = Point(0, 0)


def points_from_dicts(items: Iterable[Mapping[str, float]]) -> list[Point]:
    """Convert persisted waypoint dicts to points."""
    return [Point.from_dict(item) for item in items]


def points_to_dicts(points: Iterable[Point]) -> list[dict[str, float]]:
    """Convert points to their persisted dict form."""
    return [p.to_dict() for p in points]


@dataclass(frozen=True)
class EdgeSegment:
    """One axis-aligned piece of an edge between two consecutive points.

    The id is positional (``segment-<index>``) and only valid until the
    segment list is rebuilt.
    """

    id: str
    start: Point
    end: Point
    direction: SegmentDirection
    length: float
    midpoint: Point


@dataclass(frozen=True)
class SegmentDragState:
    """Snapshot of one drag gesture."""

    segment_id: str
    start_position: Point
    current_position: Point
    constrained_position: Point
    drag_offset: Point


@dataclass(frozen=True)
class SegmentDragConstraints:
    """Movement rules for a single segment drag."""

    axis: MovementAxis
    snap_to_grid: bool
    preserve_length: bool | None = None
    min_distance: float | None = None
    max_distance: float | None = None


MovementConstraint = SegmentDragConstraints


@dataclass
class ConstraintValidationResult:
    """Outcome of applying movement constraints.

    Violations are advisory: ``adjusted_position`` is always usable.
    """

    is_valid: bool
    adjusted_position: Point
    violated_constraints: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class CorrectionSuggestion:
    """Proposed replacement end point for a non-orthogonal segment."""

    segment_id: str
    suggested_fix: Point


@dataclass
class OrthogonalValidation:
    """Whole-path orthogonality audit."""

    is_orthogonal: bool
    non_orthogonal_segments: list[str] = field(default_factory=list)
    correction_suggestions: list[CorrectionSuggestion] = field(default_factory=list)


@dataclass
class IntersectionReport:
    """Segments crossed by a hypothetically moved segment."""

    has_intersections: bool
    intersecting_segments: list[str] = field(default_factory=list)


@dataclass
class ConnectionAnalysis:
    """Whether a segment move would pull the edge off its handles."""

    would_disconnect: bool
    affected_handles: list[HandleType] = field(default_factory=list)
    required_bridge_segments: list[EdgeSegment] = field(default_factory=list)


@dataclass
class WaypointInsertionResult:
    """Control points after bridge waypoints were (maybe) inserted."""

    new_control_points: list[Point]
    inserted_waypoints: list[Point] = field(default_factory=list)
    modified_segments: list[str] = field(default_factory=list)
    requires_insertion: bool = False


@dataclass(frozen=True)
class PathOptions:
    """How an edge should be drawn."""

    edge_type: EdgeType = "orthogonal"
    rounded: bool = False
    corner_radius: float | None = None


@dataclass
class CalculatedPath:
    """Drawable result of a path calculation."""

    svg_path: str
    segments: list[EdgeSegment]
    total_length: float
    waypoints: list[Point]


# Routing (handle selection and initial route generation)


@dataclass(frozen=True)
class NodeBounds:
    """Axis-aligned rectangle occupied by a node."""

    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class HandleInfo:
    """A connection handle on a node border."""

    id: str
    node_id: str
    position: Point
    side: HandleSide
    type: HandleType


@dataclass
class NodeInfo:
    """A node with its bounds and handles."""

    id: str
    bounds: NodeBounds
    handles: list[HandleInfo] = field(default_factory=list)


@dataclass(frozen=True)
class PathSegment:
    """A segment of a generated route."""

    start: Point
    end: Point
    direction: SegmentDirection
    length: float


@dataclass(frozen=True)
class ControlPoint:
    """A corner of a generated route."""

    x: float
    y: float
    type: Literal["corner", "intermediate"] = "corner"


@dataclass
class OrthogonalPath:
    """A generated orthogonal route between two handles."""

    segments: list[PathSegment]
    total_length: float
    routing_type: RoutingType
    efficiency: float
    control_points: list[ControlPoint] = field(default_factory=list)

    def interior_points(self) -> list[Point]:
        """Corners between the two handles, usable as edge waypoints."""
        return [Point(cp.x, cp.y) for cp in self.control_points[1:-1]]


@dataclass
class HandleCombination:
    """A candidate source/target handle pair."""

    source_handle: HandleInfo
    target_handle: HandleInfo
    manhattan_distance: float
    path_length: float
    efficiency: float
    routing_type: RoutingType


@dataclass
class RoutingMetrics:
    """Summary numbers for a generated route."""

    path_length: float
    segment_count: int
    routing_type: RoutingType
    efficiency: float
    handle_combination: str
