"""Geometry helpers shared by the edge services."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from .models import ORIGIN, EdgeSegment, Point

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .models import SegmentDirection


def distance(a: Point, b: Point) -> float:
    """Euclidean distance between two points."""
    return math.hypot(b.x - a.x, b.y - a.y)


def manhattan_distance(a: Point, b: Point) -> float:
    """Sum of absolute coordinate differences."""
    return abs(a.x - b.x) + abs(a.y - b.y)


def routing_efficiency(a: Point, b: Point) -> float:
    """Ratio of Manhattan to Euclidean distance (1 for coincident points)."""
    euclidean = distance(a, b)
    if euclidean == 0:
        return 1.0
    return manhattan_distance(a, b) / euclidean


def midpoint(start: Point | None, end: Point | None) -> Point:
    """Arithmetic mean of two points, origin when either is missing."""
    if start is None or end is None:
        return ORIGIN
    return Point((start.x + end.x) / 2, (start.y + end.y) / 2)


def segment_direction(start: Point, end: Point) -> SegmentDirection:
    """Axis of the larger delta; ties count as vertical."""
    if abs(end.x - start.x) > abs(end.y - start.y):
        return "horizontal"
    return "vertical"


def snap_value(value: float, grid_size: float) -> float:
    """Nearest multiple of grid_size; halves round up, not to even."""
    return math.floor(value / grid_size + 0.5) * grid_size


def snap_to_grid(point: Point, grid_size: float) -> Point:
    """Round both coordinates to the nearest grid line."""
    return Point(snap_value(point.x, grid_size), snap_value(point.y, grid_size))


def normalize(dx: float, dy: float) -> tuple[float, float]:
    """Unit vector in the direction (dx, dy), or (0, 0)."""
    magnitude = math.hypot(dx, dy)
    if magnitude == 0:
        return 0.0, 0.0
    return dx / magnitude, dy / magnitude


def make_segment(segment_id: str, start: Point, end: Point) -> EdgeSegment:
    """Build a segment with its derived fields filled in."""
    return EdgeSegment(
        id=segment_id,
        start=start,
        end=end,
        direction=segment_direction(start, end),
        length=distance(start, end),
        midpoint=midpoint(start, end),
    )


def build_segments(points: Sequence[Point]) -> list[EdgeSegment]:
    """Raw segments between consecutive points, ids by position."""
    return [
        make_segment(f"segment-{i}", points[i], points[i + 1])
        for i in range(len(points) - 1)
    ]


def points_from_segments(segments: Sequence[EdgeSegment]) -> list[Point]:
    """Flatten a connected segment chain back into its points."""
    if not segments:
        return []
    return [segments[0].start, *(segment.end for segment in segments)]


def segment_index(segment_id: str) -> int:
    """Index encoded in a ``segment-<n>`` id, or -1."""
    prefix, _, number = segment_id.rpartition("-")
    if prefix != "segment" or not number.isdigit():
        return -1
    return int(number)


def perpendicular_offset(
    direction: SegmentDirection,
    original: Point,
    new: Point,
) -> tuple[float, float]:
    """Offset of a move restricted to the axis perpendicular to a segment.

    Horizontal segments only move in y, vertical ones only in x.
    """
    if direction == "horizontal":
        return 0.0, new.y - original.y
    return new.x - original.x, 0.0


def cross_product(a: Point, b: Point, c: Point) -> float:
    """Absolute cross product of (b - a) and (c - a)."""
    return abs((b.x - a.x) * (c.y - a.y) - (c.x - a.x) * (b.y - a.y))


def _orientation(p: Point, q: Point, r: Point) -> int:
    val = (q.y - p.y) * (r.x - q.x) - (q.x - p.x) * (r.y - q.y)
    if val == 0:
        return 0
    return 1 if val > 0 else 2


def _on_segment(p: Point, q: Point, r: Point) -> bool:
    return (
        min(p.x, r.x) <= q.x <= max(p.x, r.x)
        and min(p.y, r.y) <= q.y <= max(p.y, r.y)
    )


def segments_intersect(p1: Point, q1: Point, p2: Point, q2: Point) -> bool:
    """Whether segment p1-q1 touches or crosses segment p2-q2."""
    o1 = _orientation(p1, q1, p2)
    o2 = _orientation(p1, q1, q2)
    o3 = _orientation(p2, q2, p1)
    o4 = _orientation(p2, q2, q1)

    if o1 != o2 and o3 != o4:
        return True

    # Collinear cases
    if o1 == 0 and _on_segment(p1, p2, q1):
        return True
    if o2 == 0 and _on_segment(p1, q2, q1):
        return True
    if o3 == 0 and _on_segment(p2, p1, q2):
        return True
    if o4 == 0 and _on_segment(p2, q1, q2):
        return True

    return False
