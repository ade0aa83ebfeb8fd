"""SVG path construction for edges."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Any

import drawsvg as draw

from .config import DEFAULT_CONFIG, RoutingConfig
from .geometry import (
    build_segments,
    make_segment,
    perpendicular_offset,
    points_from_segments,
)
from .models import CalculatedPath, PathOptions, Point

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .models import EdgeSegment


def _num(value: float) -> float | int:
    """Whole numbers without a trailing ``.0``; others at full precision."""
    if float(value).is_integer():
        return int(value)
    return value


class PathCalculator:
    """Turns edge geometry into SVG path data.

    Stateless apart from configuration; a default corner radius applies
    when the options do not specify one.
    """

    def __init__(self, config: RoutingConfig | None = None):
        self.config = config or DEFAULT_CONFIG

    def calculate_path(
        self,
        source_point: Point,
        target_point: Point,
        control_points: Sequence[Point],
        options: PathOptions | None = None,
    ) -> CalculatedPath:
        """Calculate the drawable path of an edge.

        Args:
            source_point: Start of the edge
            target_point: End of the edge
            control_points: Interior waypoints
            options: Edge type and corner rounding

        Returns:
            Path data, raw segments, total length and the waypoints
        """
        options = options or PathOptions()
        all_points = [source_point, *control_points, target_point]
        segments = build_segments(all_points)

        return CalculatedPath(
            svg_path=self.build_path(all_points, options).args["d"],
            segments=segments,
            total_length=sum(s.length for s in segments),
            waypoints=list(control_points),
        )

    def calculate_segment_based_path(
        self,
        segments: Sequence[EdgeSegment],
        options: PathOptions | None = None,
    ) -> str:
        """Path data for an edge already split into segments."""
        if not segments:
            return ""
        points = points_from_segments(segments)
        return self.build_path(points, options or PathOptions()).args["d"]

    def update_path_after_segment_drag(
        self,
        original_segments: Sequence[EdgeSegment],
        dragged_segment_id: str,
        new_midpoint: Point,
        options: PathOptions | None = None,
    ) -> CalculatedPath:
        """Re-path an edge after one of its segments moved.

        The dragged segment moves only along its perpendicular axis; its
        neighbours are stretched to stay attached. Unknown ids leave the
        geometry unchanged.
        """
        options = options or PathOptions()
        updated = self._update_segment_position(
            original_segments, dragged_segment_id, new_midpoint
        )
        all_points = points_from_segments(updated)

        return CalculatedPath(
            svg_path=self.calculate_segment_based_path(updated, options),
            segments=updated,
            total_length=sum(s.length for s in updated),
            waypoints=all_points[1:-1],
        )

    @staticmethod
    def calculate_segment_midpoints(segments: Sequence[EdgeSegment]) -> list[Point]:
        """Midpoints used as drag handles."""
        return [segment.midpoint for segment in segments]

    @staticmethod
    def extract_control_points_from_segments(
        segments: Sequence[EdgeSegment],
    ) -> list[Point]:
        """Interior points of a segment chain."""
        if not segments:
            return []
        return points_from_segments(segments)[1:-1]

    # ------------------------------------------------------------------
    # Path emission
    # ------------------------------------------------------------------

    def build_path(
        self,
        points: Sequence[Point],
        options: PathOptions,
        **attrs: Any,
    ) -> draw.Path:
        """Build a ``drawsvg.Path`` for a point list.

        ``straight`` joins the points with lines, ``rounded`` rounds every
        interior corner and ``orthogonal`` rounds them only when
        ``options.rounded`` is set. Extra keyword arguments become SVG
        attributes of the path element.
        """
        path = draw.Path(**attrs)
        if len(points) < 2:
            return path

        round_corners = options.edge_type == "rounded" or (
            options.edge_type == "orthogonal" and options.rounded
        )
        radius = options.corner_radius or self.config.default_corner_radius

        path.M(_num(points[0].x), _num(points[0].y))
        for i in range(1, len(points)):
            point = points[i]
            if round_corners and i < len(points) - 1:
                self._append_rounded_corner(
                    path, points[i - 1], point, points[i + 1], radius
                )
            else:
                path.L(_num(point.x), _num(point.y))

        return path

    @staticmethod
    def _append_rounded_corner(
        path: draw.Path,
        prev_point: Point,
        corner: Point,
        next_point: Point,
        radius: float,
    ) -> None:
        """Line up to the corner, then a quadratic curve around it."""
        v1x, v1y = corner.x - prev_point.x, corner.y - prev_point.y
        v2x, v2y = next_point.x - corner.x, next_point.y - corner.y
        len1 = math.hypot(v1x, v1y)
        len2 = math.hypot(v2x, v2y)

        if len1 == 0 or len2 == 0:
            path.L(_num(corner.x), _num(corner.y))
            return

        v1x, v1y = v1x / len1, v1y / len1
        v2x, v2y = v2x / len2, v2y / len2

        # Limited by the neighbouring segments so adjacent corners never overlap
        effective = min(radius, len1 / 2, len2 / 2)

        arc_start = (corner.x - v1x * effective, corner.y - v1y * effective)
        arc_end = (corner.x + v2x * effective, corner.y + v2y * effective)

        path.L(_num(arc_start[0]), _num(arc_start[1]))
        path.Q(
            _num(corner.x), _num(corner.y),
            _num(arc_end[0]), _num(arc_end[1]),
        )

    # ------------------------------------------------------------------

    @staticmethod
    def _update_segment_position(
        segments: Sequence[EdgeSegment],
        dragged_segment_id: str,
        new_midpoint: Point,
    ) -> list[EdgeSegment]:
        index = next(
            (i for i, s in enumerate(segments) if s.id == dragged_segment_id), -1
        )
        if index == -1:
            return list(segments)

        original = segments[index]
        dx, dy = perpendicular_offset(original.direction, original.midpoint, new_midpoint)
        moved_start = original.start.translate(dx, dy)
        moved_end = original.end.translate(dx, dy)

        updated = list(segments)
        updated[index] = make_segment(original.id, moved_start, moved_end)

        if index > 0:
            prev = updated[index - 1]
            updated[index - 1] = make_segment(prev.id, prev.start, moved_start)
        if index < len(updated) - 1:
            nxt = updated[index + 1]
            updated[index + 1] = make_segment(nxt.id, moved_end, nxt.end)

        return updated

