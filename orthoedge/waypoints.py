"""Keeps dragged edges attached to their handles and free of redundant bends."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .config import DEFAULT_CONFIG, RoutingConfig
from .geometry import (
    cross_product,
    distance,
    make_segment,
    midpoint,
    perpendicular_offset,
    segment_direction,
)
from .models import ConnectionAnalysis, Point, WaypointInsertionResult

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .models import EdgeSegment, HandleType, SegmentDirection

logger = logging.getLogger(__name__)


class OrthogonalWaypointManager:
    """Reconnection and cleanup of edge waypoints."""

    def __init__(self, config: RoutingConfig | None = None):
        self.config = config or DEFAULT_CONFIG

    def analyze_connection_impact(
        self,
        segment_index: int,
        new_midpoint: Point,
        control_points: Sequence[Point],
        source_point: Point,
        target_point: Point,
    ) -> ConnectionAnalysis:
        """Predict whether moving a segment would detach a handle.

        Only the first segment touches the source and only the last one
        touches the target; moving an interior segment never disconnects.

        Args:
            segment_index: Raw index of the segment in the full point list
            new_midpoint: Where the segment midpoint is being dragged
            control_points: Current waypoints
            source_point: Source handle position
            target_point: Target handle position

        Returns:
            Affected handles and the bridge segments that would fix them
        """
        all_points = [source_point, *control_points, target_point]
        index = self._clamp_index(segment_index, all_points)
        last_index = len(all_points) - 2
        moved_start, moved_end = self._moved_segment(all_points, index, new_midpoint)

        affected: list[HandleType] = []
        if index == 0 and self._is_detached(moved_start, source_point):
            affected.append("source")
        if index == last_index and self._is_detached(moved_end, target_point):
            affected.append("target")

        bridges: list[EdgeSegment] = []
        for handle in affected:
            if handle == "source":
                bridges.append(
                    make_segment(f"bridge-source-{index}", source_point, moved_start)
                )
            else:
                bridges.append(
                    make_segment(f"bridge-target-{index}", moved_end, target_point)
                )

        return ConnectionAnalysis(
            would_disconnect=bool(affected),
            affected_handles=affected,
            required_bridge_segments=bridges,
        )

    def insert_preservation_waypoints(
        self,
        segment_index: int,
        new_midpoint: Point,
        control_points: Sequence[Point],
        source_point: Point,
        target_point: Point,
    ) -> WaypointInsertionResult:
        """Insert bridge waypoints so a dragged end segment stays attached.

        When nothing would disconnect, the control points come back as
        given and ``requires_insertion`` is False. Otherwise the result
        already contains the moved segment, built as in :meth:`move_segment`,
        and one bridge waypoint per detached handle is placed on
        the dominant axis between the handle and the moved segment end.
        """
        analysis = self.analyze_connection_impact(
            segment_index, new_midpoint, control_points, source_point, target_point
        )
        if not analysis.would_disconnect:
            return WaypointInsertionResult(
                new_control_points=list(control_points),
                requires_insertion=False,
            )

        all_points = [source_point, *control_points, target_point]
        index = self._clamp_index(segment_index, all_points)
        moved_start, moved_end = self._moved_segment(all_points, index, new_midpoint)
        updated = self._translate_segment(all_points, index, new_midpoint)

        inserted: list[Point] = []
        modified: list[str] = []

        if "source" in analysis.affected_handles:
            bridge = self._orthogonal_bridge_point(source_point, moved_start)
            updated.insert(1, bridge)
            inserted.append(bridge)
            modified.extend(["segment-0", "segment-1"])

        if "target" in analysis.affected_handles:
            bridge = self._orthogonal_bridge_point(target_point, moved_end)
            updated.insert(len(updated) - 1, bridge)
            inserted.append(bridge)
            last = len(updated) - 2
            modified.extend([f"segment-{last - 1}", f"segment-{last}"])

        logger.debug(
            "Inserted %d bridge waypoint(s) for %s",
            len(inserted),
            ", ".join(analysis.affected_handles),
        )
        return WaypointInsertionResult(
            new_control_points=updated[1:-1],
            inserted_waypoints=inserted,
            modified_segments=modified,
            requires_insertion=True,
        )

    def move_segment(
        self,
        segment_index: int,
        new_midpoint: Point,
        control_points: Sequence[Point],
        source_point: Point,
        target_point: Point,
    ) -> list[Point]:
        """Translate one segment perpendicular to itself.

        A neighbour that turns off the segment simply slides with the
        shared waypoint. A neighbour running parallel to it cannot, so the
        shared waypoint stays where it is and the moved end reaches it
        through a perpendicular jog. Handles never move.
        """
        all_points = [source_point, *control_points, target_point]
        index = self._clamp_index(segment_index, all_points)
        return self._translate_segment(all_points, index, new_midpoint)[1:-1]

    def has_parallel_neighbour(
        self,
        segment_index: int,
        control_points: Sequence[Point],
        source_point: Point,
        target_point: Point,
    ) -> bool:
        """Whether an interior waypoint of the segment joins a parallel segment."""
        all_points = [source_point, *control_points, target_point]
        index = self._clamp_index(segment_index, all_points)
        start, end = all_points[index], all_points[index + 1]
        direction = segment_direction(start, end)

        if index > 0 and self._runs_parallel(all_points[index - 1], start, direction):
            return True
        return index + 2 < len(all_points) and self._runs_parallel(
            end, all_points[index + 2], direction
        )

    def simplify_waypoints(
        self,
        control_points: Sequence[Point],
        tolerance: float | None = None,
    ) -> list[Point]:
        """Drop waypoints lying on the line through their neighbours.

        The first and last points are always kept. Passes repeat until
        nothing changes, so simplifying twice gives the same result.
        """
        if tolerance is None:
            tolerance = self.config.simplify_tolerance

        points = list(control_points)
        while len(points) > 2:
            simplified = [points[0]]
            for i in range(1, len(points) - 1):
                if not self.can_merge_waypoints(
                    simplified[-1], points[i], points[i + 1], tolerance
                ):
                    simplified.append(points[i])
            simplified.append(points[-1])

            if len(simplified) == len(points):
                break
            points = simplified

        return points

    def can_merge_waypoints(
        self,
        point_a: Point,
        point_b: Point,
        point_c: Point,
        tolerance: float | None = None,
    ) -> bool:
        """Whether b is collinear with a and c within tolerance."""
        if tolerance is None:
            tolerance = self.config.simplify_tolerance
        return cross_product(point_a, point_b, point_c) <= tolerance

    def cleanup_waypoints(
        self,
        control_points: Sequence[Point],
        source_point: Point,
        target_point: Point,
    ) -> list[Point]:
        """Keep only waypoints where the edge actually turns.

        Unlike simplify_waypoints this compares dominant directions, so a
        waypoint that bends the edge slightly without changing its heading
        is removed too.
        """
        all_points = [source_point, *control_points, target_point]
        cleaned: list[Point] = []

        for i in range(1, len(all_points) - 1):
            prev_direction = segment_direction(all_points[i - 1], all_points[i])
            next_direction = segment_direction(all_points[i], all_points[i + 1])
            if prev_direction != next_direction:
                cleaned.append(all_points[i])

        return cleaned

    # ------------------------------------------------------------------

    @staticmethod
    def _clamp_index(segment_index: int, all_points: list[Point]) -> int:
        return min(max(0, segment_index), max(0, len(all_points) - 2))

    @staticmethod
    def _moved_segment(
        all_points: list[Point],
        index: int,
        new_midpoint: Point,
    ) -> tuple[Point, Point]:
        start, end = all_points[index], all_points[index + 1]
        dx, dy = perpendicular_offset(
            segment_direction(start, end), midpoint(start, end), new_midpoint
        )
        return start.translate(dx, dy), end.translate(dx, dy)

    def _translate_segment(
        self,
        all_points: list[Point],
        index: int,
        new_midpoint: Point,
    ) -> list[Point]:
        start, end = all_points[index], all_points[index + 1]
        direction = segment_direction(start, end)
        moved_start, moved_end = self._moved_segment(all_points, index, new_midpoint)

        before = all_points[: index + 1]
        after = all_points[index + 1 :]

        if index > 0 and moved_start != start:
            if self._runs_parallel(all_points[index - 1], start, direction):
                before.append(moved_start)
            else:
                before[-1] = moved_start

        if index + 2 < len(all_points) and moved_end != end:
            if self._runs_parallel(end, all_points[index + 2], direction):
                after.insert(0, moved_end)
            else:
                after[0] = moved_end

        return before + after

    @staticmethod
    def _runs_parallel(a: Point, b: Point, direction: SegmentDirection) -> bool:
        return a != b and segment_direction(a, b) == direction

    def _is_detached(self, segment_end: Point, handle: Point) -> bool:
        return distance(segment_end, handle) > self.config.connection_tolerance

    @staticmethod
    def _orthogonal_bridge_point(handle: Point, segment_end: Point) -> Point:
        if abs(segment_end.x - handle.x) > abs(segment_end.y - handle.y):
            return Point(segment_end.x, handle.y)
        return Point(handle.x, segment_end.y)

