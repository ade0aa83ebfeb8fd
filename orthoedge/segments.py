"""Segment decomposition and the segment drag gesture."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from .config import DEFAULT_CONFIG, RoutingConfig
from .geometry import (
    build_segments,
    distance,
    make_segment,
    midpoint,
    segment_index,
    snap_value,
)
from .models import Point, SegmentDragState

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .models import EdgeSegment, SegmentDragConstraints

logger = logging.getLogger(__name__)


@dataclass
class DragSession:
    """Caller-owned state of one segment drag gesture.

    Created by :meth:`SegmentDragHandler.start_segment_drag` and passed back
    into ``update_segment_drag`` / ``end_segment_drag``. Each editor keeps
    its own sessions, so independent edges can be dragged without sharing
    state.
    """

    state: SegmentDragState | None = None

    @property
    def is_active(self) -> bool:
        return self.state is not None


class SegmentDragHandler:
    """Turns an edge into draggable segments and drives the drag gesture."""

    def __init__(self, config: RoutingConfig | None = None):
        self.config = config or DEFAULT_CONFIG

    # ------------------------------------------------------------------
    # Segment decomposition
    # ------------------------------------------------------------------

    def calculate_segments(
        self,
        control_points: Sequence[Point],
        source_point: Point,
        target_point: Point,
    ) -> list[EdgeSegment]:
        """Calculate the logical segments of an edge.

        Builds one segment per consecutive pair of
        ``[source, *control_points, target]`` and then merges collinear runs
        that keep the same heading.

        Args:
            control_points: Interior waypoints
            source_point: Fixed start of the edge
            target_point: Fixed end of the edge

        Returns:
            Consolidated segments, ids ``segment-<index of first member>``
        """
        all_points = [source_point, *control_points, target_point]
        return self._consolidate_collinear_segments(build_segments(all_points))

    def _consolidate_collinear_segments(
        self, segments: list[EdgeSegment]
    ) -> list[EdgeSegment]:
        if len(segments) <= 1:
            return segments

        consolidated: list[EdgeSegment] = []
        group = [segments[0]]

        for segment in segments[1:]:
            if self._are_segments_collinear(group[-1], segment):
                group.append(segment)
            else:
                consolidated.append(self._merge_segment_group(group))
                group = [segment]

        consolidated.append(self._merge_segment_group(group))
        return consolidated

    def _are_segments_collinear(self, first: EdgeSegment, second: EdgeSegment) -> bool:
        if first.direction != second.direction:
            return False

        tolerance = self.config.collinear_tolerance
        is_connected = (
            abs(first.end.x - second.start.x) <= tolerance
            and abs(first.end.y - second.start.y) <= tolerance
        )
        if not is_connected:
            return False

        # A run that doubles back must stay two segments
        if not self._have_same_directional_sign(first, second):
            return False

        if first.direction == "horizontal":
            return abs(first.start.y - second.end.y) <= tolerance
        return abs(first.start.x - second.end.x) <= tolerance

    @staticmethod
    def _have_same_directional_sign(first: EdgeSegment, second: EdgeSegment) -> bool:
        if first.direction == "horizontal":
            delta1 = first.end.x - first.start.x
            delta2 = second.end.x - second.start.x
        else:
            delta1 = first.end.y - first.start.y
            delta2 = second.end.y - second.start.y

        # Zero-length pieces go either way
        if delta1 == 0 or delta2 == 0:
            return True
        return (delta1 > 0) == (delta2 > 0)

    @staticmethod
    def _merge_segment_group(group: list[EdgeSegment]) -> EdgeSegment:
        if len(group) == 1:
            return group[0]
        merged = make_segment(group[0].id, group[0].start, group[-1].end)
        # Keep the heading of the run even if the merged delta is degenerate
        return replace(merged, direction=group[0].direction)

    # ------------------------------------------------------------------
    # Hit testing
    # ------------------------------------------------------------------

    def is_near_segment_midpoint(
        self,
        point: Point,
        segment: EdgeSegment,
        threshold: float | None = None,
    ) -> bool:
        """Whether a pointer position is close enough to grab a segment."""
        if threshold is None:
            threshold = self.config.hit_threshold
        return distance(point, segment.midpoint) <= threshold

    def find_target_segment(
        self,
        mouse_point: Point,
        segments: Sequence[EdgeSegment],
    ) -> EdgeSegment | None:
        """First segment whose midpoint is within the hit threshold."""
        for segment in segments:
            if self.is_near_segment_midpoint(mouse_point, segment):
                return segment
        return None

    # ------------------------------------------------------------------
    # Drag gesture
    # ------------------------------------------------------------------

    def start_segment_drag(
        self,
        segment: EdgeSegment,
        mouse_position: Point,
    ) -> DragSession:
        """Begin dragging a segment and return the new session."""
        drag_offset = Point(
            mouse_position.x - segment.midpoint.x,
            mouse_position.y - segment.midpoint.y,
        )
        logger.debug("Start drag of %s at %s", segment.id, mouse_position)
        return DragSession(
            state=SegmentDragState(
                segment_id=segment.id,
                start_position=segment.midpoint,
                current_position=mouse_position,
                constrained_position=mouse_position,
                drag_offset=drag_offset,
            )
        )

    def update_segment_drag(
        self,
        session: DragSession,
        mouse_position: Point,
        segment: EdgeSegment,
        constraints: SegmentDragConstraints,
    ) -> SegmentDragState | None:
        """Move the dragged segment towards the pointer.

        Horizontal segments follow the pointer in y only, vertical segments
        in x only. With grid snapping the delta from the drag start, not the
        absolute position, is rounded to the grid.

        Returns:
            The updated state, or None when the session is not dragging
            this segment
        """
        state = session.state
        if state is None or state.segment_id != segment.id:
            return None

        grid = self.config.grid_size
        start = state.start_position

        if segment.direction == "horizontal":
            y = mouse_position.y - state.drag_offset.y
            if constraints.snap_to_grid:
                y = start.y + snap_value(y - start.y, grid)
            constrained = Point(segment.midpoint.x, y)
        else:
            x = mouse_position.x - state.drag_offset.x
            if constraints.snap_to_grid:
                x = start.x + snap_value(x - start.x, grid)
            constrained = Point(x, segment.midpoint.y)

        session.state = replace(
            state,
            current_position=mouse_position,
            constrained_position=constrained,
        )
        return session.state

    def end_segment_drag(self, session: DragSession) -> SegmentDragState | None:
        """Finish the gesture; the returned state is what gets committed."""
        final_state = session.state
        session.state = None
        if final_state is not None:
            logger.debug(
                "End drag of %s at %s",
                final_state.segment_id,
                final_state.constrained_position,
            )
        return final_state

    @staticmethod
    def get_current_drag_state(session: DragSession) -> SegmentDragState | None:
        return session.state

    @staticmethod
    def is_dragging(session: DragSession) -> bool:
        return session.is_active

    # ------------------------------------------------------------------
    # Applying a drag
    # ------------------------------------------------------------------

    def calculate_updated_control_points(
        self,
        original_control_points: Sequence[Point],
        dragged_segment: EdgeSegment,
        new_midpoint: Point,
        source_point: Point,
        target_point: Point,
    ) -> list[Point]:
        """Translate the waypoints of a dragged segment.

        Only the waypoints at the ends of the segment (and any collinear
        waypoints merged into it) move, and only along the axis
        perpendicular to the segment. Source and target stay fixed.

        Args:
            original_control_points: Waypoints before the drag
            dragged_segment: Segment as returned by calculate_segments
            new_midpoint: Constrained midpoint after the drag
            source_point: Fixed start of the edge
            target_point: Fixed end of the edge

        Returns:
            New list of waypoints (the input is not modified)
        """
        all_points = [source_point, *original_control_points, target_point]
        requested = segment_index(dragged_segment.id)
        if requested == -1:
            return list(original_control_points)

        start_idx = min(requested, max(0, len(all_points) - 2))
        end_idx = self._span_end_index(all_points, start_idx, dragged_segment.end)

        original_mid = midpoint(all_points[start_idx], all_points[end_idx])
        if dragged_segment.direction == "vertical":
            dx, dy = new_midpoint.x - original_mid.x, 0.0
        else:
            dx, dy = 0.0, new_midpoint.y - original_mid.y

        updated = list(all_points)
        last = len(updated) - 1
        for i in range(start_idx, end_idx + 1):
            if 0 < i < last:
                updated[i] = updated[i].translate(dx, dy)

        return updated[1:-1]

    def _span_end_index(
        self,
        all_points: list[Point],
        start_idx: int,
        segment_end: Point,
    ) -> int:
        """Index of the raw point where a (possibly merged) segment ends."""
        tolerance = self.config.collinear_tolerance
        for j in range(start_idx + 1, len(all_points)):
            candidate = all_points[j]
            if (
                abs(candidate.x - segment_end.x) <= tolerance
                and abs(candidate.y - segment_end.y) <= tolerance
            ):
                return j
        return min(start_idx + 1, len(all_points) - 1)
