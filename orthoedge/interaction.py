"""Pointer-driven segment dragging for a single edge."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from .config import DEFAULT_CONFIG, RoutingConfig
from .constraints import OrthogonalConstraintEngine
from .geometry import points_from_segments, segment_index
from .paths import PathCalculator
from .segments import DragSession, SegmentDragHandler
from .waypoints import OrthogonalWaypointManager

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .models import (
        CalculatedPath,
        ConstraintValidationResult,
        EdgeSegment,
        PathOptions,
        Point,
        SegmentDragConstraints,
        SegmentDragState,
        WaypointInsertionResult,
    )

logger = logging.getLogger(__name__)


@dataclass
class DragPreview:
    """What to draw while a segment is being dragged."""

    control_points: list[Point]
    path: CalculatedPath
    validation: ConstraintValidationResult
    insertion: WaypointInsertionResult


@dataclass
class DragCommit:
    """Final waypoints of a finished drag, ready for an undo/redo command."""

    control_points: list[Point]
    state: SegmentDragState


class SegmentDragController:
    """Runs the drag gesture for one edge from pointer events.

    pointer_down hit-tests the segment midpoints, pointer_move returns a
    preview with constrained geometry and any bridge waypoints needed to
    keep the edge attached, and pointer_up commits. The controller owns
    its drag session, so each edge on a canvas gets its own controller.
    """

    def __init__(
        self,
        source_point: Point,
        target_point: Point,
        control_points: Sequence[Point],
        options: PathOptions | None = None,
        config: RoutingConfig | None = None,
    ):
        self.config = config or DEFAULT_CONFIG
        self.source_point = source_point
        self.target_point = target_point
        self.control_points = list(control_points)
        self.options = options

        self.handler = SegmentDragHandler(self.config)
        self.constraint_engine = OrthogonalConstraintEngine(self.config)
        self.waypoint_manager = OrthogonalWaypointManager(self.config)
        self.path_calculator = PathCalculator(self.config)

        self.session = DragSession()
        self._segment: EdgeSegment | None = None
        self._constraints: SegmentDragConstraints | None = None
        self._working_points: list[Point] = []
        self._preview: list[Point] | None = None
        self._bridged = False

    @property
    def segments(self) -> list[EdgeSegment]:
        return self.handler.calculate_segments(
            self.control_points, self.source_point, self.target_point
        )

    @property
    def is_dragging(self) -> bool:
        return self.handler.is_dragging(self.session)

    def pointer_down(self, point: Point) -> EdgeSegment | None:
        """Start dragging the segment under the pointer, if any."""
        # Collinear waypoints are folded away so segment ids index raw points
        working = points_from_segments(self.segments)[1:-1]
        segments = self.handler.calculate_segments(
            working, self.source_point, self.target_point
        )
        segment = self.handler.find_target_segment(point, segments)
        if segment is None:
            return None

        self._working_points = working
        self._segment = segment
        self._constraints = self.constraint_engine.calculate_segment_constraints(
            segment, segments, self.source_point, self.target_point
        )
        self._preview = None
        self._bridged = False
        self.session = self.handler.start_segment_drag(segment, point)
        return segment

    def pointer_move(self, point: Point) -> DragPreview | None:
        """Preview the edge with the active segment following the pointer."""
        segment, constraints = self._segment, self._constraints
        if segment is None or constraints is None:
            return None

        state = self.handler.update_segment_drag(self.session, point, segment, constraints)
        if state is None:
            return None

        # The handler already snapped the drag delta to the grid
        validation = self.constraint_engine.apply_movement_constraints(
            segment.midpoint,
            state.constrained_position,
            segment,
            replace(constraints, snap_to_grid=False),
        )
        new_midpoint = validation.adjusted_position

        index = segment_index(segment.id)
        insertion = self.waypoint_manager.insert_preservation_waypoints(
            index,
            new_midpoint,
            self._working_points,
            self.source_point,
            self.target_point,
        )
        if insertion.requires_insertion:
            preview = insertion.new_control_points
        elif self.waypoint_manager.has_parallel_neighbour(
            index, self._working_points, self.source_point, self.target_point
        ):
            # Parallel neighbours get a jog instead of sliding
            preview = self.waypoint_manager.move_segment(
                index,
                new_midpoint,
                self._working_points,
                self.source_point,
                self.target_point,
            )
        else:
            preview = self.handler.calculate_updated_control_points(
                self._working_points,
                segment,
                new_midpoint,
                self.source_point,
                self.target_point,
            )

        self._preview = preview
        self._bridged = insertion.requires_insertion
        return DragPreview(
            control_points=preview,
            path=self.path_calculator.calculate_path(
                self.source_point, self.target_point, preview, self.options
            ),
            validation=validation,
            insertion=insertion,
        )

    def pointer_up(self) -> DragCommit | None:
        """Finish the drag and adopt the previewed waypoints."""
        state = self.handler.end_segment_drag(self.session)
        if state is None:
            return None

        control_points = self.control_points if self._preview is None else self._preview
        if self._bridged:
            control_points = self.waypoint_manager.cleanup_waypoints(
                control_points, self.source_point, self.target_point
            )

        self.control_points = list(control_points)
        self._reset()
        logger.debug(
            "Committed drag of %s with %d waypoint(s)",
            state.segment_id,
            len(self.control_points),
        )
        return DragCommit(control_points=list(self.control_points), state=state)

    def cancel(self) -> None:
        """Abandon the drag; the edge keeps its previous waypoints."""
        self.handler.end_segment_drag(self.session)
        self._reset()

    def _reset(self) -> None:
        self._segment = None
        self._constraints = None
        self._working_points = []
        self._preview = None
        self._bridged = False
