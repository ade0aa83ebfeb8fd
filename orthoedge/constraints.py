"""Orthogonality rules for segment movement and whole paths."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from .config import DEFAULT_CONFIG, RoutingConfig
from .geometry import distance, normalize, segments_intersect, snap_to_grid
from .models import (
    ConstraintValidationResult,
    CorrectionSuggestion,
    IntersectionReport,
    OrthogonalValidation,
    Point,
    SegmentDragConstraints,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .models import EdgeSegment, MovementAxis, MovementConstraint

logger = logging.getLogger(__name__)


class OrthogonalConstraintEngine:
    """Applies and audits the orthogonal movement rules.

    Every check is advisory: results carry the adjusted geometry together
    with the names of the rules that had to be enforced, and nothing here
    raises for bad geometry.
    """

    def __init__(self, config: RoutingConfig | None = None):
        self.config = config or DEFAULT_CONFIG

    def apply_movement_constraints(
        self,
        original_position: Point,
        proposed_position: Point,
        segment: EdgeSegment,
        constraints: MovementConstraint,
    ) -> ConstraintValidationResult:
        """Constrain a proposed segment midpoint.

        The axis parallel to the segment is locked first, then the grid
        snap is applied, then the distance from the original position is
        checked against ``min_distance`` and clamped to ``max_distance``.

        Args:
            original_position: Midpoint before the move
            proposed_position: Midpoint the pointer asks for
            segment: The segment being moved
            constraints: Movement rules for this segment

        Returns:
            Adjusted position plus violated rule names and user hints
        """
        adjusted = proposed_position
        violated: list[str] = []
        suggestions: list[str] = []

        if constraints.axis != "both":
            if segment.direction == "horizontal":
                adjusted = Point(original_position.x, adjusted.y)
                if proposed_position.x != original_position.x:
                    violated.append("horizontal-segment-x-movement")
                    suggestions.append("Horizontal segments can only move up or down")
            else:
                adjusted = Point(adjusted.x, original_position.y)
                if proposed_position.y != original_position.y:
                    violated.append("vertical-segment-y-movement")
                    suggestions.append("Vertical segments can only move left or right")

        if constraints.snap_to_grid:
            adjusted = snap_to_grid(adjusted, self.config.grid_size)

        if constraints.min_distance is not None:
            if distance(original_position, adjusted) < constraints.min_distance:
                violated.append("minimum-distance")
                suggestions.append(
                    f"Movement must be at least {constraints.min_distance:g}px"
                )

        if constraints.max_distance is not None:
            moved = distance(original_position, adjusted)
            if moved > constraints.max_distance:
                ux, uy = normalize(
                    adjusted.x - original_position.x,
                    adjusted.y - original_position.y,
                )
                adjusted = Point(
                    original_position.x + ux * constraints.max_distance,
                    original_position.y + uy * constraints.max_distance,
                )
                violated.append("maximum-distance")
                suggestions.append(
                    f"Movement limited to {constraints.max_distance:g}px"
                )

        if violated:
            logger.debug("Constraints adjusted %s: %s", segment.id, ", ".join(violated))

        return ConstraintValidationResult(
            is_valid=not violated,
            adjusted_position=adjusted,
            violated_constraints=violated,
            suggestions=suggestions,
        )

    def validate_orthogonal_path(
        self,
        control_points: Sequence[Point],
        source_point: Point,
        target_point: Point,
    ) -> OrthogonalValidation:
        """List every segment of the edge that is not axis-aligned."""
        all_points = [source_point, *control_points, target_point]
        non_orthogonal: list[str] = []
        corrections: list[CorrectionSuggestion] = []

        for i in range(len(all_points) - 1):
            start, end = all_points[i], all_points[i + 1]
            if not self._is_orthogonal_segment(start, end):
                segment_id = f"segment-{i}"
                non_orthogonal.append(segment_id)
                corrections.append(
                    CorrectionSuggestion(
                        segment_id=segment_id,
                        suggested_fix=self._orthogonal_correction(start, end),
                    )
                )

        return OrthogonalValidation(
            is_orthogonal=not non_orthogonal,
            non_orthogonal_segments=non_orthogonal,
            correction_suggestions=corrections,
        )

    def enforce_orthogonal_constraints(
        self,
        control_points: Sequence[Point],
        source_point: Point,
        target_point: Point,
    ) -> list[Point]:
        """Snap each non-orthogonal segment end onto its start's dominant axis.

        Corrections are applied front to back so each fix is seen by the
        next segment. Only interior points are returned.
        """
        corrected = [source_point, *control_points, target_point]

        for i in range(len(corrected) - 1):
            start, end = corrected[i], corrected[i + 1]
            if not self._is_orthogonal_segment(start, end):
                corrected[i + 1] = self._orthogonal_correction(start, end)

        return corrected[1:-1]

    def calculate_segment_constraints(
        self,
        segment: EdgeSegment,
        all_segments: Sequence[EdgeSegment],
        source_point: Point,
        target_point: Point,
    ) -> SegmentDragConstraints:
        """Movement rules for dragging one segment."""
        axis: MovementAxis = "y" if segment.direction == "horizontal" else "x"
        return SegmentDragConstraints(
            axis=axis,
            snap_to_grid=True,
            preserve_length=False,
            min_distance=self.config.min_drag_distance,
            max_distance=self._max_allowed_distance(segment, all_segments),
        )

    def validate_segment_movement(
        self,
        segment_id: str,
        new_midpoint: Point,
        all_segments: Sequence[EdgeSegment],
        source_point: Point,
        target_point: Point,
    ) -> ConstraintValidationResult:
        """Check a proposed move of the segment with the given id."""
        segment = self._find_segment(segment_id, all_segments)
        if segment is None:
            return ConstraintValidationResult(
                is_valid=False,
                adjusted_position=new_midpoint,
                violated_constraints=["segment-not-found"],
                suggestions=["Invalid segment ID"],
            )

        constraints = self.calculate_segment_constraints(
            segment, all_segments, source_point, target_point
        )
        return self.apply_movement_constraints(
            segment.midpoint, new_midpoint, segment, constraints
        )

    def check_path_intersections(
        self,
        segment_id: str,
        new_midpoint: Point,
        all_segments: Sequence[EdgeSegment],
    ) -> IntersectionReport:
        """Find segments a moved segment would touch or cross.

        The segment is translated so that its midpoint lands on
        ``new_midpoint``. Unknown ids give an empty report.
        """
        segment = self._find_segment(segment_id, all_segments)
        if segment is None:
            return IntersectionReport(has_intersections=False)

        dx = new_midpoint.x - segment.midpoint.x
        dy = new_midpoint.y - segment.midpoint.y
        moved = replace(
            segment,
            start=segment.start.translate(dx, dy),
            end=segment.end.translate(dx, dy),
            midpoint=new_midpoint,
        )

        intersecting = [
            other.id
            for other in all_segments
            if other.id != segment_id
            and segments_intersect(moved.start, moved.end, other.start, other.end)
        ]
        return IntersectionReport(
            has_intersections=bool(intersecting),
            intersecting_segments=intersecting,
        )

    # ------------------------------------------------------------------

    @staticmethod
    def _find_segment(
        segment_id: str, segments: Sequence[EdgeSegment]
    ) -> EdgeSegment | None:
        return next((s for s in segments if s.id == segment_id), None)

    def _is_orthogonal_segment(self, start: Point, end: Point) -> bool:
        tolerance = self.config.orthogonal_tolerance
        return abs(end.x - start.x) <= tolerance or abs(end.y - start.y) <= tolerance

    @staticmethod
    def _orthogonal_correction(start: Point, end: Point) -> Point:
        if abs(end.x - start.x) > abs(end.y - start.y):
            return Point(end.x, start.y)
        return Point(start.x, end.y)

    def _max_allowed_distance(
        self, segment: EdgeSegment, all_segments: Sequence[EdgeSegment]
    ) -> float:
        # TODO: derive from the positions of neighbouring nodes once the
        # host passes obstacle bounds into the drag.
        return self.config.max_drag_distance
