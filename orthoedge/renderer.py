"""SVG preview of an edge and its segment drag handles using drawsvg."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

import drawsvg as draw

from .models import PathOptions
from .paths import PathCalculator
from .segments import SegmentDragHandler

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .models import EdgeSegment, NodeBounds, Point


class Theme:
    """Color theme for edge previews."""

    def __init__(
        self,
        background: str = "#ffffff",
        node_fill: str = "#f8fafc",
        node_stroke: str = "#cbd5e1",
        edge_color: str = "#64748b",
        handle_fill: str = "#ffffff",
        handle_stroke: str = "#64748b",
        accent_color: str = "#3b82f6",
    ):
        self.background = background
        self.node_fill = node_fill
        self.node_stroke = node_stroke
        self.edge_color = edge_color
        self.handle_fill = handle_fill
        self.handle_stroke = handle_stroke
        self.accent_color = accent_color


DEFAULT_THEME = Theme()


class EdgePreviewRenderer:
    """Renders one editable edge to an SVG Drawing."""

    def __init__(
        self,
        theme: Theme | None = None,
        path_calculator: PathCalculator | None = None,
        drag_handler: SegmentDragHandler | None = None,
        padding: float = 40,
        arrow_size: float = 8,
        handle_radius: float = 4,
    ):
        self.theme = theme or DEFAULT_THEME
        self.path_calculator = path_calculator or PathCalculator()
        self.drag_handler = drag_handler or SegmentDragHandler(self.path_calculator.config)
        self.padding = padding
        self.arrow_size = arrow_size
        self.handle_radius = handle_radius

    def render(
        self,
        source_point: Point,
        target_point: Point,
        control_points: Sequence[Point],
        options: PathOptions | None = None,
        active_segment_id: str | None = None,
        nodes: Sequence[NodeBounds] = (),
    ) -> draw.Drawing:
        """Render an edge with its segment handles.

        Args:
            source_point: Start of the edge
            target_point: End of the edge
            control_points: Interior waypoints
            options: Edge type and corner rounding
            active_segment_id: Segment currently being dragged, highlighted
            nodes: Node rectangles drawn underneath the edge

        Returns:
            drawsvg Drawing sized to fit the edge and nodes
        """
        options = options or PathOptions()
        points = [source_point, *control_points, target_point]

        min_x = min([p.x for p in points] + [n.x for n in nodes]) - self.padding
        min_y = min([p.y for p in points] + [n.y for n in nodes]) - self.padding
        max_x = max([p.x for p in points] + [n.x + n.width for n in nodes]) + self.padding
        max_y = max([p.y for p in points] + [n.y + n.height for n in nodes]) + self.padding
        width = max_x - min_x
        height = max_y - min_y

        # View box follows the content, which may sit at negative coordinates
        d = draw.Drawing(width, height, origin=(min_x, min_y))
        d.append(
            draw.Rectangle(min_x, min_y, width, height, fill=self.theme.background)
        )

        for node in nodes:
            d.append(
                draw.Rectangle(
                    node.x, node.y, node.width, node.height,
                    fill=self.theme.node_fill,
                    stroke=self.theme.node_stroke,
                    stroke_width=1,
                    rx=6, ry=6,
                )
            )

        d.append(
            self.path_calculator.build_path(
                points,
                options,
                stroke=self.theme.edge_color,
                stroke_width=1.5,
                fill="none",
            )
        )

        # Arrowhead follows the last non-degenerate leg
        before = next(
            (p for p in reversed(points[:-1]) if p != target_point), source_point
        )
        angle = math.atan2(target_point.y - before.y, target_point.x - before.x)
        self._draw_arrowhead(d, target_point.x, target_point.y, angle, self.arrow_size)

        segments = self.drag_handler.calculate_segments(
            control_points, source_point, target_point
        )
        for segment in segments:
            self._draw_segment_handle(d, segment, segment.id == active_segment_id)

        return d

    def _draw_segment_handle(
        self, d: draw.Drawing, segment: EdgeSegment, is_active: bool
    ) -> None:
        color = self.theme.accent_color if is_active else self.theme.handle_stroke
        d.append(
            draw.Circle(
                segment.midpoint.x,
                segment.midpoint.y,
                self.handle_radius,
                fill=color if is_active else self.theme.handle_fill,
                stroke=color,
                stroke_width=1.5,
                data_segment_id=segment.id,
            )
        )

    def _draw_arrowhead(
        self,
        d: draw.Drawing,
        x: float,
        y: float,
        angle: float,
        size: float,
    ) -> None:
        """Draw an arrowhead at the given position and angle."""
        p1_x = x - size * math.cos(angle - math.pi / 6)
        p1_y = y - size * math.sin(angle - math.pi / 6)
        p2_x = x - size * math.cos(angle + math.pi / 6)
        p2_y = y - size * math.sin(angle + math.pi / 6)

        d.append(
            draw.Lines(
                x, y,
                p1_x, p1_y,
                p2_x, p2_y,
                x, y,
                fill=self.theme.edge_color,
                stroke="none",
            )
        )


def render_edge_to_svg(
    source_point: Point,
    target_point: Point,
    control_points: Sequence[Point],
    options: PathOptions | None = None,
    active_segment_id: str | None = None,
    nodes: Sequence[NodeBounds] = (),
    filename: str | None = None,
) -> str:
    """Render an edge preview to SVG.

    Args:
        source_point: Start of the edge
        target_point: End of the edge
        control_points: Interior waypoints
        options: Edge type and corner rounding
        active_segment_id: Segment to highlight
        nodes: Node rectangles drawn underneath the edge
        filename: Optional filename to save to (without extension)

    Returns:
        SVG content as string
    """
    renderer = EdgePreviewRenderer()
    drawing = renderer.render(
        source_point,
        target_point,
        control_points,
        options,
        active_segment_id=active_segment_id,
        nodes=nodes,
    )

    if filename:
        drawing.save_svg(f"{filename}.svg")

    return drawing.as_svg()
