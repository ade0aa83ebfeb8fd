"""orthoedge - Orthogonal edge routing and segment dragging for diagram editors.

Example usage:
    from orthoedge import Point, SegmentDragController

    edge = SegmentDragController(
        source_point=Point(100, 100),
        target_point=Point(300, 200),
        control_points=[Point(200, 100), Point(200, 150)],
    )
    edge.pointer_down(Point(200, 125))
    preview = edge.pointer_move(Point(220, 125))
    commit = edge.pointer_up()
    print(commit.control_points)  # [Point(x=220.0, y=100.0), Point(x=220.0, y=150.0)]
"""

from .config import (
    DEFAULT_CONFIG,
    PathfindingConfig,
    RoutingConfig,
)
from .constraints import OrthogonalConstraintEngine
from .interaction import (
    DragCommit,
    DragPreview,
    SegmentDragController,
)
from .models import (
    CalculatedPath,
    ConnectionAnalysis,
    ConstraintValidationResult,
    EdgeSegment,
    HandleInfo,
    MovementConstraint,
    NodeBounds,
    NodeInfo,
    OrthogonalPath,
    PathOptions,
    Point,
    SegmentDragConstraints,
    SegmentDragState,
    WaypointInsertionResult,
)
from .paths import PathCalculator
from .pathfinding import (
    VirtualGrid,
    route_around_obstacles,
)
from .renderer import (
    DEFAULT_THEME,
    EdgePreviewRenderer,
    Theme,
    render_edge_to_svg,
)
from .routing import (
    HandleSelectionService,
    OrthogonalRoutingEngine,
)
from .segments import (
    DragSession,
    SegmentDragHandler,
)
from .waypoints import OrthogonalWaypointManager

__version__ = "0.1.0"

__all__ = [
    # Editing services
    "SegmentDragHandler",
    "DragSession",
    "OrthogonalConstraintEngine",
    "OrthogonalWaypointManager",
    "PathCalculator",
    # Interaction
    "SegmentDragController",
    "DragPreview",
    "DragCommit",
    # Routing
    "OrthogonalRoutingEngine",
    "HandleSelectionService",
    "VirtualGrid",
    "route_around_obstacles",
    # Models
    "Point",
    "EdgeSegment",
    "SegmentDragState",
    "SegmentDragConstraints",
    "MovementConstraint",
    "ConstraintValidationResult",
    "ConnectionAnalysis",
    "WaypointInsertionResult",
    "PathOptions",
    "CalculatedPath",
    "NodeBounds",
    "HandleInfo",
    "NodeInfo",
    "OrthogonalPath",
    # Configuration
    "RoutingConfig",
    "PathfindingConfig",
    "DEFAULT_CONFIG",
    # Rendering
    "render_edge_to_svg",
    "EdgePreviewRenderer",
    "Theme",
    "DEFAULT_THEME",
    # Version
    "__version__",
]
