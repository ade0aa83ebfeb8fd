"""Configuration for orthogonal edge editing and routing."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RoutingConfig:
    """Tunable constants shared by the edge editing services."""

    # Logical grid used for snapping dragged segments
    grid_size: float = 20.0
    min_segment_length: float = 40.0
    # Largest off-axis delta for a segment to still count as orthogonal
    orthogonal_tolerance: float = 2.0
    # Gap allowed between consecutive segments when merging collinear runs
    collinear_tolerance: float = 2.0
    # Distance from a handle beyond which an edge counts as disconnected
    connection_tolerance: float = 5.0
    # Pointer distance from a segment midpoint that still hits the segment
    hit_threshold: float = 15.0
    default_corner_radius: float = 8.0
    # Conservative ceiling on how far one drag may move a segment
    max_drag_distance: float = 500.0
    # Handle coordinates closer than this are aligned before routing
    alignment_tolerance: float = 6.0
    # Cross-product tolerance used when simplifying waypoints
    simplify_tolerance: float = 5.0
    # Routes memoised by OrthogonalRoutingEngine before the oldest is evicted
    path_cache_size: int = 256

    def __post_init__(self) -> None:
        if self.grid_size <= 0:
            raise ValueError(f"grid_size must be positive, got {self.grid_size}")

    @property
    def min_drag_distance(self) -> float:
        """Smallest meaningful drag: a quarter of the minimum segment length."""
        return self.min_segment_length / 4


DEFAULT_CONFIG = RoutingConfig()


@dataclass(frozen=True)
class PathfindingConfig:
    """Configuration for obstacle-aware grid routing."""

    grid_spacing: float = 20.0
    distance_weight: float = 1.0
    # Margin kept free around each obstacle, in grid cells
    node_margin: float = 1.0
    # Added cost for changing direction (prefer straight runs)
    turn_penalty: float = 2.0
    # Extra cells of routing space around the outermost obstacle
    bounds_padding: int = 3

    def __post_init__(self) -> None:
        if self.grid_spacing <= 0:
            raise ValueError(f"grid_spacing must be positive, got {self.grid_spacing}")
