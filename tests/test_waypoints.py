"""Tests for handle reconnection and waypoint cleanup."""

import pytest

from orthoedge.models import Point

from conftest import is_orthogonal

# Edge that leaves the source downwards and returns to the target's level:
#   (0,0) -> (0,100) -> (200,100) -> (200,0)
U_SOURCE = Point(0, 0)
U_TARGET = Point(200, 0)
U_CONTROL_POINTS = [Point(0, 100), Point(200, 100)]


# --- analyze_connection_impact ---


def test_moving_first_segment_detaches_source(manager, source, target):
    analysis = manager.analyze_connection_impact(
        0, Point(180, 150), [Point(200, 100)], source, target
    )

    assert analysis.would_disconnect
    assert analysis.affected_handles == ["source"]
    bridge = analysis.required_bridge_segments[0]
    assert bridge.id == "bridge-source-0"
    assert bridge.start == source
    assert bridge.end == Point(100, 150)


def test_moving_interior_segment_never_detaches(manager, control_points, source, target):
    analysis = manager.analyze_connection_impact(
        1, Point(220, 125), control_points, source, target
    )

    assert not analysis.would_disconnect
    assert analysis.affected_handles == []
    assert analysis.required_bridge_segments == []


def test_move_along_the_segment_keeps_connection(manager, control_points, source, target):
    # Only the perpendicular component of the move counts
    analysis = manager.analyze_connection_impact(
        0, Point(400, 102), control_points, source, target
    )
    assert not analysis.would_disconnect


def test_last_segment_detaches_target(manager):
    analysis = manager.analyze_connection_impact(
        2, Point(150, 50), U_CONTROL_POINTS, U_SOURCE, U_TARGET
    )

    assert analysis.affected_handles == ["target"]
    assert analysis.required_bridge_segments[0].id == "bridge-target-2"


def test_out_of_range_index_is_clamped_to_last_segment(manager, control_points, source, target):
    analysis = manager.analyze_connection_impact(
        99, Point(250, 215), control_points, source, target
    )
    assert analysis.affected_handles == ["target"]


def test_single_segment_edge_can_detach_both_handles(manager):
    analysis = manager.analyze_connection_impact(
        0, Point(100, 50), [], Point(0, 0), Point(200, 0)
    )
    assert analysis.affected_handles == ["source", "target"]


# --- insert_preservation_waypoints ---


def test_first_segment_move_inserts_source_bridge(manager, source, target):
    control_points = [Point(200, 100)]
    result = manager.insert_preservation_waypoints(
        0, Point(150, 150), control_points, source, target
    )

    assert result.requires_insertion
    assert result.inserted_waypoints == [Point(100, 150)]
    assert result.new_control_points == [Point(100, 150), Point(200, 150)]
    assert len(result.new_control_points) > len(control_points)
    assert result.modified_segments == ["segment-0", "segment-1"]


def test_interior_move_leaves_control_points_alone(manager, control_points, source, target):
    result = manager.insert_preservation_waypoints(
        1, Point(200, 130), control_points, source, target
    )

    assert not result.requires_insertion
    assert result.inserted_waypoints == []
    assert result.new_control_points == control_points


def test_terminal_vertical_segment_moved_horizontally_stays_orthogonal(manager):
    result = manager.insert_preservation_waypoints(
        2, Point(150, 50), U_CONTROL_POINTS, U_SOURCE, U_TARGET
    )

    assert result.requires_insertion
    assert result.new_control_points == [Point(0, 100), Point(150, 100), Point(150, 0)]
    assert is_orthogonal([U_SOURCE, *result.new_control_points, U_TARGET])


@pytest.mark.parametrize("x", [100, 50, 0, -50, -100, -150, -200])
def test_bridge_keeps_following_terminal_segment(manager, x):
    result = manager.insert_preservation_waypoints(
        2, Point(x, 50), U_CONTROL_POINTS, U_SOURCE, U_TARGET
    )

    assert result.requires_insertion
    assert len(result.new_control_points) == 3
    assert result.new_control_points[2].y == 0
    assert is_orthogonal([U_SOURCE, *result.new_control_points, U_TARGET])


def test_first_segment_drag_result_is_orthogonal(manager):
    source, target = Point(0, 0), Point(200, 100)
    control_points = [Point(100, 0), Point(100, 100)]

    result = manager.insert_preservation_waypoints(
        0, Point(50, -40), control_points, source, target
    )

    assert result.new_control_points == [Point(0, -40), Point(100, -40), Point(100, 100)]
    assert is_orthogonal([source, *result.new_control_points, target])


def test_single_segment_edge_gets_two_bridges(manager):
    source, target = Point(0, 0), Point(200, 0)
    result = manager.insert_preservation_waypoints(0, Point(100, 50), [], source, target)

    assert result.new_control_points == [Point(0, 50), Point(200, 50)]
    assert len(result.inserted_waypoints) == 2
    assert is_orthogonal([source, *result.new_control_points, target])


# --- simplify_waypoints ---


def test_simplify_removes_collinear_point(manager):
    simplified = manager.simplify_waypoints(
        [Point(150, 100), Point(200, 100), Point(250, 100), Point(250, 150)], 5
    )
    assert simplified == [Point(150, 100), Point(250, 100), Point(250, 150)]


def test_simplify_keeps_turns(manager):
    points = [Point(100, 100), Point(200, 100), Point(200, 200), Point(300, 200)]
    assert manager.simplify_waypoints(points, 5) == points


@pytest.mark.parametrize(
    "points",
    [
        [],
        [Point(0, 0)],
        [Point(0, 0), Point(10, 10)],
        [Point(0, 0), Point(1, 0), Point(2, 1), Point(3, 1), Point(4, 2)],
        [Point(0, 0), Point(50, 0), Point(100, 0), Point(100, 50), Point(100, 100)],
        [Point(0, 0), Point(2, 1), Point(4, 0), Point(6, 1), Point(8, 0), Point(100, 100)],
    ],
)
def test_simplify_is_idempotent(manager, points):
    once = manager.simplify_waypoints(points)
    assert manager.simplify_waypoints(once) == once


def test_simplify_keeps_endpoints(manager):
    points = [Point(0, 0), Point(50, 0.04), Point(100, 0)]
    assert manager.simplify_waypoints(points) == [Point(0, 0), Point(100, 0)]


def test_can_merge_waypoints(manager):
    assert manager.can_merge_waypoints(Point(100, 100), Point(150, 100), Point(200, 100), 5)
    assert not manager.can_merge_waypoints(Point(100, 100), Point(150, 100), Point(200, 150), 5)


# --- cleanup_waypoints ---


def test_cleanup_drops_points_without_direction_change(manager, source, target):
    cleaned = manager.cleanup_waypoints(
        [Point(150, 100), Point(200, 100), Point(250, 100), Point(250, 150)],
        source,
        target,
    )
    # (250,150) -> (300,200) is a tie and counts as vertical, like the leg before it
    assert cleaned == [Point(250, 100)]


def test_cleanup_keeps_every_turn(manager, source, target):
    control_points = [Point(150, 100), Point(150, 150), Point(250, 150)]
    assert manager.cleanup_waypoints(control_points, source, target) == control_points


def test_cleanup_differs_from_simplify(manager):
    # A shallow bend is kept by simplify (large cross product) but not by cleanup
    source, target = Point(0, 0), Point(200, 0)
    control_points = [Point(100, 20)]

    assert manager.simplify_waypoints([source, *control_points, target]) == [
        source,
        *control_points,
        target,
    ]
    assert manager.cleanup_waypoints(control_points, source, target) == []


def test_insertion_then_cleanup(manager):
    result = manager.insert_preservation_waypoints(
        2, Point(150, 50), U_CONTROL_POINTS, U_SOURCE, U_TARGET
    )
    assert result.requires_insertion

    cleaned = manager.cleanup_waypoints(result.new_control_points, U_SOURCE, U_TARGET)

    assert cleaned == result.new_control_points
    assert is_orthogonal([U_SOURCE, *cleaned, U_TARGET])


# --- move_segment ---

# Edge that overshoots to the right and doubles back along the same line:
#   (0,0) -> (100,0) -> (-150,0) -> (-150,-100) -> (-100,-100)
RUN_SOURCE = Point(0, 0)
RUN_TARGET = Point(-100, -100)
RUN_CONTROL_POINTS = [Point(100, 0), Point(-150, 0), Point(-150, -100)]


def test_first_segment_with_opposing_neighbour_stays_orthogonal(manager):
    result = manager.insert_preservation_waypoints(
        0, Point(50, 40), RUN_CONTROL_POINTS, RUN_SOURCE, RUN_TARGET
    )

    assert result.requires_insertion
    assert result.new_control_points == [
        Point(0, 40),
        Point(100, 40),
        Point(100, 0),
        Point(-150, 0),
        Point(-150, -100),
    ]
    assert is_orthogonal([RUN_SOURCE, *result.new_control_points, RUN_TARGET])


def test_move_segment_jogs_to_parallel_neighbour(manager):
    moved = manager.move_segment(1, Point(-25, 40), RUN_CONTROL_POINTS, RUN_SOURCE, RUN_TARGET)

    # (100,0) stays for the first segment; the turn at (-150,0) slides
    assert moved == [Point(100, 0), Point(100, 40), Point(-150, 40), Point(-150, -100)]
    assert is_orthogonal([RUN_SOURCE, *moved, RUN_TARGET])


def test_move_segment_slides_perpendicular_neighbours(manager, control_points, source, target):
    moved = manager.move_segment(1, Point(220, 125), control_points, source, target)
    assert moved == [Point(220, 100), Point(220, 150)]


def test_move_segment_without_offset_adds_nothing(manager):
    moved = manager.move_segment(1, Point(-25, 0), RUN_CONTROL_POINTS, RUN_SOURCE, RUN_TARGET)
    assert moved == RUN_CONTROL_POINTS


def test_has_parallel_neighbour(manager, control_points, source, target):
    assert manager.has_parallel_neighbour(1, RUN_CONTROL_POINTS, RUN_SOURCE, RUN_TARGET)
    assert manager.has_parallel_neighbour(0, RUN_CONTROL_POINTS, RUN_SOURCE, RUN_TARGET)
    assert not manager.has_parallel_neighbour(2, RUN_CONTROL_POINTS, RUN_SOURCE, RUN_TARGET)
    assert not manager.has_parallel_neighbour(1, control_points, source, target)
