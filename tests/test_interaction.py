"""End-to-end tests for the pointer-driven drag controller."""

import pytest

from orthoedge.interaction import SegmentDragController
from orthoedge.models import Point

from conftest import is_orthogonal


@pytest.fixture
def controller(source, target, control_points):
    return SegmentDragController(source, target, control_points)


@pytest.fixture
def u_controller():
    # (0,0) -> (0,100) -> (200,100) -> (200,0)
    return SegmentDragController(Point(0, 0), Point(200, 0), [Point(0, 100), Point(200, 100)])


def test_drag_vertical_segment(controller):
    segment = controller.pointer_down(Point(200, 125))
    assert segment.id == "segment-1"
    assert controller.is_dragging

    preview = controller.pointer_move(Point(220, 125))
    assert preview.control_points == [Point(220, 100), Point(220, 150)]
    assert preview.validation.is_valid
    assert not preview.insertion.requires_insertion
    assert preview.path.waypoints == preview.control_points

    commit = controller.pointer_up()

    assert commit.control_points == [Point(220, 100), Point(220, 150)]
    assert commit.state.segment_id == "segment-1"
    assert controller.control_points == commit.control_points
    assert not controller.is_dragging


def test_drag_delta_snaps_to_grid(controller):
    controller.pointer_down(Point(200, 125))

    preview = controller.pointer_move(Point(227, 140))

    # 27px rounds to one 20px grid step; y is locked for a vertical segment
    assert preview.control_points == [Point(220, 100), Point(220, 150)]


def test_tiny_move_reports_minimum_distance(controller, control_points):
    controller.pointer_down(Point(200, 125))

    preview = controller.pointer_move(Point(205, 125))

    assert not preview.validation.is_valid
    assert "minimum-distance" in preview.validation.violated_constraints
    assert preview.control_points == control_points


def test_pointer_down_away_from_handles(controller):
    assert controller.pointer_down(Point(0, 0)) is None
    assert not controller.is_dragging
    assert controller.pointer_move(Point(10, 10)) is None
    assert controller.pointer_up() is None


def test_cancel_keeps_waypoints(controller, control_points):
    controller.pointer_down(Point(200, 125))
    controller.pointer_move(Point(260, 125))

    controller.cancel()

    assert controller.control_points == control_points
    assert not controller.is_dragging
    assert controller.pointer_up() is None


def test_first_segment_drag_inserts_source_bridge(controller, source):
    controller.pointer_down(Point(150, 100))

    preview = controller.pointer_move(Point(150, 140))

    assert preview.insertion.requires_insertion
    assert preview.insertion.inserted_waypoints == [Point(100, 140)]
    assert preview.control_points[0] == Point(100, 140)

    commit = controller.pointer_up()
    assert commit.control_points == [Point(100, 140), Point(200, 140), Point(200, 150)]


def test_last_segment_drag_stays_orthogonal(u_controller):
    assert u_controller.pointer_down(Point(200, 50)).id == "segment-2"

    u_controller.pointer_move(Point(150, 50))
    commit = u_controller.pointer_up()

    assert commit.control_points == [Point(0, 100), Point(160, 100), Point(160, 0)]
    assert is_orthogonal([Point(0, 0), *commit.control_points, Point(200, 0)])


def test_collinear_waypoints_are_folded_before_drag(source, target):
    controller = SegmentDragController(
        source, target, [Point(150, 100), Point(200, 100), Point(200, 150)]
    )

    assert controller.pointer_down(Point(200, 125)).id == "segment-1"
    controller.pointer_move(Point(220, 125))
    commit = controller.pointer_up()

    assert commit.control_points == [Point(220, 100), Point(220, 150)]


def test_controllers_do_not_share_drag_state(source, target, control_points):
    first = SegmentDragController(source, target, control_points)
    second = SegmentDragController(source, target, control_points)

    first.pointer_down(Point(200, 125))

    assert first.is_dragging
    assert not second.is_dragging


def test_drag_next_to_opposing_run_stays_orthogonal():
    source, target = Point(0, 0), Point(-100, -100)
    controller = SegmentDragController(
        source, target, [Point(100, 0), Point(-150, 0), Point(-150, -100)]
    )

    assert controller.pointer_down(Point(-25, 0)).id == "segment-1"
    preview = controller.pointer_move(Point(-25, 40))
    commit = controller.pointer_up()

    assert preview.control_points == commit.control_points
    assert commit.control_points == [
        Point(100, 0),
        Point(100, 40),
        Point(-150, 40),
        Point(-150, -100),
    ]
    assert is_orthogonal([source, *commit.control_points, target])
