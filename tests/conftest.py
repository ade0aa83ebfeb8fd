"""Shared fixtures and helpers for the orthoedge test suite."""

from __future__ import annotations

import re

import pytest

from orthoedge.constraints import OrthogonalConstraintEngine
from orthoedge.models import HandleInfo, NodeBounds, NodeInfo, Point
from orthoedge.paths import PathCalculator
from orthoedge.segments import SegmentDragHandler
from orthoedge.waypoints import OrthogonalWaypointManager

# --- Reference edge ---
# Right from the source, down, then on to the target:
#   (100,100) -> (200,100) -> (200,150) -> (300,200)

SOURCE = Point(100, 100)
TARGET = Point(300, 200)
CONTROL_POINTS = [Point(200, 100), Point(200, 150)]

COMMAND = re.compile(r"([A-Za-z])([^A-Za-z]*)")
NUMBER = re.compile(r"-?\d+(?:\.\d+)?(?:e-?\d+)?")


def is_orthogonal(points: list[Point], tolerance: float = 1e-4) -> bool:
    """Every consecutive pair shares an x or a y coordinate."""
    for a, b in zip(points, points[1:]):
        if abs(a.x - b.x) > tolerance and abs(a.y - b.y) > tolerance:
            return False
    return True


def parse_path(d: str) -> list[tuple[str, list[float]]]:
    """Split SVG path data into (command, numbers) pairs."""
    return [
        (m.group(1), [float(n) for n in NUMBER.findall(m.group(2))])
        for m in COMMAND.finditer(d)
    ]


def path_commands(d: str) -> list[str]:
    """Command letters of an SVG path string, in order."""
    return [command for command, _ in parse_path(d)]


def make_node(
    node_id: str,
    x: float,
    y: float,
    width: float = 100,
    height: float = 60,
    handle_type: str = "source",
) -> NodeInfo:
    """A node with one handle at the middle of each side."""
    bounds = NodeBounds(x, y, width, height)
    positions = {
        "top": Point(x + width / 2, y),
        "right": Point(x + width, y + height / 2),
        "bottom": Point(x + width / 2, y + height),
        "left": Point(x, y + height / 2),
    }
    handles = [
        HandleInfo(
            id=f"{node_id}-{side}",
            node_id=node_id,
            position=position,
            side=side,
            type=handle_type,
        )
        for side, position in positions.items()
    ]
    return NodeInfo(id=node_id, bounds=bounds, handles=handles)


@pytest.fixture
def source() -> Point:
    return SOURCE


@pytest.fixture
def target() -> Point:
    return TARGET


@pytest.fixture
def control_points() -> list[Point]:
    return list(CONTROL_POINTS)


@pytest.fixture
def handler() -> SegmentDragHandler:
    return SegmentDragHandler()


@pytest.fixture
def engine() -> OrthogonalConstraintEngine:
    return OrthogonalConstraintEngine()


@pytest.fixture
def manager() -> OrthogonalWaypointManager:
    return OrthogonalWaypointManager()


@pytest.fixture
def calculator() -> PathCalculator:
    return PathCalculator()


@pytest.fixture
def reference_segments(handler, control_points, source, target):
    return handler.calculate_segments(control_points, source, target)
