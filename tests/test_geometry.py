"""Tests for triangle and edge primitives."""

import pytest
import numpy as np
from py_schematic.core.geometry import (
    DegenerateTriangleError, Edge, Triangle, is_counter_clockwise
)


POINTS = np.array([[0.0, 0.0], [4.0, 0.0], [0.0, 4.0], [4.0, 4.0], [2.0, 0.0]])


class TestTriangle:
    """Test triangle orientation and circumcircle."""

    def test_keeps_counter_clockwise_order(self):
        tri = Triangle(POINTS, 0, 1, 2)
        assert tri.indices == (0, 1, 2)

    def test_swaps_clockwise_order(self):
        tri = Triangle(POINTS, 0, 2, 1)
        assert tri.indices == (0, 1, 2)
        assert is_counter_clockwise(*POINTS[list(tri.indices)])

    def test_circumcircle(self):
        """Right triangle has its circumcenter on the hypotenuse midpoint."""
        tri = Triangle(POINTS, 0, 1, 2)
        assert tri.center == pytest.approx((2.0, 2.0))
        assert tri.radius_square == pytest.approx(8.0)

    def test_contains_is_open_disk(self):
        tri = Triangle(POINTS, 0, 1, 2)
        assert tri.contains((2.0, 2.0))
        assert tri.contains((1.0, 1.0))
        # (4, 4) lies exactly on the circle
        assert not tri.contains((4.0, 4.0))
        assert not tri.contains((10.0, 10.0))

    def test_collinear_points_fail(self):
        with pytest.raises(DegenerateTriangleError) as exc_info:
            Triangle(POINTS, 0, 4, 1)
        assert exc_info.value.indices == (0, 4, 1)
        assert isinstance(exc_info.value, ZeroDivisionError)

    def test_equality_ignores_construction_order(self):
        a = Triangle(POINTS, 0, 1, 2)
        b = Triangle(POINTS, 2, 0, 1)
        c = Triangle(POINTS, 1, 2, 3)
        assert a == b
        assert hash(a) == hash(b)
        assert a != c
        assert len({a, b, c}) == 2

    def test_edges(self):
        tri = Triangle(POINTS, 0, 1, 2)
        assert set(tri.edges()) == {Edge(0, 1), Edge(1, 2), Edge(0, 2)}

    def test_touches(self):
        tri = Triangle(POINTS, 0, 1, 3)
        assert tri.touches(3)
        assert not tri.touches(4)


class TestEdge:
    """Test edge normalization."""

    def test_smaller_index_first(self):
        edge = Edge(5, 2)
        assert (edge.p0, edge.p1) == (2, 5)

    def test_order_independent_equality(self):
        assert Edge(1, 7) == Edge(7, 1)
        assert hash(Edge(1, 7)) == hash(Edge(7, 1))
        assert Edge(1, 7) != Edge(1, 6)

    def test_membership(self):
        edge = Edge(3, 9)
        assert 3 in edge
        assert 9 in edge
        assert 4 not in edge
