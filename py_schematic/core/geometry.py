"""Triangle and edge primitives used by the Delaunay builder."""

from typing import Sequence, Tuple

import numpy as np


class DegenerateTriangleError(ZeroDivisionError):
    """Raised when three points are collinear and have no circumcircle."""

    def __init__(self, p0: int, p1: int, p2: int):
        super().__init__(f"Points {p0}, {p1} and {p2} are collinear")
        self.indices = (p0, p1, p2)


def is_counter_clockwise(a: Sequence[float], b: Sequence[float], c: Sequence[float]) -> bool:
    """Return True if a -> b -> c turns counter-clockwise."""
    return (b[0] - a[0]) * (c[1] - a[1]) - (c[0] - a[0]) * (b[1] - a[1]) > 0


class Edge:
    """Undirected edge between two point indices, smaller index first."""

    __slots__ = ("p0", "p1")

    def __init__(self, p0: int, p1: int):
        if p0 <= p1:
            self.p0, self.p1 = p0, p1
        else:
            self.p0, self.p1 = p1, p0

    def __eq__(self, other):
        if not isinstance(other, Edge):
            return NotImplemented
        return self.p0 == other.p0 and self.p1 == other.p1

    def __hash__(self):
        return hash((self.p0, self.p1))

    def __contains__(self, index: int) -> bool:
        return index == self.p0 or index == self.p1

    def __repr__(self):
        return f"Edge({self.p0}, {self.p1})"


class Triangle:
    """
    Triangle over indices into a point array.

    Vertices are stored counter-clockwise. The circumcircle center and
    squared radius are computed once at construction and reused by every
    in-circle test.

    Args:
        points: Array of [x, y] coordinates the indices refer to
        p0, p1, p2: Vertex indices

    Raises:
        DegenerateTriangleError: If the three points are collinear
    """

    __slots__ = ("p0", "p1", "p2", "center", "radius_square", "_key")

    def __init__(self, points: np.ndarray, p0: int, p1: int, p2: int):
        if is_counter_clockwise(points[p0], points[p1], points[p2]):
            self.p0, self.p1, self.p2 = p0, p1, p2
        else:
            self.p0, self.p1, self.p2 = p0, p2, p1

        x0, y0 = float(points[self.p0][0]), float(points[self.p0][1])
        x1, y1 = float(points[self.p1][0]), float(points[self.p1][1])
        x2, y2 = float(points[self.p2][0]), float(points[self.p2][1])

        d0 = x0 * x0 + y0 * y0
        d1 = x1 * x1 + y1 * y1
        d2 = x2 * x2 + y2 * y2

        aux1 = d0 * (y2 - y1) + d1 * (y0 - y2) + d2 * (y1 - y0)
        aux2 = -(d0 * (x2 - x1) + d1 * (x0 - x2) + d2 * (x1 - x0))
        div = 2 * (x0 * (y2 - y1) + x1 * (y0 - y2) + x2 * (y1 - y0))

        if div == 0:
            raise DegenerateTriangleError(p0, p1, p2)

        cx = aux1 / div
        cy = aux2 / div
        self.center = (cx, cy)
        self.radius_square = (cx - x0) * (cx - x0) + (cy - y0) * (cy - y0)
        self._key = frozenset((p0, p1, p2))

    @property
    def indices(self) -> Tuple[int, int, int]:
        return self.p0, self.p1, self.p2

    def contains(self, point: Sequence[float]) -> bool:
        """Check if point lies strictly inside the circumcircle."""
        dx = self.center[0] - point[0]
        dy = self.center[1] - point[1]
        return dx * dx + dy * dy < self.radius_square

    def edges(self) -> Tuple[Edge, Edge, Edge]:
        return Edge(self.p0, self.p1), Edge(self.p1, self.p2), Edge(self.p2, self.p0)

    def touches(self, limit: int) -> bool:
        """True if any vertex index is >= limit."""
        return self.p0 >= limit or self.p1 >= limit or self.p2 >= limit

    def __eq__(self, other):
        if not isinstance(other, Triangle):
            return NotImplemented
        return self._key == other._key

    def __hash__(self):
        return hash(self._key)

    def __repr__(self):
        return f"Triangle({self.p0}, {self.p1}, {self.p2})"
