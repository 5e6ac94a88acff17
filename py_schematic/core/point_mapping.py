"""Point mapping: barycentric interpolation over a Delaunay triangulation."""

import threading
from typing import Any, Callable, Optional, Sequence, Tuple

import numpy as np
import structlog

from .delaunay import triangulate

logger = structlog.get_logger()

Interpolator = Callable[[Any, float, Any, float, Any, float], Any]


class MappingConstructionError(ValueError):
    """Raised when a PointMapping is given malformed input."""


def interpolate_sum(v0, t0: float, v1, t1: float, v2, t2: float):
    """Blend three coordinate values with weights summing to 1."""
    return v0 * t0 + v1 * t1 + v2 * t2


class PointMapping:
    """
    Maps points from one 2-D space to values using known sample pairs.

    The triangulation over the sample points is built on first use and never
    rebuilt. Once built, lookups only read immutable state and may run from
    several threads at once.

    Args:
        points: Sample point coordinates, shape (N, 2), N >= 3
        values: Values parallel to points; values[i] belongs to points[i]
        interpolate: Function (v0, t0, v1, t1, v2, t2) -> value
        margin: Super point margin passed to the triangulation
    """

    def __init__(self, points: Sequence[Sequence[float]], values: Sequence[Any],
                 interpolate: Interpolator, margin: Optional[float] = None):
        if points is None:
            raise MappingConstructionError("points are required")
        if values is None:
            raise MappingConstructionError("values are required")
        if interpolate is None or not callable(interpolate):
            raise MappingConstructionError("interpolate must be callable")
        if len(points) != len(values):
            raise MappingConstructionError("number of points must be the same as the number of values")
        if len(points) < 3:
            raise MappingConstructionError("not enough points")

        self.points = np.array(points, dtype=np.float64)
        if self.points.ndim != 2 or self.points.shape[1] != 2:
            raise MappingConstructionError("points must be [x, y] pairs")
        self.points.flags.writeable = False

        self.values = values
        self.interpolate = interpolate
        self.margin = margin

        self._triangles: Optional[np.ndarray] = None
        self._lock = threading.Lock()
        # Per triangle: p2 coordinates, Cramer coefficients and determinant
        self._origin: Optional[np.ndarray] = None
        self._coefficients: Optional[np.ndarray] = None

    def __len__(self) -> int:
        return len(self.points)

    @property
    def is_triangulated(self) -> bool:
        return self._triangles is not None

    @property
    def triangles(self) -> np.ndarray:
        """Triangle index triples, building the triangulation if needed."""
        self.triangulate()
        return self._triangles

    def triangulate(self) -> None:
        """Build the triangulation once. Later calls do nothing."""
        if self._triangles is not None:
            return
        with self._lock:
            if self._triangles is not None:
                return

            triangles = triangulate(self.points, self.margin)
            p0 = self.points[triangles[:, 0]]
            p1 = self.points[triangles[:, 1]]
            p2 = self.points[triangles[:, 2]]

            a = p1[:, 1] - p2[:, 1]
            b = p2[:, 0] - p1[:, 0]
            c = p2[:, 1] - p0[:, 1]
            d = p0[:, 0] - p2[:, 0]
            det = a * (p0[:, 0] - p2[:, 0]) + b * (p0[:, 1] - p2[:, 1])

            self._origin = p2
            self._coefficients = np.column_stack([a, b, c, d, det])
            # Published last so readers never see a half built state
            self._triangles = triangles

            logger.debug("Point mapping triangulated",
                         points=len(self.points), triangles=len(triangles))

    def barycentric(self, point: Sequence[float]) -> np.ndarray:
        """
        Barycentric coordinates of point relative to every triangle.

        Returns:
            Array of shape (T, 3) with (t0, t1, t2) per triangle
        """
        self.triangulate()
        dx = float(point[0]) - self._origin[:, 0]
        dy = float(point[1]) - self._origin[:, 1]
        k = self._coefficients
        # Divide rather than multiply by 1/det so a vertex maps to exactly 1 and 0
        t0 = (k[:, 0] * dx + k[:, 1] * dy) / k[:, 4]
        t1 = (k[:, 2] * dx + k[:, 3] * dy) / k[:, 4]
        t2 = 1 - t0 - t1
        return np.column_stack([t0, t1, t2])

    def get(self, point: Sequence[float]) -> Tuple[bool, Any]:
        """
        Map a point through the triangulation.

        Triangles are scanned in stored order and the first one containing
        the point (boundary included) is used. Points on a shared edge
        resolve to whichever triangle comes first.

        Args:
            point: Query [x, y]

        Returns:
            (True, interpolated value) or (False, None) outside the hull
        """
        weights = self.barycentric(point)
        inside = np.all((weights >= 0) & (weights <= 1), axis=1)
        hits = np.flatnonzero(inside)
        if hits.size == 0:
            return False, None

        hit = hits[0]
        i0, i1, i2 = self._triangles[hit]
        t0, t1, t2 = weights[hit]
        value = self.interpolate(self.values[i0], float(t0),
                                 self.values[i1], float(t1),
                                 self.values[i2], float(t2))
        return True, value

    def find(self, point: Sequence[float]) -> Optional[Any]:
        """Like get() but returns None when the point is not covered."""
        found, value = self.get(point)
        return value if found else None

    def bounds(self) -> Tuple[float, float, float, float]:
        """Return (min_x, min_y, max_x, max_y) of the sample points."""
        min_x, min_y = self.points.min(axis=0)
        max_x, max_y = self.points.max(axis=0)
        return float(min_x), float(min_y), float(max_x), float(max_y)
