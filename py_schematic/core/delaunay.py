"""Incremental Delaunay triangulation (Bowyer-Watson)."""

from collections import Counter
from typing import Dict, Iterable, List, Optional

import numpy as np
import structlog

from ..config import settings
from .geometry import Edge, Triangle

logger = structlog.get_logger()


def get_border_points(points: np.ndarray, margin: float) -> np.ndarray:
    """
    Build the four super points enclosing the point set.

    The bounding box of all points is grown by margin on every side and its
    corners are returned in the order top-left, top-right, bottom-right,
    bottom-left.

    Args:
        points: Array of [x, y] coordinates
        margin: Distance added around the bounding box

    Returns:
        Array of 4 corner coordinates
    """
    min_x, min_y = points.min(axis=0) - margin
    max_x, max_y = points.max(axis=0) + margin

    return np.array([
        [min_x, max_y],
        [max_x, max_y],
        [max_x, min_y],
        [min_x, min_y],
    ], dtype=np.float64)


def find_bad_triangles(point: np.ndarray, triangulation: Iterable[Triangle]) -> List[Triangle]:
    """Return every triangle whose circumcircle contains point, in triangulation order."""
    return [tri for tri in triangulation if tri.contains(point)]


def find_hole_boundary(bad_triangles: Iterable[Triangle]) -> List[Edge]:
    """
    Find the boundary of the hole left by removing bad triangles.

    An edge is on the boundary when it belongs to exactly one bad triangle.
    Edges seen two or more times are internal.
    """
    counts = Counter(edge for tri in bad_triangles for edge in tri.edges())
    return [edge for edge, count in counts.items() if count == 1]


def triangulate(points: np.ndarray, margin: Optional[float] = None) -> np.ndarray:
    """
    Compute the Delaunay triangulation of a point set.

    Points are inserted one at a time in index order into a triangulation
    seeded with two triangles covering an enlarged bounding box. Triangles
    still attached to the box corners are dropped at the end.

    Args:
        points: Array of shape (N, 2), N >= 3
        margin: Bounding box margin, defaults to settings.border_margin

    Returns:
        Integer array of shape (T, 3) with counter-clockwise vertex indices

    Raises:
        ValueError: If fewer than 3 points are given
        DegenerateTriangleError: If a triangle with collinear vertices is
            needed during insertion
    """
    points = np.asarray(points, dtype=np.float64)
    if points.ndim != 2 or points.shape[1] != 2:
        raise ValueError("points must have shape (N, 2)")
    n_points = len(points)
    if n_points < 3:
        raise ValueError("not enough points")

    if margin is None:
        margin = settings.border_margin

    all_points = np.vstack([points, get_border_points(points, margin)])
    c0, c1, c2, c3 = range(n_points, n_points + 4)

    # dict keeps insertion order so repeated runs yield the same triangles
    triangulation: Dict[Triangle, None] = dict.fromkeys([
        Triangle(all_points, c0, c1, c2),
        Triangle(all_points, c0, c2, c3),
    ])

    logger.debug("Starting triangulation", points=n_points, margin=margin)

    for index in range(n_points):
        point = all_points[index]
        bad_triangles = find_bad_triangles(point, triangulation)
        boundary = find_hole_boundary(bad_triangles)

        for tri in bad_triangles:
            del triangulation[tri]

        for edge in boundary:
            if index in edge:
                continue
            triangulation[Triangle(all_points, index, edge.p0, edge.p1)] = None

    triangles = [tri.indices for tri in triangulation if not tri.touches(n_points)]

    logger.info("Triangulation complete", points=n_points, triangles=len(triangles))

    return np.array(triangles, dtype=np.intp).reshape(-1, 3)
