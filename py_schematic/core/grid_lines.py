"""Sample a regular grid in source space and map it through a PointMapping."""

from typing import List

import numpy as np

from .point_mapping import PointMapping


def _trace(mapping: PointMapping, samples: np.ndarray) -> np.ndarray:
    mapped = []
    for sample in samples:
        found, value = mapping.get(sample)
        if found:
            mapped.append([float(value[0]), float(value[1])])
    return np.array(mapped, dtype=np.float64).reshape(-1, 2)


def sample_grid_lines(mapping: PointMapping, spacing: float = 10.0, step: float = 1.0) -> List[np.ndarray]:
    """
    Trace grid lines of the source space through a mapping.

    Vertical lines are placed every spacing units across the source bounds
    and sampled every step units, then the same for horizontal lines. Only
    samples covered by the triangulation are kept, and lines with fewer than
    two mapped samples are dropped.

    Args:
        mapping: Mapping whose values are [x, y] coordinates
        spacing: Distance between grid lines
        step: Distance between samples along a line

    Returns:
        List of (K, 2) arrays of mapped coordinates, vertical lines first
    """
    if spacing <= 0 or step <= 0:
        raise ValueError("spacing and step must be positive")

    min_x, min_y, max_x, max_y = mapping.bounds()
    lines = []

    for x in np.arange(np.round(min_x / spacing) * spacing, max_x, spacing):
        ys = np.arange(np.round(min_y), max_y, step)
        line = _trace(mapping, np.column_stack([np.full_like(ys, x), ys]))
        if len(line) > 1:
            lines.append(line)

    for y in np.arange(np.round(min_y / spacing) * spacing, max_y, spacing):
        xs = np.arange(np.round(min_x), max_x, step)
        line = _trace(mapping, np.column_stack([xs, np.full_like(xs, y)]))
        if len(line) > 1:
            lines.append(line)

    return lines
