"""
Core point mapping functionality.
"""

from .geometry import DegenerateTriangleError, Edge, Triangle
from .delaunay import triangulate
from .point_mapping import MappingConstructionError, PointMapping, interpolate_sum
from .grid_lines import sample_grid_lines

__all__ = ['DegenerateTriangleError', 'Edge', 'Triangle', 'triangulate',
           'MappingConstructionError', 'PointMapping', 'interpolate_sum',
           'sample_grid_lines']
