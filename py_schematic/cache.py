"""Named mapping cache: lazily built forward and inverse mappings per data set."""

import threading
from dataclasses import dataclass
from typing import Dict, List, Optional, Union

import numpy as np
import structlog

from .core.point_mapping import PointMapping, interpolate_sum
from .data.source import DataSource, RectLink

logger = structlog.get_logger()


class MappingUnavailableError(RuntimeError):
    """Raised when the mappings for a data set could not be built."""

    def __init__(self, name: str):
        super().__init__(f"mapping unavailable for dataset {name}")
        self.name = name


@dataclass(frozen=True)
class MappingEntry:
    """Forward (world -> map) and inverse (map -> world) mappings of one data set."""
    name: str
    forward: PointMapping
    inverse: PointMapping
    rects: List[RectLink]


@dataclass(frozen=True)
class _BuildFailure:
    error: Exception


_MISSING = object()


class _Generation:
    """One snapshot of the cache. Invalidation replaces it as a whole."""

    def __init__(self):
        self.entries: Dict[str, Union[MappingEntry, _BuildFailure, None]] = {}
        self.build_locks: Dict[str, threading.Lock] = {}
        self.lock = threading.Lock()

    def build_lock(self, name: str) -> threading.Lock:
        with self.lock:
            return self.build_locks.setdefault(name, threading.Lock())


class MappingCache:
    """
    Builds and memoizes point mappings per named data set.

    Each name is fetched from the data source and triangulated at most once
    per generation, and every caller sees the same MappingEntry. Missing data
    sets, and data sets with fewer than 3 points, are remembered as having no
    mapping until the next invalidate().

    Args:
        source: Object providing fetch_data_set(name)
        margin: Super point margin for the triangulations
    """

    def __init__(self, source: DataSource, margin: Optional[float] = None):
        self.source = source
        self.margin = margin
        self._generation = _Generation()
        self._fetch_count = 0
        self._count_lock = threading.Lock()

    @property
    def fetch_count(self) -> int:
        """Number of times the data source has been queried."""
        return self._fetch_count

    def names(self) -> List[str]:
        """Names memoized in the current generation."""
        generation = self._generation
        with generation.lock:
            return list(generation.entries)

    def invalidate(self) -> None:
        """Drop every memoized entry."""
        self._generation = _Generation()
        logger.info("Mapping cache invalidated")

    def get_entry(self, name: str) -> Optional[MappingEntry]:
        """
        Get the mappings for a data set, building them on first request.

        Returns:
            The entry, or None if the data set is unknown or too small

        Raises:
            MappingUnavailableError: If building the mappings failed
        """
        generation = self._generation
        entry = generation.entries.get(name, _MISSING)

        if entry is _MISSING:
            with generation.build_lock(name):
                entry = generation.entries.get(name, _MISSING)
                if entry is _MISSING:
                    entry = self._build(name)
                    with generation.lock:
                        generation.entries[name] = entry

        if isinstance(entry, _BuildFailure):
            raise MappingUnavailableError(name) from entry.error
        return entry

    def get_mapping(self, name: str, forward: bool = True) -> Optional[PointMapping]:
        """Forward (world -> map) or inverse (map -> world) mapping for a data set."""
        entry = self.get_entry(name)
        if entry is None:
            return None
        return entry.forward if forward else entry.inverse

    def get_rects(self, name: str) -> Optional[List[RectLink]]:
        """Rect links of a data set."""
        entry = self.get_entry(name)
        if entry is None:
            return None
        return entry.rects

    def _fetch(self, name: str):
        with self._count_lock:
            self._fetch_count += 1
        return self.source.fetch_data_set(name)

    def _build(self, name: str) -> Union[MappingEntry, _BuildFailure, None]:
        data = self._fetch(name)
        if data is None:
            logger.info("No mapping for data set", name=name)
            return None
        if len(data.points) < 3:
            logger.info("Not enough points for data set", name=name, points=len(data.points))
            return None

        world = np.array(data.world_points(), dtype=np.float64)
        schematic = np.array(data.map_points(), dtype=np.float64)

        try:
            forward = PointMapping(world, schematic, interpolate_sum, margin=self.margin)
            inverse = PointMapping(schematic, world, interpolate_sum, margin=self.margin)
            forward.triangulate()
            inverse.triangulate()
        except (ValueError, ZeroDivisionError) as e:
            logger.error("Failed to build mapping", name=name, error=str(e))
            return _BuildFailure(e)

        logger.info("Mapping built", name=name, points=len(data.points),
                    rects=len(data.rects),
                    forward_triangles=len(forward.triangles),
                    inverse_triangles=len(inverse.triangles))

        return MappingEntry(name=name, forward=forward, inverse=inverse, rects=list(data.rects))
