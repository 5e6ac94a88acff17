"""
Correspondence data sources.

A data source supplies named data sets of (world, map) point pairs plus the
rectangle links drawn on each map page. The cache only depends on the
fetch_data_set() contract; the JSON file reader follows the existing
map.json layout:

    [{"name": "SteelMill-A",
      "points": [{"world": [y, x], "map": [x, y]}, ...],
      "rects": [{"points": [tl, tr, br, bl], "linkTarget": "Harbor-A"}, ...]}]
"""

import json
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, NamedTuple, Optional, Protocol, Sequence, Tuple, Union

import structlog
from pydantic import BaseModel, Field, ValidationError

logger = structlog.get_logger()

PAGE_PREFIX = "Map-"


class CorrespondencePoint(NamedTuple):
    """A known pair of matching world and map coordinates."""
    world_x: float
    world_y: float
    map_x: float
    map_y: float


class RectLink(NamedTuple):
    """Rectangle on a map page, given by point indices, linking to another page."""
    top_left: int
    top_right: int
    bottom_right: int
    bottom_left: int
    target: str

    @property
    def is_linked(self) -> bool:
        return bool(self.target and self.target.strip())

    def bounds(self, points: Sequence[Sequence[float]]) -> Tuple[float, float, float, float]:
        """(left, bottom, width, height) spanned by the bottom-left and top-right corners."""
        left, bottom = points[self.bottom_left][0], points[self.bottom_left][1]
        right, top = points[self.top_right][0], points[self.top_right][1]
        return float(left), float(bottom), float(right - left), float(top - bottom)


@dataclass
class DataSet:
    """One named set of correspondence points and rect links."""
    name: str
    points: List[CorrespondencePoint] = field(default_factory=list)
    rects: List[RectLink] = field(default_factory=list)

    def world_points(self) -> List[Tuple[float, float]]:
        return [(p.world_x, p.world_y) for p in self.points]

    def map_points(self) -> List[Tuple[float, float]]:
        return [(p.map_x, p.map_y) for p in self.points]


class DataSource(Protocol):
    """Anything that can look up a data set by name."""

    def fetch_data_set(self, name: str) -> Optional[DataSet]:
        ...


def dataset_name_for_page(texture_name: str) -> str:
    """Data set name for a map page texture, e.g. 'Map-Harbor-A' -> 'Harbor-A'."""
    if texture_name.startswith(PAGE_PREFIX):
        return texture_name[len(PAGE_PREFIX):]
    return texture_name


class InMemoryDataSource:
    """
    Dict backed data source.

    replace() swaps the whole content and notifies every subscriber, which
    is how a MappingCache gets invalidated.
    """

    def __init__(self, data_sets: Optional[Sequence[DataSet]] = None):
        self._data_sets: Dict[str, DataSet] = {d.name: d for d in data_sets or []}
        self._subscribers: List[Callable[[], None]] = []
        self._lock = threading.Lock()

    def fetch_data_set(self, name: str) -> Optional[DataSet]:
        return self._data_sets.get(name)

    def subscribe(self, callback: Callable[[], None]) -> None:
        with self._lock:
            self._subscribers.append(callback)

    def replace(self, data_sets: Sequence[DataSet]) -> None:
        self._data_sets = {d.name: d for d in data_sets}
        with self._lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            callback()


class PointRecord(BaseModel):
    """A point pair as stored in map.json."""
    world: List[float] = Field(..., min_length=2)
    map: List[float] = Field(..., min_length=2)


class RectRecord(BaseModel):
    """A rect link as stored in map.json."""
    points: List[int] = Field(..., min_length=4, max_length=4)
    link_target: Optional[str] = Field(None, alias="linkTarget")


class DataSetRecord(BaseModel):
    """A named data set as stored in map.json."""
    name: str
    points: List[PointRecord] = Field(default_factory=list)
    rects: List[RectRecord] = Field(default_factory=list)

    def to_data_set(self) -> DataSet:
        # World coordinates are stored as [y, x]
        points = [
            CorrespondencePoint(p.world[1], p.world[0], p.map[0], p.map[1])
            for p in self.points
        ]
        rects = [
            RectLink(*r.points, target=r.link_target or "")
            for r in self.rects
        ]
        return DataSet(name=self.name, points=points, rects=rects)


class JsonFileDataSource:
    """
    Reads data sets from a map.json file.

    The file is read on every fetch so that a fresh cache generation always
    sees the current content.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def fetch_data_set(self, name: str) -> Optional[DataSet]:
        if not self.path.exists():
            logger.warning("Data file not found", path=str(self.path))
            return None

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                content = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.error("Failed to read data file", path=str(self.path), error=str(e))
            return None

        if not isinstance(content, list):
            logger.error("Data file must contain a list of data sets", path=str(self.path))
            return None

        for item in content:
            if not isinstance(item, dict) or item.get("name") != name:
                continue
            try:
                return DataSetRecord.model_validate(item).to_data_set()
            except ValidationError as e:
                logger.error("Invalid data set", name=name, error=str(e))
                return None

        return None
