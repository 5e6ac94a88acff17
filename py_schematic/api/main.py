"""FastAPI main application."""

import threading
from typing import List, Optional

import structlog
from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from ..cache import MappingCache, MappingUnavailableError
from ..config import settings
from ..core.grid_lines import sample_grid_lines
from ..data.source import JsonFileDataSource
from ..data.watcher import start_data_watcher

# Configure logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer()
        if settings.log_format == "json"
        else structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()

app = FastAPI(
    title="Schematic Map API",
    description="Maps points between world and schematic map coordinates",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["*"],
)

_cache: Optional[MappingCache] = None
_cache_lock = threading.Lock()


def get_cache() -> MappingCache:
    """Process wide cache backed by the configured data file."""
    global _cache
    if _cache is None:
        with _cache_lock:
            if _cache is None:
                cache = MappingCache(JsonFileDataSource(settings.data_file),
                                     margin=settings.border_margin)
                if settings.watch_enabled:
                    start_data_watcher(settings.data_file, cache.invalidate,
                                       settings.watch_interval_seconds)
                logger.info("Mapping cache created", data_file=settings.data_file)
                _cache = cache
    return _cache


class RectLinkResponse(BaseModel):
    """A rect link with its resolved map page bounds."""

    top_left: int
    top_right: int
    bottom_right: int
    bottom_left: int
    target: str
    left: Optional[float] = Field(None, description="Left edge in map coordinates")
    bottom: Optional[float] = Field(None, description="Bottom edge in map coordinates")
    width: Optional[float] = None
    height: Optional[float] = None


def _require_mapping(cache: MappingCache, name: str, forward: bool = True):
    try:
        mapping = cache.get_mapping(name, forward)
    except MappingUnavailableError as e:
        logger.error("Mapping unavailable", name=name, error=str(e.__cause__))
        raise HTTPException(status_code=503, detail=str(e))
    if mapping is None:
        raise HTTPException(status_code=404, detail=f"No mapping for data set {name}")
    return mapping


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/map/{name}/{x}/{y}")
def map_point(name: str, x: float, y: float,
              forward: bool = Query(True, description="World to map if true, map to world otherwise"),
              cache: MappingCache = Depends(get_cache)) -> List[float]:
    """Map a single point. Returns [] when the point is outside the mapped area."""
    mapping = _require_mapping(cache, name, forward)
    found, value = mapping.get((x, y))
    if not found:
        return []
    return [float(value[0]), float(value[1])]


@app.get("/rects/{name}", response_model=List[RectLinkResponse])
def get_rects(name: str, cache: MappingCache = Depends(get_cache)):
    """Rect links of a data set, with bounds computed from the map points."""
    mapping = _require_mapping(cache, name)
    rects = cache.get_rects(name) or []

    result = []
    for rect in rects:
        item = RectLinkResponse(**rect._asdict())
        try:
            item.left, item.bottom, item.width, item.height = rect.bounds(mapping.values)
        except IndexError:
            logger.warning("Rect references unknown point", name=name, rect=rect._asdict())
        result.append(item)
    return result


@app.get("/lines/{name}")
def get_lines(name: str,
              forward: bool = Query(True),
              spacing: float = Query(settings.grid_line_spacing, gt=0),
              step: float = Query(settings.grid_line_step, gt=0),
              cache: MappingCache = Depends(get_cache)) -> List[List[List[float]]]:
    """Source space grid lines traced through the mapping."""
    mapping = _require_mapping(cache, name, forward)
    return [line.tolist() for line in sample_grid_lines(mapping, spacing, step)]


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
