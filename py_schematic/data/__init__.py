"""
Correspondence data sources and change notification.
"""

from .source import (
    CorrespondencePoint, DataSet, DataSource, InMemoryDataSource,
    JsonFileDataSource, RectLink, dataset_name_for_page
)
from .watcher import DataWatcher, start_data_watcher

__all__ = [
    'CorrespondencePoint', 'DataSet', 'DataSource', 'InMemoryDataSource',
    'JsonFileDataSource', 'RectLink', 'dataset_name_for_page',
    'DataWatcher', 'start_data_watcher',
]
