"""Tests for the named mapping cache."""

import threading
import time

import pytest
import numpy as np

from py_schematic.cache import MappingCache, MappingEntry, MappingUnavailableError
from py_schematic.data.source import CorrespondencePoint, DataSet, InMemoryDataSource, RectLink


def grid_data_set(name="Yard-A", size=5, spacing=100.0):
    """World grid with a skewed copy as the map side."""
    rng = np.random.default_rng(7)
    points = []
    for i in range(size):
        for j in range(size):
            wx = i * spacing + rng.uniform(-10, 10)
            wy = j * spacing + rng.uniform(-10, 10)
            points.append(CorrespondencePoint(wx, wy, wx / 1000 + wy / 5000, wy / 1000))
    rects = [RectLink(0, 5, 6, 1, "Harbor-A")]
    return DataSet(name, points, rects)


class CountingSource:
    """Data source that counts fetches and can be slowed down."""

    def __init__(self, data_sets, delay=0.0):
        self.inner = InMemoryDataSource(data_sets)
        self.delay = delay
        self.calls = []
        self._lock = threading.Lock()

    def fetch_data_set(self, name):
        with self._lock:
            self.calls.append(name)
        if self.delay:
            time.sleep(self.delay)
        return self.inner.fetch_data_set(name)


@pytest.fixture
def source():
    small = DataSet("Small", [CorrespondencePoint(0, 0, 0, 0), CorrespondencePoint(1, 0, 1, 0)])
    return CountingSource([grid_data_set(), small])


class TestMappingCache:
    """Test lazy building and memoization."""

    def test_forward_and_inverse(self, source):
        cache = MappingCache(source)

        forward = cache.get_mapping("Yard-A")
        inverse = cache.get_mapping("Yard-A", forward=False)

        assert forward is not None and inverse is not None
        assert forward.is_triangulated and inverse.is_triangulated

        world = (210.0, 190.0)
        found, schematic = forward.get(world)
        assert found
        found, back = inverse.get(schematic)
        assert found
        np.testing.assert_allclose(back, world, atol=1e-6)

    def test_point_pairs_round_trip(self, source):
        cache = MappingCache(source)
        data = source.inner.fetch_data_set("Yard-A")
        forward = cache.get_mapping("Yard-A")

        for p in data.points:
            found, value = forward.get((p.world_x, p.world_y))
            assert found
            np.testing.assert_allclose(value, (p.map_x, p.map_y), atol=1e-9)

    def test_memoized(self, source):
        cache = MappingCache(source)

        first = cache.get_entry("Yard-A")
        second = cache.get_entry("Yard-A")

        assert isinstance(first, MappingEntry)
        assert first is second
        assert cache.get_mapping("Yard-A") is first.forward
        assert source.calls == ["Yard-A"]
        assert cache.fetch_count == 1

    def test_rects(self, source):
        cache = MappingCache(source)
        assert cache.get_rects("Yard-A") == [RectLink(0, 5, 6, 1, "Harbor-A")]

    def test_unknown_name_memoized(self, source):
        cache = MappingCache(source)

        for _ in range(3):
            assert cache.get_mapping("Unknown", True) is None
            assert cache.get_rects("Unknown") is None

        assert source.calls == ["Unknown"]

    def test_too_few_points(self, source):
        cache = MappingCache(source)

        assert cache.get_mapping("Small") is None
        assert cache.get_mapping("Small", forward=False) is None
        assert source.calls == ["Small"]

    def test_invalidate_refetches_once(self, source):
        cache = MappingCache(source)
        before = cache.get_entry("Yard-A")
        cache.get_mapping("Unknown")

        cache.invalidate()
        assert cache.names() == []

        after = cache.get_entry("Yard-A")
        cache.get_entry("Yard-A")
        cache.get_mapping("Unknown")

        assert after is not before
        assert source.calls == ["Yard-A", "Unknown", "Yard-A", "Unknown"]

    def test_invalidate_on_source_change(self):
        source = InMemoryDataSource([grid_data_set()])
        cache = MappingCache(source)
        source.subscribe(cache.invalidate)

        assert cache.get_mapping("Yard-B") is None
        source.replace([grid_data_set(), grid_data_set("Yard-B")])

        assert cache.get_mapping("Yard-B") is not None

    def test_names(self, source):
        cache = MappingCache(source)
        cache.get_entry("Yard-A")
        cache.get_entry("Unknown")
        assert sorted(cache.names()) == ["Unknown", "Yard-A"]

    def test_independent_caches(self, source):
        first = MappingCache(source)
        second = MappingCache(source)

        assert first.get_entry("Yard-A") is not second.get_entry("Yard-A")
        assert len(source.calls) == 2


class TestBuildFailures:
    """Test degenerate data handling."""

    def test_degenerate_data_set(self):
        points = [
            CorrespondencePoint(0, 0, 0, 0),
            CorrespondencePoint(4, 0, 1, 0),
            CorrespondencePoint(2, 2, 0.5, 1),
        ]
        source = CountingSource([DataSet("Flat", points)])
        cache = MappingCache(source, margin=0)

        with pytest.raises(MappingUnavailableError, match="mapping unavailable for dataset Flat") as exc_info:
            cache.get_mapping("Flat")
        assert isinstance(exc_info.value.__cause__, ZeroDivisionError)

        with pytest.raises(MappingUnavailableError):
            cache.get_rects("Flat")
        assert source.calls == ["Flat"]

        cache.invalidate()
        with pytest.raises(MappingUnavailableError):
            cache.get_mapping("Flat")
        assert source.calls == ["Flat", "Flat"]


class TestConcurrency:
    """Test single build under concurrent access."""

    def test_concurrent_first_lookup(self):
        source = CountingSource([grid_data_set()], delay=0.05)
        cache = MappingCache(source)
        entries = []
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            entries.append(cache.get_entry("Yard-A"))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(entries) == 8
        assert all(entry is entries[0] for entry in entries)
        assert source.calls == ["Yard-A"]

    def test_different_names_build_independently(self):
        source = CountingSource([grid_data_set("A"), grid_data_set("B")], delay=0.02)
        cache = MappingCache(source)

        threads = [threading.Thread(target=cache.get_entry, args=(name,)) for name in "ABAB"]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(source.calls) == ["A", "B"]

    def test_invalidate_during_lookups(self):
        source = CountingSource([grid_data_set()], delay=0.01)
        cache = MappingCache(source)
        errors = []

        def reader():
            for _ in range(20):
                entry = cache.get_entry("Yard-A")
                if entry is None or not entry.forward.is_triangulated:
                    errors.append(entry)

        threads = [threading.Thread(target=reader) for _ in range(4)]
        for t in threads:
            t.start()
        for _ in range(5):
            cache.invalidate()
            time.sleep(0.005)
        for t in threads:
            t.join()

        assert errors == []
