"""Pytest configuration and shared fixtures"""
import time

import pytest

from plotfed.catalog import Catalog, CatalogRecord
from plotfed.connectors import Connector, SQLiteConnector
from plotfed.library import Library
from plotfed.models import PointStore
from plotfed.plot import Plot, Series

BASE_TIME = 1_700_000_000


class FakeConnector(Connector):
    """In-memory connector: data maps (source, metric) -> [(time, value), ...]."""

    kind = "fake"

    def __init__(self, name, data=None, delay=0.0, error=None, settings=None):
        super().__init__(name, settings)
        self.data = data or {}
        self.delay = delay
        self.error = error
        self.queries = []

    def get_plots(self, query):
        self.queries.append(query)
        if self.delay:
            time.sleep(self.delay)
        if self.error:
            raise self.error

        # Reverse order so callers cannot rely on position
        result = []
        for query_series in reversed(query.group.series):
            points = self.data.get((query_series.metric.source, query_series.metric.name), [])
            result.append(Series(
                name=query_series.name,
                plots=[Plot(t, v) for t, v in points if query.start_time <= t <= query.end_time],
            ))
        return result

    def refresh(self, origin_name, output_queue):
        if self.error:
            raise self.error
        for source, metric in sorted(self.data):
            output_queue.put(CatalogRecord(origin=origin_name, source=source, metric=metric, connector=self))


@pytest.fixture
def fake_connector_class():
    return FakeConnector


@pytest.fixture
def base_time():
    return BASE_TIME


@pytest.fixture
def point_store(tmp_path):
    """Temporary on-disk point store (connections are per thread, so no :memory:)"""
    store = PointStore(str(tmp_path / "points.db"))
    store.connect()
    yield store
    store.close()


@pytest.fixture
def sample_points(point_store):
    """Two sources with cpu/load metrics, one point every 10s over 100s"""
    for source in ("host1", "host2"):
        offset = 0 if source == "host1" else 100
        point_store.add_points(source, "cpu", [
            (BASE_TIME + i * 10, float(offset + i)) for i in range(10)
        ])
        point_store.add_points(source, "load", [
            (BASE_TIME + i * 10, 1.0) for i in range(10)
        ])
    return point_store


@pytest.fixture
def sqlite_connector(sample_points):
    connector = SQLiteConnector("sqlite1", {"path": sample_points.db_path, "value_window": 30})
    yield connector
    connector.close()


@pytest.fixture
def fake_connectors():
    """Two connectors serving two origins with aligned 10s data"""
    first = FakeConnector("fake1", {
        ("host1", "cpu"): [(BASE_TIME + i * 10, float(i)) for i in range(10)],
        ("host2", "cpu"): [(BASE_TIME + i * 10, float(10 + i)) for i in range(10)],
        ("host1", "mem"): [(BASE_TIME + i * 10, 100.0) for i in range(10)],
    })
    second = FakeConnector("fake2", {
        ("web1", "requests"): [(BASE_TIME + i * 10, 5.0) for i in range(10)],
    })
    return {"origin1": first, "origin2": second}


@pytest.fixture
def catalog(fake_connectors):
    catalog = Catalog(queue_size=4)
    catalog.refresh_all(fake_connectors)
    return catalog


@pytest.fixture
def library():
    return Library.from_dict({
        "graphs": [
            {
                "id": "cpu",
                "name": "CPU",
                "stacks": [{"name": "stack0", "groups": [
                    {"name": "host1-cpu", "series": [
                        {"name": "cpu", "origin": "origin1", "source": "host1", "metric": "cpu"},
                    ]},
                ]}],
            },
        ],
        "source_groups": {
            "hosts": [{"origin": "origin1", "pattern": "host*", "type": "glob"}],
        },
        "metric_groups": {
            "usage": [
                {"origin": "origin1", "pattern": "cpu", "type": "single"},
                {"origin": "origin1", "pattern": "^m", "type": "regexp"},
            ],
        },
    })
