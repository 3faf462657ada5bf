#!/usr/bin/env python3
"""
plotfed point store models: Peewee on SQLite

Layout:
- Source: one row per monitored host/source
- MetricSeries: one row per (source, metric_name)
- MetricPoint: (series, timestamp) -> float value, UNIQUE on (series, timestamp)

Every SQLite connector owns its own database, so the model classes are built
per database by create_models() instead of being bound to a global handle.
"""

import logging
import math
import time
from pathlib import Path
from types import SimpleNamespace
from typing import Iterable, Optional, Tuple

from peewee import (
    Model, SqliteDatabase, CharField, IntegerField, FloatField, ForeignKeyField
)

logger = logging.getLogger("plotfed.models")

SQLITE_PRAGMAS = {
    "foreign_keys": 1,
    "journal_mode": "wal",
    "synchronous": "normal",
    "cache_size": 10000,
    "temp_store": "memory",
}


def create_models(db: SqliteDatabase) -> SimpleNamespace:
    """Build the point store model classes bound to `db`."""

    class BaseModel(Model):
        class Meta:
            database = db
            legacy_table_names = False

    class Source(BaseModel):
        name = CharField(unique=True)
        created_at = IntegerField()

    class MetricSeries(BaseModel):
        source = ForeignKeyField(Source, backref="metric_series", on_delete="CASCADE", index=True)
        metric_name = CharField()
        created_at = IntegerField()

        class Meta:
            indexes = (
                (("source", "metric_name"), True),
            )

    class MetricPoint(BaseModel):
        series = ForeignKeyField(MetricSeries, backref="points", on_delete="CASCADE", index=True)
        timestamp = IntegerField()
        value = FloatField(null=True)  # NULL stores a NaN sample

        class Meta:
            primary_key = False
            indexes = (
                (("series", "timestamp"), True),
                (("timestamp",), False),  # time-range queries
            )

    return SimpleNamespace(
        Source=Source,
        MetricSeries=MetricSeries,
        MetricPoint=MetricPoint,
        all=[Source, MetricSeries, MetricPoint],
    )


class PointStore:
    """DB lifecycle plus the few write helpers used to feed a store."""

    def __init__(self, db_path: str, create: bool = True) -> None:
        self.db_path = db_path
        self.database = SqliteDatabase(None)
        self.models = create_models(self.database)
        self.create = create
        self.connected = False

    def connect(self) -> None:
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self.database.init(self.db_path, pragmas=SQLITE_PRAGMAS, check_same_thread=False)
        self.database.connect(reuse_if_open=True)
        if self.create:
            self.database.create_tables(self.models.all, safe=True)
        self.connected = True
        logger.info(f"point store opened: {self.db_path}")

    def close(self) -> None:
        if self.connected:
            self.database.close()
            self.connected = False
            logger.info(f"point store closed: {self.db_path}")

    def get_or_create_series(self, source: str, metric_name: str):
        Source, MetricSeries = self.models.Source, self.models.MetricSeries
        now = int(time.time())

        source_row, _ = Source.get_or_create(name=source, defaults={"created_at": now})
        series, _ = MetricSeries.get_or_create(
            source=source_row,
            metric_name=metric_name,
            defaults={"created_at": now},
        )
        return series

    def add_points(self, source: str, metric_name: str,
                   points: Iterable[Tuple[int, Optional[float]]]) -> int:
        """Insert (timestamp, value) pairs, ignoring duplicates. NaN values are stored as NULL."""
        series = self.get_or_create_series(source, metric_name)
        rows = [
            {
                "series": series.id,
                "timestamp": int(timestamp),
                "value": None if value is None or math.isnan(value) else float(value),
            }
            for timestamp, value in points
        ]
        if not rows:
            return 0

        with self.database.atomic():
            inserted = (self.models.MetricPoint.insert_many(rows)
                        .on_conflict_ignore()
                        .as_rowcount()
                        .execute())
        return int(inserted or 0)
