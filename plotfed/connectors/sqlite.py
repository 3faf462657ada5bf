"""
SQLite point-store connector.

Serves metrics stored by plotfed.models.PointStore: sources become catalog
sources and metric_name values become catalog metrics.
"""

import logging
import queue
from typing import Any, Dict, List, Optional

import pandas as pd
from peewee import PeeweeException

from ..catalog import CatalogRecord
from ..errors import ConnectorFailure
from ..models import PointStore
from ..plot import Plot, Query, Series
from .base import Connector


class SQLiteConnector(Connector):
    """Connector reading a peewee SQLite point store."""

    kind = "sqlite"

    def __init__(self, name: str, settings: Optional[Dict[str, Any]] = None,
                 logger: Optional[logging.Logger] = None):
        super().__init__(name, settings, logger)

        path = self.settings.get("path")
        if not path:
            raise ValueError(f"sqlite[{name}]: missing `path' setting")

        self.store = PointStore(str(path))
        self.store.connect()

    def get_plots(self, query: Query) -> List[Series]:
        models = self.store.models
        wanted = {(qs.metric.source, qs.metric.name) for qs in query.group.series}

        try:
            series_rows = list(
                models.MetricSeries.select(models.MetricSeries, models.Source)
                .join(models.Source)
                .where(
                    models.Source.name.in_({source for source, _ in wanted}) &
                    models.MetricSeries.metric_name.in_({metric for _, metric in wanted})
                )
            )
            series_ids = {(row.source.name, row.metric_name): row.id for row in series_rows}

            df = pd.DataFrame()
            if series_ids:
                points_query = (models.MetricPoint
                                .select(models.MetricPoint.series, models.MetricPoint.timestamp,
                                        models.MetricPoint.value)
                                .where(
                                    (models.MetricPoint.series.in_(list(series_ids.values()))) &
                                    (models.MetricPoint.timestamp >= int(query.start_time)) &
                                    (models.MetricPoint.timestamp <= int(query.end_time))
                                )
                                .order_by(models.MetricPoint.timestamp)
                                .dicts())
                df = pd.DataFrame(list(points_query))
        except PeeweeException as e:
            raise ConnectorFailure(self.name, f"unable to perform query: {e}") from e

        if not df.empty:
            df["value"] = pd.to_numeric(df["value"], errors="coerce")
            groups = {series_id: frame for series_id, frame in df.groupby("series")}
        else:
            groups = {}

        result = []
        for query_series in query.group.series:
            key = (query_series.metric.source, query_series.metric.name)
            points = groups.get(series_ids.get(key))

            if points is None:
                self.logger.debug(f"sqlite[{self.name}]: no points for {query_series.metric}")
                result.append(Series(name=query_series.name))
                continue

            step = points["timestamp"].diff().median()
            result.append(Series(
                name=query_series.name,
                plots=[Plot(time=float(ts), value=float(value))
                       for ts, value in zip(points["timestamp"], points["value"])],
                step=int(step) if pd.notna(step) else 0,
            ))

        return result

    def refresh(self, origin_name: str, output_queue: "queue.Queue[CatalogRecord]") -> None:
        models = self.store.models

        try:
            rows = list(
                models.MetricSeries.select(models.MetricSeries, models.Source)
                .join(models.Source)
                .order_by(models.Source.name, models.MetricSeries.metric_name)
            )
        except PeeweeException as e:
            raise ConnectorFailure(self.name, f"unable to list metrics: {e}") from e

        for row in rows:
            output_queue.put(CatalogRecord(
                origin=origin_name,
                source=row.source.name,
                metric=row.metric_name,
                connector=self,
            ))

        self.logger.debug(f"sqlite[{self.name}]: discovered {len(rows)} metrics")

    def close(self) -> None:
        self.store.close()
