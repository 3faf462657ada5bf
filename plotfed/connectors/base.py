import logging
import queue
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from ..catalog import CatalogRecord
from ..plot import Query, Series

DEFAULT_VALUE_WINDOW = 60


class Connector(ABC):
    """
    Base class for all backend connectors.

    A connector answers plot queries for the metrics it owns and feeds the
    catalog with the (source, metric) pairs it discovers on refresh.
    """

    kind = "base"

    def __init__(self, name: str, settings: Optional[Dict[str, Any]] = None,
                 logger: Optional[logging.Logger] = None):
        self.name = name
        self.settings = settings or {}
        self.value_window = float(self.settings.get("value_window", DEFAULT_VALUE_WINDOW))
        self.logger = logger or logging.getLogger("plotfed.connector")

    def get_name(self) -> str:
        return self.name

    @abstractmethod
    def get_plots(self, query: Query) -> List[Series]:
        """
        Fetch raw series for every QuerySeries of the query group.

        Each returned series is named after the QuerySeries.name it answers;
        order is connector-defined.
        """

    def get_value(self, query: Query, ref_time: float,
                  percentiles: Optional[Sequence[float]] = None) -> Dict[str, Dict[str, float]]:
        """Summary statistics of each series over [ref_time - value_window, ref_time]."""
        window_query = Query(
            group=query.group,
            start_time=ref_time - self.value_window,
            end_time=ref_time,
            sample=query.sample,
        )

        result = {}
        for series in self.get_plots(window_query):
            series.summarize(percentiles)
            result[series.name] = dict(series.summary)
        return result

    @abstractmethod
    def refresh(self, origin_name: str, output_queue: "queue.Queue[CatalogRecord]") -> None:
        """Push one CatalogRecord per discovered metric into output_queue."""

    def close(self) -> None:
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
