"""Connector query types: one Query is dispatched to exactly one connector."""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from .operators import OperatorType


@dataclass
class QueryMetric:
    """Backend-native metric identity."""
    name: str
    origin: str
    source: str

    def __str__(self) -> str:
        return f"QueryMetric{{name={self.name!r} source={self.source!r} origin={self.origin!r}}}"


@dataclass
class QuerySeries:
    """
    A metric to fetch, keyed by `name`.

    Connectors must name each returned series after the QuerySeries it
    answers; the federation layer maps these keys back to logical names.
    """
    name: str
    metric: QueryMetric
    options: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"QuerySeries{{name={self.name!r} metric={self.metric} options={self.options}}}"


@dataclass
class QueryGroup:
    type: OperatorType = OperatorType.NONE
    series: List[QuerySeries] = field(default_factory=list)
    options: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        series = ", ".join(str(entry) for entry in self.series)
        return f"QueryGroup{{type={self.type.value} options={self.options} series=[{series}]}}"


@dataclass
class Query:
    group: QueryGroup
    start_time: float
    end_time: float
    sample: int

    def __str__(self) -> str:
        return (f"Query{{start_time={self.start_time} end_time={self.end_time} "
                f"sample={self.sample} group={self.group}}}")
