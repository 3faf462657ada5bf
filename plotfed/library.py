"""
Graph library.

Read-only set of graph definitions and source/metric groups loaded from YAML.
Series references may name a group instead of a concrete source or metric
with the "group:<name>" prefix; groups expand against the catalog snapshot.
"""

import fnmatch
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field

from .catalog import CatalogSnapshot
from .errors import UnresolvedMetric
from .plot import ConsolidationType, OperatorType

logger = logging.getLogger("plotfed.library")

GROUP_PREFIX = "group:"


class SeriesRef(BaseModel):
    name: str
    origin: str
    source: str
    metric: str
    scale: Optional[float] = None


class GroupDef(BaseModel):
    name: str
    type: OperatorType = OperatorType.NONE
    series: List[SeriesRef] = Field(default_factory=list)
    scale: Optional[float] = None
    consolidate: ConsolidationType = ConsolidationType.AVERAGE
    options: Dict[str, Any] = Field(default_factory=dict)


class StackDef(BaseModel):
    name: str = ""
    groups: List[GroupDef] = Field(default_factory=list)


class GraphDef(BaseModel):
    id: str = ""
    name: str = ""
    description: str = ""
    stacks: List[StackDef] = Field(default_factory=list)


class GroupEntryDef(BaseModel):
    origin: str
    pattern: str
    type: str = Field("single", pattern="^(single|glob|regexp)$")

    def matches(self, name: str) -> bool:
        if self.type == "glob":
            return fnmatch.fnmatchcase(name, self.pattern)
        if self.type == "regexp":
            return re.search(self.pattern, name) is not None
        return name == self.pattern


def is_group(name: str) -> bool:
    return name.startswith(GROUP_PREFIX)


class Library:
    """Graph definitions plus source and metric groups."""

    def __init__(self,
                 graphs: Optional[List[GraphDef]] = None,
                 source_groups: Optional[Dict[str, List[GroupEntryDef]]] = None,
                 metric_groups: Optional[Dict[str, List[GroupEntryDef]]] = None):
        self.graphs = {graph.id: graph for graph in graphs or []}
        self.source_groups = source_groups or {}
        self.metric_groups = metric_groups or {}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Library":
        graphs = [GraphDef(**graph) for graph in data.get("graphs") or []]
        source_groups = {
            name: [GroupEntryDef(**entry) for entry in entries]
            for name, entries in (data.get("source_groups") or {}).items()
        }
        metric_groups = {
            name: [GroupEntryDef(**entry) for entry in entries]
            for name, entries in (data.get("metric_groups") or {}).items()
        }
        return cls(graphs, source_groups, metric_groups)

    @classmethod
    def from_file(cls, path: Optional[str]) -> "Library":
        """Load the library from YAML; a missing file yields an empty library."""
        if not path or not Path(path).exists():
            logger.info(f"library file not found ({path}), starting with an empty library")
            return cls()

        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        library = cls.from_dict(data)
        logger.info(f"library loaded from {path}: {len(library.graphs)} graphs, "
                    f"{len(library.source_groups)} source groups, {len(library.metric_groups)} metric groups")
        return library

    def get_graph(self, graph_id: str) -> GraphDef:
        return self.graphs[graph_id]

    @staticmethod
    def graph_for_metric(origin: str, source: str, metric: str) -> GraphDef:
        """Ad hoc single-series graph for one metric reference."""
        return GraphDef(
            id="",
            name=metric,
            stacks=[StackDef(name="stack0", groups=[GroupDef(
                name=metric,
                series=[SeriesRef(name=metric, origin=origin, source=source, metric=metric)],
            )])],
        )

    def expand_group(self, name: str, kind: str, snapshot: CatalogSnapshot,
                     origin: str, source: Optional[str] = None) -> List[str]:
        """
        Expand a source or metric group into concrete names.

        Candidates are the origin's sources (kind "source") or the metrics of
        `source` (kind "metric") found in the snapshot; the result is sorted
        and de-duplicated. Unknown groups raise UnresolvedMetric.
        """
        if kind == "source":
            groups, candidates = self.source_groups, snapshot.sources(origin)
        elif kind == "metric":
            groups, candidates = self.metric_groups, snapshot.metrics(origin, source or "")
        else:
            raise ValueError(f"invalid group kind `{kind}'")

        if name not in groups:
            raise UnresolvedMetric(f"unknown {kind} group `{name}'")

        matched = set()
        for entry in groups[name]:
            if entry.origin != origin:
                continue
            matched.update(candidate for candidate in candidates if entry.matches(candidate))

        return sorted(matched)

    def expand_sources(self, source: str, snapshot: CatalogSnapshot, origin: str) -> List[str]:
        if not is_group(source):
            return [source]
        return self.expand_group(source[len(GROUP_PREFIX):], "source", snapshot, origin)

    def expand_metrics(self, metric: str, snapshot: CatalogSnapshot, origin: str, source: str) -> List[str]:
        if not is_group(metric):
            return [metric]
        return self.expand_group(metric[len(GROUP_PREFIX):], "metric", snapshot, origin, source)
