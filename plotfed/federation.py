"""
Query federation.

Resolves the series references of a graph against a catalog snapshot, sends
one batched Query per connector, maps the returned series back to their
logical names and runs the consolidation/operator/summary pipeline per group.

Per-item failures (unknown metric, failing or slow connector) degrade the
affected series to "no data" and are reported as diagnostics; a group whose
metrics span several connectors fails on its own while sibling groups
continue.
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from .catalog import Catalog, CatalogRecord, CatalogSnapshot
from .errors import BackendConflict, ConnectorFailure, InvalidArgument, UnresolvedMetric
from .library import GraphDef, GroupDef, Library, SeriesRef
from .plot import (
    ConsolidationType, OperatorType, Query, QueryGroup, QueryMetric, QuerySeries, Series,
    apply_operator, consolidate_series, serialize_value,
)

logger = logging.getLogger("plotfed.federation")

DEFAULT_QUERY_TIMEOUT = 30.0
DEFAULT_MAX_WORKERS = 8


@dataclass
class Outcome:
    """A logical series: either a series or a diagnostic explaining why there is none."""
    name: str
    series: Optional[Series] = None
    diagnostic: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.series is not None

    def to_json(self) -> Dict[str, Any]:
        if self.series is None:
            return {"name": self.name, "plots": None, "summary": {}, "error": self.diagnostic}
        return {
            "name": self.name,
            "step": self.series.step,
            "plots": self.series.to_json(),
            "summary": {key: serialize_value(value) for key, value in self.series.summary.items()},
        }


@dataclass
class GroupResult:
    name: str
    type: OperatorType
    options: Dict[str, Any] = field(default_factory=dict)
    series: List[Outcome] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    def diagnostics(self) -> List[str]:
        return self.errors + [outcome.diagnostic for outcome in self.series if outcome.diagnostic]

    def to_json(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type.value,
            "options": self.options,
            "series": [outcome.to_json() for outcome in self.series],
            "errors": self.errors,
        }


@dataclass
class StackResult:
    name: str
    groups: List[GroupResult] = field(default_factory=list)

    def to_json(self) -> Dict[str, Any]:
        return {"name": self.name, "groups": [group.to_json() for group in self.groups]}


@dataclass
class PlotResult:
    id: str
    name: str
    start_time: float
    end_time: float
    step: float
    description: str = ""
    stacks: List[StackResult] = field(default_factory=list)

    @property
    def errors(self) -> List[str]:
        return [message for stack in self.stacks for group in stack.groups for message in group.diagnostics()]

    def to_json(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "start": int(self.start_time),
            "end": int(self.end_time),
            "step": self.step,
            "stacks": [stack.to_json() for stack in self.stacks],
            "errors": self.errors,
        }


@dataclass
class ValueResult:
    values: Dict[str, Dict[str, float]] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)

    def to_json(self) -> Dict[str, Any]:
        return {
            "values": {
                name: {key: serialize_value(value) for key, value in stats.items()}
                for name, stats in self.values.items()
            },
            "errors": self.errors,
        }


@dataclass
class _Member:
    """One resolved metric of a group, with its dispatch key once batched."""
    name: str
    record: CatalogRecord
    scale: Optional[float] = None
    key: str = ""


@dataclass
class _ResolvedGroup:
    definition: GroupDef
    # declaration order: resolved members and unresolved-reference outcomes
    entries: List[Union[_Member, Outcome]] = field(default_factory=list)
    # expanded pairs missing from the catalog, siblings still resolved
    warnings: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def members(self) -> List[_Member]:
        return [entry for entry in self.entries if isinstance(entry, _Member)]


@dataclass
class _Batch:
    connector: Any
    series: List[QuerySeries] = field(default_factory=list)


class Federator:
    """Federates graph queries over the connectors registered in the catalog."""

    def __init__(self, catalog: Catalog, library: Library, query_timeout: float = DEFAULT_QUERY_TIMEOUT,
                 max_workers: int = DEFAULT_MAX_WORKERS):
        self.catalog = catalog
        self.library = library
        self.query_timeout = query_timeout
        # Timed-out calls keep their worker until the connector returns; the
        # pool bounds how many such calls can pile up
        self.executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="plotfed-query")

    def close(self) -> None:
        self.executor.shutdown(wait=False)

    # ---------------------------------------------------------------- resolve

    def resolve_ref(self, ref: SeriesRef, snapshot: CatalogSnapshot) -> Tuple[List[CatalogRecord], List[str]]:
        """
        Resolve a series reference (possibly using source/metric groups) to catalog records.

        Returns the resolved records and one diagnostic per expanded
        (source, metric) pair missing from the catalog. Raises
        UnresolvedMetric only when nothing resolves.
        """
        if not snapshot.has_origin(ref.origin):
            raise UnresolvedMetric(f"unknown origin `{ref.origin}'")

        records, missing = [], []
        for source in self.library.expand_sources(ref.source, snapshot, ref.origin):
            for metric in self.library.expand_metrics(ref.metric, snapshot, ref.origin, source):
                record = snapshot.get_metric(ref.origin, source, metric)
                if record is None:
                    missing.append(f"unknown metric `{metric}' for source `{source}' in origin `{ref.origin}'")
                    continue
                records.append(record)

        if not records:
            if len(missing) == 1:
                raise UnresolvedMetric(missing[0])
            raise UnresolvedMetric(
                f"no metric matching `{ref.metric}' for source `{ref.source}' in origin `{ref.origin}'")
        return records, missing

    def resolve_group(self, group: GroupDef, snapshot: CatalogSnapshot) -> _ResolvedGroup:
        """
        Resolve every reference of a group.

        A reference expanding to several metrics yields members named
        "<name>-<index>". Raises BackendConflict when the resolved metrics
        belong to more than one connector.
        """
        resolved = _ResolvedGroup(definition=group)

        for ref in group.series:
            try:
                records, missing = self.resolve_ref(ref, snapshot)
            except UnresolvedMetric as e:
                logger.warning(f"federation: series `{ref.name}' of group `{group.name}': {e}")
                resolved.entries.append(Outcome(ref.name, diagnostic=f"{ref.name}: {e}"))
                continue

            for message in missing:
                logger.warning(f"federation: series `{ref.name}' of group `{group.name}': {message}")
                resolved.warnings.append(f"{ref.name}: {message}")

            for index, record in enumerate(records):
                name = ref.name if len(records) == 1 else f"{ref.name}-{index}"
                resolved.entries.append(_Member(name=name, record=record, scale=ref.scale))

        connectors = {id(member.record.connector): member.record.connector for member in resolved.members}
        if len(connectors) > 1:
            names = ", ".join(sorted(connector.get_name() for connector in connectors.values()))
            raise BackendConflict(f"group `{group.name}' spans multiple connectors ({names})")

        return resolved

    def prepare_groups(self, graph: GraphDef, snapshot: CatalogSnapshot) -> List[List[_ResolvedGroup]]:
        """Resolve all groups of a graph, stack by stack, recording conflicts per group."""
        stacks = []
        for stack in graph.stacks:
            groups = []
            for group in stack.groups:
                try:
                    groups.append(self.resolve_group(group, snapshot))
                except BackendConflict as e:
                    logger.error(f"federation: {e}")
                    groups.append(_ResolvedGroup(definition=group, error=str(e)))
            stacks.append(groups)
        return stacks

    @staticmethod
    def batch_members(stacks: List[List[_ResolvedGroup]]) -> Dict[int, _Batch]:
        """Assign a unique dispatch key to every member and batch them per connector."""
        batches: Dict[int, _Batch] = {}
        counter = 0

        for groups in stacks:
            for group in groups:
                if group.error:
                    continue
                for member in group.members:
                    member.key = f"s{counter}"
                    counter += 1

                    connector = member.record.connector
                    batch = batches.setdefault(id(connector), _Batch(connector=connector))
                    batch.series.append(QuerySeries(
                        name=member.key,
                        metric=QueryMetric(
                            name=member.record.metric,
                            origin=member.record.origin,
                            source=member.record.source,
                        ),
                    ))

        return batches

    # --------------------------------------------------------------- dispatch

    async def dispatch(self, batches: Dict[int, _Batch], call: Callable[..., Any]) -> Dict[int, Any]:
        """
        Run `call(connector, series)` for every batch concurrently in worker threads.

        Returns a mapping of batch id to the call result, or to a
        ConnectorFailure when the call failed or did not finish within
        query_timeout.
        """
        if not batches:
            return {}

        loop = asyncio.get_running_loop()
        futures = {
            loop.run_in_executor(self.executor, call, batch.connector, batch.series): batch_id
            for batch_id, batch in batches.items()
        }

        timeout = self.query_timeout if self.query_timeout and self.query_timeout > 0 else None
        done, pending = await asyncio.wait(futures.keys(), timeout=timeout)

        results: Dict[int, Any] = {}
        for future in done:
            batch_id = futures[future]
            connector_name = batches[batch_id].connector.get_name()
            error = future.exception()
            if error is None:
                results[batch_id] = future.result()
            elif isinstance(error, ConnectorFailure):
                logger.error(f"federation: {error}")
                results[batch_id] = error
            else:
                logger.error(f"federation: connector `{connector_name}' failed: {error}")
                results[batch_id] = ConnectorFailure(connector_name, str(error))

        for future in pending:
            batch_id = futures[future]
            connector_name = batches[batch_id].connector.get_name()
            future.cancel()
            logger.error(f"federation: connector `{connector_name}' timed out after {timeout}s")
            results[batch_id] = ConnectorFailure(connector_name, f"timed out after {timeout}s")

        return results

    # ------------------------------------------------------------------ plots

    async def get_plots(self, graph: GraphDef, start_time: float, end_time: float, sample: int,
                        percentiles: Optional[Sequence[float]] = None) -> PlotResult:
        """Fetch, consolidate, combine and summarize every group of a graph."""
        if sample <= 0:
            raise InvalidArgument(f"sample must be positive, got {sample}")

        snapshot = self.catalog.snapshot()
        stacks = self.prepare_groups(graph, snapshot)
        batches = self.batch_members(stacks)

        def fetch(connector, series: List[QuerySeries]) -> List[Series]:
            query = Query(
                group=QueryGroup(type=OperatorType.NONE, series=series),
                start_time=start_time,
                end_time=end_time,
                sample=sample,
            )
            logger.debug(f"federation: {connector.get_name()} <- {query}")
            return connector.get_plots(query)

        results = await self.dispatch(batches, fetch)

        fetched: Dict[str, Union[Series, ConnectorFailure]] = {}
        for batch_id, result in results.items():
            if isinstance(result, ConnectorFailure):
                for query_series in batches[batch_id].series:
                    fetched[query_series.name] = result
                continue
            for series in result:
                fetched[series.name] = series

        plot_result = PlotResult(
            id=graph.id,
            name=graph.name,
            description=graph.description,
            start_time=start_time,
            end_time=end_time,
            step=(end_time - start_time) / sample,
        )
        for stack, groups in zip(graph.stacks, stacks):
            plot_result.stacks.append(StackResult(
                name=stack.name,
                groups=[self.build_group(group, fetched, start_time, end_time, sample, percentiles)
                        for group in groups],
            ))

        # Consolidation caps the sample at the longest raw series
        max_plots = max((len(outcome.series) for stack in plot_result.stacks for group in stack.groups
                         for outcome in group.series if outcome.series is not None), default=0)
        if max_plots > 0:
            plot_result.step = (end_time - start_time) / max_plots

        logger.debug(f"federation: graph `{graph.id or graph.name}' done, "
                     f"{len(batches)} connectors, {len(plot_result.errors)} errors")
        return plot_result

    def build_group(self, group: _ResolvedGroup, fetched: Dict[str, Union[Series, ConnectorFailure]],
                    start_time: float, end_time: float, sample: int,
                    percentiles: Optional[Sequence[float]] = None) -> GroupResult:
        definition = group.definition
        result = GroupResult(name=definition.name, type=definition.type, options=dict(definition.options))

        if group.error:
            result.errors.append(group.error)
            return result

        result.errors.extend(group.warnings)

        outcomes: List[Outcome] = []
        for entry in group.entries:
            if isinstance(entry, Outcome):
                outcomes.append(entry)
                continue

            series = fetched.get(entry.key)
            if series is None:
                outcomes.append(Outcome(entry.name, diagnostic=f"{entry.name}: no series returned"))
            elif isinstance(series, ConnectorFailure):
                outcomes.append(Outcome(entry.name, diagnostic=f"{entry.name}: {series}"))
            else:
                series.name = entry.name
                if entry.scale:
                    series.scale(entry.scale)
                outcomes.append(Outcome(entry.name, series=series))

        if definition.type == OperatorType.NONE:
            for outcome in outcomes:
                if outcome.series is None:
                    continue
                if definition.scale:
                    outcome.series.scale(definition.scale)
                outcome.series.downsample(start_time, end_time, sample, definition.consolidate)
                outcome.series.summarize(percentiles)
            result.series = outcomes
            return result

        result.errors.extend(outcome.diagnostic for outcome in outcomes if outcome.diagnostic)
        available = [outcome.series for outcome in outcomes if outcome.series is not None]
        if not available:
            result.series = [Outcome(definition.name, diagnostic=f"{definition.name}: no data")]
            return result

        consolidated = consolidate_series(available, start_time, end_time, sample, ConsolidationType.AVERAGE)
        combined = apply_operator(consolidated, definition.type)
        combined.name = definition.name
        if definition.scale:
            combined.scale(definition.scale)
        combined.summarize(percentiles)

        result.series = [Outcome(definition.name, series=combined)]
        return result

    # ----------------------------------------------------------------- values

    async def get_values(self, graph: GraphDef, ref_time: float,
                         percentiles: Optional[Sequence[float]] = None) -> ValueResult:
        """
        Current summary values of every series of a graph.

        Each connector computes its values over its own value window; group
        operators and scales are not applied.
        """
        snapshot = self.catalog.snapshot()
        stacks = self.prepare_groups(graph, snapshot)
        batches = self.batch_members(stacks)

        def fetch(connector, series: List[QuerySeries]) -> Dict[str, Dict[str, float]]:
            query = Query(
                group=QueryGroup(type=OperatorType.NONE, series=series),
                start_time=ref_time,
                end_time=ref_time,
                sample=1,
            )
            return connector.get_value(query, ref_time, percentiles)

        results = await self.dispatch(batches, fetch)

        value_result = ValueResult()
        for groups in stacks:
            for group in groups:
                if group.error:
                    value_result.errors.append(group.error)
                    continue
                value_result.errors.extend(group.warnings)
                for entry in group.entries:
                    if isinstance(entry, Outcome):
                        value_result.errors.append(entry.diagnostic)
                        continue
                    result = results.get(id(entry.record.connector))
                    if isinstance(result, ConnectorFailure):
                        value_result.errors.append(f"{entry.name}: {result}")
                    elif result is not None and entry.key in result:
                        value_result.values[entry.name] = result[entry.key]
                    else:
                        value_result.errors.append(f"{entry.name}: no value returned")

        return value_result
