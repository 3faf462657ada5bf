"""
Metric catalog.

Maps origin -> source -> metric names to the connector owning them. Readers
take an immutable CatalogSnapshot once per request; connector refreshes build
a new snapshot and swap it in atomically, so a request never observes a
half-applied refresh.
"""

import logging
import queue
import threading
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from .errors import ConnectorFailure

logger = logging.getLogger("plotfed.catalog")

DEFAULT_QUEUE_SIZE = 1000

_REFRESH_DONE = object()


@dataclass(frozen=True)
class CatalogRecord:
    """One discovered metric and the connector instance that owns it."""
    origin: str
    source: str
    metric: str
    connector: Any


class CatalogSnapshot:
    """Read-only view of the catalog at a given version."""

    def __init__(self, entries: Optional[Dict[str, Dict[str, Dict[str, CatalogRecord]]]] = None,
                 version: int = 0):
        self._entries = entries or {}
        self.version = version

    def get_metric(self, origin: str, source: str, metric: str) -> Optional[CatalogRecord]:
        return self._entries.get(origin, {}).get(source, {}).get(metric)

    def has_origin(self, origin: str) -> bool:
        return origin in self._entries

    def origins(self) -> List[str]:
        return sorted(self._entries)

    def sources(self, origin: str) -> List[str]:
        return sorted(self._entries.get(origin, {}))

    def metrics(self, origin: str, source: str) -> List[str]:
        return sorted(self._entries.get(origin, {}).get(source, {}))

    def with_origin(self, origin: str, records: Iterable[CatalogRecord]) -> "CatalogSnapshot":
        """Copy of this snapshot where `origin` is replaced by `records`."""
        entries = dict(self._entries)
        sources: Dict[str, Dict[str, CatalogRecord]] = {}
        for record in records:
            sources.setdefault(record.source, {})[record.metric] = record
        if sources:
            entries[origin] = sources
        else:
            entries.pop(origin, None)
        return CatalogSnapshot(entries, self.version + 1)

    def __len__(self) -> int:
        return sum(len(metrics) for sources in self._entries.values() for metrics in sources.values())


class Catalog:
    """Versioned catalog with copy-on-refresh semantics."""

    def __init__(self, queue_size: int = DEFAULT_QUEUE_SIZE):
        self.queue_size = queue_size
        self._snapshot = CatalogSnapshot()
        self._write_lock = threading.Lock()

    def snapshot(self) -> CatalogSnapshot:
        return self._snapshot

    @property
    def version(self) -> int:
        return self._snapshot.version

    def replace_origin(self, origin: str, records: Iterable[CatalogRecord]) -> CatalogSnapshot:
        with self._write_lock:
            self._snapshot = self._snapshot.with_origin(origin, records)
            return self._snapshot

    def refresh(self, connector, origin: str) -> int:
        """
        Refresh one origin from its connector.

        The connector runs in a producer thread and pushes records into a
        bounded queue (blocking when full); this thread drains it. On
        failure the previous snapshot is kept and ConnectorFailure is raised.

        Returns:
            Number of records collected
        """
        records_queue: "queue.Queue" = queue.Queue(maxsize=self.queue_size)
        errors: List[BaseException] = []

        def produce():
            try:
                connector.refresh(origin, records_queue)
            except Exception as e:
                errors.append(e)
            finally:
                records_queue.put(_REFRESH_DONE)

        producer = threading.Thread(target=produce, name=f"refresh-{connector.get_name()}", daemon=True)
        producer.start()

        records = []
        while True:
            record = records_queue.get()
            if record is _REFRESH_DONE:
                break
            if record.origin != origin:
                logger.warning(f"catalog: ignoring record for origin `{record.origin}' "
                               f"from connector `{connector.get_name()}' (expected `{origin}')")
                continue
            records.append(record)

        producer.join()

        if errors:
            raise ConnectorFailure(connector.get_name(), f"refresh failed: {errors[0]}") from errors[0]

        snapshot = self.replace_origin(origin, records)
        logger.info(f"catalog: origin `{origin}' refreshed from `{connector.get_name()}' "
                    f"({len(records)} metrics, version {snapshot.version})")
        return len(records)

    def refresh_all(self, connectors: Dict[str, Any]) -> int:
        """Refresh every origin -> connector pair, logging failures. Returns total records."""
        total = 0
        for origin, connector in connectors.items():
            try:
                total += self.refresh(connector, origin)
            except ConnectorFailure as e:
                logger.error(f"catalog: {e}")
        return total
