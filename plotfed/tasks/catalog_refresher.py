"""Catalog refresh background task."""

import asyncio
import logging
from typing import Dict

from ..catalog import Catalog
from ..connectors import Connector

logger = logging.getLogger("plotfed.catalog")


async def catalog_refresh_loop(catalog: Catalog, connectors: Dict[str, Connector], interval_seconds: int = 300):
    """
    Background task that periodically refreshes every origin of the catalog.

    Args:
        catalog: Catalog receiving the refreshed snapshots
        connectors: Mapping of origin name to the connector serving it
        interval_seconds: Seconds between refresh runs (default: 300 = 5 minutes)
    """
    logger.info(f"catalog refresher: {len(connectors)} connectors, interval {interval_seconds}s")
    loop = asyncio.get_running_loop()

    while True:
        try:
            # Connector refreshes block; keep them off the event loop
            total = await loop.run_in_executor(None, catalog.refresh_all, connectors)
            logger.debug(f"catalog refresher: {total} metrics, version {catalog.version}")
        except Exception as e:
            logger.error(f"catalog refresher: loop error: {e}")

        await asyncio.sleep(interval_seconds)
