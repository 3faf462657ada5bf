#!/usr/bin/env python3
"""
plotfed FastAPI application factory
"""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from typing import Dict, Optional

from fastapi import FastAPI

from ..api.dependencies import ServiceDependencies
from ..api.routes.catalog_routes import create_catalog_routes
from ..api.routes.plot_routes import create_plot_routes
from ..catalog import Catalog
from ..connectors import Connector, create_connector
from ..federation import Federator
from ..library import Library
from ..tasks.catalog_refresher import catalog_refresh_loop
from .config import ServerConfig

logger = logging.getLogger("plotfed.server")


def create_connectors(config: ServerConfig) -> Dict[str, Connector]:
    """Instantiate configured connectors, keyed by the origin they serve."""
    connectors = {}
    for connector_config in config.connectors:
        connectors[connector_config.origin] = create_connector(
            connector_config.name, connector_config.kind, connector_config.settings)
    return connectors


def create_app(config: ServerConfig, connectors: Optional[Dict[str, Connector]] = None,
               library: Optional[Library] = None, start_refresher: bool = True) -> FastAPI:
    """
    Build the FastAPI app.

    `connectors` and `library` default to the ones described by the config.
    With start_refresher the lifespan hook runs the background catalog
    refresh loop; otherwise the catalog is refreshed once at startup.
    """
    if connectors is None:
        connectors = create_connectors(config)
    if library is None:
        library = Library.from_file(config.library_path)

    catalog = Catalog(queue_size=config.catalog_queue_size)
    federator = Federator(catalog, library, query_timeout=config.query_timeout,
                          max_workers=config.query_workers)
    deps = ServiceDependencies(config, catalog, library, federator, connectors)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        refresher = None
        if start_refresher:
            refresher = asyncio.create_task(
                catalog_refresh_loop(catalog, connectors, config.refresh_interval))
        else:
            await asyncio.get_running_loop().run_in_executor(None, catalog.refresh_all, connectors)

        logger.info(f"plotfed server started with {len(connectors)} connectors")
        try:
            yield
        finally:
            if refresher is not None:
                refresher.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await refresher
            federator.close()
            for connector in connectors.values():
                connector.close()
            logger.info("plotfed server stopped")

    app = FastAPI(title="plotfed", lifespan=lifespan)
    app.state.config = config
    app.state.catalog = catalog
    app.state.library = library
    app.state.federator = federator
    app.state.connectors = connectors

    @app.get("/health")
    def health():
        return {
            "status": "ok",
            "catalog_version": catalog.version,
            "metrics": len(catalog.snapshot()),
            "connectors": deps.connector_names(),
        }

    app.include_router(create_plot_routes(deps))
    app.include_router(create_catalog_routes(deps))
    return app
