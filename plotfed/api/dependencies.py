#!/usr/bin/env python3
"""
plotfed API Dependencies - shared service objects and request helpers
"""

import logging
from typing import Dict, List

from fastapi import HTTPException, status

from ..catalog import Catalog
from ..connectors import Connector
from ..core.config import ServerConfig
from ..federation import Federator
from ..library import GraphDef, Library
from .schemas import PlotRequest

logger = logging.getLogger("plotfed.server")


class ServiceDependencies:
    """Container for the objects route handlers share."""

    def __init__(self, config: ServerConfig, catalog: Catalog, library: Library,
                 federator: Federator, connectors: Dict[str, Connector]):
        self.config = config
        self.catalog = catalog
        self.library = library
        self.federator = federator
        # origin -> connector
        self.connectors = connectors

    def connector_names(self) -> List[str]:
        return sorted(connector.get_name() for connector in self.connectors.values())

    def resolve_graph(self, body: PlotRequest) -> GraphDef:
        """Graph named by a plot request: library graph, inline definition or single metric."""
        if body.graph is not None:
            return body.graph

        if body.id is not None:
            try:
                return self.library.get_graph(body.id)
            except KeyError:
                logger.warning(f"unknown graph requested: {body.id}")
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"unknown graph `{body.id}'")

        return self.library.graph_for_metric(body.origin, body.source, body.metric)
