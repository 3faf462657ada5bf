#!/usr/bin/env python3
"""
Plot Routes - Graph Plots and Current Values
"""

import logging
import time

from fastapi import APIRouter, HTTPException

from ...errors import InvalidArgument
from ..dependencies import ServiceDependencies
from ..schemas import PlotRequest

logger = logging.getLogger("plotfed.server")


def create_plot_routes(deps: ServiceDependencies) -> APIRouter:
    """Create plot-related routes."""
    router = APIRouter()

    @router.post("/api/plots")
    async def get_plots(body: PlotRequest):
        """Consolidated plots and summaries for every series of a graph."""
        graph = deps.resolve_graph(body)

        try:
            start_time, end_time = body.resolve_window(deps.config.default_range)
        except InvalidArgument as e:
            raise HTTPException(status_code=400, detail=str(e))

        if end_time <= start_time:
            raise HTTPException(status_code=400, detail="time window is empty")

        sample = body.sample or deps.config.default_sample
        logger.debug(f"plots request: graph={graph.id or graph.name} "
                     f"window=[{int(start_time)}, {int(end_time)}] sample={sample}")

        try:
            result = await deps.federator.get_plots(graph, start_time, end_time, sample, body.percentiles)
        except InvalidArgument as e:
            raise HTTPException(status_code=400, detail=str(e))

        if result.errors:
            logger.info(f"plots request for {graph.id or graph.name}: {len(result.errors)} series degraded")

        return result.to_json()

    @router.post("/api/plots/values")
    async def get_values(body: PlotRequest):
        """Current summary values of every series of a graph, as seen by the connectors."""
        graph = deps.resolve_graph(body)
        ref_time = body.time.timestamp() if body.time is not None else time.time()

        result = await deps.federator.get_values(graph, ref_time, body.percentiles)
        return result.to_json()

    return router
