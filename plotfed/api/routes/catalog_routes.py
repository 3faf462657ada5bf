#!/usr/bin/env python3
"""
Catalog Routes - Origins, Sources and Metrics Browsing
"""

from fastapi import APIRouter, HTTPException

from ..dependencies import ServiceDependencies


def create_catalog_routes(deps: ServiceDependencies) -> APIRouter:
    """Create catalog browsing routes."""
    router = APIRouter()

    @router.get("/api/catalog/origins")
    def list_origins():
        snapshot = deps.catalog.snapshot()
        return {"version": snapshot.version, "origins": snapshot.origins()}

    @router.get("/api/catalog/origins/{origin}/sources")
    def list_sources(origin: str):
        snapshot = deps.catalog.snapshot()
        if not snapshot.has_origin(origin):
            raise HTTPException(status_code=404, detail=f"unknown origin `{origin}'")
        return {"version": snapshot.version, "origin": origin, "sources": snapshot.sources(origin)}

    @router.get("/api/catalog/origins/{origin}/sources/{source}/metrics")
    def list_metrics(origin: str, source: str):
        snapshot = deps.catalog.snapshot()
        metrics = snapshot.metrics(origin, source)
        if not metrics:
            raise HTTPException(status_code=404, detail=f"unknown source `{source}' in origin `{origin}'")
        return {"version": snapshot.version, "origin": origin, "source": source, "metrics": metrics}

    return router
