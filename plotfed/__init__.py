"""
plotfed - federated time-series plot service

- plot/: plot model, consolidation, operators, query types
- catalog.py: versioned origin/source/metric catalog
- connectors/: backend connectors (SQLite point store)
- library.py: graph definitions, source and metric groups
- federation.py: per-connector dispatch and per-group pipeline
- core/, api/, tasks/: FastAPI server, routes and background refresh
"""

__version__ = "0.1.0"
