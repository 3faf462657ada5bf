"""
Route factories

- plot_routes.py: graph plots and current values
- catalog_routes.py: origin/source/metric browsing
"""

from .catalog_routes import create_catalog_routes
from .plot_routes import create_plot_routes

__all__ = [
    'create_catalog_routes',
    'create_plot_routes',
]
