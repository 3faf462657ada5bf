"""
Backend connectors

- base.py: Connector capability interface (get_name, get_plots, get_value, refresh)
- sqlite.py: peewee SQLite point-store connector
"""

import logging
from typing import Any, Dict, Optional

from .base import Connector
from .sqlite import SQLiteConnector

logger = logging.getLogger("plotfed.connector")

# Registry mapping config `kind' values to connector classes
CONNECTOR_REGISTRY = {
    "sqlite": SQLiteConnector,
}


def create_connector(name: str, kind: str, settings: Optional[Dict[str, Any]] = None) -> Connector:
    """Instantiate a connector from its configuration. Raises ValueError on unknown kinds."""
    connector_class = CONNECTOR_REGISTRY.get(kind)
    if connector_class is None:
        raise ValueError(f"unknown connector kind `{kind}' for `{name}'")

    logger.info(f"creating {kind} connector `{name}'")
    return connector_class(name, settings)


__all__ = [
    'CONNECTOR_REGISTRY',
    'Connector',
    'SQLiteConnector',
    'create_connector',
]
