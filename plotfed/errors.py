"""
plotfed error taxonomy.

Structural errors (bad arguments, conflicting backends) are raised to the
caller. Per-item errors (unknown metric, failing connector) are caught by the
federation layer and turned into diagnostics.
"""


class PlotfedError(Exception):
    """Base class for all plotfed errors."""


class InvalidArgument(PlotfedError, ValueError):
    """Malformed consolidation/operator input (zero sample, empty series list)."""


class BackendConflict(PlotfedError):
    """A group references metrics owned by more than one connector."""


class UnresolvedMetric(PlotfedError):
    """A metric, metric group or source group cannot be found in the catalog."""


class ConnectorFailure(PlotfedError):
    """A connector call failed (network, protocol, malformed backend data, timeout)."""

    def __init__(self, connector: str, message: str):
        super().__init__(f"{connector}: {message}")
        self.connector = connector
