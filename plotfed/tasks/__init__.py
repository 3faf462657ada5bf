"""Background tasks"""

from .catalog_refresher import catalog_refresh_loop

__all__ = ['catalog_refresh_loop']
