"""indexwright - per-scope search index builds with durable status tracking.

Rebuilds or incrementally updates named indexes from pluggable collectors
into pluggable index stores, one exclusive build per scope at a time.
"""

__version__ = "0.1.0"
__author__ = "indexwright contributors"

from indexwright.config import Settings, get_settings

__all__ = ["Settings", "get_settings", "__version__"]
