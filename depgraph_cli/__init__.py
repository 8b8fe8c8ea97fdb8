"""DepGraph CLI: module/import dependency graphs for JS/TS/CSS source trees."""

__version__ = "0.3.0"

from .errors import CapacityError, DepGraphError, InputError, WatchError
from .models import GraphData, GraphEdge, GraphNode
from .scanner import extract, extract_from, find_root_marker
from .watch_registry import Debouncer, WatchRegistry

__all__ = [
    "__version__",
    "extract",
    "extract_from",
    "find_root_marker",
    "GraphData",
    "GraphEdge",
    "GraphNode",
    "WatchRegistry",
    "Debouncer",
    "DepGraphError",
    "InputError",
    "CapacityError",
    "WatchError",
]
