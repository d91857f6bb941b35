try:
    from ._version import version as __version__  # populated by setuptools-scm
except ModuleNotFoundError:
    __version__ = "0.0.0"

from .graph import (
    WfGraph,
    GraphLoadError,
    GraphNotFoundError,
    GraphStructureError,
    NodeExtraRegistry,
    load_graph,
    load_latest_graph,
)

__all__ = [
    "__version__",
    "WfGraph",
    "GraphLoadError",
    "GraphNotFoundError",
    "GraphStructureError",
    "NodeExtraRegistry",
    "load_graph",
    "load_latest_graph",
]
