"""
wfload.graph
============

Versioned workflow graph loading.

Public API:

- load_latest_graph : load the highest stored version of a named graph.
- load_graph        : load one exact version of a named graph.
- WfGraph           : immutable, validated graph (nodes, arcs, adjacency).
- NodeExtraRegistry : node type -> extra-data loader registry.
- Node, Arc, NodeSource, GraphIdentity, NodeExtra, NoExtra, NO_EXTRA
                    : entities making up a loaded graph.
- GraphLoadError, GraphNotFoundError, GraphStructureError
                    : loader errors.

resolve_latest / resolve_version / load_nodes / load_arcs are exposed from
wfload.graph.db for callers that need a single stage.
"""

from __future__ import annotations

from .core import WfGraph, GraphLoadError, GraphStructureError
from .db import GraphNotFoundError, load_graph, load_latest_graph
from .extras import NodeExtraRegistry
from .model import Arc, GraphIdentity, Node, NodeExtra, NodeSource, NoExtra, NO_EXTRA

__all__ = [
    "WfGraph",
    "GraphLoadError",
    "GraphNotFoundError",
    "GraphStructureError",
    "load_graph",
    "load_latest_graph",
    "NodeExtraRegistry",
    "Arc",
    "GraphIdentity",
    "Node",
    "NodeExtra",
    "NodeSource",
    "NoExtra",
    "NO_EXTRA",
]
