from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Tuple

import numpy as np
import graphblas as gb
from graphblas import Matrix

from .model import Arc, GraphIdentity, Node


class GraphLoadError(Exception):
    """Base exception for errors raised while loading a workflow graph."""
    pass


class GraphStructureError(GraphLoadError):
    """The nodes and arcs handed to WfGraph do not form a valid graph."""

    def __init__(
        self,
        message: str,
        *,
        name: str,
        version: int,
        ref_ids: Iterable[int] = (),
        arc_ids: Iterable[int] = (),
    ) -> None:
        self.name = name
        self.version = version
        self.ref_ids = tuple(ref_ids)
        self.arc_ids = tuple(arc_ids)
        super().__init__(f"Graph {name!r} version {version}: {message}")


class WfGraph:
    """
    Immutable, validated workflow graph.

    Structure:
      - Nodes keyed by node reference id; vertex indices 0..num_nodes-1 follow
        the order in which nodes were supplied.
      - Arcs keyed by arc id, plus per-node outgoing / incoming arc tuples.
      - adjacency: Matrix[INT64] (num_nodes x num_nodes) backed by
        python-graphblas; value = number of arcs from row vertex to column
        vertex (parallel arcs are allowed).

    Construction fails with GraphStructureError on duplicate node reference
    ids, duplicate arc ids, or arcs whose tail/head is not one of the nodes.
    """

    __slots__ = (
        "_identity",
        "_nodes",
        "_arcs",
        "_node_index",     # ref_id -> Node
        "_arc_index",      # arc_id -> Arc
        "_vertex_index",   # ref_id -> vertex index
        "_out_arcs",       # ref_id -> tuple[Arc, ...]
        "_in_arcs",        # ref_id -> tuple[Arc, ...]
        "_adjacency",
    )

    # ------------------------------------------------------------------ #
    # Construction
    # ------------------------------------------------------------------ #
    def __init__(
        self,
        identity: GraphIdentity,
        nodes: Iterable[Node],
        arcs: Iterable[Arc],
    ) -> None:
        nodes_t: Tuple[Node, ...] = tuple(nodes)
        arcs_t: Tuple[Arc, ...] = tuple(arcs)

        node_index: Dict[int, Node] = {}
        duplicates: List[int] = []
        for node in nodes_t:
            if node.ref_id in node_index:
                duplicates.append(node.ref_id)
            node_index[node.ref_id] = node
        if duplicates:
            raise GraphStructureError(
                f"duplicate node reference ids {sorted(set(duplicates))}",
                name=identity.name,
                version=identity.version,
                ref_ids=duplicates,
            )

        arc_index: Dict[int, Arc] = {}
        dup_arcs: List[int] = []
        dangling_arcs: List[int] = []
        dangling_refs: List[int] = []
        for arc in arcs_t:
            if arc.arc_id in arc_index:
                dup_arcs.append(arc.arc_id)
            arc_index[arc.arc_id] = arc
            missing = [r for r in (arc.tail, arc.head) if r not in node_index]
            if missing:
                dangling_arcs.append(arc.arc_id)
                dangling_refs.extend(missing)
        if dup_arcs:
            raise GraphStructureError(
                f"duplicate arc ids {sorted(set(dup_arcs))}",
                name=identity.name,
                version=identity.version,
                arc_ids=dup_arcs,
            )
        if dangling_arcs:
            raise GraphStructureError(
                f"arcs {dangling_arcs} reference unknown node reference ids "
                f"{sorted(set(dangling_refs))}",
                name=identity.name,
                version=identity.version,
                ref_ids=sorted(set(dangling_refs)),
                arc_ids=dangling_arcs,
            )

        vertex_index = {node.ref_id: idx for idx, node in enumerate(nodes_t)}

        out_arcs: Dict[int, List[Arc]] = {ref_id: [] for ref_id in node_index}
        in_arcs: Dict[int, List[Arc]] = {ref_id: [] for ref_id in node_index}
        for arc in arcs_t:
            out_arcs[arc.tail].append(arc)
            in_arcs[arc.head].append(arc)

        self._identity = identity
        self._nodes = nodes_t
        self._arcs = arcs_t
        self._node_index: Mapping[int, Node] = MappingProxyType(node_index)
        self._arc_index: Mapping[int, Arc] = MappingProxyType(arc_index)
        self._vertex_index: Mapping[int, int] = MappingProxyType(vertex_index)
        self._out_arcs: Mapping[int, Tuple[Arc, ...]] = MappingProxyType(
            {k: tuple(v) for k, v in out_arcs.items()}
        )
        self._in_arcs: Mapping[int, Tuple[Arc, ...]] = MappingProxyType(
            {k: tuple(v) for k, v in in_arcs.items()}
        )
        self._adjacency = self._build_adjacency(arcs_t, vertex_index, len(nodes_t))

    @staticmethod
    def _build_adjacency(
        arcs: Tuple[Arc, ...],
        vertex_index: Mapping[int, int],
        num_vertices: int,
    ) -> Matrix:
        if not arcs:
            return gb.Matrix(gb.dtypes.INT64, nrows=num_vertices, ncols=num_vertices)

        src_arr = np.asarray([vertex_index[a.tail] for a in arcs], dtype=np.int64)
        dst_arr = np.asarray([vertex_index[a.head] for a in arcs], dtype=np.int64)
        val_arr = np.ones(len(arcs), dtype=np.int64)

        return gb.Matrix.from_coo(
            src_arr,
            dst_arr,
            val_arr,
            nrows=num_vertices,
            ncols=num_vertices,
            dup_op=gb.binary.plus,
        )

    def __setattr__(self, key: str, value: object) -> None:
        if hasattr(self, key):
            raise AttributeError(f"WfGraph is immutable; cannot reassign {key!r}")
        object.__setattr__(self, key, value)

    # ------------------------------------------------------------------ #
    # Identity
    # ------------------------------------------------------------------ #
    @property
    def identity(self) -> GraphIdentity:
        return self._identity

    @property
    def graph_id(self) -> int:
        return self._identity.graph_id

    @property
    def name(self) -> str:
        return self._identity.name

    @property
    def version(self) -> int:
        return self._identity.version

    # ------------------------------------------------------------------ #
    # Nodes and arcs
    # ------------------------------------------------------------------ #
    @property
    def nodes(self) -> Tuple[Node, ...]:
        return self._nodes

    @property
    def arcs(self) -> Tuple[Arc, ...]:
        return self._arcs

    @property
    def num_nodes(self) -> int:
        return len(self._nodes)

    @property
    def num_arcs(self) -> int:
        return len(self._arcs)

    def has_node(self, ref_id: int) -> bool:
        return ref_id in self._node_index

    def get_node(self, ref_id: int) -> Node:
        return self._node_index[ref_id]

    def get_arc(self, arc_id: int) -> Arc:
        return self._arc_index[arc_id]

    def get_out_arcs(self, ref_id: int) -> Tuple[Arc, ...]:
        """Arcs whose tail is ref_id, in load order."""
        return self._out_arcs[ref_id]

    def get_in_arcs(self, ref_id: int) -> Tuple[Arc, ...]:
        """Arcs whose head is ref_id, in load order."""
        return self._in_arcs[ref_id]

    @property
    def start_nodes(self) -> Tuple[Node, ...]:
        return tuple(n for n in self._nodes if n.is_start)

    # ------------------------------------------------------------------ #
    # Matrix view
    # ------------------------------------------------------------------ #
    def vertex_index(self, ref_id: int) -> int:
        """Row/column of ref_id in the adjacency matrix."""
        return self._vertex_index[ref_id]

    @property
    def adjacency(self) -> Matrix:
        """Copy of the arc-count adjacency matrix (rows = tails, cols = heads)."""
        return self._adjacency.dup()

    def successors(self, ref_id: int) -> List[int]:
        """Reference ids reachable from ref_id over a single arc."""
        row = self._adjacency[self._vertex_index[ref_id], :].new()
        indices, _ = row.to_coo()
        return [self._nodes[int(i)].ref_id for i in indices]

    def predecessors(self, ref_id: int) -> List[int]:
        """Reference ids with an arc into ref_id."""
        col = self._adjacency[:, self._vertex_index[ref_id]].new()
        indices, _ = col.to_coo()
        return [self._nodes[int(i)].ref_id for i in indices]

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, WfGraph):
            return NotImplemented
        return (
            self._identity == other._identity
            and self._nodes == other._nodes
            and self._arcs == other._arcs
        )

    def __repr__(self) -> str:
        return (
            f"WfGraph(graph_id={self.graph_id}, "
            f"name={self.name!r}, "
            f"version={self.version}, "
            f"num_nodes={self.num_nodes}, "
            f"num_arcs={self.num_arcs})"
        )
