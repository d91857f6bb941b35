from __future__ import annotations

"""Entities produced by the graph loader."""

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection
    from sqlalchemy.orm import Session


@dataclass(frozen=True, slots=True)
class GraphIdentity:
    """Internal id, name and version of one stored graph."""

    graph_id: int
    name: str
    version: int


@dataclass(frozen=True, slots=True)
class NodeSource:
    """
    Provenance of a node.

    graph_name / graph_version identify the graph that *defines* the node,
    which differs from the loaded graph when the node was pulled in through
    a sub-graph inclusion. depth is the nesting level derived from instance.
    """

    graph_name: str
    graph_version: int
    instance: str
    depth: int


class NodeExtra:
    """
    Base class for type-specific auxiliary node data.

    Subclasses implement ``load`` to read their payload for a node definition
    id and are registered per node type on a NodeExtraRegistry.
    """

    __slots__ = ()

    @classmethod
    def load(cls, session: Session | Connection, node_id: int) -> NodeExtra:
        raise NotImplementedError(f"{cls.__name__} does not implement load()")


@dataclass(frozen=True, slots=True)
class NoExtra(NodeExtra):
    """No auxiliary data was loaded or required."""

    @classmethod
    def load(cls, session: Session | Connection, node_id: int) -> NodeExtra:
        return NO_EXTRA


NO_EXTRA = NoExtra()


@dataclass(frozen=True, slots=True)
class Node:
    ref_id: int
    node_id: int
    type: str
    name: str
    source: NodeSource
    is_join: bool
    is_start: bool
    guard: str
    extra: NodeExtra = NO_EXTRA

    @property
    def has_guard(self) -> bool:
        return self.guard != ""


@dataclass(frozen=True, slots=True)
class Arc:
    """Directed edge from node reference ``tail`` to node reference ``head``."""

    arc_id: int
    name: str
    tail: int
    head: int
