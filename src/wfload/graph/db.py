from logging import getLogger
from typing import Any, List, Mapping, Optional, Sequence, Union

from sqlalchemy import select, func, literal
from sqlalchemy.engine import Connection
from sqlalchemy.orm import Session

from ..config import LoaderSettings, get_settings
from .core import GraphLoadError, WfGraph
from .extras import ExtraLoader, NodeExtraRegistry, as_registry
from .model import Arc, GraphIdentity, Node, NodeSource
from .schema import wf_graph, wf_node, wf_node_ref, wf_arc

logger = getLogger(__name__)

Executor = Union[Session, Connection]
Extras = Union[NodeExtraRegistry, Mapping[str, ExtraLoader], None]


class GraphNotFoundError(GraphLoadError):
    """No stored graph matches the requested name (and version)."""

    def __init__(self, name: str, version: Optional[int] = None) -> None:
        self.name = name
        self.version = version
        if version is None:
            msg = f"No graph found with name {name}"
        else:
            msg = f"No graph found with name {name} and version {version}"
        super().__init__(msg)


# ---------------------------------------------------------------------------
# Graph identity
# ---------------------------------------------------------------------------


def _check_name(name: str) -> None:
    if not isinstance(name, str) or not name:
        raise ValueError(f"Graph name must be a non-empty string, got {name!r}")


def _row_to_identity(rows: Sequence[Any], name: str) -> GraphIdentity:
    if len(rows) > 1:
        # (name, version) is expected to be unique; nothing sensible to pick by
        logger.warning(
            "%d graph rows share name %r and version %s; using id %s",
            len(rows), name, rows[0][2], rows[0][0],
        )
    graph_id, graph_name, version = rows[0]
    return GraphIdentity(graph_id=int(graph_id), name=str(graph_name), version=int(version))


def resolve_latest(session: Executor, name: str) -> GraphIdentity:
    """Identity of the highest stored version of graph ``name``."""
    _check_name(name)

    g2 = wf_graph.alias("g2")
    max_version = (
        select(func.max(g2.c.version))
        .where(g2.c.name == wf_graph.c.name)
        .scalar_subquery()
    )
    rows = session.execute(
        select(wf_graph.c.id, wf_graph.c.name, wf_graph.c.version).where(
            wf_graph.c.name == literal(name),
            wf_graph.c.version == max_version,
        )
    ).all()

    if not rows:
        raise GraphNotFoundError(name)
    return _row_to_identity(rows, name)


def resolve_version(session: Executor, name: str, version: int) -> GraphIdentity:
    """Identity of graph ``name`` at exactly ``version``."""
    _check_name(name)
    if isinstance(version, bool) or not isinstance(version, int) or version < 0:
        raise ValueError(f"Graph version must be a non-negative integer, got {version!r}")

    rows = session.execute(
        select(wf_graph.c.id, wf_graph.c.name, wf_graph.c.version).where(
            wf_graph.c.name == literal(name),
            wf_graph.c.version == literal(version),
        )
    ).all()

    if not rows:
        raise GraphNotFoundError(name, version)
    return _row_to_identity(rows, name)


# ---------------------------------------------------------------------------
# Nodes
# ---------------------------------------------------------------------------


def node_depth(instance: Optional[str], separator: str = ":") -> int:
    """
    Nesting depth encoded in a node instance path.

    ""          -> 0 (node defined in the loaded graph itself)
    "a"         -> 1
    "a:b:c"     -> 3
    """
    if not instance:
        return 0
    return 1 + instance.count(separator)


def _load_node_rows(session: Executor, graph_id: int) -> List[Any]:
    ref = wf_node_ref
    node = wf_node
    owner = wf_graph  # graph that defines the node

    stmt = (
        select(
            ref.c.id,
            node.c.id,
            node.c.name,
            node.c.type,
            node.c.is_join,
            node.c.is_start,
            ref.c.instance,
            owner.c.name,
            owner.c.version,
            func.coalesce(node.c.guard, literal("")),
            (ref.c.graph_id == node.c.graph_id).label("is_top_level"),
        )
        .select_from(
            ref.join(node, ref.c.node_id == node.c.id).join(
                owner, node.c.graph_id == owner.c.id
            )
        )
        .where(ref.c.graph_id == literal(graph_id))
    )
    return list(session.execute(stmt).all())


def _row_to_node(
    session: Executor,
    row: Sequence[Any],
    registry: NodeExtraRegistry,
    settings: LoaderSettings,
) -> Node:
    (
        ref_id,
        node_id,
        node_name,
        node_type,
        join_flag,
        start_flag,
        instance,
        source_graph_name,
        source_graph_version,
        guard,
        is_top_level,
    ) = row

    instance = instance or ""
    source = NodeSource(
        graph_name=str(source_graph_name),
        graph_version=int(source_graph_version),
        instance=instance,
        depth=node_depth(instance, settings.instance_separator),
    )

    # Flags are stored as 'Y' / 'N'; only booleans leave this function.
    is_join = join_flag == settings.true_flag
    is_start = start_flag == settings.true_flag and bool(is_top_level)

    node_type = str(node_type)
    extra = registry.resolve(session, node_type, int(node_id))

    return Node(
        ref_id=int(ref_id),
        node_id=int(node_id),
        type=node_type,
        name=str(node_name),
        source=source,
        is_join=is_join,
        is_start=is_start,
        guard=guard if guard is not None else "",
        extra=extra,
    )


def load_nodes(
    session: Executor,
    graph_id: int,
    extras: Extras = None,
    *,
    settings: Optional[LoaderSettings] = None,
) -> List[Node]:
    """
    Load every node reference of a graph, in query order.

    Extra data is resolved per node through the registry; a failing loader
    aborts the whole call.
    """
    registry = as_registry(extras)
    if settings is None:
        settings = get_settings().loader

    rows = _load_node_rows(session, graph_id)
    return [_row_to_node(session, row, registry, settings) for row in rows]


# ---------------------------------------------------------------------------
# Arcs
# ---------------------------------------------------------------------------


def load_arcs(session: Executor, graph_id: int) -> List[Arc]:
    """Load the arcs of a graph. Endpoints are validated by WfGraph, not here."""
    result = session.execute(
        select(
            wf_arc.c.id,
            wf_arc.c.name,
            wf_arc.c.a_node_ref_id,
            wf_arc.c.z_node_ref_id,
        ).where(wf_arc.c.graph_id == literal(graph_id))
    )
    return [
        Arc(arc_id=int(arc_id), name=str(name), tail=int(tail), head=int(head))
        for arc_id, name, tail, head in result
    ]


# ---------------------------------------------------------------------------
# Load DB -> WfGraph
# ---------------------------------------------------------------------------


def _finish_load(
    session: Executor,
    identity: GraphIdentity,
    extras: Extras,
    settings: Optional[LoaderSettings],
) -> WfGraph:
    logger.debug(
        "Resolved graph %r version %d to id %d",
        identity.name, identity.version, identity.graph_id,
    )
    nodes = load_nodes(session, identity.graph_id, extras, settings=settings)
    arcs = load_arcs(session, identity.graph_id)
    logger.debug(
        "Graph id %d: %d nodes, %d arcs loaded",
        identity.graph_id, len(nodes), len(arcs),
    )

    graph = WfGraph(identity, nodes, arcs)
    logger.info(
        "Loaded graph %r version %d (%d nodes, %d arcs)",
        graph.name, graph.version, graph.num_nodes, graph.num_arcs,
    )
    return graph


def load_latest_graph(
    session: Executor,
    name: str,
    extras: Extras = None,
    *,
    settings: Optional[LoaderSettings] = None,
) -> WfGraph:
    """
    Load the highest stored version of the graph called ``name``.

    Parameters
    ----------
    session:
        SQLAlchemy Session or Connection owned by the caller. It is only
        read from; nothing is committed, rolled back or closed here.
    name:
        Graph name.
    extras:
        NodeExtraRegistry, or a plain mapping of node type to loader
        ``(session, node_id) -> NodeExtra``. Node types without a loader get
        NO_EXTRA.
    settings:
        Row interpretation; defaults to ``get_settings().loader``.

    Raises GraphNotFoundError if no such graph exists and GraphStructureError
    if an arc references an unknown node. Database errors propagate as-is.
    """
    identity = resolve_latest(session, name)
    return _finish_load(session, identity, extras, settings)


def load_graph(
    session: Executor,
    name: str,
    version: int,
    extras: Extras = None,
    *,
    settings: Optional[LoaderSettings] = None,
) -> WfGraph:
    """Like load_latest_graph, but for an exact ``version``."""
    identity = resolve_version(session, name, version)
    return _finish_load(session, identity, extras, settings)
