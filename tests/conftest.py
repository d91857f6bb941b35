from __future__ import annotations

import itertools
from typing import Iterator, List, Optional

import pytest
from sqlalchemy import create_engine, event, insert
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from wfload.graph.schema import metadata, wf_graph, wf_node, wf_node_ref, wf_arc


# ---------------------------------------------------------------------------
# Seeding helper
# ---------------------------------------------------------------------------

class GraphSeeder:
    """
    Writes workflow rows straight into the wf_* tables.

    Ids come from a single counter so graph, node, reference and arc ids never
    collide, which makes mix-ups between them visible in assertions.
    """

    def __init__(self, session: Session) -> None:
        self.session = session
        self._ids = itertools.count(1)

    def graph(self, name: str, version: int) -> int:
        graph_id = next(self._ids)
        self.session.execute(
            insert(wf_graph).values(id=graph_id, name=name, version=version)
        )
        return graph_id

    def node(
        self,
        graph_id: int,
        name: str,
        *,
        type: str = "activity",
        is_join: str = "N",
        is_start: str = "N",
        guard: Optional[str] = None,
    ) -> int:
        node_id = next(self._ids)
        self.session.execute(
            insert(wf_node).values(
                id=node_id,
                graph_id=graph_id,
                name=name,
                type=type,
                is_join=is_join,
                is_start=is_start,
                guard=guard,
            )
        )
        return node_id

    def ref(self, graph_id: int, node_id: int, instance: str = "") -> int:
        ref_id = next(self._ids)
        self.session.execute(
            insert(wf_node_ref).values(
                id=ref_id, node_id=node_id, graph_id=graph_id, instance=instance
            )
        )
        return ref_id

    def node_ref(self, graph_id: int, name: str, **kwargs) -> int:
        """Define a node in graph_id and reference it at top level; returns the ref id."""
        return self.ref(graph_id, self.node(graph_id, name, **kwargs))

    def arc(self, graph_id: int, tail: int, head: int, name: str = "") -> int:
        arc_id = next(self._ids)
        self.session.execute(
            insert(wf_arc).values(
                id=arc_id,
                graph_id=graph_id,
                a_node_ref_id=tail,
                z_node_ref_id=head,
                name=name,
            )
        )
        return arc_id


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def engine() -> Iterator[Engine]:
    eng = create_engine("sqlite://")
    metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session(engine: Engine) -> Iterator[Session]:
    with Session(engine) as s:
        yield s


@pytest.fixture
def seeder(session: Session) -> GraphSeeder:
    return GraphSeeder(session)


@pytest.fixture
def statements(engine: Engine) -> List[str]:
    """SQL statements sent to the database; clear it before the call under test."""
    seen: List[str] = []

    # noinspection PyUnusedLocal
    def record(conn, cursor, statement, parameters, context, executemany):
        seen.append(statement)

    event.listen(engine, "before_cursor_execute", record)
    return seen
