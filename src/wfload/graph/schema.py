from __future__ import annotations

from sqlalchemy import (
    MetaData,
    Table,
    Column,
    Integer,
    String,
    CHAR,
    ForeignKey,
)

metadata = MetaData()

wf_graph = Table(
    "wf_graph",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String, nullable=False),
    Column("version", Integer, nullable=False),
)

wf_node = Table(
    "wf_node",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("graph_id", Integer, ForeignKey("wf_graph.id"), nullable=False),  # owning (defining) graph
    Column("name", String, nullable=False),
    Column("type", String, nullable=False),
    Column("is_join", CHAR(1), nullable=False),   # 'Y' / 'N'
    Column("is_start", CHAR(1), nullable=False),  # 'Y' / 'N'
    Column("guard", String, nullable=True),
)

wf_node_ref = Table(
    "wf_node_ref",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("node_id", Integer, ForeignKey("wf_node.id"), nullable=False),
    Column("graph_id", Integer, ForeignKey("wf_graph.id"), nullable=False),  # graph this reference lives in
    Column("instance", String, nullable=False, default=""),
)

wf_arc = Table(
    "wf_arc",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("graph_id", Integer, ForeignKey("wf_graph.id"), nullable=False),
    Column("a_node_ref_id", Integer, ForeignKey("wf_node_ref.id"), nullable=False),  # tail
    Column("z_node_ref_id", Integer, ForeignKey("wf_node_ref.id"), nullable=False),  # head
    Column("name", String, nullable=False),
)
