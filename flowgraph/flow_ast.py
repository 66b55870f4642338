#!/usr/bin/env python3
"""
Flow AST — Control-Flow Graph Representation for Source Snippets

Shared schema between the graph builder and the Mermaid serializer.
Every parse produces one FlowGraph, which can be rendered as Mermaid text,
serialized to .flow.json, or viewed as markdown tables.

The graph is the primary artifact — Mermaid is a derived rendering.
"""

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Set

FLOW_SCHEMA_VERSION = "1.0.0"

NODE_SHAPES = ("round", "diamond", "rect")


# ──────────────────────────────────────────────────────────────────
# Dataclasses
# ──────────────────────────────────────────────────────────────────

@dataclass
class GraphNode:
    id: str
    label: str
    shape: str = "rect"


@dataclass
class GraphEdge:
    source: str
    target: str
    label: str = ""


@dataclass
class FlowGraph:
    nodes: List[GraphNode] = field(default_factory=list)
    edges: List[GraphEdge] = field(default_factory=list)
    direction: str = "TD"

    def node_ids(self) -> Set[str]:
        return {n.id for n in self.nodes}

    def add_node(self, node: GraphNode) -> GraphNode:
        """Append a node. Ids must be unique within the graph."""
        if node.shape not in NODE_SHAPES:
            raise ValueError(f"Unknown node shape: {node.shape}")
        if any(n.id == node.id for n in self.nodes):
            raise ValueError(f"Duplicate node id: {node.id}")
        self.nodes.append(node)
        return node

    def add_edge(self, edge: GraphEdge) -> GraphEdge:
        """Append an edge. Both endpoints must already be nodes of this graph."""
        ids = self.node_ids()
        if edge.source not in ids:
            raise ValueError(f"Unknown source node: {edge.source}")
        if edge.target not in ids:
            raise ValueError(f"Unknown target node: {edge.target}")
        self.edges.append(edge)
        return edge


# ──────────────────────────────────────────────────────────────────
# JSON Serialization
# ──────────────────────────────────────────────────────────────────

def to_json(graph: FlowGraph) -> dict:
    """Serialize a FlowGraph to a JSON-compatible dict."""
    data = asdict(graph)
    data['schema_version'] = FLOW_SCHEMA_VERSION
    return data


def from_json(data: dict) -> FlowGraph:
    """Deserialize a dict (from JSON) into a FlowGraph."""
    node_fields = {f.name for f in GraphNode.__dataclass_fields__.values()}
    edge_fields = {f.name for f in GraphEdge.__dataclass_fields__.values()}

    nodes = [GraphNode(**{k: v for k, v in n.items() if k in node_fields}) for n in data.get('nodes', [])]
    edges = [GraphEdge(**{k: v for k, v in e.items() if k in edge_fields}) for e in data.get('edges', [])]
    return FlowGraph(
        nodes=nodes,
        edges=edges,
        direction=data.get('direction', 'TD'),
    )


def save_graph(graph: FlowGraph, path: str) -> None:
    """Write a FlowGraph to a .flow.json file."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    with open(out, 'w', encoding='utf-8') as f:
        json.dump(to_json(graph), f, indent=2)


def load_graph(path: str) -> FlowGraph:
    """Read a .flow.json file and return a FlowGraph."""
    with open(path, 'r', encoding='utf-8') as f:
        return from_json(json.load(f))


# ──────────────────────────────────────────────────────────────────
# Markdown Table Generation
# ──────────────────────────────────────────────────────────────────

def _esc(text: str) -> str:
    """Escape pipe characters for markdown table cells."""
    if not text:
        return ""
    return str(text).replace("|", "\\|")


def graph_to_markdown_tables(graph: FlowGraph, source_name: str = "") -> str:
    """Convert a FlowGraph into markdown tables."""
    lines: List[str] = []

    heading = f"#### Flowchart: {source_name}" if source_name else "#### Flowchart"
    lines.append(heading)
    lines.append("")
    lines.append(f"**Direction:** {graph.direction} | **Nodes:** {len(graph.nodes)} | **Edges:** {len(graph.edges)}")
    lines.append("")

    if graph.nodes:
        lines.append("##### Nodes")
        lines.append("")
        lines.append("| ID | Label | Shape |")
        lines.append("|----|-------|-------|")
        for n in graph.nodes:
            lines.append(f"| {_esc(n.id)} | {_esc(n.label)} | {_esc(n.shape)} |")
        lines.append("")

    if graph.edges:
        lines.append("##### Edges")
        lines.append("")
        lines.append("| Source | Target | Label |")
        lines.append("|--------|--------|-------|")
        for e in graph.edges:
            lines.append(f"| {_esc(e.source)} | {_esc(e.target)} | {_esc(e.label)} |")
        lines.append("")

    return "\n".join(lines)


def graph_summary(graph: FlowGraph) -> Dict[str, Any]:
    """Node/edge counts per shape, for reports and API responses."""
    shapes: Dict[str, int] = {}
    for node in graph.nodes:
        shapes[node.shape] = shapes.get(node.shape, 0) + 1
    return {
        'node_count': len(graph.nodes),
        'edge_count': len(graph.edges),
        'shapes': shapes,
    }
