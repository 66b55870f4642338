"""
Mermaid flowchart generation.

Renders a FlowGraph as Mermaid ``flowchart`` text: header, node declarations
in creation order, then edges in creation order. Labels go through
``escape_label`` so that quotes and bracket characters never reach the
diagram syntax.
"""

import re
from typing import List

from flowgraph.builder import DEFAULT_LABEL_MAX_CHARS, code_to_flowgraph
from flowgraph.flow_ast import FlowGraph, GraphEdge, GraphNode

DIRECTIONS = ('TD', 'TB', 'BT', 'LR', 'RL')

FALLBACK_DIAGRAM = "flowchart TD\n    start((Start))\n    end_node((End))\n    start --> end_node"


# ──────────────────────────────────────────────────────────────────
# Labels
# ──────────────────────────────────────────────────────────────────

def escape_label(text: str) -> str:
    """Make label text safe inside a Mermaid node or edge label.

    Newlines become spaces, double quotes become single quotes and
    ``{}()[]`` are dropped. Comparison operators are left alone.
    """
    text = re.sub(r'\r\n|\r|\n', ' ', str(text or ''))
    text = text.replace('"', "'")
    text = re.sub(r'[{}()\[\]]', '', text)
    return text.strip()


# ──────────────────────────────────────────────────────────────────
# Mermaid helpers
# ──────────────────────────────────────────────────────────────────

def format_node(node: GraphNode) -> str:
    """Return the Mermaid node declaration for a node's shape."""
    label = escape_label(node.label)
    shape_formats = {
        'round':   f'{node.id}(("{label}"))',
        'diamond': f'{node.id}{{"{label}"}}',
        'rect':    f'{node.id}["{label}"]',
    }
    return shape_formats.get(node.shape, shape_formats['rect'])


def format_edge(edge: GraphEdge) -> str:
    label = escape_label(edge.label)
    if label:
        return f'{edge.source} -->|"{label}"| {edge.target}'
    return f'{edge.source} --> {edge.target}'


# ──────────────────────────────────────────────────────────────────
# Public API
# ──────────────────────────────────────────────────────────────────

def generate_mermaid(graph: FlowGraph, fenced: bool = False) -> str:
    """Convert a FlowGraph to Mermaid flowchart text.

    An empty graph yields the Start → End fallback diagram.
    """
    if not graph.nodes:
        text = FALLBACK_DIAGRAM
    else:
        direction = graph.direction if graph.direction in DIRECTIONS else 'TD'
        lines: List[str] = [f"flowchart {direction}"]
        for node in graph.nodes:
            lines.append(f'    {format_node(node)}')
        for edge in graph.edges:
            lines.append(f'    {format_edge(edge)}')
        text = '\n'.join(lines)

    if fenced:
        return f"```mermaid\n{text}\n```"
    return text


def code_to_mermaid(
    code: str,
    max_label_chars: int = DEFAULT_LABEL_MAX_CHARS,
    direction: str = "TD",
    fenced: bool = False,
) -> str:
    """Convert source text straight to Mermaid flowchart text."""
    if not code or not code.strip():
        return generate_mermaid(FlowGraph(), fenced=fenced)
    graph = code_to_flowgraph(code, max_label_chars=max_label_chars, direction=direction)
    return generate_mermaid(graph, fenced=fenced)
