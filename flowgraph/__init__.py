"""Heuristic source-to-flowchart compiler.

Turns curly-brace procedural source text into a control-flow graph and
renders it as Mermaid flowchart text. Every call is a pure function of its
input; nothing is shared between calls.
"""

from flowgraph.builder import FlowBuilder, build_flowgraph, code_to_flowgraph
from flowgraph.flow_ast import FlowGraph, GraphEdge, GraphNode
from flowgraph.mermaid import code_to_mermaid, escape_label, generate_mermaid
from flowgraph.tokenizer import normalize_lines, tokenize

__all__ = [
    "FlowBuilder",
    "FlowGraph",
    "GraphEdge",
    "GraphNode",
    "build_flowgraph",
    "code_to_flowgraph",
    "code_to_mermaid",
    "escape_label",
    "generate_mermaid",
    "normalize_lines",
    "tokenize",
]
