"""
Flow graph builder.

Walks the statement stream from the tokenizer and grows a FlowGraph from a
single "current" node: every statement hangs off the current node and
becomes the new current node. Conditionals fork from a diamond and rejoin at
a join node; loops add a back edge to their diamond.
"""

import re
from typing import Dict, List, Sequence, Tuple

from flowgraph.flow_ast import FlowGraph, GraphEdge, GraphNode
from flowgraph.tokenizer import (
    FunctionDecl,
    IfStatement,
    LoopStatement,
    ReturnStatement,
    Statement,
    normalize_lines,
    tokenize,
)

DEFAULT_LABEL_MAX_CHARS = 25
# Bodies nested deeper than this (headers stacked on one line) are drawn as
# plain steps instead of being expanded further.
MAX_NESTING_DEPTH = 64

_LOG_ARG_RE = re.compile(r'console\.log\s*\((.+?)\)')
_CALL_RE = re.compile(r'\(.*\)')


def shorten(text: str, max_chars: int = DEFAULT_LABEL_MAX_CHARS) -> str:
    """Truncate text for a node label, marking the cut with '...'."""
    if len(text) > max_chars:
        return text[:max_chars] + '...'
    return text


class FlowBuilder:
    """Builds one FlowGraph. Use a fresh instance per parse."""

    def __init__(self, max_label_chars: int = DEFAULT_LABEL_MAX_CHARS, direction: str = "TD") -> None:
        self.graph = FlowGraph(direction=direction)
        self.max_label_chars = max_label_chars
        self._counter = 0
        self._depth = 0
        # label for the next edge leaving a branch origin (Yes/No)
        self._pending_labels: Dict[str, str] = {}

    # ── graph primitives ─────────────────────────────────────────

    def _next_id(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}{self._counter}"

    def _add_node(self, prefix: str, label: str, shape: str = "rect") -> str:
        node = self.graph.add_node(GraphNode(id=self._next_id(prefix), label=label, shape=shape))
        return node.id

    def _link(self, source: str, target: str, label: str = "") -> None:
        label = self._pending_labels.pop(source, "") or label
        self.graph.add_edge(GraphEdge(source=source, target=target, label=label))

    def _append(self, current: str, prefix: str, label: str, shape: str = "rect") -> str:
        node_id = self._add_node(prefix, label, shape)
        self._link(current, node_id)
        return node_id

    # ── statements ───────────────────────────────────────────────

    def build(self, statements: Sequence[Statement]) -> FlowGraph:
        start = self._add_node("start", "Start", "round")
        self.build_block(statements, start)
        return self.graph

    def build_block(self, statements: Sequence[Statement], current: str) -> str:
        """Chain statements after ``current``; returns the exit node id."""
        for stmt in statements:
            current = self._build_statement(stmt, current)
        return current

    def _build_lines(self, lines: List[str], current: str) -> str:
        if self._depth >= MAX_NESTING_DEPTH:
            for line in lines:
                current = self._build_simple(line, current)
            return current
        self._depth += 1
        try:
            return self.build_block(tokenize(lines), current)
        finally:
            self._depth -= 1

    def _build_statement(self, stmt: Statement, current: str) -> str:
        if isinstance(stmt, FunctionDecl):
            return self._append(current, "fn", f"Function: {stmt.name}", "round")
        if isinstance(stmt, IfStatement):
            return self._build_if(stmt, current)
        if isinstance(stmt, LoopStatement):
            return self._build_loop(stmt, current)
        if isinstance(stmt, ReturnStatement):
            return self._append(current, "ret", f"Return: {stmt.value}")
        return self._build_simple(stmt.content, current)

    def _build_simple(self, text: str, current: str) -> str:
        """Log / Call / Execute node for a plain statement line."""
        if not text.strip():
            return current
        if 'console.log' in text:
            m = _LOG_ARG_RE.search(text)
            return self._append(current, "log", f"Log: {m.group(1) if m else ''}")
        if _CALL_RE.search(text):
            return self._append(current, "call", f"Call: {shorten(text, self.max_label_chars)}")
        return self._append(current, "stmt", f"Execute: {shorten(text, self.max_label_chars)}")

    def _build_branch(self, lines: List[str], origin: str, label: str) -> Tuple[str, str]:
        """Build a branch body from ``origin``.

        Returns (exit_id, unused_label); the label is unused when the body
        produced no edge out of the origin.
        """
        self._pending_labels[origin] = label
        exit_id = self._build_lines(lines, origin)
        return exit_id, self._pending_labels.pop(origin, "")

    def _build_if(self, stmt: IfStatement, current: str) -> str:
        """Diamond per arm; each `else if` diamond hangs off the previous "No".

        Joins are added innermost first, so a chain renders the same as
        nested if/else statements.
        """
        arms = [(stmt.condition, stmt.then_body)]
        arms += [(arm.condition, arm.body) for arm in stmt.else_ifs]

        then_exits: List[Tuple[str, str]] = []
        origin = current
        for condition, body in arms:
            if then_exits:
                self._pending_labels[origin] = "No"
            text = re.sub(r'[()]', '', condition).strip()
            origin = self._append(origin, "if", f"if {text}", "diamond")
            then_exits.append(self._build_branch(body, origin, "Yes"))

        exit_id, exit_label = self._build_branch(stmt.else_body, origin, "No")
        for then_exit, then_label in reversed(then_exits):
            join = self._add_node("join", "End if")
            self._link(then_exit, join, then_label)
            self._link(exit_id, join, exit_label)
            exit_id, exit_label = join, ""
        return exit_id

    def _build_loop(self, stmt: LoopStatement, current: str) -> str:
        loop_id = self._append(current, "loop", f"{stmt.keyword} {stmt.condition}", "diamond")
        body_exit = self._build_lines(stmt.body, loop_id)
        self._link(body_exit, loop_id)
        return loop_id


def build_flowgraph(
    statements: Sequence[Statement],
    max_label_chars: int = DEFAULT_LABEL_MAX_CHARS,
    direction: str = "TD",
) -> FlowGraph:
    """Build a FlowGraph from tokenized statements."""
    return FlowBuilder(max_label_chars=max_label_chars, direction=direction).build(statements)


def code_to_flowgraph(
    code: str,
    max_label_chars: int = DEFAULT_LABEL_MAX_CHARS,
    direction: str = "TD",
) -> FlowGraph:
    """Normalize, tokenize and build in one call."""
    return build_flowgraph(
        tokenize(normalize_lines(code)),
        max_label_chars=max_label_chars,
        direction=direction,
    )
