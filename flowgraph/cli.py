#!/usr/bin/env python3
"""
Source to flowchart converter — CLI tool

Reads source code (file or stdin) and writes a Mermaid flowchart, the flow
graph as JSON, or markdown tables. Also validates existing Mermaid files.

Usage:
    flowgraph mermaid --input app.js [--output app.mmd] [--fenced]
    flowgraph json --input app.js --output app.flow.json
    flowgraph table --input app.js
    flowgraph validate --input app.mmd [--json] [--mmdc]
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from flowgraph.builder import code_to_flowgraph
from flowgraph.config import load_settings
from flowgraph.flow_ast import graph_summary, graph_to_markdown_tables, save_graph, to_json
from flowgraph.mermaid import DIRECTIONS, code_to_mermaid
from flowgraph.validate_mermaid import count_elements, validate_mermaid


def _add_input_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('--input', '-i', help='Input source file')
    parser.add_argument('--stdin', action='store_true', help='Read from stdin')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='flowgraph',
        description='Convert curly-brace source code into Mermaid flowcharts',
    )
    sub = parser.add_subparsers(dest='command')

    mermaid_cmd = sub.add_parser('mermaid', help='Write a Mermaid flowchart')
    _add_input_args(mermaid_cmd)
    mermaid_cmd.add_argument('--output', '-o', help='Output file (default: stdout)')
    mermaid_cmd.add_argument('--fenced', action='store_true', help='Wrap in a ```mermaid fence')
    mermaid_cmd.add_argument('--direction', choices=DIRECTIONS, help='Flow direction (default: from env, TD)')

    json_cmd = sub.add_parser('json', help='Write the flow graph as JSON')
    _add_input_args(json_cmd)
    json_cmd.add_argument('--output', '-o', help='Output .flow.json (default: stdout)')

    table_cmd = sub.add_parser('table', help='Print the flow graph as markdown tables')
    _add_input_args(table_cmd)
    table_cmd.add_argument('--name', default='', help='Source name for heading')

    validate_cmd = sub.add_parser('validate', help='Validate Mermaid flowchart text')
    _add_input_args(validate_cmd)
    validate_cmd.add_argument('--json', action='store_true', help='Output result as JSON')
    validate_cmd.add_argument('--mmdc', action='store_true', help='Also run the Mermaid CLI syntax check')

    return parser


def _read_input(args: argparse.Namespace) -> Optional[str]:
    """Return input text, or None after reporting an error."""
    if args.stdin:
        return sys.stdin.read()
    if args.input:
        input_path = Path(args.input)
        if not input_path.exists():
            print(f"Error: Input file not found: {input_path}", file=sys.stderr)
            return None
        return input_path.read_text(encoding='utf-8', errors='replace')
    print("Error: Either --input or --stdin is required", file=sys.stderr)
    return None


def _write_output(text: str, output: Optional[str]) -> None:
    if output:
        out = Path(output)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(text, encoding='utf-8')
        print(f"[cli] Written to {out}", file=sys.stderr)
    else:
        print(text)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 0

    content = _read_input(args)
    if content is None:
        return 1

    settings = load_settings()

    if args.command == 'validate':
        is_valid, error = validate_mermaid(content, use_mmdc=args.mmdc or settings.validate_with_mmdc)
        counts = count_elements(content)
        if args.json:
            print(json.dumps({'valid': is_valid, 'error': error or None, **counts}, indent=2))
        elif is_valid:
            print(f"VALID ({counts['node_count']} nodes, {counts['edge_count']} edges)", file=sys.stderr)
        else:
            print(f"INVALID: {error}", file=sys.stderr)
        return 0 if is_valid else 1

    if args.command == 'mermaid':
        mermaid = code_to_mermaid(
            content,
            max_label_chars=settings.label_max_chars,
            direction=args.direction or settings.direction,
            fenced=args.fenced,
        )
        _write_output(mermaid, args.output)
        return 0

    graph = code_to_flowgraph(
        content,
        max_label_chars=settings.label_max_chars,
        direction=settings.direction,
    )
    summary = graph_summary(graph)
    print(f"[cli] {summary['node_count']} nodes, {summary['edge_count']} edges, shapes={summary['shapes']}", file=sys.stderr)

    if args.command == 'json':
        if args.output:
            save_graph(graph, args.output)
            print(f"[cli] Flow graph written to {args.output}", file=sys.stderr)
        else:
            print(json.dumps(to_json(graph), indent=2))
    elif args.command == 'table':
        name = args.name or (Path(args.input).stem if args.input else '')
        print(graph_to_markdown_tables(graph, source_name=name))

    return 0


if __name__ == '__main__':
    sys.exit(main())
