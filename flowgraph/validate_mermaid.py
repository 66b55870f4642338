"""
Mermaid flowchart validator.

Structural checks on generated flowchart text (header, declared nodes,
edges that only reference declared nodes) plus an optional syntax check
through the Mermaid CLI (mmdc), host install first, then npx.
"""

import re
import subprocess
import sys
import tempfile
from pathlib import Path
from typing import Dict, List, Tuple

FLOWCHART_HEADERS = ('flowchart', 'graph')

_NODE_DECL_RE = re.compile(r'^(\w+)\s*(?:\(\(|\[|\{)')
_EDGE_RE = re.compile(r'^(\w+)\s+-->(?:\|[^|]*\|)?\s+(\w+)\s*$')


def strip_fences(mermaid_code: str) -> str:
    cleaned = mermaid_code.strip()
    cleaned = re.sub(r'^```mermaid\s*\n?', '', cleaned)
    cleaned = re.sub(r'\n?```\s*$', '', cleaned)
    return cleaned.strip()


def _content_lines(mermaid_code: str) -> List[str]:
    return [
        l.strip() for l in strip_fences(mermaid_code).split('\n')
        if l.strip() and not l.strip().startswith('%%')
    ]


def undeclared_edge_refs(mermaid_code: str) -> List[str]:
    """Ids used by an edge before (or without) a node declaration."""
    declared = set()
    missing: List[str] = []
    for line in _content_lines(mermaid_code)[1:]:
        edge = _EDGE_RE.match(line)
        if edge:
            for node_id in edge.groups():
                if node_id not in declared and node_id not in missing:
                    missing.append(node_id)
            continue
        decl = _NODE_DECL_RE.match(line)
        if decl:
            declared.add(decl.group(1))
    return missing


def validate_basic(mermaid_code: str) -> Tuple[bool, str]:
    """Quick structural checks before invoking mmdc."""
    if not mermaid_code.strip():
        return False, "Empty Mermaid code"

    lines = _content_lines(mermaid_code)
    if not lines:
        return False, "Empty Mermaid code after stripping fences"

    header = lines[0].split()
    if header[0] not in FLOWCHART_HEADERS:
        return False, f"No flowchart declaration on first line: '{lines[0]}'"

    if len(lines) < 2:
        return False, "Diagram has no content (only type declaration)"

    missing = undeclared_edge_refs(mermaid_code)
    if missing:
        return False, f"Edges reference undeclared nodes: {', '.join(missing)}"

    return True, ""


def _run_mmdc(cmd: list, tmp_path: str, out_path: str) -> Tuple[bool, str, bool]:
    """Run an mmdc command. Returns (success, error_msg, tool_available).

    mmdc picks its renderer from the output extension, so ``out_path`` must
    end in .svg (or .png/.pdf).
    """
    try:
        result = subprocess.run(
            cmd + ['-i', tmp_path, '-o', out_path, '--quiet'],
            capture_output=True, text=True, timeout=30
        )
    except FileNotFoundError:
        return True, "", False
    except subprocess.TimeoutExpired:
        return True, "timed out", False

    if result.returncode == 0:
        return True, "", True
    error_msg = (result.stderr or result.stdout or "Unknown error").strip()[:500]
    infra_keywords = ['npm', 'registry', 'ENOENT', 'ECONNREFUSED', 'network',
                      'ETIMEDOUT', 'ERR!', 'Could not resolve', 'fetch failed']
    if any(kw.lower() in error_msg.lower() for kw in infra_keywords):
        return True, f"infra issue: {error_msg}", False
    return False, f"mmdc validation failed: {error_msg}", True


def validate_with_mmdc(mermaid_code: str) -> Tuple[bool, str]:
    """Validate using Mermaid CLI (mmdc). Tries host mmdc first, then npx."""
    with tempfile.NamedTemporaryFile(mode='w', suffix='.mmd', delete=False, encoding='utf-8') as f:
        f.write(strip_fences(mermaid_code))
        tmp_path = f.name
    out_path = str(Path(tmp_path).with_suffix('.svg'))

    try:
        for cmd in (['mmdc'], ['npx', '--no-install', 'mmdc']):
            ok, err, available = _run_mmdc(cmd, tmp_path, out_path)
            if available:
                return ok, err
        print("[validate] mmdc not available, basic validation only", file=sys.stderr)
        return True, "mmdc not available, basic validation only"
    finally:
        Path(tmp_path).unlink(missing_ok=True)
        Path(out_path).unlink(missing_ok=True)


def validate_mermaid(mermaid_code: str, use_mmdc: bool = False) -> Tuple[bool, str]:
    """
    Structural validation, followed by an mmdc syntax check when requested.
    Returns (is_valid, error_message).
    """
    is_valid, error = validate_basic(mermaid_code)
    if not is_valid or not use_mmdc:
        return is_valid, error
    return validate_with_mmdc(mermaid_code)


def count_elements(mermaid_code: str) -> Dict[str, int]:
    """Count declared nodes and edges in flowchart text."""
    nodes = set()
    edge_count = 0
    for line in _content_lines(mermaid_code)[1:]:
        edge = _EDGE_RE.match(line)
        if edge:
            edge_count += 1
            nodes.update(edge.groups())
            continue
        decl = _NODE_DECL_RE.match(line)
        if decl:
            nodes.add(decl.group(1))

    return {
        'node_count': len(nodes),
        'edge_count': edge_count,
    }
