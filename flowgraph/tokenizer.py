"""
Source Tokenizer

Turns curly-brace procedural source text into a flat list of typed
statements:
- Line normalization (split on any line terminator, trim, keep blanks)
- Ordered, first-match-wins line classification
- Block body resolution for if/else, else-if and for/while headers
  (brace block, inline braces, or a single trailing line)

Block bodies are single-level: the first line starting with a closing brace
ends the body, whatever nesting it contains.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional, Pattern, Sequence, Tuple, Union


# ─── Statements ───────────────────────────────────────────────────

@dataclass
class FunctionDecl:
    name: str
    line: str = ""


@dataclass
class ElseIf:
    condition: str
    body: List[str] = field(default_factory=list)


@dataclass
class IfStatement:
    condition: str
    then_body: List[str] = field(default_factory=list)
    else_body: List[str] = field(default_factory=list)
    line: str = ""
    # `else if` arms between the then-body and the final else, in order
    else_ifs: List[ElseIf] = field(default_factory=list)


@dataclass
class LoopStatement:
    keyword: str
    condition: str
    body: List[str] = field(default_factory=list)
    line: str = ""


@dataclass
class VariableDecl:
    content: str
    line: str = ""


@dataclass
class ReturnStatement:
    value: str
    line: str = ""


@dataclass
class GenericStatement:
    content: str
    line: str = ""


Statement = Union[
    FunctionDecl, IfStatement, LoopStatement,
    VariableDecl, ReturnStatement, GenericStatement,
]


# ─── Line normalization ───────────────────────────────────────────

def normalize_lines(text: str) -> List[str]:
    """Split raw text into trimmed lines. Blank lines are kept."""
    return [line.strip() for line in re.split(r'\r\n|\r|\n', text or '')]


# ─── Line classification ──────────────────────────────────────────

SKIP = 'skip'
FUNCTION = 'function'
IF = 'if'
LOOP = 'loop'
VARIABLE = 'variable'
RETURN = 'return'
GENERIC = 'generic'

# Checked in order; the first pattern that matches decides the kind.
_LINE_PATTERNS: List[Tuple[str, Pattern]] = [
    (SKIP, re.compile(r'^(?:$|//|/\*|[{}]$|else$)')),
    (FUNCTION, re.compile(r'^function\s+\w+')),
    (IF, re.compile(r'^if\s*\(')),
    (LOOP, re.compile(r'^(?:for|while)\s*\(')),
    (VARIABLE, re.compile(r'^(?:let|const|var)\s+')),
    (RETURN, re.compile(r'^return\b')),
]

_FUNCTION_NAME_RE = re.compile(r'function\s+(\w+)')
_LOOP_KEYWORD_RE = re.compile(r'^(for|while)\b')
_ELSE_RE = re.compile(r'^else\b\s*(.*)$')
_INLINE_ELSE_RE = re.compile(r'^(.*?);\s*(else\b.*)$')


def classify_line(line: str) -> str:
    """Return the kind of a trimmed source line."""
    for kind, pattern in _LINE_PATTERNS:
        if pattern.match(line):
            return kind
    return GENERIC


def _strip_semicolon(text: str) -> str:
    return re.sub(r';?\s*$', '', text)


def _split_paren_group(text: str) -> Tuple[str, str]:
    """Return (inside, rest) for the first balanced parenthesis group.

    An unbalanced group yields ('', '').
    """
    start = text.find('(')
    if start < 0:
        return '', text.strip()
    depth = 0
    for pos in range(start, len(text)):
        ch = text[pos]
        if ch == '(':
            depth += 1
        elif ch == ')':
            depth -= 1
            if depth == 0:
                return text[start + 1:pos].strip(), text[pos + 1:].strip()
    return '', ''


# ─── Block bodies ─────────────────────────────────────────────────

def _split_inline(text: str) -> List[str]:
    return [part.strip() for part in text.split(';') if part.strip()]


def _is_single_line_body(line: str) -> bool:
    return bool(line) and not _ELSE_RE.match(line) and not line.startswith('}')


def _collect_block(lines: Sequence[str], index: int) -> Tuple[List[str], int, str]:
    """Collect non-blank lines up to the first line opening with '}'.

    Returns (body, next_index, trailing) where trailing is whatever follows
    the closing brace on its line (e.g. "else {").
    """
    body: List[str] = []
    while index < len(lines) and not lines[index].startswith('}'):
        if lines[index]:
            body.append(lines[index])
        index += 1
    trailing = ''
    if index < len(lines):
        trailing = lines[index][1:].strip()
        index += 1
    return body, index, trailing


def _resolve_body(lines: Sequence[str], index: int, inline: str) -> Tuple[List[str], int, str]:
    """Resolve the body governed by a header.

    ``inline`` is the header text after its condition, ``index`` the first
    line after the header. Returns (body, next_index, trailing).
    """
    if not inline:
        if index < len(lines) and lines[index] == '{':
            return _collect_block(lines, index + 1)
        if index < len(lines) and _is_single_line_body(lines[index]):
            return [lines[index]], index + 1, ''
        return [], index, ''

    if inline == ';':
        return [], index, ''

    if inline.startswith('{'):
        inner = inline[1:]
        close = inner.find('}')
        if close >= 0:
            return _split_inline(inner[:close]), index, inner[close + 1:].strip()
        body, index, trailing = _collect_block(lines, index)
        return _split_inline(inner) + body, index, trailing

    m = _INLINE_ELSE_RE.match(inline)
    if m:
        return [m.group(1).strip()], index, m.group(2)
    return [inline], index, ''


def _take_else(lines: Sequence[str], index: int, trailing: str) -> Tuple[Optional[str], int]:
    """Look for an else header after a then-body.

    Returns (inline_rest, next_index); inline_rest is None when there is no else.
    """
    if trailing:
        m = _ELSE_RE.match(trailing)
        return (m.group(1).strip() if m else None), index
    if index < len(lines):
        m = _ELSE_RE.match(lines[index])
        if m:
            return m.group(1).strip(), index + 1
    return None, index


# ─── Statement parsers ────────────────────────────────────────────

def _parse_function(lines: Sequence[str], index: int) -> Tuple[Statement, int]:
    line = lines[index]
    m = _FUNCTION_NAME_RE.search(line)
    return FunctionDecl(name=m.group(1) if m else 'anonymous', line=line), index + 1


def _parse_if(lines: Sequence[str], index: int) -> Tuple[Statement, int]:
    line = lines[index]
    condition, rest = _split_paren_group(line)
    then_body, index, trailing = _resolve_body(lines, index + 1, rest)

    else_ifs: List[ElseIf] = []
    else_body: List[str] = []
    else_rest, index = _take_else(lines, index, trailing)
    while else_rest is not None and classify_line(else_rest) == IF:
        arm_condition, arm_rest = _split_paren_group(else_rest)
        arm_body, index, trailing = _resolve_body(lines, index, arm_rest)
        else_ifs.append(ElseIf(condition=arm_condition or 'condition', body=arm_body))
        else_rest, index = _take_else(lines, index, trailing)
    if else_rest is not None:
        else_body, index, _ = _resolve_body(lines, index, else_rest)

    stmt = IfStatement(
        condition=condition or 'condition',
        then_body=then_body,
        else_body=else_body,
        line=line,
        else_ifs=else_ifs,
    )
    return stmt, index


def _parse_loop(lines: Sequence[str], index: int) -> Tuple[Statement, int]:
    line = lines[index]
    keyword = _LOOP_KEYWORD_RE.match(line).group(1)
    condition, rest = _split_paren_group(line)
    body, index, _ = _resolve_body(lines, index + 1, rest)
    return LoopStatement(keyword=keyword, condition=condition, body=body, line=line), index


def _parse_variable(lines: Sequence[str], index: int) -> Tuple[Statement, int]:
    line = lines[index]
    return VariableDecl(content=_strip_semicolon(line), line=line), index + 1


def _parse_return(lines: Sequence[str], index: int) -> Tuple[Statement, int]:
    line = lines[index]
    value = _strip_semicolon(re.sub(r'^return\s*', '', line))
    return ReturnStatement(value=value or 'void', line=line), index + 1


def _parse_generic(lines: Sequence[str], index: int) -> Tuple[Statement, int]:
    line = lines[index]
    return GenericStatement(content=line, line=line), index + 1


_PARSERS = {
    FUNCTION: _parse_function,
    IF:       _parse_if,
    LOOP:     _parse_loop,
    VARIABLE: _parse_variable,
    RETURN:   _parse_return,
    GENERIC:  _parse_generic,
}


# ─── Public API ───────────────────────────────────────────────────

def parse_statement(lines: Sequence[str], index: int) -> Tuple[Optional[Statement], int]:
    """Parse the statement starting at ``lines[index]``.

    Returns (statement, next_index); statement is None for skipped lines.
    The returned index is always greater than ``index``.
    """
    kind = classify_line(lines[index])
    if kind == SKIP:
        return None, index + 1
    return _PARSERS[kind](lines, index)


def tokenize(lines: Sequence[str]) -> List[Statement]:
    """Group normalized lines into statements, left to right."""
    statements: List[Statement] = []
    index = 0
    while index < len(lines):
        stmt, index = parse_statement(lines, index)
        if stmt is not None:
            statements.append(stmt)
    return statements


def tokenize_source(text: str) -> List[Statement]:
    return tokenize(normalize_lines(text))
