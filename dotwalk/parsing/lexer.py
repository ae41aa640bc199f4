"""Line classifier for the tolerant DOT subset.

Each trimmed line is classified on its own, after any trailing // comment is
cut off. Shapes are tried in a fixed priority order: skip, header, one-line
node, edge, block start, bare node. Anything else is IGNORED rather than
rejected.
"""

from __future__ import annotations

import re

from dotwalk.parsing.models import LineKind, LineRecord

_ID = r'(?:"([^"]+)"|([A-Za-z0-9._/-]+))'

_HEADER_RE = re.compile(r"^(?:strict\s+)?(?:di)?graph(?!\s*\[)(?=\s|\{|$)", re.IGNORECASE)
_NODE_RE = re.compile(rf"^{_ID}\s*\[(.*)\]\s*;?$")
_EDGE_RE = re.compile(rf"^{_ID}\s*->\s*{_ID}\s*(?:\[(.*)\])?\s*;?$")
_BLOCK_START_RE = re.compile(rf"^{_ID}\s*\[([^\]]*)$")
_EDGE_BLOCK_START_RE = re.compile(rf"^{_ID}\s*->\s*{_ID}\s*\[([^\]]*)$")
_BARE_RE = re.compile(rf"^{_ID}\s*;?$")
_BLOCK_END_RE = re.compile(r"\]\s*;?\s*$")

_NODE_LABEL_RE = re.compile(r'\blabel\s*=\s*"([^"]*)"')
_EDGE_LABEL_RE = re.compile(r'\blabel\s*=\s*"([^"]*)"', re.IGNORECASE)

# Unquoted DOT keywords introduce statements, never nodes
_KEYWORDS = frozenset({"node", "edge", "graph", "digraph", "subgraph", "strict"})

_SKIP = LineRecord(LineKind.SKIP)
_HEADER = LineRecord(LineKind.HEADER)
_IGNORED = LineRecord(LineKind.IGNORED)


def unquote(value: str) -> str:
    """Strip one layer of surrounding double quotes."""
    if len(value) >= 2 and value[0] == '"' and value[-1] == '"':
        return value[1:-1]
    return value


def strip_comment(line: str) -> str:
    """Cut a trailing // comment that starts outside double quotes.

    The slashes must open the line or follow whitespace, ";" or "]", so
    bare identifiers such as org//model survive. O(len(line)).
    """
    if "//" not in line:
        return line
    in_quotes = False
    escaped = False
    for i, char in enumerate(line):
        if in_quotes:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_quotes = False
        elif char == '"':
            in_quotes = True
        elif char == "/" and line.startswith("//", i):
            if i == 0 or line[i - 1].isspace() or line[i - 1] in ";]":
                return line[:i].rstrip()
    return line


def extract_label(attrs: str | None, *, ignore_case: bool = False) -> str | None:
    """Return the first non-empty label="..." value in an attribute list."""
    if not attrs:
        return None
    pattern = _EDGE_LABEL_RE if ignore_case else _NODE_LABEL_RE
    match = pattern.search(attrs)
    if match and match.group(1):
        return match.group(1)
    return None


def is_block_end(line: str) -> bool:
    """Check whether a line closes a multi-line attribute block."""
    return bool(_BLOCK_END_RE.search(strip_comment(line)))


def _identifier(quoted: str | None, bare: str | None) -> str | None:
    if quoted is not None:
        return quoted
    if bare is not None and bare.lower() not in _KEYWORDS:
        return bare
    return None


def classify_line(raw: str) -> LineRecord:
    """Classify one line of DOT text."""
    line = raw.strip()

    if not line or line in ("{", "}") or line.startswith(("//", "#")):
        return _SKIP
    line = strip_comment(line)
    if line in ("{", "}"):
        return _SKIP
    if _HEADER_RE.match(line):
        return _HEADER

    if "->" not in line:
        match = _NODE_RE.match(line)
        if match:
            identifier = _identifier(match.group(1), match.group(2))
            if identifier is None:
                return _IGNORED
            return LineRecord(
                LineKind.NODE,
                source=identifier,
                label=extract_label(match.group(3)),
            )

    match = _EDGE_RE.match(line)
    if match:
        source = _identifier(match.group(1), match.group(2))
        target = _identifier(match.group(3), match.group(4))
        if source is None or target is None:
            return _IGNORED
        return LineRecord(
            LineKind.EDGE,
            source=source,
            target=target,
            label=extract_label(match.group(5), ignore_case=True),
        )

    # An unclosed "[" always opens a block, even when the statement names no node
    match = _EDGE_BLOCK_START_RE.match(line)
    if match:
        source = _identifier(match.group(1), match.group(2))
        target = _identifier(match.group(3), match.group(4))
        if source is None or target is None:
            return LineRecord(LineKind.ATTR_BLOCK_START, attrs=match.group(5))
        return LineRecord(
            LineKind.EDGE_BLOCK_START, source=source, target=target, attrs=match.group(5)
        )

    match = _BLOCK_START_RE.match(line)
    if match:
        identifier = _identifier(match.group(1), match.group(2))
        if identifier is None:
            return LineRecord(LineKind.ATTR_BLOCK_START, attrs=match.group(3))
        return LineRecord(LineKind.BLOCK_START, source=identifier, attrs=match.group(3))

    match = _BARE_RE.match(line)
    if match:
        identifier = _identifier(match.group(1), match.group(2))
        if identifier is None:
            return _IGNORED
        return LineRecord(LineKind.BARE_NODE, source=identifier)

    return _IGNORED
