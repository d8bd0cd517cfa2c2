"""Component invocation scanning for the Extended dialect.

Finds ``<Name .../>`` and ``<Name ...>content</Name>`` invocations in a
document body and splits the body into literal text and Invocation segments.
Component names start with an upper-case letter; lower-case tags are left as
text. Fenced code blocks and code spans are skipped.
"""

import re
from dataclasses import dataclass
from typing import Any, Optional, Union

import yaml

from mdsite.errors import UnclosedComponentError


OPEN_TAG_RE = re.compile(r'<([A-Z][A-Za-z0-9_]*(?:\.[A-Za-z0-9_]+)*)(?=[\s/>])')
ATTR_NAME_RE = re.compile(r'[A-Za-z_:][-\w:.]*')
FENCE_RE = re.compile(r'^[ ]{0,3}(`{3,}|~{3,})[^\n]*$', re.MULTILINE)
BACKTICKS_RE = re.compile(r'`+')


@dataclass(frozen=True)
class Invocation:
    name:  str
    props: dict[str, Any]
    inner: Optional[str]      # None for self-closing invocations
    raw:   str                # exact source text, restored when it lands inside code
    block: bool               # alone on its line(s)
    indent: str = ""


Segment = Union[str, Invocation]


def _expression_value(expr: str) -> Any:
    """Interpret a {...} attribute value as a YAML literal, else keep the raw expression."""
    try:
        return yaml.safe_load(expr)
    except yaml.YAMLError:
        return expr.strip()


def _skip_ws(text: str, i: int) -> int:
    while i < len(text) and text[i].isspace():
        i += 1
    return i


def _read_braced(text: str, i: int, name: str) -> tuple[str, int]:
    """Read a balanced {...} expression starting at text[i] == '{'."""
    depth, j = 0, i
    while j < len(text):
        if text[j] == '{':
            depth += 1
        elif text[j] == '}':
            depth -= 1
            if depth == 0:
                return text[i + 1:j], j + 1
        j += 1
    raise UnclosedComponentError(name)


def parse_tag(text: str, start: int) -> Optional[tuple[str, dict[str, Any], bool, int]]:
    """Parse an opening tag at text[start].

    Returns (name, props, self_closing, end) or None when the text is not a
    component tag. Raises UnclosedComponentError when the tag runs off the end
    of the text.
    """
    m = OPEN_TAG_RE.match(text, start)
    if not m:
        return None
    name, i = m.group(1), m.end()
    props: dict[str, Any] = {}

    while True:
        i = _skip_ws(text, i)
        if i >= len(text):
            raise UnclosedComponentError(name)
        if text.startswith('/>', i):
            return name, props, True, i + 2
        if text[i] == '>':
            return name, props, False, i + 1

        attr = ATTR_NAME_RE.match(text, i)
        if not attr:
            return None
        key, i = attr.group(0), _skip_ws(text, attr.end())
        if i >= len(text):
            raise UnclosedComponentError(name)
        if text[i] != '=':
            props[key] = True
            continue

        i = _skip_ws(text, i + 1)
        if i >= len(text):
            raise UnclosedComponentError(name)
        quote = text[i]
        if quote in ('"', "'"):
            end = text.find(quote, i + 1)
            if end < 0:
                raise UnclosedComponentError(name)
            props[key] = text[i + 1:end]
            i = end + 1
        elif quote == '{':
            expr, i = _read_braced(text, i, name)
            props[key] = _expression_value(expr)
        else:
            return None


def _find_close(text: str, name: str, start: int) -> tuple[int, int]:
    """Return (close_start, close_end) of the </name> matching an open tag ending at start.

    Fenced code blocks and code spans are skipped, so a closing tag shown as
    code does not end the invocation.
    """
    pattern = re.compile(rf'<{re.escape(name)}(?=[\s/>])|</{re.escape(name)}\s*>')
    depth, i = 1, start
    while i < len(text):
        skipped = _skip_code(text, i)
        if skipped != i:
            i = skipped
            continue
        m = pattern.match(text, i)
        if not m:
            i += 1
            continue
        if m.group(0).startswith('</'):
            depth -= 1
            if depth == 0:
                return m.start(), m.end()
            i = m.end()
            continue
        tag = parse_tag(text, m.start())
        if tag is None:
            i = m.end()
            continue
        _, _, self_closing, i = tag
        if not self_closing:
            depth += 1
    raise UnclosedComponentError(name)


def _line_bounds(text: str, start: int, end: int) -> tuple[str, str]:
    """Return (text before start on its line, text after end on its line)."""
    line_start = text.rfind('\n', 0, start) + 1
    line_end = text.find('\n', end)
    if line_end < 0:
        line_end = len(text)
    return text[line_start:start], text[end:line_end]


def _skip_code(text: str, i: int) -> int:
    """If a fence or code span starts at i, return the index just past it, else i."""
    at_line_start = i == 0 or text[i - 1] == '\n'
    if at_line_start:
        fence = FENCE_RE.match(text, i)
        if fence:
            marker = fence.group(1)
            closing = re.compile(rf'^[ ]{{0,3}}{re.escape(marker[0])}{{{len(marker)},}}[ \t]*$', re.MULTILINE)
            close = closing.search(text, fence.end())
            return close.end() if close else len(text)
    if text[i] == '`':
        run = BACKTICKS_RE.match(text, i).group(0)
        close = re.compile(rf'(?<!`){run}(?!`)').search(text, i + len(run))
        return close.end() if close else i + len(run)
    return i


def split_invocations(text: str) -> list[Segment]:
    """Split text into literal strings and top-level Invocation segments."""
    segments: list[Segment] = []
    literal_start = i = 0
    while i < len(text):
        skipped = _skip_code(text, i)
        if skipped != i:
            i = skipped
            continue
        if text[i] != '<':
            i += 1
            continue
        tag = parse_tag(text, i)
        if tag is None:
            i += 1
            continue

        name, props, self_closing, tag_end = tag
        if self_closing:
            inner, end = None, tag_end
        else:
            close_start, end = _find_close(text, name, tag_end)
            inner = text[tag_end:close_start]

        before, after = _line_bounds(text, i, end)
        block = not before.strip() and not after.strip()
        if i > literal_start:
            segments.append(text[literal_start:i])
        segments.append(Invocation(
            name=name,
            props=props,
            inner=inner,
            raw=text[i:end],
            block=block,
            indent=before if block else "",
        ))
        literal_start = i = end

    if literal_start < len(text):
        segments.append(text[literal_start:])
    return segments
