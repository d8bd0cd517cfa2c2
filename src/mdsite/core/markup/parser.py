"""Markdown/MDX body parsing: markdown-it token stream folded into the AST"""

import logging
import re
import textwrap
from typing import Any, Optional

from markdown_it import MarkdownIt

from mdsite.core.markup.ast import (
    Blockquote, CodeBlock, CodeInline, ComponentInvocation, Emphasis, Heading, Image,
    LineBreak, Link, List, ListItem, Paragraph, Root, Text, ThematicBreak,
    child_nodes, replace_children,
)
from mdsite.core.markup.components import Invocation, split_invocations
from mdsite.core.models import Variant


logger = logging.getLogger(__name__)

MAX_HEADING_LEVEL = 6
DEEP_HEADING_RE = re.compile(r'#{7,}(?:[ \t]+(.*?))?(?:[ \t]+#+)?[ \t]*$')

# Private-use delimiters keep placeholders intact through markdown-it.
PRIVATE_USE = range(0xE000, 0xF900)

EMPHASIS_KIND = {'em_open': 'em', 'strong_open': 'strong', 's_open': 'del'}


def _deep_heading(state, start_line: int, end_line: int, silent: bool) -> bool:
    """Block rule: '####### Title' becomes a heading clamped to the deepest level."""
    if state.sCount[start_line] - state.blkIndent >= 4:
        return False
    pos = state.bMarks[start_line] + state.tShift[start_line]
    m = DEEP_HEADING_RE.match(state.src[pos:state.eMarks[start_line]])
    if not m:
        return False
    if silent:
        return True

    state.line = start_line + 1
    tag = f"h{MAX_HEADING_LEVEL}"
    token = state.push("heading_open", tag, 1)
    token.markup = "#" * MAX_HEADING_LEVEL
    token.map = [start_line, state.line]
    token = state.push("inline", "", 0)
    token.content = (m.group(1) or "").strip()
    token.map = [start_line, state.line]
    token.children = []
    token = state.push("heading_close", tag, -1)
    token.markup = "#" * MAX_HEADING_LEVEL
    return True


def make_parser(preset: str = "commonmark") -> MarkdownIt:
    """Build a MarkdownIt instance: raw HTML off, strikethrough on, deep headings clamped."""
    md = MarkdownIt(preset, options_update={"html": False, "linkify": False})
    md.enable("strikethrough", ignoreInvalid=True)
    md.block.ruler.before(
        "heading", "deep_heading", _deep_heading, {"alt": ["paragraph", "reference", "blockquote"]}
    )
    return md


def _merge_text(nodes: list) -> list:
    merged: list = []
    for node in nodes:
        if isinstance(node, Text) and merged and isinstance(merged[-1], Text):
            merged[-1] = Text(value=merged[-1].value + node.value)
        elif not (isinstance(node, Text) and node.value == ""):
            merged.append(node)
    return merged


def _inline_nodes(tokens: list) -> list:
    """Fold inline tokens (text, emphasis, links, code spans, ...) into nodes."""
    stack: list[tuple[Any, list]] = [(None, [])]
    for tok in tokens or []:
        if tok.nesting == 1:
            stack.append((tok, []))
            continue
        if tok.nesting == -1:
            if len(stack) == 1:
                continue
            opener, children = stack.pop()
            children = _merge_text(children)
            if opener.type == 'link_open':
                node = Link(
                    href=str(opener.attrGet('href') or ''),
                    title=opener.attrGet('title'),
                    children=children,
                )
                stack[-1][1].append(node)
            elif opener.type in EMPHASIS_KIND:
                stack[-1][1].append(Emphasis(kind=EMPHASIS_KIND[opener.type], children=children))
            else:
                stack[-1][1].extend(children)
            continue

        if tok.type in ('text', 'html_inline'):
            node = Text(value=tok.content)
        elif tok.type == 'softbreak':
            node = Text(value="\n")
        elif tok.type == 'hardbreak':
            node = LineBreak()
        elif tok.type == 'code_inline':
            node = CodeInline(text=tok.content)
        elif tok.type == 'image':
            node = Image(src=str(tok.attrGet('src') or ''), alt=tok.content, title=tok.attrGet('title'))
        elif tok.content:
            node = Text(value=tok.content)
        else:
            continue
        stack[-1][1].append(node)

    # unbalanced openers are flattened into their parent
    while len(stack) > 1:
        _, children = stack.pop()
        stack[-1][1].extend(children)
    return _merge_text(stack[0][1])


def _clamp(level: int, max_level: int) -> int:
    return max(1, min(level, max_level))


def _close_block(opener, children: list, max_level: int) -> list:
    """Build the node(s) for a closed block container."""
    kind = opener.type
    if kind == 'heading_open':
        return [Heading(level=_clamp(int(opener.tag[1:]), max_level), children=children)]
    if kind == 'paragraph_open':
        # tight list paragraphs are hidden; their content belongs to the item
        return children if opener.hidden else [Paragraph(children=children)]
    if kind == 'bullet_list_open':
        return [List(ordered=False, items=[c for c in children if isinstance(c, ListItem)])]
    if kind == 'ordered_list_open':
        start = opener.attrGet('start')
        return [List(
            ordered=True,
            start=int(start) if start is not None else 1,
            items=[c for c in children if isinstance(c, ListItem)],
        )]
    if kind == 'list_item_open':
        return [ListItem(children=children)]
    if kind == 'blockquote_open':
        return [Blockquote(children=children)]
    # unknown containers (e.g. tables from other presets) are flattened
    return children


def _block_nodes(tokens: list, max_level: int) -> list:
    """Fold block-level tokens into nodes."""
    stack: list[tuple[Any, list]] = [(None, [])]
    for tok in tokens:
        if tok.nesting == 1:
            stack.append((tok, []))
        elif tok.nesting == -1:
            if len(stack) == 1:
                continue
            opener, children = stack.pop()
            stack[-1][1].extend(_close_block(opener, children, max_level))
        elif tok.type == 'inline':
            inline = _inline_nodes(tok.children)
            opener = stack[-1][0]
            if opener is not None and opener.type in ('heading_open', 'paragraph_open'):
                stack[-1][1].extend(inline)
            elif inline:
                stack[-1][1].append(Paragraph(children=inline))
        elif tok.type == 'fence':
            language = tok.info.strip().split()[0] if tok.info.strip() else None
            stack[-1][1].append(CodeBlock(text=tok.content, language=language))
        elif tok.type == 'code_block':
            stack[-1][1].append(CodeBlock(text=tok.content))
        elif tok.type == 'hr':
            stack[-1][1].append(ThematicBreak())
        elif tok.content:
            stack[-1][1].append(Paragraph(children=[Text(value=tok.content)]))

    while len(stack) > 1:
        _, children = stack.pop()
        stack[-1][1].extend(children)
    return stack[0][1]


class _Placeholders:
    """Numbered placeholders bracketed by two private-use characters absent from the body."""

    def __init__(self, body: str):
        free = (chr(c) for c in PRIVATE_USE if chr(c) not in body)
        self.open, self.close = next(free), next(free)
        self.pattern = re.compile(rf'{self.open}(\d+){self.close}')

    def key(self, index: int) -> str:
        return f"{self.open}{index}{self.close}"


class _ComponentResolver:
    """Swaps placeholders left in the tree for ComponentInvocation nodes."""

    def __init__(self, invocations: list[Invocation], placeholders: _Placeholders, parse_inner):
        self.invocations = invocations
        self.pattern = placeholders.pattern
        self.parse_inner = parse_inner

    def _restore(self, text: str) -> str:
        return self.pattern.sub(lambda m: self.invocations[int(m.group(1))].raw, text)

    def _component(self, index: int, inline: bool) -> ComponentInvocation:
        inv = self.invocations[index]
        children = []
        if inv.inner is not None:
            children = self.parse_inner(textwrap.dedent(inv.inner)).children
            if inline and len(children) == 1 and isinstance(children[0], Paragraph):
                children = children[0].children
        return ComponentInvocation(name=inv.name, props=inv.props, children=children, inline=inline)

    def _split_text(self, value: str) -> list:
        nodes: list = []
        pos = 0
        for m in self.pattern.finditer(value):
            if m.start() > pos:
                nodes.append(Text(value=value[pos:m.start()]))
            nodes.append(self._component(int(m.group(1)), inline=True))
            pos = m.end()
        if pos < len(value):
            nodes.append(Text(value=value[pos:]))
        return nodes

    def resolve(self, nodes: list) -> list:
        out: list = []
        for node in nodes:
            if isinstance(node, Paragraph) and len(node.children) == 1 and isinstance(node.children[0], Text):
                m = self.pattern.fullmatch(node.children[0].value.strip())
                if m:
                    out.append(self._component(int(m.group(1)), inline=False))
                    continue
            if isinstance(node, Text):
                out.extend(self._split_text(node.value))
            elif isinstance(node, (CodeInline, CodeBlock)):
                out.append(node.model_copy(update={"text": self._restore(node.text)}))
            elif isinstance(node, Image):
                # alt is plain text, so invocations there stay as written
                out.append(node.model_copy(update={
                    "src": self._restore(node.src),
                    "alt": self._restore(node.alt),
                    "title": node.title and self._restore(node.title),
                }))
            elif isinstance(node, Link):
                out.append(node.model_copy(update={
                    "href": self._restore(node.href),
                    "children": self.resolve(node.children),
                }))
            elif child_nodes(node):
                out.append(replace_children(node, self.resolve(child_nodes(node))))
            else:
                out.append(node)
        return out


def _substitute(segments: list, placeholders: _Placeholders) -> tuple[str, list[Invocation]]:
    """Replace invocations with numbered placeholders; block invocations get their own paragraph."""
    parts: list[str] = []
    invocations: list[Invocation] = []
    for seg in segments:
        if isinstance(seg, str):
            parts.append(seg)
            continue
        key = placeholders.key(len(invocations))
        invocations.append(seg)
        parts.append(f"\n\n{seg.indent}{key}\n\n" if seg.block else key)
    return "".join(parts), invocations


def _parse(md: MarkdownIt, body: str, variant: Variant, max_level: int) -> Root:
    if variant is not Variant.extended:
        return Root(children=_block_nodes(md.parse(body), max_level))

    placeholders = _Placeholders(body)
    source, invocations = _substitute(split_invocations(body), placeholders)
    children = _block_nodes(md.parse(source), max_level)
    if invocations:
        logger.debug("Resolving %d component invocation(s)", len(invocations))
        resolver = _ComponentResolver(
            invocations, placeholders, lambda inner: _parse(md, inner, variant, max_level))
        children = resolver.resolve(children)
    return Root(children=children)


def parse(
    body: str,
    variant: Variant = Variant.baseline,
    parser_config: str = "commonmark",
    max_heading_level: Optional[int] = None,
    ) -> Root:
    """Parse a document body into a Root node.

    Baseline bodies never fail. Extended bodies additionally recognize
    component invocations and raise UnclosedComponentError for an
    invocation that is never closed.
    """
    max_level = _clamp(max_heading_level or MAX_HEADING_LEVEL, MAX_HEADING_LEVEL)
    return _parse(make_parser(parser_config), body, variant, max_level)
