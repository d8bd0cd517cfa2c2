"""Render adapter: final AST to an HTML string or a PresentationNode tree"""

import html
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping, Optional, Union

from mdsite.core.markup import ast
from mdsite.errors import UnknownComponentError, UnsupportedNodeError


class RenderTarget(str, Enum):
    html = "html"
    tree = "tree"


@dataclass(frozen=True)
class PresentationNode:
    """One element of the presentation tree handed to the rendering layer.

    ``props`` is final: injected attributes (heading ids, link target/rel)
    merged over the override's props. ``render()`` applies the resolved
    handler, returning the node itself when there is none.
    """
    tag:      str
    props:    dict[str, Any]
    children: tuple[Union["PresentationNode", str], ...] = ()
    handler:  Optional[Callable[["PresentationNode"], Any]] = None
    node:     Any = None        # source AST node

    def render(self) -> Any:
        if self.handler is None:
            return self
        return self.handler(self)

    def as_dict(self) -> dict[str, Any]:
        """JSON-friendly view (tag, props, children), without handlers or AST nodes."""
        return {
            "tag": self.tag,
            "props": self.props,
            "children": [c if isinstance(c, str) else c.as_dict() for c in self.children],
        }


@dataclass(frozen=True)
class Override:
    """Caller-supplied behavior for a tag or component name."""
    props:   Mapping[str, Any] = field(default_factory=dict)
    handler: Optional[Callable[[PresentationNode], Any]] = None


Registry = Mapping[str, Override]

IDENTITY = Override()


def identity_registry(names) -> dict[str, Override]:
    """Registry that accepts each named component and renders it unchanged."""
    return {name: IDENTITY for name in names}


EMPHASIS_TAGS = {"em": "em", "strong": "strong", "del": "del"}


def _tag_and_attrs(node) -> tuple[str, dict[str, Any]]:
    """HTML tag name and injected attributes for a tag-like node."""
    if isinstance(node, ast.Heading):
        return f"h{node.level}", ({"id": node.id} if node.id else {})
    if isinstance(node, ast.Paragraph):
        return "p", {}
    if isinstance(node, ast.Link):
        attrs = {"href": node.href}
        if node.title:
            attrs["title"] = node.title
        return "a", {**attrs, **node.attrs}
    if isinstance(node, ast.List):
        if node.ordered:
            return "ol", ({"start": node.start} if node.start not in (None, 1) else {})
        return "ul", {}
    if isinstance(node, ast.ListItem):
        return "li", {}
    if isinstance(node, ast.Blockquote):
        return "blockquote", {}
    if isinstance(node, ast.CodeInline):
        return "code", {}
    if isinstance(node, ast.CodeBlock):
        return "pre", {}
    if isinstance(node, ast.Emphasis):
        return EMPHASIS_TAGS[node.kind], {}
    if isinstance(node, ast.Image):
        attrs = {"src": node.src, "alt": node.alt}
        if node.title:
            attrs["title"] = node.title
        return "img", attrs
    if isinstance(node, ast.ThematicBreak):
        return "hr", {}
    if isinstance(node, ast.LineBreak):
        return "br", {}
    raise UnsupportedNodeError(node.type)


# --- HTML serialization ---

VOID_TAGS = {"img", "hr", "br"}
BLOCK_SEP = "\n"


def _attrs_html(attrs: Mapping[str, Any]) -> str:
    return "".join(f' {k}="{html.escape(str(v), quote=True)}"' for k, v in attrs.items())


def _code_attrs(language: Optional[str]) -> dict[str, str]:
    return {"class": f"language-{language}"} if language else {}


def to_html(node) -> str:
    """Serialize a node depth-first, escaping all text and attribute values."""
    if isinstance(node, ast.Root):
        return BLOCK_SEP.join(to_html(c) for c in node.children)
    if isinstance(node, ast.Text):
        return html.escape(node.value, quote=False)
    if isinstance(node, ast.ComponentInvocation):
        raise UnsupportedNodeError(f"component <{node.name}>")
    if isinstance(node, ast.CodeInline):
        return f"<code>{html.escape(node.text, quote=False)}</code>"
    if isinstance(node, ast.CodeBlock):
        code = f"<code{_attrs_html(_code_attrs(node.language))}>{html.escape(node.text, quote=False)}</code>"
        return f"<pre>{code}</pre>"

    tag, attrs = _tag_and_attrs(node)
    if tag in VOID_TAGS:
        return f"<{tag}{_attrs_html(attrs)} />"
    children = ast.child_nodes(node)
    if isinstance(node, (ast.List, ast.Blockquote)):
        inner = BLOCK_SEP + BLOCK_SEP.join(to_html(c) for c in children) + BLOCK_SEP
    elif isinstance(node, ast.ListItem) and any(not _is_inline(c) for c in children):
        inner = BLOCK_SEP.join(to_html(c) for c in children)
    else:
        inner = "".join(to_html(c) for c in children)
    return f"<{tag}{_attrs_html(attrs)}>{inner}</{tag}>"


def _is_inline(node) -> bool:
    if isinstance(node, ast.ComponentInvocation):
        return node.inline
    return isinstance(node, (ast.Text, ast.CodeInline, ast.Link, ast.Emphasis, ast.Image, ast.LineBreak))


# --- presentation tree ---

def _lookup(registry: Registry, name: str) -> Override:
    return registry.get(name, IDENTITY)


def _tree(node, registry: Registry) -> Union[PresentationNode, str]:
    if isinstance(node, ast.Text):
        return node.value
    if isinstance(node, ast.ComponentInvocation):
        if node.name not in registry:
            raise UnknownComponentError(node.name)
        override = registry[node.name]
        return PresentationNode(
            tag=node.name,
            props={**override.props, **node.props},
            children=tuple(_tree(c, registry) for c in node.children),
            handler=override.handler,
            node=node,
        )

    tag, attrs = _tag_and_attrs(node)
    if isinstance(node, ast.CodeInline):
        children = (node.text,)
    elif isinstance(node, ast.CodeBlock):
        code = _lookup(registry, "code")
        children = (PresentationNode(
            tag="code",
            props={**code.props, **_code_attrs(node.language)},
            children=(node.text,),
            handler=code.handler,
            node=node,
        ),)
    else:
        children = tuple(_tree(c, registry) for c in ast.child_nodes(node))

    override = _lookup(registry, tag)
    return PresentationNode(
        tag=tag,
        props={**override.props, **attrs},
        children=children,
        handler=override.handler,
        node=node,
    )


def to_tree(root: ast.Root, registry: Optional[Registry] = None) -> PresentationNode:
    """Build the presentation tree; the root is a 'fragment' node holding the top-level blocks."""
    registry = registry or {}
    return PresentationNode(
        tag="fragment",
        props={},
        children=tuple(_tree(c, registry) for c in root.children),
        node=root,
    )


def render(
    root: ast.Root,
    target: RenderTarget = RenderTarget.html,
    registry: Optional[Registry] = None,
    ) -> Union[str, PresentationNode]:
    """Render a transformed tree to the requested target."""
    if RenderTarget(target) is RenderTarget.html:
        return to_html(root)
    return to_tree(root, registry)
