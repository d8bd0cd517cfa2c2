"""AST node types for parsed document bodies.

Nodes are frozen pydantic models discriminated on ``type``. Transform stages
never mutate a node; they build replacements with ``model_copy(update=...)``.
"""

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class _Node(BaseModel):
    model_config = ConfigDict(frozen=True)


class Text(_Node):
    type: Literal["text"] = "text"
    value: str


class CodeInline(_Node):
    type: Literal["code_inline"] = "code_inline"
    text: str


class CodeBlock(_Node):
    type: Literal["code_block"] = "code_block"
    text: str
    language: Optional[str] = None


class LineBreak(_Node):
    type: Literal["line_break"] = "line_break"


class ThematicBreak(_Node):
    type: Literal["thematic_break"] = "thematic_break"


class Image(_Node):
    type: Literal["image"] = "image"
    src: str
    alt: str = ""
    title: Optional[str] = None


class Emphasis(_Node):
    type: Literal["emphasis"] = "emphasis"
    kind: Literal["em", "strong", "del"] = "em"
    children: list["Node"] = Field(default_factory=list)


class Link(_Node):
    type: Literal["link"] = "link"
    href: str
    title: Optional[str] = None
    attrs: dict[str, str] = Field(default_factory=dict)     # injected by transform stages
    children: list["Node"] = Field(default_factory=list)


class Heading(_Node):
    type: Literal["heading"] = "heading"
    level: int
    id: Optional[str] = None
    children: list["Node"] = Field(default_factory=list)


class Paragraph(_Node):
    type: Literal["paragraph"] = "paragraph"
    children: list["Node"] = Field(default_factory=list)


class Blockquote(_Node):
    type: Literal["blockquote"] = "blockquote"
    children: list["Node"] = Field(default_factory=list)


class ListItem(_Node):
    type: Literal["list_item"] = "list_item"
    children: list["Node"] = Field(default_factory=list)


class List(_Node):
    type: Literal["list"] = "list"
    ordered: bool = False
    start: Optional[int] = None
    items: list[ListItem] = Field(default_factory=list)


class ComponentInvocation(_Node):
    """An embedded component, e.g. <Tweet id="123" />. Extended documents only."""
    type: Literal["component"] = "component"
    name: str
    props: dict[str, Any] = Field(default_factory=dict)
    children: list["Node"] = Field(default_factory=list)
    inline: bool = False


class Root(_Node):
    type: Literal["root"] = "root"
    children: list["Node"] = Field(default_factory=list)


Node = Annotated[
    Union[
        Text, CodeInline, CodeBlock, LineBreak, ThematicBreak, Image, Emphasis, Link,
        Heading, Paragraph, Blockquote, ListItem, List, ComponentInvocation,
    ],
    Field(discriminator="type"),
]

for _model in (Emphasis, Link, Heading, Paragraph, Blockquote, ListItem, List, ComponentInvocation, Root):
    _model.model_rebuild()


def child_nodes(node: _Node) -> list:
    """Return the child list of a node (list items for List), or [] for leaves."""
    if isinstance(node, List):
        return node.items
    return getattr(node, "children", [])


def replace_children(node: _Node, children: list) -> _Node:
    """Return a copy of node with its child list replaced."""
    if isinstance(node, List):
        return node.model_copy(update={"items": children})
    if hasattr(node, "children"):
        return node.model_copy(update={"children": children})
    return node


def text_content(node: _Node) -> str:
    """Concatenated text of a subtree, as a reader would see it."""
    if isinstance(node, Text):
        return node.value
    if isinstance(node, CodeInline):
        return node.text
    if isinstance(node, Image):
        return node.alt
    return "".join(text_content(c) for c in child_nodes(node))


def walk(node: _Node):
    """Yield node and all descendants in document (pre-)order."""
    yield node
    for child in child_nodes(node):
        yield from walk(child)
